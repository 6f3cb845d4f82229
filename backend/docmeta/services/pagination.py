"""
Uniform page view over two access patterns.

- `slice_from_cursor`: engine-native paging (Limit + ExclusiveStartKey).
  Cost is proportional to the pages walked. `has_next` is whatever the
  engine reports.
- `page_from_results`: the whole filtered result set is pulled first, then
  sliced in memory. Used where a non-key filter prevents native paging.
  Cost is proportional to the partition, not the page.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Generic, Sequence, TypeVar

from ..errors import DocumentValidationError
from ..storage.port import IndexPage

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class PageRequest:
    page: int = 0
    size: int = 20

    def __post_init__(self) -> None:
        if int(self.page) < 0:
            raise DocumentValidationError(message="page must be >= 0", field="page")
        if int(self.size) < 1:
            raise DocumentValidationError(message="size must be >= 1", field="size")

    @property
    def offset(self) -> int:
        return self.page * self.size

    def next(self) -> PageRequest:
        return PageRequest(page=self.page + 1, size=self.size)


@dataclass(slots=True)
class Slice(Generic[T]):
    content: list[T]
    request: PageRequest
    has_next: bool

    @property
    def number_of_elements(self) -> int:
        return len(self.content)

    def next_page_request(self) -> PageRequest | None:
        return self.request.next() if self.has_next else None

    def to_api(self, render: Callable[[T], Any]) -> dict[str, Any]:
        return {
            "content": [render(x) for x in self.content],
            "page": self.request.page,
            "size": self.request.size,
            "numberOfElements": self.number_of_elements,
            "hasNext": self.has_next,
        }


@dataclass(slots=True)
class Page(Slice[T]):
    total_elements: int = 0
    total_pages: int = 0

    def to_api(self, render: Callable[[T], Any]) -> dict[str, Any]:
        out = Slice.to_api(self, render)
        out["totalElements"] = self.total_elements
        out["totalPages"] = self.total_pages
        return out


def total_pages(total_elements: int, size: int) -> int:
    if total_elements <= 0:
        return 0
    return math.ceil(total_elements / size)


def slice_from_cursor(fetch: Callable[[int, Any | None], IndexPage], request: PageRequest) -> Slice:
    """Walk engine pages of `request.size` until the requested page is reached.

    `fetch(limit, cursor)` returns one engine page.
    """
    cursor: Any | None = None
    for _ in range(request.page):
        skipped = fetch(request.size, cursor)
        cursor = skipped.cursor
        if cursor is None:
            return Slice(content=[], request=request, has_next=False)

    page = fetch(request.size, cursor)
    return Slice(content=list(page.items), request=request, has_next=page.cursor is not None)


def page_from_results(results: Sequence[T], request: PageRequest) -> Page[T]:
    total = len(results)
    start = request.offset
    end = min(start + request.size, total)
    content = list(results[start:end]) if start < total else []
    pages = total_pages(total, request.size)
    return Page(
        content=content,
        request=request,
        has_next=pages > request.page + 1,
        total_elements=total,
        total_pages=pages,
    )
