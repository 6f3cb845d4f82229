"""
Storage port: what the document service needs from the key-value engine.

Conditions use boto3's condition builders so every backend shares one
language: `Key(attr)` for sort-key conditions, `Attr(attr)` for non-key
filters. Filter values must already be in stored form (timestamps encoded).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Union

from boto3.dynamodb.conditions import ConditionBase

from ..models.document import Document


@dataclass(slots=True)
class IndexPage:
    items: list[Document]
    # Opaque engine position; None means the engine reports no further items.
    cursor: Any | None = None


@dataclass(frozen=True, slots=True)
class Saved:
    document: Document


@dataclass(frozen=True, slots=True)
class VersionConflict:
    document_id: str
    attempted_version: int | None


SaveResult = Union[Saved, VersionConflict]


class StoragePort(ABC):
    """Document storage engine contract."""

    @abstractmethod
    def get_by_key(self, document_id: str, *, consistent_read: bool = False) -> Document | None:
        """Point lookup by primary key."""

    @abstractmethod
    def query_index(
        self,
        index_name: str,
        partition_value: Any,
        *,
        sort_condition: ConditionBase | None = None,
        filter_condition: ConditionBase | None = None,
        limit: int | None = None,
        consistent_read: bool = False,
    ) -> list[Document]:
        """All items of one index partition matching the sort condition and filter."""

    @abstractmethod
    def query_index_page(
        self,
        index_name: str,
        partition_value: Any,
        *,
        limit: int,
        cursor: Any | None = None,
    ) -> IndexPage:
        """One engine-native page of an index partition, in sort-key order."""

    @abstractmethod
    def scan(self, *, filter_condition: ConditionBase | None = None) -> list[Document]:
        """Walk every item in the table. Cost scales with table size."""

    @abstractmethod
    def put_with_version_check(self, document: Document) -> SaveResult:
        """Conditional write.

        version None: create, stored version becomes 1; fails if the key
        already holds a versioned item. version N: succeeds only if the stored
        version is N, stored version becomes N + 1. A failed check returns
        VersionConflict and leaves the stored item untouched.
        """

    @abstractmethod
    def delete_by_key(self, document_id: str) -> None:
        """Unconditional, idempotent delete."""
