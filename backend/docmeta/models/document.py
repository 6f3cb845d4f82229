from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..timestamps import Instant, decode_instant, encode_instant

# Stored attribute names (camelCase, as they appear in the table and its indexes).
ID = "id"
OWNER_ID = "ownerId"
CATEGORY = "category"
SUB_CATEGORY = "subCategory"
CREATED_AT = "createdAt"
UPDATED_AT = "updatedAt"
CREATED_BY = "createdBy"
UPDATED_BY = "updatedBy"
NOTES = "notes"
VERSION = "version"


def _as_int(v: Any) -> int | None:
    if v is None:
        return None
    if isinstance(v, bool):
        raise TypeError("boolean is not a numeric attribute")
    # boto3 hands numbers back as Decimal.
    return int(v)


@dataclass(slots=True)
class Document:
    """Document metadata record.

    `version` is None until the first successful save, then 1, 2, 3, ...
    """

    id: str
    owner_id: int | None = None
    category: int | None = None
    sub_category: int | None = None
    created_at: Instant | None = None
    updated_at: Instant | None = None
    created_by: str | None = None
    updated_by: str | None = None
    notes: str | None = None
    version: int | None = None

    @property
    def is_new(self) -> bool:
        return self.version is None

    def to_item(self) -> dict[str, Any]:
        """Attribute map as written to the table.

        Unset attributes are omitted so sparse indexes skip them. `updatedAt` is
        the exception: None is written as an explicit NULL. `createdAt` is an
        index sort key and the engine rejects NULL for key attributes.
        """
        item: dict[str, Any] = {
            ID: self.id,
            OWNER_ID: self.owner_id,
            CATEGORY: self.category,
            SUB_CATEGORY: self.sub_category,
            CREATED_BY: self.created_by,
            UPDATED_BY: self.updated_by,
            NOTES: self.notes,
            VERSION: self.version,
        }
        item = {k: v for k, v in item.items() if v is not None}
        if self.created_at is not None:
            item[CREATED_AT] = encode_instant(self.created_at)
        item[UPDATED_AT] = encode_instant(self.updated_at)
        return item

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> Document:
        return cls(
            id=str(item[ID]),
            owner_id=_as_int(item.get(OWNER_ID)),
            category=_as_int(item.get(CATEGORY)),
            sub_category=_as_int(item.get(SUB_CATEGORY)),
            created_at=decode_instant(item.get(CREATED_AT)),
            updated_at=decode_instant(item.get(UPDATED_AT)),
            created_by=item.get(CREATED_BY),
            updated_by=item.get(UPDATED_BY),
            notes=item.get(NOTES),
            version=_as_int(item.get(VERSION)),
        )

    def to_api(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "category": self.category,
            "subCategory": self.sub_category,
            "createdAt": encode_instant(self.created_at),
            "updatedAt": encode_instant(self.updated_at),
            "createdBy": self.created_by,
            "updatedBy": self.updated_by,
            "notes": self.notes,
            "version": self.version,
        }

