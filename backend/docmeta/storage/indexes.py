from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..models.document import CATEGORY, CREATED_AT, ID, OWNER_ID, SUB_CATEGORY


@dataclass(frozen=True, slots=True)
class IndexSpec:
    name: str
    partition_key: str
    sort_key: str


OWNER_CREATED_AT_INDEX = IndexSpec("ownerId-createdAt-index", OWNER_ID, CREATED_AT)
OWNER_CATEGORY_INDEX = IndexSpec("ownerId-category-index", OWNER_ID, CATEGORY)
OWNER_SUB_CATEGORY_INDEX = IndexSpec("ownerId-subCategory-index", OWNER_ID, SUB_CATEGORY)

INDEXES: dict[str, IndexSpec] = {
    ix.name: ix for ix in (OWNER_CREATED_AT_INDEX, OWNER_CATEGORY_INDEX, OWNER_SUB_CATEGORY_INDEX)
}

# DynamoDB scalar types of every key attribute (table + indexes).
_KEY_TYPES = {
    ID: "S",
    OWNER_ID: "N",
    CATEGORY: "N",
    SUB_CATEGORY: "N",
    CREATED_AT: "S",
}


def get_index(name: str) -> IndexSpec:
    try:
        return INDEXES[name]
    except KeyError:
        raise ValueError(f"Unknown index: {name}") from None


def create_table_kwargs(table_name: str) -> dict[str, Any]:
    """CreateTable request for the document table and its secondary indexes."""
    return {
        "TableName": table_name,
        "BillingMode": "PAY_PER_REQUEST",
        "KeySchema": [{"AttributeName": ID, "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": name, "AttributeType": typ} for name, typ in _KEY_TYPES.items()
        ],
        "GlobalSecondaryIndexes": [
            {
                "IndexName": ix.name,
                "KeySchema": [
                    {"AttributeName": ix.partition_key, "KeyType": "HASH"},
                    {"AttributeName": ix.sort_key, "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            }
            for ix in INDEXES.values()
        ],
    }


def table_exists(client: Any, table_name: str) -> bool:
    """Whether `table_name` is in the account, walking every ListTables page (100 names each)."""
    for page in client.get_paginator("list_tables").paginate():
        if table_name in (page.get("TableNames") or []):
            return True
    return False
