from __future__ import annotations

from dataclasses import replace
from typing import Any

from boto3.dynamodb.conditions import Attr, ConditionBase, Key

from ..db.dynamodb.errors import DdbConflict
from ..db.dynamodb.table import DynamoTable
from ..models.document import ID, VERSION, Document
from ..observability.logging import get_logger
from .indexes import get_index
from .port import IndexPage, Saved, SaveResult, StoragePort, VersionConflict

log = get_logger("dynamodb_store")


class DynamoDocumentStore(StoragePort):
    """StoragePort over one DynamoDB table (boto3 resource API)."""

    def __init__(self, table: DynamoTable):
        self._table = table

    @property
    def table_name(self) -> str:
        return self._table.table_name

    def get_by_key(self, document_id: str, *, consistent_read: bool = False) -> Document | None:
        item = self._table.get_item(key={ID: document_id}, consistent_read=consistent_read)
        return Document.from_item(item) if item else None

    def _key_condition(self, index_name: str, partition_value: Any, sort_condition: ConditionBase | None):
        ix = get_index(index_name)
        cond = Key(ix.partition_key).eq(partition_value)
        if sort_condition is not None:
            cond = cond & sort_condition
        return cond

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
        items = self._table.query_all(
            key_condition_expression=self._key_condition(index_name, partition_value, sort_condition),
            index_name=index_name,
            limit=limit,
            filter_expression=filter_condition,
            consistent_read=consistent_read,
        )
        return [Document.from_item(it) for it in items]

    def query_index_page(
        self,
        index_name: str,
        partition_value: Any,
        *,
        limit: int,
        cursor: Any | None = None,
    ) -> IndexPage:
        page = self._table.query_page(
            key_condition_expression=self._key_condition(index_name, partition_value, None),
            index_name=index_name,
            limit=limit,
            exclusive_start_key=cursor,
        )
        return IndexPage(items=[Document.from_item(it) for it in page.items], cursor=page.last_evaluated_key)

    def scan(self, *, filter_condition: ConditionBase | None = None) -> list[Document]:
        return [Document.from_item(it) for it in self._table.scan_all(filter_expression=filter_condition)]

    def put_with_version_check(self, document: Document) -> SaveResult:
        expected = document.version
        if expected is None:
            # Create: the key must not already hold a versioned item.
            stored = replace(document, version=1)
            condition = Attr(VERSION).not_exists()
        else:
            stored = replace(document, version=int(expected) + 1)
            condition = Attr(VERSION).eq(int(expected))

        try:
            self._table.put_item(
                item=stored.to_item(),
                condition_expression=condition,
                key={ID: document.id},
            )
        except DdbConflict:
            log.info("ddb_version_check_failed", document_id=document.id, attempted_version=expected)
            return VersionConflict(document_id=document.id, attempted_version=expected)
        return Saved(stored)

    def delete_by_key(self, document_id: str) -> None:
        self._table.delete_item(key={ID: document_id})
