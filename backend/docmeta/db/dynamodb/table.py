from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .client import table_resource
from .retry import RetryPolicy, ddb_call


@dataclass(slots=True)
class Page:
    items: list[dict[str, Any]]
    last_evaluated_key: dict[str, Any] | None


class DynamoTable:
    def __init__(self, *, table_name: str, retry_policy: RetryPolicy | None = None):
        self.table_name = str(table_name)
        self._table = table_resource(self.table_name)
        self._retry_policy = retry_policy

    # --- basic operations ---

    def get_item(self, *, key: dict[str, Any], consistent_read: bool = False) -> dict[str, Any] | None:
        def _op():
            resp = self._table.get_item(Key=key, ConsistentRead=bool(consistent_read))
            return resp.get("Item")

        return ddb_call("GetItem", _op, table_name=self.table_name, key=key, retry_policy=self._retry_policy)

    def put_item(
        self,
        *,
        item: dict[str, Any],
        condition_expression: Any | None = None,
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
        key: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        def _op():
            kwargs: dict[str, Any] = {"Item": item}
            if condition_expression is not None:
                kwargs["ConditionExpression"] = condition_expression
            if expression_attribute_names:
                kwargs["ExpressionAttributeNames"] = expression_attribute_names
            if expression_attribute_values:
                kwargs["ExpressionAttributeValues"] = expression_attribute_values
            return self._table.put_item(**kwargs)

        return ddb_call("PutItem", _op, table_name=self.table_name, key=key, retry_policy=self._retry_policy)

    def delete_item(self, *, key: dict[str, Any]) -> dict[str, Any]:
        def _op():
            return self._table.delete_item(Key=key)

        return ddb_call("DeleteItem", _op, table_name=self.table_name, key=key, retry_policy=self._retry_policy)

    # --- query/scan pagination ---

    def query_page(
        self,
        *,
        key_condition_expression: Any,
        index_name: str | None = None,
        limit: int | None = None,
        scan_index_forward: bool = True,
        filter_expression: Any | None = None,
        consistent_read: bool = False,
        exclusive_start_key: dict[str, Any] | None = None,
    ) -> Page:
        def _op():
            kwargs: dict[str, Any] = {
                "KeyConditionExpression": key_condition_expression,
                "ScanIndexForward": bool(scan_index_forward),
                "ConsistentRead": bool(consistent_read),
            }
            if limit is not None:
                kwargs["Limit"] = max(1, int(limit))
            if index_name:
                kwargs["IndexName"] = index_name
            if filter_expression is not None:
                kwargs["FilterExpression"] = filter_expression
            # Important: only pass ExclusiveStartKey when present.
            if exclusive_start_key:
                kwargs["ExclusiveStartKey"] = exclusive_start_key
            return self._table.query(**kwargs)

        resp = ddb_call("Query", _op, table_name=self.table_name, retry_policy=self._retry_policy)
        return Page(items=list(resp.get("Items") or []), last_evaluated_key=resp.get("LastEvaluatedKey") or None)

    def query_all(
        self,
        *,
        key_condition_expression: Any,
        index_name: str | None = None,
        limit: int | None = None,
        filter_expression: Any | None = None,
        consistent_read: bool = False,
    ) -> list[dict[str, Any]]:
        """Follow LastEvaluatedKey until exhausted or `limit` matching items are collected."""
        out: list[dict[str, Any]] = []
        lek: dict[str, Any] | None = None
        while True:
            remaining = None if limit is None else max(0, int(limit) - len(out))
            if remaining == 0:
                break
            page = self.query_page(
                key_condition_expression=key_condition_expression,
                index_name=index_name,
                limit=remaining,
                filter_expression=filter_expression,
                consistent_read=consistent_read,
                exclusive_start_key=lek,
            )
            out.extend(page.items)
            lek = page.last_evaluated_key
            if not lek:
                break
        return out if limit is None else out[: int(limit)]

    def scan_all(self, *, filter_expression: Any | None = None) -> list[dict[str, Any]]:
        out: list[dict[str, Any]] = []
        lek: dict[str, Any] | None = None
        while True:
            def _op(start_key=lek):
                kwargs: dict[str, Any] = {}
                if filter_expression is not None:
                    kwargs["FilterExpression"] = filter_expression
                if start_key:
                    kwargs["ExclusiveStartKey"] = start_key
                return self._table.scan(**kwargs)

            resp = ddb_call("Scan", _op, table_name=self.table_name, retry_policy=self._retry_policy)
            out.extend(resp.get("Items") or [])
            lek = resp.get("LastEvaluatedKey") or None
            if not lek:
                break
        return out
