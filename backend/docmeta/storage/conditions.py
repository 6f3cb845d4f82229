"""
In-process evaluation of boto3 condition objects against stored attribute maps.

Follows DynamoDB semantics where they differ from plain Python: a missing
attribute fails every comparison, values of different types never compare
(no TypeError, just False), and `contains` is substring or set membership.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable

from boto3.dynamodb.conditions import ConditionBase, Size

_NUMERIC = (int, float, Decimal)


def _same_kind(a: Any, b: Any) -> bool:
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool)
    if isinstance(a, _NUMERIC) and isinstance(b, _NUMERIC):
        return True
    return type(a) is type(b)


def _compare(cur: Any, val: Any, fn: Callable[[Any, Any], bool]) -> bool:
    if cur is None or val is None or not _same_kind(cur, val):
        return False
    return bool(fn(cur, val))


def _contains(cur: Any, val: Any) -> bool:
    if isinstance(cur, str):
        return isinstance(val, str) and val in cur
    if isinstance(cur, (list, set, frozenset, tuple)):
        return val in cur
    return False


def _attribute_value(item: dict[str, Any], name: str) -> tuple[bool, Any]:
    if name not in item:
        return False, None
    return True, item[name]


def matches(condition: ConditionBase | None, item: dict[str, Any]) -> bool:
    if condition is None:
        return True

    expr = condition.get_expression()
    op = expr["operator"]
    values = expr["values"]

    if op == "AND":
        return matches(values[0], item) and matches(values[1], item)
    if op == "OR":
        return matches(values[0], item) or matches(values[1], item)
    if op == "NOT":
        return not matches(values[0], item)

    present, cur = _attribute_value(item, values[0].name)
    if isinstance(values[0], Size):
        cur = len(cur) if isinstance(cur, (str, bytes, list, set, dict)) else None

    if op == "attribute_exists":
        return present
    if op == "attribute_not_exists":
        return not present
    if not present:
        return False

    if op == "=":
        return _compare(cur, values[1], lambda a, b: a == b)
    if op == "<>":
        return not _compare(cur, values[1], lambda a, b: a == b)
    if op == "<":
        return _compare(cur, values[1], lambda a, b: a < b)
    if op == "<=":
        return _compare(cur, values[1], lambda a, b: a <= b)
    if op == ">":
        return _compare(cur, values[1], lambda a, b: a > b)
    if op == ">=":
        return _compare(cur, values[1], lambda a, b: a >= b)
    if op == "BETWEEN":
        return _compare(cur, values[1], lambda a, b: a >= b) and _compare(cur, values[2], lambda a, b: a <= b)
    if op == "IN":
        return any(_compare(cur, v, lambda a, b: a == b) for v in values[1])
    if op == "begins_with":
        return isinstance(cur, str) and isinstance(values[1], str) and cur.startswith(values[1])
    if op == "contains":
        return _contains(cur, values[1])

    raise ValueError(f"Unsupported condition operator: {op}")
