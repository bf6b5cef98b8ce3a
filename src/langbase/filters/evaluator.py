# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""
Local evaluation of filter expressions against record metadata.

Used for dry runs, tests and optional client-side pre-filtering. A field that is
missing from the record (or set to None) is treated as absent: Eq and In never
match it, NotEq and NotIn always do.
"""

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from langbase_api.filters import (
    Combinator,
    FilterExpression,
    FilterOperator,
    FilterSet,
    ListCondition,
    MetadataRecord,
    ScalarCondition,
    Value,
)


def evaluate(expression: FilterExpression, record: MetadataRecord) -> bool:
    """Check if record metadata matches the given filter."""
    if isinstance(expression, ScalarCondition):
        return _matches_scalar_condition(expression, record)
    elif isinstance(expression, ListCondition):
        return _matches_list_condition(expression, record)
    elif isinstance(expression, Combinator):
        return _matches_combinator(expression, record)
    else:
        raise ValueError(f"Unknown filter type: {type(expression)}")


def _matches_scalar_condition(condition: ScalarCondition, record: MetadataRecord) -> bool:
    value = record.get(condition.field)

    if condition.operator == FilterOperator.EQ:
        return value is not None and values_equal(value, condition.operand)
    elif condition.operator == FilterOperator.NOT_EQ:
        return value is None or not values_equal(value, condition.operand)
    else:
        raise ValueError(f"Unknown comparison operator: {condition.operator}")


def _matches_list_condition(condition: ListCondition, record: MetadataRecord) -> bool:
    value = record.get(condition.field)

    if condition.operator == FilterOperator.IN:
        return value is not None and any(values_equal(value, item) for item in condition.operand)
    elif condition.operator == FilterOperator.NOT_IN:
        return value is None or all(not values_equal(value, item) for item in condition.operand)
    else:
        raise ValueError(f"Unknown membership operator: {condition.operator}")


def _matches_combinator(combinator: Combinator, record: MetadataRecord) -> bool:
    # all()/any() over generators stop at the first deciding child
    if combinator.operator == FilterOperator.AND:
        return all(evaluate(child, record) for child in combinator.children)
    elif combinator.operator == FilterOperator.OR:
        return any(evaluate(child, record) for child in combinator.children)
    else:
        raise ValueError(f"Unknown combinator: {combinator.operator}")


def values_equal(left: Value, right: Value) -> bool:
    """Structural equality between metadata values.

    Booleans only equal booleans (True is not 1), ints and floats compare
    numerically, lists compare element by element.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, list | tuple) or isinstance(right, list | tuple):
        return (
            isinstance(left, list | tuple)
            and isinstance(right, list | tuple)
            and len(left) == len(right)
            and all(values_equal(a, b) for a, b in zip(left, right, strict=True))
        )
    return bool(left == right)


def filter_records(
    expression: FilterExpression | None, records: Iterable[Mapping[str, Any]]
) -> Iterator[Mapping[str, Any]]:
    """Yield the records whose metadata matches; None lets every record through."""
    for record in records:
        if expression is None or evaluate(expression, record):
            yield record


def matches_filter_set(filter_set: FilterSet, record: MetadataRecord) -> bool:
    if filter_set.expression is None:
        return True
    return evaluate(filter_set.expression, record)
