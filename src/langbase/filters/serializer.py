# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

import hashlib
import json
from typing import Any

from langbase_api.filters import Combinator, FilterExpression, FilterSet, ListCondition


def serialize(expression: FilterExpression) -> list[Any]:
    """Convert a filter expression into its canonical wire form.

    Conditions become [field, operator, operand] and combinators become
    [operator, [children...]], with children kept in authored order.
    """
    if isinstance(expression, Combinator):
        return [expression.operator, [serialize(child) for child in expression.children]]
    if isinstance(expression, ListCondition):
        return [expression.field, expression.operator, list(expression.operand)]
    return [expression.field, expression.operator, expression.operand]


def serialize_json(expression: FilterExpression) -> str:
    """Compact JSON of the wire form; equal expressions give identical strings."""
    return json.dumps(serialize(expression), separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def filter_fingerprint(expression: FilterExpression) -> str:
    """Stable SHA-256 hex digest of an expression, for request hashing and log correlation."""
    return hashlib.sha256(serialize_json(expression).encode("utf-8")).hexdigest()


def serialize_filter_set(filter_set: FilterSet) -> dict[str, Any]:
    wire: dict[str, Any] = {"name": filter_set.memory_name}
    if filter_set.expression is not None:
        wire["filters"] = serialize(filter_set.expression)
    return wire
