# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""
Builds validated filter expressions from caller input.

Callers write filters as nested lists (or tuples), mirroring the wire format:

    ["company", "Eq", "Langbase"]                       # condition
    ["Or", [["category", "Eq", "docs"], [...]]]         # combinator

`build` is the only way raw input becomes a FilterExpression. It walks the input
depth-first and raises on the first problem it finds, so a malformed filter is
rejected before it is serialized or sent anywhere.
"""

import math
from typing import Any

from pydantic import ValidationError

from langbase.log import get_logger
from langbase_api.common.errors import FilterDepthExceededError, FilterValidationError
from langbase_api.filters import (
    COMBINATOR_OPERATORS,
    CONDITION_OPERATORS,
    DEFAULT_MAX_DEPTH,
    LIST_OPERATORS,
    Combinator,
    FilterExpression,
    FilterOperator,
    ListCondition,
    ScalarCondition,
)

logger = get_logger(name=__name__, category="filters")

FilterPath = tuple[int, ...]

_OPERATOR_NAMES = ", ".join(op.value for op in FilterOperator)


def build(raw: Any, *, max_depth: int = DEFAULT_MAX_DEPTH) -> FilterExpression:
    """Convert raw caller input into a validated filter expression.

    :param raw: A condition `[field, operator, operand]`, a combinator
        `[operator, [children...]]`, or an already built expression
    :param max_depth: Maximum nesting depth; a lone condition has depth 1
    :returns: The filter expression
    :raises FilterValidationError: If the input is malformed
    :raises FilterDepthExceededError: If the input nests deeper than max_depth
    """
    if max_depth < 1:
        raise ValueError(f"max_depth must be at least 1, got {max_depth}")

    try:
        if isinstance(raw, ScalarCondition | ListCondition | Combinator):
            _check_depth(raw, (), 1, max_depth)
            return raw
        return _build_node(raw, (), 1, max_depth)
    except FilterValidationError as e:
        logger.debug(f"Rejected filter {raw!r}: {e}")
        raise


def validate(raw: Any, *, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
    """Check raw input without keeping the result. Raises like `build`."""
    build(raw, max_depth=max_depth)


def expression_depth(expression: FilterExpression) -> int:
    if isinstance(expression, Combinator):
        return 1 + max(expression_depth(child) for child in expression.children)
    return 1


def _check_depth(expression: FilterExpression, path: FilterPath, depth: int, max_depth: int) -> None:
    if depth > max_depth:
        raise FilterDepthExceededError(max_depth, path)
    if isinstance(expression, Combinator):
        for index, child in enumerate(expression.children):
            _check_depth(child, (*path, index), depth + 1, max_depth)


def _build_node(raw: Any, path: FilterPath, depth: int, max_depth: int) -> FilterExpression:
    if depth > max_depth:
        raise FilterDepthExceededError(max_depth, path)

    if not _is_sequence(raw):
        raise FilterValidationError(
            path,
            "expected a condition [field, operator, operand] or a combinator [operator, [filters]], "
            f"got {_describe(raw)}",
        )

    if len(raw) == 3:
        return _build_condition(raw, path)
    if len(raw) == 2:
        return _build_combinator(raw, path, depth, max_depth)

    raise FilterValidationError(
        path,
        f"expected 3 elements for a condition or 2 for a combinator, got {len(raw)}",
    )


def _build_condition(raw: list[Any] | tuple[Any, ...], path: FilterPath) -> FilterExpression:
    field, operator_name, operand = raw
    operator = _parse_operator(operator_name, path)

    if operator not in CONDITION_OPERATORS:
        raise FilterValidationError(
            path,
            f"'{operator}' is a combinator and takes a list of filters: ['{operator}', [filters]]",
        )

    if not isinstance(field, str) or not field.strip():
        raise FilterValidationError(path, f"field name must be a non-empty string, got {field!r}")

    if operator in LIST_OPERATORS:
        values = _check_list_operand(operator, operand, path)
        return _construct(ListCondition, path, field=field, operator=operator.value, operand=values)

    if not _is_scalar(operand):
        raise FilterValidationError(
            path,
            f"operator '{operator}' requires a single string, number or boolean operand, got {_describe(operand)}",
        )
    return _construct(ScalarCondition, path, field=field, operator=operator.value, operand=operand)


def _build_combinator(
    raw: list[Any] | tuple[Any, ...], path: FilterPath, depth: int, max_depth: int
) -> FilterExpression:
    operator_name, raw_children = raw
    operator = _parse_operator(operator_name, path)

    if operator not in COMBINATOR_OPERATORS:
        raise FilterValidationError(
            path,
            f"'{operator}' compares a field and needs three elements: [field, '{operator}', operand]",
        )

    if not _is_sequence(raw_children):
        raise FilterValidationError(path, f"'{operator}' expects a list of filters, got {_describe(raw_children)}")
    if not raw_children:
        raise FilterValidationError(path, f"'{operator}' requires at least one filter")

    children = tuple(
        _build_node(child, (*path, index), depth + 1, max_depth) for index, child in enumerate(raw_children)
    )
    return _construct(Combinator, path, operator=operator.value, children=children)


def _parse_operator(name: Any, path: FilterPath) -> FilterOperator:
    if not isinstance(name, str):
        raise FilterValidationError(path, f"operator name must be a string, got {_describe(name)}")
    try:
        return FilterOperator(name)
    except ValueError:
        raise FilterValidationError(
            path, f"unrecognized operator {name!r}, expected one of {_OPERATOR_NAMES}"
        ) from None


def _check_list_operand(operator: FilterOperator, operand: Any, path: FilterPath) -> tuple[Any, ...]:
    if not _is_sequence(operand):
        raise FilterValidationError(
            path,
            f"operator '{operator}' requires a list of values, got {_describe(operand)}",
        )
    for position, item in enumerate(operand):
        if _is_sequence(item):
            raise FilterValidationError(
                path,
                f"operator '{operator}' requires a flat list of values, found a nested list at position {position}",
            )
        if not _is_scalar(item):
            raise FilterValidationError(
                path,
                f"operator '{operator}' accepts only strings, numbers and booleans, "
                f"found {_describe(item)} at position {position}",
            )
    return tuple(operand)


def _construct(model: type, path: FilterPath, **fields: Any) -> FilterExpression:
    try:
        return model(**fields)
    except ValidationError as e:
        # the checks above should leave nothing for pydantic to reject
        raise FilterValidationError(path, str(e)) from e


def _is_sequence(value: Any) -> bool:
    return isinstance(value, list | tuple)


def _is_scalar(value: Any) -> bool:
    if isinstance(value, bool | str | int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    return False


def _describe(value: Any) -> str:
    if value is None:
        return "null"
    if _is_sequence(value):
        return f"a list of {len(value)} elements"
    return f"{type(value).__name__} {value!r}"
