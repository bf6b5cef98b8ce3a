# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""
Metadata filter types for memory retrieval.

A filter is a tree of conditions (a metadata field compared against an operand)
joined by the And/Or combinators. On the wire the tree is a nested list:

    ["And", [["company", "Eq", "Langbase"], ["primitive", "In", ["Chunk", "Threads"]]]]

The models here are the validated, immutable form of that list. Use
`langbase.filters.build` to turn caller input into a tree.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import AllowInfNan, BaseModel, ConfigDict, Field, Strict, StrictBool, StrictInt, StrictStr, field_validator

DEFAULT_MAX_DEPTH = 32


class FilterOperator(StrEnum):
    EQ = "Eq"
    NOT_EQ = "NotEq"
    IN = "In"
    NOT_IN = "NotIn"
    AND = "And"
    OR = "Or"


# Constants for operator classification (using sets for O(1) membership testing)
SCALAR_OPERATORS = frozenset([FilterOperator.EQ, FilterOperator.NOT_EQ])
LIST_OPERATORS = frozenset([FilterOperator.IN, FilterOperator.NOT_IN])
CONDITION_OPERATORS = SCALAR_OPERATORS | LIST_OPERATORS
COMBINATOR_OPERATORS = frozenset([FilterOperator.AND, FilterOperator.OR])

StrictFiniteFloat = Annotated[float, Strict(), AllowInfNan(False)]

# bool is listed first so True/False never degrade into numbers
Scalar = StrictBool | StrictInt | StrictFiniteFloat | StrictStr
ScalarList = tuple[Scalar, ...]
Value = Scalar | list[Scalar]

# What a record supplies for evaluation: field name -> value, None meaning absent
MetadataRecord = Mapping[str, Any]


class _Condition(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    field: str

    @field_validator("field")
    @classmethod
    def field_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("field name must be a non-empty string")
        return v


class ScalarCondition(_Condition):
    """Compares a metadata field against a single value.

    :param field: The metadata field name
    :param operator: "Eq" matches equal values, "NotEq" matches everything else
    :param operand: The string, number or boolean to compare against
    """

    operator: Literal["Eq", "NotEq"]
    operand: Scalar


class ListCondition(_Condition):
    """Tests a metadata field for membership in a flat list of values.

    :param field: The metadata field name
    :param operator: "In" matches any listed value, "NotIn" matches none of them
    :param operand: The values to test against, never nested
    """

    operator: Literal["In", "NotIn"]
    operand: ScalarList


class Combinator(BaseModel):
    """Joins child filters with a logical operator.

    :param operator: "And" requires every child to match, "Or" requires any child to match
    :param children: The child filters, in authored order
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    operator: Literal["And", "Or"]
    children: tuple[FilterExpression, ...] = Field(min_length=1)


FilterNode = ScalarCondition | ListCondition | Combinator

FilterExpression = Annotated[
    FilterNode,
    Field(discriminator="operator"),
]

Combinator.model_rebuild()


class FilterSet(BaseModel):
    """Binds an optional filter to one named memory in a retrieval request.

    :param memory_name: Name of the memory the filter applies to
    :param expression: The filter; None matches every record in the memory
    """

    model_config = ConfigDict(frozen=True)

    memory_name: str = Field(min_length=1)
    expression: FilterExpression | None = None
