# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

from unittest.mock import patch

import pytest

from langbase.filters import build, evaluate, filter_records, matches_filter_set, values_equal
from langbase_api.filters import FilterSet

NESTED_FILTER = [
    "And",
    [
        ["company", "Eq", "Langbase"],
        ["Or", [["category", "Eq", "docs"], ["category", "Eq", "examples"]]],
        ["primative", "In", ["Chunk", "Threads"]],
    ],
]


class TestConditions:
    def test_eq(self):
        expression = build(["company", "Eq", "Langbase"])
        assert evaluate(expression, {"company": "Langbase"}) is True
        assert evaluate(expression, {"company": "Google"}) is False

    def test_not_eq(self):
        expression = build(["company", "NotEq", "Google"])
        assert evaluate(expression, {"company": "Langbase"}) is True
        assert evaluate(expression, {"company": "Google"}) is False

    def test_in(self):
        expression = build(["primative", "In", ["Chunk", "Threads"]])
        assert evaluate(expression, {"primative": "Threads"}) is True
        assert evaluate(expression, {"primative": "Pipe"}) is False

    def test_not_in(self):
        expression = build(["company", "NotIn", ["Google"]])
        assert evaluate(expression, {"company": "Langbase"}) is True
        assert evaluate(expression, {"company": "Google"}) is False

    def test_empty_in_list_matches_nothing(self):
        assert evaluate(build(["tag", "In", []]), {"tag": "a"}) is False
        assert evaluate(build(["tag", "NotIn", []]), {"tag": "a"}) is True

    def test_numbers(self):
        assert evaluate(build(["version", "Eq", 2]), {"version": 2}) is True
        assert evaluate(build(["version", "Eq", 2]), {"version": 2.0}) is True
        assert evaluate(build(["version", "In", [1, 3]]), {"version": 2}) is False

    def test_bool_is_not_a_number(self):
        assert evaluate(build(["flag", "Eq", 1]), {"flag": True}) is False
        assert evaluate(build(["flag", "Eq", True]), {"flag": 1}) is False
        assert evaluate(build(["flag", "Eq", True]), {"flag": True}) is True
        assert evaluate(build(["flag", "In", [0, 1]]), {"flag": False}) is False

    def test_string_is_not_a_number(self):
        assert evaluate(build(["version", "Eq", "2"]), {"version": 2}) is False


class TestAbsentFields:
    @pytest.mark.parametrize("record", [{}, {"company": None}, {"other": "Langbase"}])
    def test_absent_field(self, record):
        assert evaluate(build(["company", "Eq", "Langbase"]), record) is False
        assert evaluate(build(["company", "In", ["Langbase"]]), record) is False
        assert evaluate(build(["company", "NotEq", "Langbase"]), record) is True
        assert evaluate(build(["company", "NotIn", ["Langbase"]]), record) is True


class TestCombinators:
    def test_and(self):
        expression = build(["And", [["company", "Eq", "Langbase"], ["category", "Eq", "docs"]]])
        assert evaluate(expression, {"company": "Langbase", "category": "docs"}) is True
        assert evaluate(expression, {"company": "Langbase", "category": "examples"}) is False

    def test_or(self):
        expression = build(["Or", [["category", "Eq", "docs"], ["category", "Eq", "examples"]]])
        assert evaluate(expression, {"category": "examples"}) is True
        assert evaluate(expression, {"category": "blog"}) is False

    def test_three_level_nesting(self):
        expression = build(NESTED_FILTER)
        assert evaluate(expression, {"company": "Langbase", "category": "examples", "primative": "Chunk"}) is True
        assert evaluate(expression, {"company": "Langbase", "category": "blog", "primative": "Chunk"}) is False
        assert evaluate(expression, {"company": "Langbase", "category": "docs", "primative": "Pipe"}) is False

    def test_single_child(self):
        assert evaluate(build(["And", [["a", "Eq", 1]]]), {"a": 1}) is True
        assert evaluate(build(["Or", [["a", "Eq", 1]]]), {"a": 2}) is False

    def test_and_stops_at_first_false_child(self):
        expression = build(["And", [["a", "Eq", 1], ["b", "Eq", 2]]])
        with patch("langbase.filters.evaluator._matches_scalar_condition", side_effect=[False, True]) as mock_match:
            assert evaluate(expression, {"a": 0, "b": 2}) is False
        assert mock_match.call_count == 1

    def test_or_stops_at_first_true_child(self):
        expression = build(["Or", [["a", "Eq", 1], ["b", "Eq", 2]]])
        with patch("langbase.filters.evaluator._matches_scalar_condition", side_effect=[True, False]) as mock_match:
            assert evaluate(expression, {"a": 1, "b": 0}) is True
        assert mock_match.call_count == 1

    def test_evaluation_is_repeatable(self):
        expression = build(NESTED_FILTER)
        record = {"company": "Langbase", "category": "docs", "primative": "Threads"}
        assert [evaluate(expression, record) for _ in range(3)] == [True, True, True]
        assert record == {"company": "Langbase", "category": "docs", "primative": "Threads"}


class TestValuesEqual:
    def test_lists_compare_element_wise(self):
        assert values_equal(["a", 1], ("a", 1)) is True
        assert values_equal(["a", 1], ["a", True]) is False
        assert values_equal(["a"], ["a", "b"]) is False

    def test_list_never_equals_scalar(self):
        assert values_equal(["a"], "a") is False

    def test_list_valued_metadata_does_not_match_scalar_operand(self):
        assert evaluate(build(["tags", "Eq", "a"]), {"tags": ["a"]}) is False


class TestFilterRecords:
    def test_keeps_matching_records_in_order(self):
        records = [{"company": "Langbase", "n": 1}, {"company": "Google"}, {"company": "Langbase", "n": 2}]
        kept = list(filter_records(build(["company", "Eq", "Langbase"]), records))
        assert kept == [records[0], records[2]]

    def test_no_expression_keeps_everything(self):
        records = [{"a": 1}, {}]
        assert list(filter_records(None, records)) == records

    def test_filter_set_without_expression_matches(self):
        assert matches_filter_set(FilterSet(memory_name="docs"), {}) is True

    def test_filter_set_with_expression(self):
        filter_set = FilterSet(memory_name="docs", expression=build(["company", "Eq", "Langbase"]))
        assert matches_filter_set(filter_set, {"company": "Langbase"}) is True
        assert matches_filter_set(filter_set, {"company": "Google"}) is False
