"""Unit tests for filter and sort evaluation."""

from datetime import datetime
from decimal import Decimal

import pytest

from tatua.grid.evaluator import evaluate, filter_records, matches_rule, resolve_field, sort_records
from tatua.grid.rules import FilterRelation, FilterRule, SortDirection, SortRule


def ids(records):
    return [record["id"] for record in records]


class TestFilterRecords:
    """Test cases for filter evaluation."""

    def test_no_rules_returns_every_record(self, sample_records):
        result = filter_records(sample_records, [])
        assert result == sample_records
        assert result is not sample_records

    def test_contains_is_case_insensitive(self, sample_records):
        rule = FilterRule(column="subject", relation=FilterRelation.CONTAINS, value="bug")
        assert ids(filter_records(sample_records, [rule])) == [1, 3, 5]

    @pytest.mark.parametrize("relation,value,expected", [
        (FilterRelation.EQUALS, "question", [4]),
        (FilterRelation.STARTS_WITH, "bug", [3]),
        (FilterRelation.ENDS_WITH, "BUG", [1, 5]),
        (FilterRelation.CONTAINS, "", [1, 2, 3, 4, 5]),
    ])
    def test_relations(self, sample_records, relation, value, expected):
        rule = FilterRule(column="subject", relation=relation, value=value)
        assert ids(filter_records(sample_records, [rule])) == expected

    def test_rules_are_combined_with_and(self, sample_records):
        rules = [
            FilterRule(column="subject", value="bug"),
            FilterRule(column="priority", relation=FilterRelation.EQUALS, value="2"),
        ]
        assert ids(filter_records(sample_records, rules)) == [3]

    def test_result_is_subset_of_input(self, sample_records):
        rule = FilterRule(column="subject", value="e")
        result = filter_records(sample_records, [rule])
        assert all(record in sample_records for record in result)
        assert len(result) <= len(sample_records)

    def test_unknown_column_compares_as_empty_string(self, sample_records):
        assert filter_records(sample_records, [FilterRule(column="nope", value="x")]) == []
        everything = filter_records(
            sample_records,
            [FilterRule(column="nope", relation=FilterRelation.EQUALS, value="")]
        )
        assert len(everything) == 5

    def test_numbers_and_booleans_match_as_text(self):
        record = {"count": 42, "active": True, "missing": None}
        assert matches_rule(record, FilterRule(column="count", relation=FilterRelation.EQUALS, value="42"))
        assert matches_rule(record, FilterRule(column="active", relation=FilterRelation.EQUALS, value="TRUE"))
        assert matches_rule(record, FilterRule(column="missing", relation=FilterRelation.EQUALS, value=""))

    def test_input_is_not_mutated(self, sample_records):
        snapshot = [dict(record) for record in sample_records]
        filter_records(sample_records, [FilterRule(column="subject", value="bug")])
        assert sample_records == snapshot


class TestResolveField:
    """Test cases for column lookup."""

    def test_dotted_path_walks_nested_mappings(self):
        record = {"customer": {"name": "Amani"}}
        assert resolve_field(record, "customer.name") == "Amani"
        assert resolve_field(record, "customer.email") is None

    def test_exact_key_wins_over_dotted_path(self):
        record = {"a.b": "flat", "a": {"b": "nested"}}
        assert resolve_field(record, "a.b") == "flat"


class TestSortRecords:
    """Test cases for sort evaluation."""

    def test_no_rules_preserves_order(self, sample_records):
        assert ids(sort_records(sample_records, [])) == [1, 2, 3, 4, 5]

    def test_single_rule_ascending_and_descending(self, sample_records):
        ascending = sort_records(sample_records, [SortRule(column="priority")])
        descending = sort_records(
            sample_records, [SortRule(column="priority", direction=SortDirection.DESCENDING)]
        )
        assert [r["priority"] for r in ascending] == [1, 2, 2, 3, 5]
        assert [r["priority"] for r in descending] == [5, 3, 2, 2, 1]

    def test_ties_keep_input_order(self, sample_records):
        result = sort_records(sample_records, [SortRule(column="priority")])
        # ids 3 and 4 share priority 2
        assert ids(result) == [2, 3, 4, 1, 5]

    def test_first_rule_has_precedence(self):
        records = [
            {"id": "a", "group": "x", "rank": 2},
            {"id": "b", "group": "y", "rank": 1},
            {"id": "c", "group": "x", "rank": 1},
            {"id": "d", "group": "y", "rank": 2},
        ]
        rules = [
            SortRule(column="group", direction=SortDirection.DESCENDING),
            SortRule(column="rank"),
        ]
        assert ids(sort_records(records, rules)) == ["b", "d", "c", "a"]

    def test_reversing_direction_reverses_distinct_values(self):
        records = [{"id": i, "value": v} for i, v in enumerate([3, 1, 4, 15, 9])]
        rule = SortRule(column="value")
        forward = sort_records(records, [rule])
        backward = sort_records(records, [rule.reversed()])
        assert forward == list(reversed(backward))

    def test_missing_values_sort_lowest(self):
        records = [
            {"id": 1, "score": 5},
            {"id": 2},
            {"id": 3, "score": None},
            {"id": 4, "score": float("nan")},
            {"id": 5, "score": 1},
        ]
        assert ids(sort_records(records, [SortRule(column="score")])) == [2, 3, 4, 5, 1]
        descending = sort_records(
            records, [SortRule(column="score", direction=SortDirection.DESCENDING)]
        )
        assert ids(descending)[:2] == [1, 5]

    def test_decimal_nan_sorts_lowest(self):
        records = [
            {"id": 1, "v": Decimal("2.5")},
            {"id": 2, "v": Decimal("NaN")},
            {"id": 3, "v": Decimal("1")},
            {"id": 4, "v": Decimal("sNaN")},
        ]
        assert ids(sort_records(records, [SortRule(column="v")])) == [2, 4, 3, 1]
        descending = sort_records(records, [SortRule(column="v", direction=SortDirection.DESCENDING)])
        assert ids(descending) == [1, 3, 2, 4]

    def test_mixed_types_compare_as_strings(self):
        records = [{"id": 1, "v": 10}, {"id": 2, "v": "9"}, {"id": 3, "v": 2}]
        assert ids(sort_records(records, [SortRule(column="v")])) == [1, 3, 2]

    def test_datetimes_sort_naturally(self):
        records = [
            {"id": 1, "at": datetime(2024, 3, 1)},
            {"id": 2, "at": datetime(2023, 12, 31)},
        ]
        assert ids(sort_records(records, [SortRule(column="at")])) == [2, 1]

    def test_unknown_column_keeps_order(self, sample_records):
        assert ids(sort_records(sample_records, [SortRule(column="nope")])) == [1, 2, 3, 4, 5]

    def test_input_is_not_mutated(self, sample_records):
        original_ids = ids(sample_records)
        sort_records(sample_records, [SortRule(column="priority")])
        assert ids(sample_records) == original_ids


def test_evaluate_filters_then_sorts(sample_records):
    result = evaluate(
        sample_records,
        [FilterRule(column="subject", value="bug")],
        [SortRule(column="dateCreated", direction=SortDirection.DESCENDING)]
    )
    assert ids(result) == [1, 3, 5]
