from __future__ import annotations

from datetime import datetime
from typing import Any

import pytest

from xurrent_cli.entities import RequestFilterField, TeamFilterField
from xurrent_cli.filter_dispatch import apply_custom_filter, apply_filter, apply_filters
from xurrent_cli.filters import (
    BooleanValue,
    CustomFilter,
    DateTimeValues,
    FilterOperator,
    IntegerValues,
    InvalidFilterConfiguration,
    QueryFilter,
    TextValues,
    datetime_values,
)


class _RecordingBuilder:
    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []

    def where_equals(self, field, values):
        self.calls.append(("equals", field, tuple(values)))

    def where_not_equals(self, field, values):
        self.calls.append(("not_equals", field, tuple(values)))

    def where_compare(self, field, operator, value):
        self.calls.append(("compare", field, operator, value))

    def where_range(self, field, lower, upper, *, inclusive):
        self.calls.append(("range", field, lower, upper, inclusive))

    def where_present(self, field):
        self.calls.append(("present", field))

    def where_empty(self, field):
        self.calls.append(("empty", field))

    def custom_filter(self, name, operator, values):
        self.calls.append(("custom", name, operator, tuple(values)))


def test_boolean_routes_to_equals() -> None:
    b = _RecordingBuilder()
    apply_filter(b, QueryFilter(RequestFilterField.Major, FilterOperator.Equals, BooleanValue(True)))
    assert b.calls == [("equals", RequestFilterField.Major, (True,))]


def test_boolean_not_equals() -> None:
    b = _RecordingBuilder()
    apply_filter(b, QueryFilter(RequestFilterField.Major, FilterOperator.NotEquals, BooleanValue(False)))
    assert b.calls == [("not_equals", RequestFilterField.Major, (False,))]


def test_datetime_range_passes_lower_and_upper() -> None:
    lower, upper = datetime(2024, 1, 1), datetime(2024, 2, 1)
    b = _RecordingBuilder()
    apply_filter(
        b,
        QueryFilter(RequestFilterField.CreatedAt, FilterOperator.GreaterThanAndLessThan, DateTimeValues((lower, upper))),
    )
    assert b.calls == [("range", RequestFilterField.CreatedAt, lower, upper, False)]


def test_inclusive_range_flag() -> None:
    b = _RecordingBuilder()
    apply_filter(
        b,
        QueryFilter(
            RequestFilterField.Priority,
            FilterOperator.GreaterThanOrEqualToAndLessThanOrEqualTo,
            IntegerValues((1, 3)),
        ),
    )
    assert b.calls == [("range", RequestFilterField.Priority, 1, 3, True)]


def test_integer_comparison_passes_single_value() -> None:
    b = _RecordingBuilder()
    apply_filter(b, QueryFilter(RequestFilterField.Priority, FilterOperator.LessThanOrEqualsTo, IntegerValues((2,))))
    assert b.calls == [("compare", RequestFilterField.Priority, FilterOperator.LessThanOrEqualsTo, 2)]


def test_text_equals_keeps_null_values() -> None:
    b = _RecordingBuilder()
    apply_filter(b, QueryFilter(RequestFilterField.Subject, FilterOperator.Equals, TextValues(("a", None))))
    assert b.calls == [("equals", RequestFilterField.Subject, ("a", None))]


@pytest.mark.parametrize(
    "op,expected",
    [(FilterOperator.Present, "present"), (FilterOperator.Empty, "empty")],
)
def test_no_payload_routes_to_presence(op: FilterOperator, expected: str) -> None:
    b = _RecordingBuilder()
    apply_filter(b, QueryFilter(RequestFilterField.Subject, op))
    assert b.calls == [(expected, RequestFilterField.Subject)]


def test_same_dispatcher_serves_other_entities() -> None:
    b = _RecordingBuilder()
    apply_filter(b, QueryFilter(TeamFilterField.Name, FilterOperator.Equals, TextValues(("ops",))))
    assert b.calls == [("equals", TeamFilterField.Name, ("ops",))]


@pytest.mark.parametrize(
    "query_filter",
    [
        QueryFilter(RequestFilterField.Subject, FilterOperator.Equals),
        QueryFilter(RequestFilterField.Priority, FilterOperator.LessThan, IntegerValues((1, 2))),
        QueryFilter(RequestFilterField.Subject, FilterOperator.LessThan, TextValues(("a",))),
        QueryFilter(RequestFilterField.Major, FilterOperator.GreaterThan, BooleanValue(True)),
        QueryFilter(
            RequestFilterField.CreatedAt,
            FilterOperator.GreaterThanAndLessThan,
            DateTimeValues((datetime(2024, 1, 1),)),
        ),
    ],
)
def test_unvalidated_filter_is_a_programming_error(query_filter: QueryFilter) -> None:
    b = _RecordingBuilder()
    with pytest.raises(AssertionError, match="cannot apply unvalidated filter"):
        apply_filter(b, query_filter)
    assert b.calls == []


def test_apply_filters_makes_one_call_per_filter() -> None:
    b = _RecordingBuilder()
    count = apply_filters(
        b,
        [
            QueryFilter(RequestFilterField.Subject, FilterOperator.Present),
            QueryFilter(RequestFilterField.Priority, FilterOperator.Equals, IntegerValues((1, 2, 3))),
        ],
    )
    assert count == 2
    assert [c[0] for c in b.calls] == ["present", "equals"]


def test_custom_filter_dispatch() -> None:
    b = _RecordingBuilder()
    apply_custom_filter(b, CustomFilter("region", FilterOperator.Equals, TextValues(("emea",))))
    apply_custom_filter(b, CustomFilter("region", FilterOperator.Empty))
    assert b.calls == [
        ("custom", "region", FilterOperator.Equals, ("emea",)),
        ("custom", "region", FilterOperator.Empty, ()),
    ]


def test_custom_filter_without_text_is_a_programming_error() -> None:
    with pytest.raises(AssertionError):
        apply_custom_filter(_RecordingBuilder(), CustomFilter("region", FilterOperator.Equals))


@pytest.mark.parametrize("payload_cls", [DateTimeValues, IntegerValues, TextValues])
def test_empty_value_sequence_cannot_be_built(payload_cls: type) -> None:
    with pytest.raises(InvalidFilterConfiguration, match="needs at least one value"):
        payload_cls(())


def test_presence_filter_from_empty_datetimes_routes_to_present() -> None:
    b = _RecordingBuilder()
    f = QueryFilter(RequestFilterField.CreatedAt, FilterOperator.Present, datetime_values([]))
    apply_filter(b, f)
    assert b.calls == [("present", RequestFilterField.CreatedAt)]
