from __future__ import annotations

from dataclasses import dataclass

from .filters import (
    COMPARISON_OPERATORS,
    EQUALITY_OPERATORS,
    PRESENCE_OPERATORS,
    RANGE_OPERATORS,
    BooleanValue,
    CustomFilter,
    DateTimeValues,
    FilterOperator,
    IntegerValues,
    InvalidFilterConfiguration,
    QueryFilter,
    TextValues,
)

_OP = FilterOperator


@dataclass(frozen=True)
class FilterValidation:
    ok: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.ok


VALID = FilterValidation(ok=True)


def _invalid(reason: str) -> FilterValidation:
    return FilterValidation(ok=False, reason=reason)


def _arity_ok(operator: FilterOperator, count: int) -> bool:
    if operator in EQUALITY_OPERATORS:
        return count > 0
    if operator in COMPARISON_OPERATORS:
        return count == 1
    if operator in RANGE_OPERATORS:
        return count == 2
    return False


def _ordered_arity_message(label: str, field_name: str) -> str:
    return (
        f"Unsupported {label} filter operator for '{field_name}'. "
        f"Use {_OP.Equals} or {_OP.NotEquals} with one or multiple values; "
        f"use {_OP.LessThan}, {_OP.LessThanOrEqualsTo}, "
        f"{_OP.GreaterThan}, or {_OP.GreaterThanOrEqualsTo} with a single value; "
        f"and use {_OP.GreaterThanAndLessThan} or "
        f"{_OP.GreaterThanOrEqualToAndLessThanOrEqualTo} with two values."
    )


def validate(query_filter: QueryFilter) -> FilterValidation:
    """Check that the operator is legal for the payload the filter carries.

    Payload kinds are checked in the order boolean, date/time, integer, text;
    a filter without a payload is only legal for ``Present`` and ``Empty``.
    """

    op = query_filter.operator
    value = query_filter.value
    field_name = query_filter.field.name

    if isinstance(value, BooleanValue):
        if op in EQUALITY_OPERATORS:
            return VALID
        return _invalid(
            f"Unsupported boolean filter operator for '{field_name}'. "
            f"Supported operators are {_OP.Equals} and {_OP.NotEquals}."
        )

    if isinstance(value, DateTimeValues) and len(value) > 0:
        if _arity_ok(op, len(value)):
            return VALID
        return _invalid(_ordered_arity_message("date time", field_name))

    if isinstance(value, IntegerValues) and len(value) > 0:
        if _arity_ok(op, len(value)):
            return VALID
        return _invalid(_ordered_arity_message("integer", field_name))

    if isinstance(value, TextValues) and len(value) > 0:
        if op in EQUALITY_OPERATORS:
            return VALID
        return _invalid(
            f"Unsupported string filter operator for '{field_name}'. Supported operators include "
            f"{_OP.Equals}, {_OP.NotEquals}, {_OP.Present}, and {_OP.Empty}."
        )

    if op in PRESENCE_OPERATORS:
        return VALID
    return _invalid(
        f"Unsupported filter for '{field_name}', use the filter operator {_OP.Present} or {_OP.Empty}, "
        "or provide a boolean, date time, integer or text value."
    )


def validate_custom(custom_filter: CustomFilter) -> FilterValidation:
    op = custom_filter.operator
    if op in PRESENCE_OPERATORS:
        return VALID

    if isinstance(custom_filter.value, TextValues) and len(custom_filter.value) > 0:
        if op in EQUALITY_OPERATORS:
            return VALID
        return _invalid(
            f"Unsupported custom filter operator for '{custom_filter.name}'. Supported operators include "
            f"{_OP.Equals}, {_OP.NotEquals}, {_OP.Present}, and {_OP.Empty}."
        )

    return _invalid(
        f"Unsupported custom filter for '{custom_filter.name}', use the filter operator "
        f"{_OP.Present} or {_OP.Empty}, or provide text values."
    )


def ensure_valid(query_filter: QueryFilter) -> QueryFilter:
    result = validate(query_filter)
    if not result.ok:
        raise InvalidFilterConfiguration(str(result.reason))
    return query_filter


def ensure_valid_custom(custom_filter: CustomFilter) -> CustomFilter:
    result = validate_custom(custom_filter)
    if not result.ok:
        raise InvalidFilterConfiguration(str(result.reason))
    return custom_filter
