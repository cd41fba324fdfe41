from __future__ import annotations

import enum
from datetime import datetime
from typing import Sequence, TypeVar

from .cli_shared import UsageError
from .filters import (
    NO_VALUE,
    BooleanValue,
    CustomFilter,
    FilterOperator,
    FilterValue,
    InvalidFilterConfiguration,
    QueryFilter,
    datetime_values as _datetime_payload,
    integer_values as _integer_payload,
    text_values as _text_payload,
)

F = TypeVar("F", bound=enum.Enum)

NULL_LITERAL = "null"


def _is_null(raw: str | None) -> bool:
    return raw is None or str(raw).strip().lower() == NULL_LITERAL


def parse_boolean(raw: str) -> bool:
    v = str(raw or "").strip().lower()
    if v in {"1", "true", "yes", "on", "$true"}:
        return True
    if v in {"0", "false", "no", "off", "$false"}:
        return False
    raise UsageError(f"invalid boolean value {raw!r} (expected true or false)")


def parse_datetime(raw: str | None) -> datetime | None:
    if _is_null(raw):
        return None
    text = str(raw).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise UsageError(f"invalid date/time value {raw!r} (expected ISO 8601, e.g. 2024-01-31T12:00:00Z)") from e


def parse_integer(raw: str | None) -> int | None:
    if _is_null(raw):
        return None
    try:
        return int(str(raw).strip())
    except ValueError as e:
        raise UsageError(f"invalid integer value {raw!r}") from e


def parse_text(raw: str | None) -> str | None:
    if _is_null(raw):
        return None
    return str(raw)


def resolve_filter_value(
    *,
    boolean_value: bool | None = None,
    datetime_values: Sequence[datetime | None] | None = None,
    integer_values: Sequence[int | None] | None = None,
    text_values: Sequence[str | None] | None = None,
) -> FilterValue:
    """Turn the four mutually exclusive value forms into one payload."""

    supplied = [
        name
        for name, val in (
            ("boolean", boolean_value),
            ("datetime", datetime_values),
            ("integer", integer_values),
            ("text", text_values),
        )
        if val is not None
    ]
    if len(supplied) > 1:
        raise InvalidFilterConfiguration(
            f"provide only one kind of filter value; got {', '.join(supplied)}"
        )
    if boolean_value is not None:
        return BooleanValue(bool(boolean_value))
    if datetime_values is not None:
        return _datetime_payload(datetime_values)
    if integer_values is not None:
        return _integer_payload(integer_values)
    if text_values is not None:
        return _text_payload(text_values)
    return NO_VALUE


def build_query_filter(
    field: F,
    operator: FilterOperator | str,
    *,
    boolean_value: bool | None = None,
    datetime_values: Sequence[datetime | None] | None = None,
    integer_values: Sequence[int | None] | None = None,
    text_values: Sequence[str | None] | None = None,
) -> QueryFilter[F]:
    value = resolve_filter_value(
        boolean_value=boolean_value,
        datetime_values=datetime_values,
        integer_values=integer_values,
        text_values=text_values,
    )
    return QueryFilter.create(field, operator, value)


def build_custom_filter(
    name: str,
    operator: FilterOperator | str,
    text_values: Sequence[str | None] | None = None,
) -> CustomFilter:
    op = FilterOperator.parse(operator)
    values = list(text_values) if text_values is not None else None
    if values is None and op in (FilterOperator.Equals, FilterOperator.NotEquals):
        # Equals/NotEquals without values compares against a null value.
        values = [None]
    return CustomFilter.create(name, op, _text_payload(values))
