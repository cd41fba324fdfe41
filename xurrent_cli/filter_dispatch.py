"""Route validated filters to the predicate calls of a query builder.

One generic routine serves every entity: the builder only has to expose the
:class:`QueryBuilder` capability, whatever field enumeration it is keyed by.
Filters must have passed :func:`xurrent_cli.filter_validation.validate`
first; an unroutable combination is a programming error.
"""

from __future__ import annotations

import enum
from typing import Any, Iterable, Protocol, Sequence, TypeVar

from .filters import (
    COMPARISON_OPERATORS,
    PRESENCE_OPERATORS,
    RANGE_OPERATORS,
    BooleanValue,
    CustomFilter,
    DateTimeValues,
    FilterOperator,
    IntegerValues,
    NoValue,
    QueryFilter,
    TextValues,
)

F = TypeVar("F", bound=enum.Enum)
F_contra = TypeVar("F_contra", bound=enum.Enum, contravariant=True)


class QueryBuilder(Protocol[F_contra]):
    def where_equals(self, field: F_contra, values: Sequence[Any]) -> Any: ...

    def where_not_equals(self, field: F_contra, values: Sequence[Any]) -> Any: ...

    def where_compare(self, field: F_contra, operator: FilterOperator, value: Any) -> Any: ...

    def where_range(self, field: F_contra, lower: Any, upper: Any, *, inclusive: bool) -> Any: ...

    def where_present(self, field: F_contra) -> Any: ...

    def where_empty(self, field: F_contra) -> Any: ...


class CustomFilterBuilder(Protocol):
    def custom_filter(self, name: str, operator: FilterOperator, values: Sequence[str | None]) -> Any: ...


def _precondition_failed(query_filter: QueryFilter) -> AssertionError:
    return AssertionError(
        f"cannot apply unvalidated filter: field={query_filter.field.name} "
        f"operator={query_filter.operator} valueKind={query_filter.value.kind} count={len(query_filter.value)}"
    )


def _apply_values(builder: QueryBuilder[F], query_filter: QueryFilter[F], values: Sequence[Any]) -> None:
    field = query_filter.field
    op = query_filter.operator
    if op is FilterOperator.Equals:
        builder.where_equals(field, values)
    elif op is FilterOperator.NotEquals:
        builder.where_not_equals(field, values)
    elif op in COMPARISON_OPERATORS and len(values) == 1:
        builder.where_compare(field, op, values[0])
    elif op in RANGE_OPERATORS and len(values) == 2:
        builder.where_range(
            field,
            values[0],
            values[1],
            inclusive=op is FilterOperator.GreaterThanOrEqualToAndLessThanOrEqualTo,
        )
    else:
        raise _precondition_failed(query_filter)


def apply_filter(builder: QueryBuilder[F], query_filter: QueryFilter[F]) -> None:
    """Add the predicate for ``query_filter`` to ``builder``; exactly one call is made."""

    value = query_filter.value
    if isinstance(value, BooleanValue):
        if query_filter.operator in COMPARISON_OPERATORS or query_filter.operator in RANGE_OPERATORS:
            raise _precondition_failed(query_filter)
        _apply_values(builder, query_filter, (value.value,))
    elif isinstance(value, DateTimeValues):
        _apply_values(builder, query_filter, value.values)
    elif isinstance(value, IntegerValues):
        _apply_values(builder, query_filter, value.values)
    elif isinstance(value, TextValues):
        if query_filter.operator in COMPARISON_OPERATORS or query_filter.operator in RANGE_OPERATORS:
            raise _precondition_failed(query_filter)
        _apply_values(builder, query_filter, value.values)
    elif isinstance(value, NoValue):
        if query_filter.operator is FilterOperator.Present:
            builder.where_present(query_filter.field)
        elif query_filter.operator is FilterOperator.Empty:
            builder.where_empty(query_filter.field)
        else:
            raise _precondition_failed(query_filter)
    else:
        raise _precondition_failed(query_filter)


def apply_filters(builder: QueryBuilder[F], filters: Iterable[QueryFilter[F]]) -> int:
    count = 0
    for query_filter in filters:
        apply_filter(builder, query_filter)
        count += 1
    return count


def apply_custom_filter(builder: CustomFilterBuilder, custom_filter: CustomFilter) -> None:
    op = custom_filter.operator
    if op in PRESENCE_OPERATORS:
        builder.custom_filter(custom_filter.name, op, ())
    elif isinstance(custom_filter.value, TextValues) and op in (FilterOperator.Equals, FilterOperator.NotEquals):
        builder.custom_filter(custom_filter.name, op, custom_filter.value.values)
    else:
        raise AssertionError(
            f"cannot apply unvalidated custom filter: name={custom_filter.name} operator={op}"
        )
