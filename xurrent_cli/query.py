"""Predicate-recording query request.

``QueryRequest`` implements the query-builder capability used by
:mod:`xurrent_cli.filter_dispatch` and records everything a ``query new``
command configures, so the result can be written as a JSON document and
handed to a GraphQL client. An instance has a single writer; do not share one
across threads without a lock.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Sequence

from .cli_shared import ITEMS_PER_REQUEST_MAX, ITEMS_PER_REQUEST_MIN, UsageError
from .entities import EntitySpec
from .filter_dispatch import apply_custom_filter, apply_filter
from .filter_validation import ensure_valid, ensure_valid_custom
from .filters import CustomFilter, FilterOperator, QueryFilter

QUERY_KIND = "xurrent.query.v1"


class SortOrder(str, enum.Enum):
    Ascending = "Ascending"
    Descending = "Descending"


def _json_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


@dataclass
class QueryRequest:
    entity: EntitySpec
    predicates: list[dict[str, Any]] = field(default_factory=list)
    custom_filters: list[dict[str, Any]] = field(default_factory=list)
    selected: list[str] = field(default_factory=list)
    id: str | None = None
    view_name: str | None = None
    order: dict[str, str] | None = None
    page_size: int | None = None
    search_text: str | None = None

    def _check_field(self, f: enum.Enum) -> str:
        if not isinstance(f, self.entity.filter_fields):
            raise TypeError(
                f"{type(f).__name__}.{f.name} is not a {self.entity.name} filter field"
            )
        return f.name

    def _add(self, f: enum.Enum, operator: str, values: Sequence[Any]) -> QueryRequest:
        self.predicates.append(
            {
                "field": self._check_field(f),
                "operator": operator,
                "values": [_json_value(v) for v in values],
            }
        )
        return self

    def where_equals(self, f: enum.Enum, values: Sequence[Any]) -> QueryRequest:
        return self._add(f, FilterOperator.Equals.value, values)

    def where_not_equals(self, f: enum.Enum, values: Sequence[Any]) -> QueryRequest:
        return self._add(f, FilterOperator.NotEquals.value, values)

    def where_compare(self, f: enum.Enum, operator: FilterOperator, value: Any) -> QueryRequest:
        return self._add(f, operator.value, [value])

    def where_range(self, f: enum.Enum, lower: Any, upper: Any, *, inclusive: bool) -> QueryRequest:
        op = (
            FilterOperator.GreaterThanOrEqualToAndLessThanOrEqualTo
            if inclusive
            else FilterOperator.GreaterThanAndLessThan
        )
        return self._add(f, op.value, [lower, upper])

    def where_present(self, f: enum.Enum) -> QueryRequest:
        return self._add(f, FilterOperator.Present.value, [])

    def where_empty(self, f: enum.Enum) -> QueryRequest:
        return self._add(f, FilterOperator.Empty.value, [])

    def custom_filter(self, name: str, operator: FilterOperator, values: Sequence[str | None]) -> QueryRequest:
        if not self.entity.supports_custom_filters:
            raise UsageError(f"{self.entity.name} queries do not support custom filters")
        self.custom_filters.append({"name": name, "operator": operator.value, "values": list(values)})
        return self

    def with_id(self, value: str) -> QueryRequest:
        self.id = value
        return self

    def view(self, name: str) -> QueryRequest:
        self.view_name = name
        return self

    def order_by(self, field_name: str, sort_order: SortOrder = SortOrder.Ascending) -> QueryRequest:
        self.order = {"field": field_name, "sortOrder": sort_order.value}
        return self

    def items_per_request(self, n: int) -> QueryRequest:
        if n < ITEMS_PER_REQUEST_MIN or n > ITEMS_PER_REQUEST_MAX:
            raise UsageError(
                f"items per request must be between {ITEMS_PER_REQUEST_MIN} and {ITEMS_PER_REQUEST_MAX}; got {n}"
            )
        self.page_size = n
        return self

    def search(self, text: str) -> QueryRequest:
        if not self.entity.supports_search:
            raise UsageError(f"{self.entity.name} queries do not support search")
        self.search_text = text
        return self

    def select(self, fields: Iterable[str]) -> QueryRequest:
        for name in fields:
            if name not in self.selected:
                self.selected.append(name)
        return self

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "kind": QUERY_KIND,
            "entity": self.entity.name,
            "select": list(self.selected),
            "filters": list(self.predicates),
        }
        if self.custom_filters:
            doc["customFilters"] = list(self.custom_filters)
        if self.id is not None:
            doc["id"] = self.id
        if self.view_name is not None:
            doc["view"] = self.view_name
        if self.order is not None:
            doc["orderBy"] = dict(self.order)
        if self.page_size is not None:
            doc["itemsPerRequest"] = self.page_size
        if self.search_text is not None:
            doc["search"] = self.search_text
        return doc


def build_query(
    entity: EntitySpec,
    *,
    select: Sequence[str],
    with_id: str | None = None,
    view: str | None = None,
    order_by: str | None = None,
    sort_order: SortOrder | None = None,
    items_per_request: int | None = None,
    filters: Sequence[QueryFilter] = (),
    search: str | None = None,
    custom_filters: Sequence[CustomFilter] = (),
) -> QueryRequest:
    """Assemble a query request; every filter is validated before it is applied."""

    if not select:
        raise UsageError(f"select at least one {entity.name} field")
    if custom_filters and not entity.supports_custom_filters:
        raise UsageError(f"{entity.name} queries do not support custom filters")
    if search is not None and not entity.supports_search:
        raise UsageError(f"{entity.name} queries do not support search")

    query = QueryRequest(entity=entity)
    if with_id is not None:
        query.with_id(with_id)
    if view is not None:
        query.view(view)
    if order_by is not None:
        query.order_by(order_by, sort_order or SortOrder.Ascending)
    if items_per_request is not None:
        query.items_per_request(items_per_request)
    for query_filter in filters:
        apply_filter(query, ensure_valid(query_filter))
    if search is not None:
        query.search(search)
    for custom_filter in custom_filters:
        apply_custom_filter(query, ensure_valid_custom(custom_filter))
    query.select(select)
    return query
