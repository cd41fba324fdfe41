from __future__ import annotations

from datetime import datetime

import pytest

from xurrent_cli.cli_shared import UsageError
from xurrent_cli.entities import RequestFilterField, TeamFilterField, get_entity, parse_choice, parse_field
from xurrent_cli.filters import (
    CustomFilter,
    DateTimeValues,
    FilterOperator,
    IntegerValues,
    InvalidFilterConfiguration,
    QueryFilter,
    TextValues,
)
from xurrent_cli.query import QUERY_KIND, QueryRequest, SortOrder, build_query


def test_build_query_records_options_filters_and_selection() -> None:
    query = build_query(
        get_entity("request"),
        select=["subject", "status"],
        view="open",
        order_by="createdAt",
        items_per_request=50,
        search="vpn",
        filters=[
            QueryFilter(
                RequestFilterField.CreatedAt,
                FilterOperator.GreaterThanAndLessThan,
                DateTimeValues((datetime(2024, 1, 1), datetime(2024, 2, 1))),
            ),
            QueryFilter(RequestFilterField.Subject, FilterOperator.Present),
        ],
    )
    assert query.to_document() == {
        "kind": QUERY_KIND,
        "entity": "Request",
        "select": ["subject", "status"],
        "filters": [
            {
                "field": "CreatedAt",
                "operator": "GreaterThanAndLessThan",
                "values": ["2024-01-01T00:00:00", "2024-02-01T00:00:00"],
            },
            {"field": "Subject", "operator": "Present", "values": []},
        ],
        "view": "open",
        "orderBy": {"field": "createdAt", "sortOrder": "Ascending"},
        "itemsPerRequest": 50,
        "search": "vpn",
    }


def test_build_query_validates_before_applying() -> None:
    bad = QueryFilter(RequestFilterField.Priority, FilterOperator.LessThan, IntegerValues((1, 2)))
    with pytest.raises(InvalidFilterConfiguration, match="Unsupported integer filter operator"):
        build_query(get_entity("Request"), select=["id"], filters=[bad])


def test_build_query_requires_selection() -> None:
    with pytest.raises(UsageError, match="select at least one Request field"):
        build_query(get_entity("Request"), select=[])


def test_custom_filters_only_for_supporting_entities() -> None:
    cf = CustomFilter("region", FilterOperator.Equals, TextValues(("emea",)))
    query = build_query(get_entity("Team"), select=["name"], custom_filters=[cf])
    assert query.to_document()["customFilters"] == [
        {"name": "region", "operator": "Equals", "values": ["emea"]}
    ]
    for name in ("Project", "Request", "Service", "Workflow"):
        query = build_query(get_entity(name), select=["id"], custom_filters=[cf])
        assert len(query.custom_filters) == 1, name
    for name in ("AffectedSla", "Calendar", "TimeEntry"):
        with pytest.raises(UsageError, match=f"{name} queries do not support custom filters"):
            build_query(get_entity(name), select=["id"], custom_filters=[cf])


def test_search_not_supported_for_calendars() -> None:
    query = build_query(get_entity("Team"), select=["name"], search="ops")
    assert query.to_document()["search"] == "ops"
    with pytest.raises(UsageError, match="Calendar queries do not support search"):
        build_query(get_entity("Calendar"), select=["name"], search="office")
    with pytest.raises(UsageError, match="Calendar queries do not support search"):
        QueryRequest(entity=get_entity("Calendar")).search("office")


def test_items_per_request_bounds() -> None:
    query = QueryRequest(entity=get_entity("Request"))
    assert query.items_per_request(1).page_size == 1
    assert query.items_per_request(100).page_size == 100
    for n in (0, 101):
        with pytest.raises(UsageError, match="between 1 and 100"):
            query.items_per_request(n)


def test_descending_order() -> None:
    query = QueryRequest(entity=get_entity("Request")).order_by("updatedAt", SortOrder.Descending)
    assert query.order == {"field": "updatedAt", "sortOrder": "Descending"}


def test_query_rejects_fields_of_another_entity() -> None:
    query = QueryRequest(entity=get_entity("Request"))
    with pytest.raises(TypeError, match="not a Request filter field"):
        query.where_present(TeamFilterField.Name)


def test_select_deduplicates_in_order() -> None:
    query = QueryRequest(entity=get_entity("Request")).select(["id", "subject", "id"])
    assert query.selected == ["id", "subject"]


def test_entity_lookup_helpers() -> None:
    assert get_entity("TIMEENTRY").name == "TimeEntry"
    assert parse_field(RequestFilterField, "createdat") is RequestFilterField.CreatedAt
    assert parse_field(RequestFilterField, "requestedBy") is RequestFilterField.Requested
    assert parse_choice("OPEN", ("all", "open"), label="view") == "open"
    with pytest.raises(UsageError, match="unknown entity 'Ticket'"):
        get_entity("Ticket")
    with pytest.raises(UsageError, match="unknown field 'Colour'"):
        parse_field(RequestFilterField, "Colour")
