from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from .cli_shared import (
    GlobalOpts,
    OpError,
    UsageError,
    _log_verbose,
    _log_warning,
    _parse_items_per_request,
    _print_json,
)
from .entities import ENTITIES, EntitySpec, get_entity, parse_choice, parse_field
from .filter_inputs import (
    build_custom_filter,
    build_query_filter,
    parse_boolean,
    parse_datetime,
    parse_integer,
    parse_text,
)
from .filter_validation import validate, validate_custom
from .filters import (
    COMPARISON_OPERATORS,
    CUSTOM_FILTER_KIND,
    EQUALITY_OPERATORS,
    PRESENCE_OPERATORS,
    QUERY_FILTER_KIND,
    RANGE_OPERATORS,
    CustomFilter,
    FilterOperator,
    InvalidFilterConfiguration,
    QueryFilter,
    custom_filter_from_document,
    filter_from_document,
)
from .query import SortOrder, build_query

FILTER_VALIDATION_KIND = "xurrent.filter-validation.v1"


def _values_or_none(raw: list[str] | None) -> list[str] | None:
    if not raw:
        return None
    return list(raw)


def _read_json_input(*, raw_json: str | None, path: str | None, label: str) -> Any:
    if (raw_json or "").strip() and (path or "").strip():
        raise UsageError(f"provide only one of --{label}-json or --{label}-file")
    text = raw_json or ""
    if (path or "").strip():
        try:
            text = Path(str(path)).read_text(encoding="utf-8")
        except OSError as e:
            raise UsageError(f"failed to read --{label}-file: {e}") from e
    if not text.strip():
        raise UsageError(f"provide --{label}-json or --{label}-file")
    try:
        return json.loads(text)
    except Exception as e:
        raise UsageError(f"invalid {label} JSON: {e}") from e


def _filter_documents(raw: Any) -> list[dict[str, Any]]:
    items = raw if isinstance(raw, list) else [raw]
    docs: list[dict[str, Any]] = []
    for item in items:
        if not isinstance(item, dict):
            raise UsageError("filter input must be a JSON object or a list of objects")
        docs.append(item)
    return docs


def _log_parameters(g: GlobalOpts, command: str, args: argparse.Namespace) -> None:
    _log_verbose(g, f"begin {command}")
    for key, val in sorted(vars(args).items()):
        if val is None or val == [] or val is False:
            continue
        _log_verbose(g, f"  {key} = {val!r}")


def cmd_filter_new(args: argparse.Namespace, g: GlobalOpts) -> int:
    _log_parameters(g, "filter new", args)
    entity = get_entity(args.entity)
    field = parse_field(entity.filter_fields, args.field)
    boolean_value = parse_boolean(args.boolean_value) if args.boolean_value is not None else None
    datetimes = _values_or_none(args.datetime_values)
    integers = _values_or_none(args.integer_values)
    texts = _values_or_none(args.text_values)
    try:
        query_filter = build_query_filter(
            field,
            args.operator,
            boolean_value=boolean_value,
            datetime_values=[parse_datetime(v) for v in datetimes] if datetimes is not None else None,
            integer_values=[parse_integer(v) for v in integers] if integers is not None else None,
            text_values=[parse_text(v) for v in texts] if texts is not None else None,
        )
    except InvalidFilterConfiguration as e:
        raise OpError(e.reason) from e
    _print_json(query_filter.to_document(), pretty=g.pretty)
    _log_verbose(g, "end filter new")
    return 0


def cmd_filter_custom(args: argparse.Namespace, g: GlobalOpts) -> int:
    _log_parameters(g, "filter custom", args)
    texts = _values_or_none(args.text_values)
    try:
        custom_filter = build_custom_filter(
            args.name,
            args.operator,
            [parse_text(v) for v in texts] if texts is not None else None,
        )
    except InvalidFilterConfiguration as e:
        raise OpError(e.reason) from e
    _print_json(custom_filter.to_document(), pretty=g.pretty)
    _log_verbose(g, "end filter custom")
    return 0


def _validate_document(doc: dict[str, Any]) -> dict[str, Any]:
    kind = str(doc.get("kind") or "").strip()
    try:
        if kind == CUSTOM_FILTER_KIND:
            custom_filter = custom_filter_from_document(doc)
            result = validate_custom(custom_filter)
            subject = custom_filter.name
        elif kind == QUERY_FILTER_KIND:
            entity = get_entity(str(doc.get("entity") or ""))
            query_filter = filter_from_document(doc, entity.filter_fields)
            result = validate(query_filter)
            subject = f"{entity.name}.{query_filter.field.name}"
        else:
            raise InvalidFilterConfiguration(
                f"unknown filter document kind {kind!r}; expected {QUERY_FILTER_KIND} or {CUSTOM_FILTER_KIND}"
            )
    except InvalidFilterConfiguration as e:
        return {"kind": FILTER_VALIDATION_KIND, "ok": False, "reason": e.reason, "filter": None}
    except UsageError as e:
        return {"kind": FILTER_VALIDATION_KIND, "ok": False, "reason": str(e), "filter": None}
    return {"kind": FILTER_VALIDATION_KIND, "ok": result.ok, "reason": result.reason, "filter": subject}


def cmd_filter_validate(args: argparse.Namespace, g: GlobalOpts) -> int:
    _log_parameters(g, "filter validate", args)
    docs = _filter_documents(_read_json_input(raw_json=args.filter_json, path=args.filter_file, label="filter"))
    results = [_validate_document(d) for d in docs]
    _print_json(results[0] if len(results) == 1 else results, pretty=g.pretty)
    failed = [r for r in results if not r["ok"]]
    for r in failed:
        _log_warning(g, str(r["reason"]))
    return 1 if failed else 0


def cmd_filter_operators(args: argparse.Namespace, g: GlobalOpts) -> int:
    del args
    groups = (
        ("equality", EQUALITY_OPERATORS, "one or more"),
        ("comparison", COMPARISON_OPERATORS, "exactly one"),
        ("range", RANGE_OPERATORS, "exactly two (lower, upper)"),
        ("presence", PRESENCE_OPERATORS, "none"),
    )
    order = list(FilterOperator)
    payload = {
        "kind": "xurrent.filter-operators.v1",
        "groups": [
            {
                "name": name,
                "operators": sorted((op.value for op in ops), key=lambda v: order.index(FilterOperator(v))),
                "values": arity,
            }
            for name, ops, arity in groups
        ],
    }
    _print_json(payload, pretty=g.pretty)
    return 0


def cmd_entities_list(args: argparse.Namespace, g: GlobalOpts) -> int:
    del args
    entities = [
        {
            "name": spec.name,
            "supportsCustomFilters": spec.supports_custom_filters,
            "supportsSearch": spec.supports_search,
        }
        for spec in sorted(ENTITIES.values(), key=lambda s: s.name)
    ]
    _print_json({"kind": "xurrent.entities.v1", "entities": entities}, pretty=g.pretty)
    return 0


def cmd_entities_fields(args: argparse.Namespace, g: GlobalOpts) -> int:
    entity = get_entity(args.entity)
    payload = {
        "kind": "xurrent.entity-fields.v1",
        "entity": entity.name,
        "filterFields": [m.name for m in entity.filter_fields],
        "fields": list(entity.fields),
        "orderFields": list(entity.order_fields),
        "views": list(entity.views),
        "supportsCustomFilters": entity.supports_custom_filters,
        "supportsSearch": entity.supports_search,
    }
    _print_json(payload, pretty=g.pretty)
    return 0


def _parse_select(entity: EntitySpec, raw: list[str]) -> list[str]:
    out: list[str] = []
    for item in raw:
        for part in str(item).split(","):
            v = part.strip()
            if v:
                out.append(parse_choice(v, entity.fields, label=f"{entity.name} field"))
    if not out:
        raise UsageError(f"missing --select (one or more {entity.name} fields)")
    return out


def _load_query_filters(entity: EntitySpec, args: argparse.Namespace) -> list[QueryFilter]:
    docs: list[dict[str, Any]] = []
    for raw in args.filter_json or []:
        docs.extend(_filter_documents(_read_json_input(raw_json=raw, path=None, label="filter")))
    if (args.filter_file or "").strip():
        docs.extend(_filter_documents(_read_json_input(raw_json=None, path=args.filter_file, label="filter")))
    filters: list[QueryFilter] = []
    for d in docs:
        if str(d.get("kind") or "") != QUERY_FILTER_KIND:
            raise UsageError(f"--filter-json expects {QUERY_FILTER_KIND} documents")
        filters.append(filter_from_document(d, entity.filter_fields))
    return filters


def _load_custom_filters(args: argparse.Namespace) -> list[CustomFilter]:
    out: list[CustomFilter] = []
    for raw in args.custom_filter_json or []:
        for d in _filter_documents(_read_json_input(raw_json=raw, path=None, label="custom-filter")):
            out.append(custom_filter_from_document(d))
    return out


def cmd_query_new(args: argparse.Namespace, g: GlobalOpts) -> int:
    _log_parameters(g, "query new", args)
    entity = get_entity(args.entity)
    select = _parse_select(entity, list(args.select or []))
    view = parse_choice(args.view, entity.views, label=f"{entity.name} view") if args.view else None
    order_by = (
        parse_choice(args.order_by, entity.order_fields, label=f"{entity.name} order field")
        if args.order_by
        else None
    )
    sort_order = None
    if args.sort_order:
        try:
            sort_order = next(s for s in SortOrder if s.value.lower() == str(args.sort_order).strip().lower())
        except StopIteration:
            raise UsageError(f"unknown sort order {args.sort_order!r}; expected Ascending or Descending") from None
        if order_by is None:
            _log_warning(g, "--sort-order has no effect without --order-by")
    items = _parse_items_per_request(args.items_per_request, label="--items-per-request")
    if items is None:
        items = g.default_items_per_request

    try:
        filters = _load_query_filters(entity, args)
        custom_filters = _load_custom_filters(args)
        query = build_query(
            entity,
            select=select,
            with_id=args.with_id,
            view=view,
            order_by=order_by,
            sort_order=sort_order,
            items_per_request=items,
            filters=filters,
            search=args.search,
            custom_filters=custom_filters,
        )
    except InvalidFilterConfiguration as e:
        raise OpError(e.reason) from e
    if args.with_id is not None and (filters or custom_filters):
        _log_warning(g, "--with-id is set; other filter conditions are ignored by the API")
    _log_verbose(g, f"applied {len(query.predicates)} filter(s) and {len(query.custom_filters)} custom filter(s)")
    _print_json(query.to_document(), pretty=g.pretty)
    _log_verbose(g, "end query new")
    return 0
