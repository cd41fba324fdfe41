from __future__ import annotations

import argparse
import sys
from typing import Any

import click
import typer

from .. import __version__
from ..cli_shared import (
    XURRENT_ITEMS_PER_REQUEST,
    XURRENT_PLAIN_JSON,
    XURRENT_QUIET,
    XURRENT_VERBOSE,
    GlobalOpts,
    OpError,
    UsageError,
    _bootstrap_env,
    _eprint,
    _rich_error,
    resolve_global_opts,
)
from ..commands import (
    cmd_entities_fields,
    cmd_entities_list,
    cmd_filter_custom,
    cmd_filter_new,
    cmd_filter_operators,
    cmd_filter_validate,
    cmd_query_new,
)


def _render_usage_error_with_help(*, message: str, ctx: click.Context | None = None) -> None:
    _rich_error(message)
    help_text = ""
    if isinstance(ctx, click.Context):
        try:
            help_text = str(ctx.get_help() or "").strip()
        except Exception:
            help_text = ""
    if help_text:
        _eprint("")
        _eprint(help_text)


def _namespace(**kwargs: Any) -> argparse.Namespace:
    return argparse.Namespace(**kwargs)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"xurrent {__version__}")
        raise typer.Exit(code=0)


app = typer.Typer(
    name="xurrent",
    help="Build typed filters and query requests for the Xurrent GraphQL API.",
    no_args_is_help=True,
    add_completion=False,
)
filter_app = typer.Typer(help="Create and validate query filters", no_args_is_help=True)
entities_app = typer.Typer(help="Filterable entities and their fields", no_args_is_help=True)
query_app = typer.Typer(help="Assemble query requests", no_args_is_help=True)
app.add_typer(filter_app, name="filter")
app.add_typer(entities_app, name="entities")
app.add_typer(query_app, name="query")


@app.callback()
def app_callback(
    ctx: typer.Context,
    plain_json: bool = typer.Option(
        False, "--plain-json", help=f"Emit compact JSON output (env: {XURRENT_PLAIN_JSON})"
    ),
    quiet: bool = typer.Option(False, "--quiet", help=f"Reduce stderr logging (env: {XURRENT_QUIET})"),
    verbose: bool = typer.Option(
        False, "--verbose", help=f"Log command parameters to stderr (env: {XURRENT_VERBOSE})"
    ),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True),
) -> None:
    del version
    ctx.obj = {"g": resolve_global_opts(plain_json=plain_json, quiet=quiet, verbose=verbose)}


def _ctx_global(ctx: typer.Context) -> GlobalOpts:
    root = ctx.find_root()
    if isinstance(root.obj, dict) and isinstance(root.obj.get("g"), GlobalOpts):
        return root.obj["g"]
    return resolve_global_opts(plain_json=False, quiet=False, verbose=False)


def _invoke(ctx: typer.Context, func: Any, **kwargs: Any) -> None:
    g = _ctx_global(ctx)
    args = _namespace(**kwargs)
    try:
        code = int(func(args, g))
    except UsageError as e:
        _render_usage_error_with_help(message=str(e), ctx=ctx)
        raise typer.Exit(code=2)
    except OpError as e:
        _rich_error(str(e))
        raise typer.Exit(code=1)

    if code:
        raise typer.Exit(code=code)


def _invoke_from_locals(
    ctx: typer.Context,
    func: Any,
    local_vars: dict[str, Any],
    *,
    drop: tuple[str, ...] = ("ctx",),
) -> None:
    _invoke(ctx, func, **{k: v for k, v in local_vars.items() if k not in drop})


@filter_app.command("new", help="Create a query filter for one entity field and print it as JSON.")
def filter_new(
    ctx: typer.Context,
    entity: str = typer.Argument(..., help="Entity name, e.g. Request"),
    field: str = typer.Argument(..., help="Filterable field of the entity, e.g. CreatedAt"),
    operator: str = typer.Argument(..., help="Filter operator, e.g. Equals or GreaterThan"),
    boolean_value: str | None = typer.Option(None, "--bool", help="Boolean value (true/false)"),
    datetime_values: list[str] | None = typer.Option(
        None, "--datetime", help="Date/time value (ISO 8601, repeatable, 'null' for none)"
    ),
    integer_values: list[str] | None = typer.Option(
        None, "--integer", help="Integer value (repeatable, 'null' for none)"
    ),
    text_values: list[str] | None = typer.Option(
        None, "--text", help="Text value (repeatable, 'null' for none)"
    ),
) -> None:
    _invoke_from_locals(ctx, cmd_filter_new, locals())


@filter_app.command("custom", help="Create a custom (UI extension) filter and print it as JSON.")
def filter_custom(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Custom field name as defined in the UI extension"),
    operator: str = typer.Argument(..., help="Equals, NotEquals, Present or Empty"),
    text_values: list[str] | None = typer.Option(
        None, "--text", help="Text value (repeatable, 'null' for none)"
    ),
) -> None:
    _invoke_from_locals(ctx, cmd_filter_custom, locals())


@filter_app.command("validate", help="Validate filter JSON documents; exits 1 when any filter is invalid.")
def filter_validate(
    ctx: typer.Context,
    filter_json: str | None = typer.Option(None, "--filter-json", help="Filter document or list of documents"),
    filter_file: str | None = typer.Option(None, "--filter-file", help="Path to a filter JSON file"),
) -> None:
    _invoke_from_locals(ctx, cmd_filter_validate, locals())


@filter_app.command("operators", help="List filter operators grouped by the number of values they take.")
def filter_operators(ctx: typer.Context) -> None:
    _invoke(ctx, cmd_filter_operators)


@entities_app.command("list", help="List entities that accept query filters.")
def entities_list(ctx: typer.Context) -> None:
    _invoke(ctx, cmd_entities_list)


@entities_app.command("fields", help="Print filter, select and order fields of one entity.")
def entities_fields(
    ctx: typer.Context,
    entity: str = typer.Argument(..., help="Entity name"),
) -> None:
    _invoke_from_locals(ctx, cmd_entities_fields, locals())


@query_app.command("new", help="Assemble a query request from fields, options and filters.")
def query_new(
    ctx: typer.Context,
    entity: str = typer.Argument(..., help="Entity name"),
    select: list[str] | None = typer.Option(
        None, "--select", help="Fields to return (repeatable or comma-separated)"
    ),
    with_id: str | None = typer.Option(None, "--with-id", help="Only return the record with this id"),
    view: str | None = typer.Option(None, "--view", help="Predefined view"),
    order_by: str | None = typer.Option(None, "--order-by", help="Order field"),
    sort_order: str | None = typer.Option(None, "--sort-order", help="Ascending (default) or Descending"),
    items_per_request: str | None = typer.Option(
        None,
        "--items-per-request",
        help=f"Page size 1-100 (env default: {XURRENT_ITEMS_PER_REQUEST})",
    ),
    filter_json: list[str] | None = typer.Option(
        None, "--filter-json", help="Query filter document or list (repeatable)"
    ),
    filter_file: str | None = typer.Option(None, "--filter-file", help="Path to query filter JSON"),
    search: str | None = typer.Option(None, "--search", help="Free-text search"),
    custom_filter_json: list[str] | None = typer.Option(
        None, "--custom-filter-json", help="Custom filter document or list (repeatable)"
    ),
) -> None:
    _invoke_from_locals(ctx, cmd_query_new, locals())


def _run_cli(*, root_app: typer.Typer, prog_name: str, argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    _bootstrap_env()
    try:
        result = root_app(args=argv, prog_name=prog_name, standalone_mode=False)
        if result is None:
            return 0
        return int(result)
    except typer.Exit as e:
        return int(e.exit_code)
    except click.ClickException as e:
        if isinstance(e, click.UsageError):
            _render_usage_error_with_help(message=e.format_message(), ctx=getattr(e, "ctx", None))
            return int(e.exit_code)
        _rich_error(e.format_message())
        return int(e.exit_code)
    except UsageError as e:
        # Raised by the root callback when environment defaults are invalid.
        _rich_error(str(e))
        return 2
    except OpError as e:
        _rich_error(str(e))
        return 1


def main(argv: list[str] | None = None) -> int:
    return _run_cli(root_app=app, prog_name="xurrent", argv=argv)


if __name__ == "__main__":
    raise SystemExit(main())
