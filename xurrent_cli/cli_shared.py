from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass
from typing import Any

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape


class XurrentCliError(Exception):
    pass


class UsageError(XurrentCliError):
    pass


class OpError(XurrentCliError):
    pass


XURRENT_PLAIN_JSON = "XURRENT_PLAIN_JSON"
XURRENT_QUIET = "XURRENT_QUIET"
XURRENT_VERBOSE = "XURRENT_VERBOSE"
XURRENT_ITEMS_PER_REQUEST = "XURRENT_ITEMS_PER_REQUEST"

ITEMS_PER_REQUEST_MIN = 1
ITEMS_PER_REQUEST_MAX = 100

_ERROR_CONSOLE = Console(stderr=True)


@dataclass(frozen=True)
class GlobalOpts:
    pretty: bool
    quiet: bool
    verbose: bool = False
    default_items_per_request: int | None = None


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


def _bootstrap_env() -> None:
    # Discover and load .env without overriding already-exported values.
    load_dotenv()


def _env_or_none(*names: str) -> str | None:
    for n in names:
        v = (os.environ.get(n) or "").strip()
        if v:
            return v
    return None


def _truthy(raw: str | None) -> bool:
    return str(raw or "").strip().lower() in {"1", "true", "yes", "on"}


def _parse_items_per_request(raw: str | int | None, *, label: str) -> int | None:
    if raw is None or str(raw).strip() == "":
        return None
    try:
        n = int(str(raw).strip())
    except ValueError as e:
        raise UsageError(f"invalid {label}: expected an integer, got {raw!r}") from e
    if n < ITEMS_PER_REQUEST_MIN or n > ITEMS_PER_REQUEST_MAX:
        raise UsageError(
            f"invalid {label}: {n} is outside the range "
            f"{ITEMS_PER_REQUEST_MIN}-{ITEMS_PER_REQUEST_MAX}"
        )
    return n


def resolve_global_opts(*, plain_json: bool, quiet: bool, verbose: bool) -> GlobalOpts:
    """Merge global flags with their environment overrides."""

    return GlobalOpts(
        pretty=not (plain_json or _truthy(os.environ.get(XURRENT_PLAIN_JSON))),
        quiet=quiet or _truthy(os.environ.get(XURRENT_QUIET)),
        verbose=verbose or _truthy(os.environ.get(XURRENT_VERBOSE)),
        default_items_per_request=_parse_items_per_request(
            _env_or_none(XURRENT_ITEMS_PER_REQUEST),
            label=f"env {XURRENT_ITEMS_PER_REQUEST}",
        ),
    )


def _print_json(obj: Any, *, pretty: bool) -> None:
    if pretty:
        sys.stdout.write(json.dumps(obj, indent=2, sort_keys=True) + "\n")
    else:
        sys.stdout.write(json.dumps(obj, separators=(",", ":"), sort_keys=True) + "\n")


def _rich_error(msg: str) -> None:
    _ERROR_CONSOLE.print(f"[bold red]error:[/bold red] {escape(msg)}", highlight=False, soft_wrap=True)


def _log_warning(g: GlobalOpts, msg: str) -> None:
    if g.quiet:
        return
    _ERROR_CONSOLE.print(f"[yellow]warning:[/yellow] {escape(msg)}", highlight=False, soft_wrap=True)


def _log_verbose(g: GlobalOpts, msg: str) -> None:
    if g.quiet or not g.verbose:
        return
    _ERROR_CONSOLE.print(f"[dim]verbose: {escape(msg)}[/dim]", highlight=False, soft_wrap=True)
