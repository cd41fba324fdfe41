"""Typed query filter value model.

A filter pairs a filterable field of one entity kind with a
:class:`FilterOperator` and at most one typed value payload. The payload is a
closed union of :class:`NoValue`, :class:`BooleanValue`,
:class:`DateTimeValues`, :class:`IntegerValues` and :class:`TextValues`, so a
filter can never carry two payloads at once.

Filters round-trip through plain JSON documents (``to_document`` /
``filter_from_document``) so commands can hand them to each other over a pipe.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, Iterable, TypeVar, Union

QUERY_FILTER_KIND = "xurrent.query-filter.v1"
CUSTOM_FILTER_KIND = "xurrent.custom-filter.v1"


class InvalidFilterConfiguration(ValueError):
    """Raised when a (field, operator, payload) combination is not supported."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class InvalidFilterDocument(InvalidFilterConfiguration):
    """Raised when a serialized filter document cannot be read back."""


class FilterOperator(str, enum.Enum):
    Equals = "Equals"
    NotEquals = "NotEquals"
    LessThan = "LessThan"
    LessThanOrEqualsTo = "LessThanOrEqualsTo"
    GreaterThan = "GreaterThan"
    GreaterThanOrEqualsTo = "GreaterThanOrEqualsTo"
    GreaterThanAndLessThan = "GreaterThanAndLessThan"
    GreaterThanOrEqualToAndLessThanOrEqualTo = "GreaterThanOrEqualToAndLessThanOrEqualTo"
    Present = "Present"
    Empty = "Empty"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, raw: str | FilterOperator) -> FilterOperator:
        if isinstance(raw, FilterOperator):
            return raw
        key = str(raw or "").strip().lower()
        for op in cls:
            if op.value.lower() == key:
                return op
        raise InvalidFilterConfiguration(
            f"unknown filter operator {raw!r}; expected one of "
            + ", ".join(op.value for op in cls)
        )


EQUALITY_OPERATORS = frozenset({FilterOperator.Equals, FilterOperator.NotEquals})
COMPARISON_OPERATORS = frozenset(
    {
        FilterOperator.LessThan,
        FilterOperator.LessThanOrEqualsTo,
        FilterOperator.GreaterThan,
        FilterOperator.GreaterThanOrEqualsTo,
    }
)
RANGE_OPERATORS = frozenset(
    {
        FilterOperator.GreaterThanAndLessThan,
        FilterOperator.GreaterThanOrEqualToAndLessThanOrEqualTo,
    }
)
PRESENCE_OPERATORS = frozenset({FilterOperator.Present, FilterOperator.Empty})


def _require_values(payload: Any) -> None:
    if not payload.values:
        raise InvalidFilterConfiguration(
            f"{type(payload).__name__} needs at least one value; use NO_VALUE for a filter without values"
        )


@dataclass(frozen=True)
class NoValue:
    kind = "none"

    def __len__(self) -> int:
        return 0


@dataclass(frozen=True)
class BooleanValue:
    value: bool
    kind = "boolean"

    def __len__(self) -> int:
        return 1


@dataclass(frozen=True)
class DateTimeValues:
    values: tuple[datetime | None, ...]
    kind = "datetime"

    def __post_init__(self) -> None:
        _require_values(self)

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class IntegerValues:
    values: tuple[int | None, ...]
    kind = "integer"

    def __post_init__(self) -> None:
        _require_values(self)

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class TextValues:
    values: tuple[str | None, ...]
    kind = "text"

    def __post_init__(self) -> None:
        _require_values(self)

    def __len__(self) -> int:
        return len(self.values)


FilterValue = Union[NoValue, BooleanValue, DateTimeValues, IntegerValues, TextValues]

NO_VALUE = NoValue()


def datetime_values(values: Iterable[datetime | None] | None) -> DateTimeValues | NoValue:
    items = tuple(values or ())
    return DateTimeValues(items) if items else NO_VALUE


def integer_values(values: Iterable[int | None] | None) -> IntegerValues | NoValue:
    items = tuple(values or ())
    return IntegerValues(items) if items else NO_VALUE


def text_values(values: Iterable[str | None] | None) -> TextValues | NoValue:
    items = tuple(values or ())
    return TextValues(items) if items else NO_VALUE


F = TypeVar("F", bound=enum.Enum)


@dataclass(frozen=True)
class QueryFilter(Generic[F]):
    """A filter on one field of an entity.

    Direct construction does not validate; use :meth:`create` to obtain an
    instance that is known to be valid.
    """

    field: F
    operator: FilterOperator
    value: FilterValue = NO_VALUE

    @classmethod
    def create(cls, field: F, operator: FilterOperator | str, value: FilterValue = NO_VALUE) -> QueryFilter[F]:
        from .filter_validation import ensure_valid

        return ensure_valid(cls(field=field, operator=FilterOperator.parse(operator), value=value))

    @property
    def entity(self) -> str:
        return _entity_name(type(self.field))

    def to_document(self) -> dict[str, Any]:
        return {
            "kind": QUERY_FILTER_KIND,
            "entity": self.entity,
            "field": self.field.name,
            "operator": self.operator.value,
            "valueKind": self.value.kind,
            "values": _encode_values(self.value),
        }


@dataclass(frozen=True)
class CustomFilter:
    """A filter on a UI extension field, addressed by name."""

    name: str
    operator: FilterOperator
    value: TextValues | NoValue = NO_VALUE

    @classmethod
    def create(
        cls, name: str, operator: FilterOperator | str, value: TextValues | NoValue = NO_VALUE
    ) -> CustomFilter:
        from .filter_validation import ensure_valid_custom

        n = str(name or "").strip()
        if not n:
            raise InvalidFilterConfiguration("custom filter name cannot be empty")
        return ensure_valid_custom(cls(name=n, operator=FilterOperator.parse(operator), value=value))

    def to_document(self) -> dict[str, Any]:
        return {
            "kind": CUSTOM_FILTER_KIND,
            "name": self.name,
            "operator": self.operator.value,
            "valueKind": self.value.kind,
            "values": _encode_values(self.value),
        }


def _entity_name(field_enum: type[enum.Enum]) -> str:
    name = field_enum.__name__
    if name.endswith("FilterField"):
        name = name[: -len("FilterField")]
    return name


def _encode_values(value: FilterValue) -> list[Any]:
    if isinstance(value, BooleanValue):
        return [value.value]
    if isinstance(value, DateTimeValues):
        return [v.isoformat() if v is not None else None for v in value.values]
    if isinstance(value, (IntegerValues, TextValues)):
        return list(value.values)
    return []


def _decode_datetime(raw: Any) -> datetime | None:
    if raw is None:
        return None
    text = str(raw).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise InvalidFilterDocument(f"invalid datetime value {raw!r} in filter document") from e


def _decode_integer(raw: Any) -> int | None:
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise InvalidFilterDocument(f"invalid integer value {raw!r} in filter document")
    return raw


def _decode_value(doc: dict[str, Any]) -> FilterValue:
    kind = str(doc.get("valueKind") or "none").strip()
    raw_values = doc.get("values")
    if raw_values is None:
        raw_values = []
    if not isinstance(raw_values, list):
        raise InvalidFilterDocument("invalid filter document: values must be a list")

    if kind == "none":
        if raw_values:
            raise InvalidFilterDocument("invalid filter document: valueKind none cannot carry values")
        return NO_VALUE
    if kind == "boolean":
        if len(raw_values) != 1 or not isinstance(raw_values[0], bool):
            raise InvalidFilterDocument("invalid filter document: boolean filters carry exactly one true/false value")
        return BooleanValue(raw_values[0])
    if kind == "datetime":
        return datetime_values(_decode_datetime(v) for v in raw_values)
    if kind == "integer":
        return integer_values(_decode_integer(v) for v in raw_values)
    if kind == "text":
        if any(v is not None and not isinstance(v, str) for v in raw_values):
            raise InvalidFilterDocument("invalid filter document: text values must be strings or null")
        return text_values(raw_values)
    raise InvalidFilterDocument(f"invalid filter document: unknown valueKind {kind!r}")


def _require_kind(doc: Any, kind: str) -> dict[str, Any]:
    if not isinstance(doc, dict):
        raise InvalidFilterDocument("invalid filter document: expected JSON object")
    got = str(doc.get("kind") or "").strip()
    if got != kind:
        raise InvalidFilterDocument(f"invalid filter document: expected kind {kind!r}, got {got!r}")
    return doc


def filter_from_document(doc: Any, field_enum: type[F]) -> QueryFilter[F]:
    """Rebuild a :class:`QueryFilter` for ``field_enum`` without validating it."""

    d = _require_kind(doc, QUERY_FILTER_KIND)
    entity = str(d.get("entity") or "").strip()
    expected = _entity_name(field_enum)
    if entity and entity.lower() != expected.lower():
        raise InvalidFilterDocument(
            f"filter document targets entity {entity!r}, expected {expected!r}"
        )
    raw_field = str(d.get("field") or "").strip()
    field = next((m for m in field_enum if m.name.lower() == raw_field.lower()), None)
    if field is None:
        raise InvalidFilterDocument(f"unknown {expected} filter field {raw_field!r}")
    try:
        operator = FilterOperator.parse(str(d.get("operator") or ""))
    except InvalidFilterConfiguration as e:
        raise InvalidFilterDocument(e.reason) from e
    return QueryFilter(field=field, operator=operator, value=_decode_value(d))


def custom_filter_from_document(doc: Any) -> CustomFilter:
    d = _require_kind(doc, CUSTOM_FILTER_KIND)
    name = str(d.get("name") or "").strip()
    if not name:
        raise InvalidFilterDocument("invalid custom filter document: missing name")
    try:
        operator = FilterOperator.parse(str(d.get("operator") or ""))
    except InvalidFilterConfiguration as e:
        raise InvalidFilterDocument(e.reason) from e
    value = _decode_value(d)
    if not isinstance(value, (TextValues, NoValue)):
        raise InvalidFilterDocument("invalid custom filter document: only text values are supported")
    return CustomFilter(name=name, operator=operator, value=value)
