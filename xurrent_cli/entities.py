from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TypeVar

from .cli_shared import UsageError

E = TypeVar("E", bound=enum.Enum)


class AffectedSlaFilterField(enum.Enum):
    CreatedAt = "createdAt"
    Id = "id"
    ServiceLevelAgreement = "serviceLevelAgreement"
    UpdatedAt = "updatedAt"


class AgileBoardFilterField(enum.Enum):
    CreatedAt = "createdAt"
    Disabled = "disabled"
    Id = "id"
    Manager = "manager"
    Name = "name"
    UpdatedAt = "updatedAt"


class CalendarFilterField(enum.Enum):
    CreatedAt = "createdAt"
    Disabled = "disabled"
    Id = "id"
    Name = "name"
    SourceId = "sourceID"
    UpdatedAt = "updatedAt"


class ProjectFilterField(enum.Enum):
    Category = "category"
    CompletedAt = "completedAt"
    CreatedAt = "createdAt"
    Customer = "customer"
    Id = "id"
    Manager = "manager"
    Program = "program"
    RiskLevel = "riskLevel"
    Service = "service"
    SourceId = "sourceID"
    Status = "status"
    Subject = "subject"
    UpdatedAt = "updatedAt"


class ReleaseFilterField(enum.Enum):
    CompletedAt = "completedAt"
    CreatedAt = "createdAt"
    Id = "id"
    Manager = "manager"
    SourceId = "sourceID"
    Status = "status"
    Subject = "subject"
    UpdatedAt = "updatedAt"


class RequestFilterField(enum.Enum):
    Category = "category"
    CompletedAt = "completedAt"
    CreatedAt = "createdAt"
    Id = "id"
    Impact = "impact"
    Major = "major"
    Member = "member"
    Priority = "priority"
    Requested = "requestedBy"
    Service = "service"
    SourceId = "sourceID"
    Status = "status"
    Subject = "subject"
    Team = "team"
    UpdatedAt = "updatedAt"


class ServiceFilterField(enum.Enum):
    CreatedAt = "createdAt"
    Disabled = "disabled"
    Id = "id"
    Name = "name"
    Provider = "provider"
    SourceId = "sourceID"
    SupportTeam = "supportTeam"
    UpdatedAt = "updatedAt"


class ServiceInstanceFilterField(enum.Enum):
    CreatedAt = "createdAt"
    Disabled = "disabled"
    Id = "id"
    Name = "name"
    Service = "service"
    SourceId = "sourceID"
    Status = "status"
    UpdatedAt = "updatedAt"


class TeamFilterField(enum.Enum):
    CreatedAt = "createdAt"
    Disabled = "disabled"
    Id = "id"
    Name = "name"
    SourceId = "sourceID"
    UpdatedAt = "updatedAt"


class TimeEntryFilterField(enum.Enum):
    CreatedAt = "createdAt"
    Date = "date"
    Deleted = "deleted"
    Id = "id"
    Person = "person"
    TimeSpent = "timeSpent"
    UpdatedAt = "updatedAt"


class WorkflowFilterField(enum.Enum):
    Category = "category"
    CompletedAt = "completedAt"
    CreatedAt = "createdAt"
    Id = "id"
    Manager = "manager"
    Service = "service"
    SourceId = "sourceID"
    Status = "status"
    Subject = "subject"
    UpdatedAt = "updatedAt"


@dataclass(frozen=True)
class EntitySpec:
    name: str
    filter_fields: type[enum.Enum]
    fields: tuple[str, ...]
    order_fields: tuple[str, ...] = ("createdAt", "id", "updatedAt")
    views: tuple[str, ...] = ()
    supports_custom_filters: bool = False
    supports_search: bool = True


_COMMON_FIELDS = ("createdAt", "id", "sourceID", "updatedAt")

ENTITIES: dict[str, EntitySpec] = {
    spec.name.lower(): spec
    for spec in (
        EntitySpec(
            name="AffectedSla",
            filter_fields=AffectedSlaFilterField,
            fields=("accountability", "createdAt", "id", "reachedAt", "resolutionTarget", "updatedAt"),
        ),
        EntitySpec(
            name="AgileBoard",
            filter_fields=AgileBoardFilterField,
            fields=("createdAt", "description", "disabled", "id", "name", "updatedAt"),
            order_fields=("createdAt", "id", "name", "updatedAt"),
            views=("all", "current_user_manager", "disabled", "enabled"),
        ),
        EntitySpec(
            name="Calendar",
            filter_fields=CalendarFilterField,
            fields=_COMMON_FIELDS + ("disabled", "name", "timeZone"),
            order_fields=("createdAt", "id", "name", "updatedAt"),
            views=("all", "disabled", "enabled"),
            supports_search=False,
        ),
        EntitySpec(
            name="Project",
            filter_fields=ProjectFilterField,
            fields=_COMMON_FIELDS + ("completedAt", "status", "subject"),
            order_fields=("completedAt", "createdAt", "id", "status", "subject", "updatedAt"),
            views=("all", "completed", "managed_by_me", "open"),
            supports_custom_filters=True,
        ),
        EntitySpec(
            name="Release",
            filter_fields=ReleaseFilterField,
            fields=_COMMON_FIELDS + ("completedAt", "status", "subject"),
            order_fields=("completedAt", "createdAt", "id", "status", "subject", "updatedAt"),
            views=("all", "completed", "managed_by_me", "open"),
            supports_custom_filters=True,
        ),
        EntitySpec(
            name="Request",
            filter_fields=RequestFilterField,
            fields=_COMMON_FIELDS + ("category", "completedAt", "impact", "status", "subject"),
            order_fields=("completedAt", "createdAt", "id", "impact", "status", "subject", "updatedAt"),
            views=("all", "assigned_to_me", "completed", "current_user", "open"),
            supports_custom_filters=True,
        ),
        EntitySpec(
            name="Service",
            filter_fields=ServiceFilterField,
            fields=_COMMON_FIELDS + ("disabled", "name"),
            order_fields=("createdAt", "id", "name", "updatedAt"),
            views=("all", "disabled", "enabled"),
            supports_custom_filters=True,
        ),
        EntitySpec(
            name="ServiceInstance",
            filter_fields=ServiceInstanceFilterField,
            fields=_COMMON_FIELDS + ("disabled", "name", "status"),
            order_fields=("createdAt", "id", "name", "status", "updatedAt"),
            views=("all", "disabled", "enabled"),
            supports_custom_filters=True,
        ),
        EntitySpec(
            name="Team",
            filter_fields=TeamFilterField,
            fields=_COMMON_FIELDS + ("disabled", "name"),
            order_fields=("createdAt", "id", "name", "updatedAt"),
            views=("all", "disabled", "enabled"),
            supports_custom_filters=True,
        ),
        EntitySpec(
            name="TimeEntry",
            filter_fields=TimeEntryFilterField,
            fields=("createdAt", "date", "deleted", "description", "id", "timeSpent", "updatedAt"),
            order_fields=("createdAt", "date", "id", "updatedAt"),
        ),
        EntitySpec(
            name="Workflow",
            filter_fields=WorkflowFilterField,
            fields=_COMMON_FIELDS + ("category", "completedAt", "status", "subject"),
            order_fields=("completedAt", "createdAt", "id", "status", "subject", "updatedAt"),
            views=("all", "completed", "managed_by_me", "open"),
            supports_custom_filters=True,
        ),
    )
}


def entity_names() -> list[str]:
    return sorted(spec.name for spec in ENTITIES.values())


def get_entity(name: str) -> EntitySpec:
    key = str(name or "").strip().lower()
    spec = ENTITIES.get(key)
    if spec is None:
        raise UsageError(f"unknown entity {name!r}; expected one of {', '.join(entity_names())}")
    return spec


def parse_field(enum_cls: type[E], raw: str) -> E:
    key = str(raw or "").strip().lower()
    for member in enum_cls:
        if member.name.lower() == key or str(member.value).lower() == key:
            return member
    choices = ", ".join(m.name for m in enum_cls)
    raise UsageError(f"unknown field {raw!r}; expected one of {choices}")


def parse_choice(raw: str, choices: tuple[str, ...], *, label: str) -> str:
    key = str(raw or "").strip().lower()
    for c in choices:
        if c.lower() == key:
            return c
    raise UsageError(f"unknown {label} {raw!r}; expected one of {', '.join(choices)}")
