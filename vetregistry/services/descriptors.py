"""Entity descriptors — the per-entity rules the lifecycle governor enforces.

A descriptor is plain data: which fields a caller may write, which of them
must be non-empty, the uniqueness scopes, the parents that must be active,
the dependents that block delete/deactivate, and the user-facing messages.
Descriptors are built once at import time and validated against the ORM
mapping, so a typo in a field or relationship name fails loudly at startup.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel
from sqlalchemy import inspect

from vetregistry.core.database import Base
from vetregistry.dao.base import is_identifier

ACTIVE_COLUMN = "activo"


@dataclass(frozen=True)
class UniqueScope:
    """``field`` must be unique among rows sharing the values of ``within``.

    ``normalized`` scopes compare case- and whitespace-insensitively.
    A scope whose ``field`` is None is not checked.
    """

    field: str
    conflict: str
    conflict_on_update: str | None = None
    within: tuple[str, ...] = ()
    normalized: bool = False

    @property
    def fields(self) -> tuple[str, ...]:
        return (*self.within, self.field)

    @property
    def normalized_fields(self) -> tuple[str, ...]:
        return (self.field,) if self.normalized else ()


@dataclass(frozen=True)
class ParentRef:
    """A many-to-one parent that must exist and be active."""

    field: str
    relation: str
    not_found: str
    inactive_on_create: str
    inactive_on_assign: str
    inactive_on_deactivate: str
    inactive_on_reactivate: str


@dataclass(frozen=True)
class ConsistencyRule:
    """``parents[parent].<attribute>`` must equal the entity's ``must_equal`` field."""

    parent: str
    attribute: str
    must_equal: str
    message: str


@dataclass(frozen=True)
class ChildCollection:
    """A one-to-many relationship that must be empty before a hard delete."""

    relation: str
    blocked: str


@dataclass(frozen=True)
class DependentTable:
    """A table whose rows reference the entity through ``fk_column``.

    With ``active_only`` only rows whose ``activo`` column is true count, when
    the table has such a column.
    """

    name: str
    fk_column: str
    active_only: bool = False

    def __post_init__(self) -> None:
        for ident in (self.name, self.fk_column):
            if not is_identifier(ident):
                raise ValueError(f"invalid dependent table identifier: {ident!r}")


@dataclass(frozen=True)
class RequiredField:
    field: str
    message: str


@dataclass(frozen=True)
class Messages:
    """User-facing messages; ``{id}`` is replaced by the entity id."""

    not_found: str
    already_inactive: str
    already_active: str
    delete_blocked: str
    delete_fk: str
    deactivate_blocked: str
    deleted: str


@dataclass(frozen=True)
class EntityDescriptor:
    name: str
    plural: str
    model: type[Base]
    detail_schema: type[BaseModel]
    messages: Messages
    mutable_fields: tuple[str, ...]
    name_fields: tuple[str, ...] = ("nombre",)
    blank_as_none: tuple[str, ...] = ()
    required: tuple[RequiredField, ...] = ()
    choices: dict[str, tuple[tuple[Any, ...], str]] = field(default_factory=dict)
    defaults: dict[str, Any] = field(default_factory=dict)
    unique_scopes: tuple[UniqueScope, ...] = ()
    parents: tuple[ParentRef, ...] = ()
    consistency: tuple[ConsistencyRule, ...] = ()
    children: tuple[ChildCollection, ...] = ()
    delete_dependents: tuple[DependentTable, ...] = ()
    deactivate_dependents: tuple[DependentTable, ...] = ()
    default_user: str = "system"
    stamp_mod_on_create: bool = True

    def __post_init__(self) -> None:
        mapper = inspect(self.model)
        columns = set(mapper.column_attrs.keys())
        relations = set(mapper.relationships.keys())

        if ACTIVE_COLUMN in self.mutable_fields:
            raise ValueError(f"{self.name}: '{ACTIVE_COLUMN}' is toggled by deactivate/reactivate only")
        referenced = [
            *self.mutable_fields,
            *self.name_fields,
            *self.blank_as_none,
            *(r.field for r in self.required),
            *self.choices,
            *self.defaults,
            *(f for scope in self.unique_scopes for f in scope.fields),
            *(p.field for p in self.parents),
            *(rule.must_equal for rule in self.consistency),
        ]
        for name in referenced:
            if name not in columns:
                raise ValueError(f"{self.name}: {self.model.__name__} has no column '{name}'")
            if name not in self.mutable_fields:
                raise ValueError(f"{self.name}: '{name}' is not a mutable field")
        for name in [*(p.relation for p in self.parents), *(c.relation for c in self.children)]:
            if name not in relations:
                raise ValueError(f"{self.name}: {self.model.__name__} has no relationship '{name}'")
        parent_fields = {p.field for p in self.parents}
        for rule in self.consistency:
            if rule.parent not in parent_fields:
                raise ValueError(f"{self.name}: consistency rule names unknown parent '{rule.parent}'")

    @property
    def parent_relations(self) -> tuple[str, ...]:
        return tuple(p.relation for p in self.parents)

    @property
    def child_relations(self) -> tuple[str, ...]:
        return tuple(c.relation for c in self.children)
