"""LifecycleGovernor — create, update, delete, deactivate and reactivate one entity type.

The governor is generic: everything entity-specific lives in an
:class:`~vetregistry.services.descriptors.EntityDescriptor`. Every public
operation either returns a response model or raises a
:class:`~vetregistry.services.ServiceError`; storage constraint violations are
translated to the same errors the pre-checks raise.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vetregistry.core.logging import bind_operation
from vetregistry.dao.base import BaseDAO
from vetregistry.schemas.common import ListRequest, PaginatedResponse
from vetregistry.services import (
    BadRequestError,
    ConflictError,
    InternalError,
    NotFoundError,
    ServiceError,
)
from vetregistry.services.dependency_scanner import DependencyScanner
from vetregistry.services.descriptors import EntityDescriptor, ParentRef
from vetregistry.services.query_composer import ListSpec, QueryComposer
from vetregistry.services.uniqueness import UniquenessChecker

log = structlog.get_logger("vetregistry.lifecycle")

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _violation(exc: IntegrityError) -> tuple[str | None, str]:
    """Return (sqlstate, driver message) for a storage constraint violation."""
    orig = exc.orig
    detail = str(orig) if orig is not None else str(exc)
    state = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if state is None:
        lowered = detail.lower()
        if "unique" in lowered or "duplicate key" in lowered:
            state = UNIQUE_VIOLATION
        elif "foreign key" in lowered:
            state = FOREIGN_KEY_VIOLATION
    return state, detail


_CONSTRAINT = re.compile(r'constraint "([^"]+)"')
_KEY_COLUMNS = re.compile(r"Key \((.*?)\)=\(")


def _names_column(detail: str, column: str) -> bool:
    """True if the violated constraint, or the DETAIL key, is on *column*.

    Constraint names follow the ``uq_<table>_<col>`` / ``fk_<table>_<col>_<ref>``
    convention; values quoted in the message are never matched.
    """
    name = _CONSTRAINT.search(detail)
    if name and re.search(rf"_{re.escape(column)}(_|$)", name.group(1)):
        return True
    key = _KEY_COLUMNS.search(detail)
    return bool(key and re.search(rf"\b{re.escape(column)}\b", key.group(1)))


class LifecycleGovernor:
    """Stateless service enforcing one entity's lifecycle rules."""

    def __init__(
        self,
        descriptor: EntityDescriptor,
        dao: BaseDAO,
        *,
        listing: ListSpec,
        parent_daos: dict[str, BaseDAO] | None = None,
        checker: UniquenessChecker | None = None,
        scanner: DependencyScanner | None = None,
    ) -> None:
        self.descriptor = descriptor
        self._dao = dao
        self._parent_daos = parent_daos or {}
        missing = {p.field for p in descriptor.parents} - set(self._parent_daos)
        if missing:
            raise ValueError(f"{descriptor.name}: no DAO for parents {sorted(missing)}")
        self._checker = checker or UniquenessChecker(dao)
        self._scanner = scanner or DependencyScanner(dao)
        self._query = QueryComposer(dao, listing, descriptor.detail_schema, descriptor.plural)

    # ── reads ────────────────────────────────────────────────────────────

    async def get(self, session: AsyncSession, entity_id: int) -> BaseModel:
        """Return the entity with its parents.

        Raises :class:`NotFoundError` if it does not exist.
        """
        with self._errors("obtener", entity_id):
            return self._render(await self._require(session, entity_id))

    async def list(self, session: AsyncSession, request: ListRequest) -> PaginatedResponse:
        with bind_operation(self.descriptor.name, "listar"):
            return await self._query.list(session, request)

    # ── writes ───────────────────────────────────────────────────────────

    async def create(
        self, session: AsyncSession, *, usuario: str | None = None, **fields: Any
    ) -> BaseModel:
        """Insert a new active entity.

        Raises :class:`BadRequestError` for empty required fields, invalid
        choices, inactive parents or inconsistent parents;
        :class:`ConflictError` for duplicates; :class:`NotFoundError` for
        missing parents.
        """
        d = self.descriptor
        with self._errors("crear"):
            values = self._accept(fields)
            for key, default in d.defaults.items():
                if values.get(key) is None:
                    values[key] = default
            for key in d.mutable_fields:
                values.setdefault(key, None)
            self._validate(values)

            for scope in d.unique_scopes:
                scoped = {f: values[f] for f in scope.fields}
                if scoped[scope.field] is None:
                    continue
                if await self._checker.check_unique(
                    session, scoped, normalized=scope.normalized_fields
                ):
                    raise ConflictError(scope.conflict)

            parents = {}
            for ref in d.parents:
                parents[ref.field] = await self._resolve_parent(
                    session, ref, values[ref.field], ref.inactive_on_create
                )
            self._check_consistency(values, parents, d.consistency)

            now = _now()
            obj = await self._dao.create(
                session,
                **values,
                activo=True,
                usuario_creacion=usuario or d.default_user,
                fecha_creacion=now,
                fecha_mod=now if d.stamp_mod_on_create else None,
            )
            log.info(f"{d.name}.created", entity_id=obj.id)
            return self._render(await self._require(session, obj.id))

    async def update(
        self,
        session: AsyncSession,
        entity_id: int,
        *,
        fields_set: set[str] | None = None,
        usuario: str | None = None,
        **fields: Any,
    ) -> BaseModel:
        """Apply a partial update.

        Only keys in *fields_set* are applied (all given keys when it is None).
        Uniqueness is re-checked for scopes touching a changed field and
        parent consistency is re-validated against the effective values.
        """
        d = self.descriptor
        with self._errors("actualizar", entity_id):
            current = await self._require(session, entity_id)
            if fields_set is not None:
                fields = {k: v for k, v in fields.items() if k in fields_set}
            changes = self._accept(fields)
            self._validate(changes)

            changed = {k for k, v in changes.items() if not self._same(k, v, getattr(current, k))}
            effective = {k: changes.get(k, getattr(current, k)) for k in d.mutable_fields}

            for scope in d.unique_scopes:
                if not changed.intersection(scope.fields):
                    continue
                scoped = {f: effective[f] for f in scope.fields}
                if scoped[scope.field] is None:
                    continue
                if await self._checker.check_unique(
                    session, scoped, normalized=scope.normalized_fields, exclude_id=entity_id
                ):
                    raise ConflictError(scope.conflict_on_update or scope.conflict)

            parents = {ref.field: getattr(current, ref.relation) for ref in d.parents}
            for ref in d.parents:
                if ref.field in changed:
                    parents[ref.field] = await self._resolve_parent(
                        session, ref, effective[ref.field], ref.inactive_on_assign
                    )
            rules = [
                rule
                for rule in d.consistency
                if rule.parent in changed or rule.must_equal in changed
            ]
            self._check_consistency(effective, parents, rules)

            if changes:
                await self._dao.update(
                    session,
                    entity_id,
                    **changes,
                    usuario_mod=usuario or d.default_user,
                    fecha_mod=_now(),
                )
                log.info(f"{d.name}.updated", entity_id=entity_id, fields=sorted(changes))
            return self._render(await self._require(session, entity_id))

    async def delete(self, session: AsyncSession, entity_id: int) -> dict:
        """Physically remove the entity.

        Raises :class:`ConflictError` while children or dependent rows exist.
        """
        d = self.descriptor
        with self._errors("eliminar", entity_id, fk_conflict=d.messages.delete_fk):
            obj = await self._require(session, entity_id, load=d.child_relations)
            for child in d.children:
                if getattr(obj, child.relation):
                    raise ConflictError(child.blocked)
            if await self._scanner.has_dependents(session, entity_id, d.delete_dependents):
                raise ConflictError(d.messages.delete_blocked)

            await self._dao.delete(session, entity_id)
            log.info(f"{d.name}.deleted", entity_id=entity_id)
            return {"mensaje": d.messages.deleted.format(id=entity_id)}

    async def deactivate(
        self, session: AsyncSession, entity_id: int, *, usuario: str | None = None
    ) -> BaseModel:
        d = self.descriptor
        with self._errors("inactivar", entity_id):
            obj = await self._require(session, entity_id)
            if not obj.activo:
                raise BadRequestError(d.messages.already_inactive.format(id=entity_id))
            self._require_active_parents(obj, "inactive_on_deactivate")
            if await self._scanner.has_dependents(session, entity_id, d.deactivate_dependents):
                raise ConflictError(d.messages.deactivate_blocked)
            return await self._set_active(session, entity_id, False, usuario)

    async def reactivate(
        self, session: AsyncSession, entity_id: int, *, usuario: str | None = None
    ) -> BaseModel:
        d = self.descriptor
        with self._errors("reactivar", entity_id):
            obj = await self._require(session, entity_id)
            if obj.activo:
                raise BadRequestError(d.messages.already_active.format(id=entity_id))
            self._require_active_parents(obj, "inactive_on_reactivate")
            return await self._set_active(session, entity_id, True, usuario)

    # ── helpers ──────────────────────────────────────────────────────────

    async def _require(
        self, session: AsyncSession, entity_id: int, load: Sequence[str] | None = None
    ) -> Any:
        obj = await self._dao.get_by_id(
            session, entity_id, load=self.descriptor.parent_relations if load is None else load
        )
        if obj is None:
            raise NotFoundError(self.descriptor.messages.not_found.format(id=entity_id))
        return obj

    async def _resolve_parent(
        self, session: AsyncSession, ref: ParentRef, parent_id: int, inactive_message: str
    ) -> Any:
        parent = await self._parent_daos[ref.field].get_by_id(session, parent_id)
        if parent is None:
            raise NotFoundError(ref.not_found.format(id=parent_id))
        if not parent.activo:
            raise BadRequestError(inactive_message)
        return parent

    async def _set_active(
        self, session: AsyncSession, entity_id: int, activo: bool, usuario: str | None
    ) -> BaseModel:
        d = self.descriptor
        await self._dao.update(
            session,
            entity_id,
            activo=activo,
            usuario_mod=usuario or d.default_user,
            fecha_mod=_now(),
        )
        log.info(f"{d.name}.{'reactivated' if activo else 'deactivated'}", entity_id=entity_id)
        return self._render(await self._require(session, entity_id))

    def _accept(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Keep writable fields, trim names and turn blank optional values into None."""
        d = self.descriptor
        ignored = set(fields) - set(d.mutable_fields)
        if ignored:
            log.debug("fields.ignored", fields=sorted(ignored))
        values = {k: v for k, v in fields.items() if k in d.mutable_fields}
        for key in d.name_fields:
            if isinstance(values.get(key), str):
                values[key] = values[key].strip()
        for key in d.blank_as_none:
            if isinstance(values.get(key), str) and not values[key].strip():
                values[key] = None
        return values

    def _validate(self, values: dict[str, Any]) -> None:
        """Check required and choice fields present in *values*."""
        for req in self.descriptor.required:
            if req.field not in values:
                continue
            value = values[req.field]
            if value is None or (isinstance(value, str) and not value.strip()):
                raise BadRequestError(req.message)
        for key, (allowed, message) in self.descriptor.choices.items():
            if values.get(key) is not None and values[key] not in allowed:
                raise BadRequestError(message)

    def _same(self, key: str, new: Any, old: Any) -> bool:
        if key in self.descriptor.name_fields and isinstance(new, str) and isinstance(old, str):
            return new.strip().lower() == old.strip().lower()
        return new == old

    @staticmethod
    def _check_consistency(values: dict[str, Any], parents: dict[str, Any], rules) -> None:
        for rule in rules:
            parent = parents.get(rule.parent)
            if parent is not None and getattr(parent, rule.attribute) != values[rule.must_equal]:
                raise BadRequestError(rule.message)

    def _require_active_parents(self, obj: Any, message_attr: str) -> None:
        for ref in self.descriptor.parents:
            parent = getattr(obj, ref.relation)
            if parent is not None and not parent.activo:
                raise BadRequestError(getattr(ref, message_attr))

    def _render(self, obj: Any) -> BaseModel:
        return self.descriptor.detail_schema.model_validate(obj)

    @contextmanager
    def _errors(
        self, action: str, entity_id: int | None = None, *, fk_conflict: str | None = None
    ) -> Iterator[None]:
        """Bind log context; translate storage and unexpected errors to ServiceErrors."""
        d = self.descriptor
        with bind_operation(d.name, action, entity_id):
            try:
                yield
            except ServiceError:
                raise
            except IntegrityError as exc:
                raise self._translate(exc, action, fk_conflict) from exc
            except Exception as exc:
                log.exception(f"{d.name}.failed")
                raise InternalError(f"Error al {action} {d.name}: {exc}") from exc

    def _translate(
        self, exc: IntegrityError, action: str, fk_conflict: str | None
    ) -> ServiceError:
        d = self.descriptor
        state, detail = _violation(exc)
        log.warning(f"{d.name}.integrity_error", sqlstate=state, detail=detail)
        if state == UNIQUE_VIOLATION:
            for scope in d.unique_scopes:
                if _names_column(detail, scope.field):
                    return ConflictError(
                        scope.conflict if action == "crear" else scope.conflict_on_update or scope.conflict
                    )
        elif state == FOREIGN_KEY_VIOLATION:
            if fk_conflict is not None:
                return ConflictError(fk_conflict)
            for ref in d.parents:
                if _names_column(detail, ref.field):
                    return NotFoundError(ref.not_found.format(id=self._parent_hint(detail)))
        return InternalError(f"Error al {action} {d.name}: {detail}")

    @staticmethod
    def _parent_hint(detail: str) -> str:
        """Pull the referenced id out of ``Key (x_id)=(42) is not present``."""
        start = detail.find(")=(")
        if start == -1:
            return "?"
        end = detail.find(")", start + 3)
        return detail[start + 3 : end] if end != -1 else "?"
