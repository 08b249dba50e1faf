"""Generic base DAO — CRUD (ORM), scoped lookups, schema probes and offset pagination."""

import re
from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, Select, column, func, inspect, select, table
from sqlalchemy import exists as sa_exists
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager, selectinload

from vetregistry.core.database import Base

ModelT = TypeVar("ModelT", bound=Base)

PAGE_LIMIT_DEFAULT = 25

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


def is_identifier(name: str) -> bool:
    """True if *name* is a plain lower-case SQL identifier (safe to use as a table/column)."""
    return bool(_IDENTIFIER.match(name))


class BaseDAO(Generic[ModelT]):
    """Base data-access object. Subclasses set ``model`` class attribute."""

    model: type[ModelT]

    # ── ORM methods ──────────────────────────────────────────────────────

    @staticmethod
    def _require_pk(pk: int) -> None:
        """Raise ValueError if *pk* is None."""
        if pk is None:
            raise ValueError("pk must not be None")

    async def get_by_id(
        self, session: AsyncSession, pk: int, load: Sequence[str] = ()
    ) -> ModelT | None:
        """Return the row with *pk*, eagerly loading the relationships named in *load*.

        Always re-reads the row so callers see values written earlier in the
        same unit of work.
        """
        self._require_pk(pk)
        stmt = (
            select(self.model)
            .where(self.model.id == pk)
            .options(*(selectinload(getattr(self.model, rel)) for rel in load))
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def create(self, session: AsyncSession, **values: Any) -> ModelT:
        obj = self.model(**values)
        session.add(obj)
        await session.flush()
        await session.refresh(obj)
        return obj

    async def update(self, session: AsyncSession, pk: int, **values: Any) -> ModelT | None:
        self._require_pk(pk)
        obj = await session.get(self.model, pk)
        if obj is None:
            return None
        immutable = {"id", "fecha_creacion", "usuario_creacion"}
        column_keys = set(self.model.__mapper__.column_attrs.keys())
        for key in values:
            if key in immutable:
                raise AttributeError(f"'{key}' is immutable and cannot be updated")
            if key not in column_keys:
                raise AttributeError(f"{self.model.__name__} has no column '{key}'")
        for key, val in values.items():
            setattr(obj, key, val)
        await session.flush()
        return obj

    async def delete(self, session: AsyncSession, pk: int) -> bool:
        self._require_pk(pk)
        obj = await session.get(self.model, pk)
        if obj is None:
            return False
        await session.delete(obj)
        await session.flush()
        return True

    async def get_by_scope(
        self,
        session: AsyncSession,
        fields: dict[str, Any],
        *,
        normalized: Sequence[str] = (),
        exclude_id: int | None = None,
    ) -> ModelT | None:
        """Return the first row matching every ``field == value`` in *fields*, or None.

        Fields listed in *normalized* are compared as
        ``lower(trim(column)) = lower(trim(value))``. A row whose id equals
        *exclude_id* never matches.

        Raises ``ValueError`` if called without any fields.
        """
        if not fields:
            raise ValueError("get_by_scope() requires at least one field")
        stmt = select(self.model)
        for key, val in fields.items():
            col = getattr(self.model, key)
            if key in normalized:
                stmt = stmt.where(func.lower(func.trim(col)) == func.lower(func.trim(val)))
            else:
                stmt = stmt.where(col == val)
        if exclude_id is not None:
            stmt = stmt.where(self.model.id != exclude_id)
        result = await session.execute(stmt.limit(1))
        return result.scalars().first()

    # ── schema probes (any table, not only self.model) ───────────────────

    async def has_table(self, session: AsyncSession, table_name: str) -> bool:
        """True if *table_name* exists in the connected database."""
        conn = await session.connection()
        return await conn.run_sync(lambda sync_conn: inspect(sync_conn).has_table(table_name))

    async def has_column(self, session: AsyncSession, table_name: str, column_name: str) -> bool:
        """True if *table_name* has a column called *column_name*."""
        conn = await session.connection()

        def _probe(sync_conn) -> bool:
            columns = inspect(sync_conn).get_columns(table_name)
            return any(c["name"] == column_name for c in columns)

        return await conn.run_sync(_probe)

    async def exists_filtered(
        self,
        session: AsyncSession,
        table_name: str,
        fk_column: str,
        fk_value: int,
        active_column: str | None = None,
    ) -> bool:
        """True if *table_name* holds a row with ``fk_column = fk_value``.

        When *active_column* is given the row must also have that column true.
        Table and column names must be plain identifiers.
        """
        for name in (table_name, fk_column, active_column):
            if name is not None and not is_identifier(name):
                raise ValueError(f"invalid identifier: {name!r}")
        cols = [column(fk_column)]
        if active_column is not None:
            cols.append(column(active_column))
        target = table(table_name, *cols)
        cond = target.c[fk_column] == fk_value
        if active_column is not None:
            cond = cond & target.c[active_column].is_(True)
        stmt = select(sa_exists().where(cond))
        result = await session.execute(stmt)
        return bool(result.scalar_one())

    # ── Core methods ─────────────────────────────────────────────────────

    async def list_offset(
        self,
        session: AsyncSession,
        *,
        joins: Sequence[str] = (),
        where: Sequence[ColumnElement[bool]] = (),
        order_by: Sequence[ColumnElement[Any]] = (),
        offset: int = 0,
        limit: int = PAGE_LIMIT_DEFAULT,
    ) -> tuple[list[ModelT], int]:
        """Offset-paginated list over ``self.model`` outer-joined to *joins*.

        The relationships named in *joins* are populated from the join, so
        *where* and *order_by* may reference the joined models' columns.
        Returns (rows, total_count); the count ignores offset/limit.
        """
        query = self._joined(select(self.model), joins).where(*where)
        count_query = self._joined(select(self.model.id), joins).where(*where)
        count_result = await session.execute(
            select(func.count()).select_from(count_query.subquery())
        )
        total = count_result.scalar_one()

        query = query.options(*(contains_eager(getattr(self.model, rel)) for rel in joins))
        query = query.order_by(*order_by, self.model.id).offset(offset).limit(limit)
        result = await session.execute(query)
        return list(result.scalars().unique().all()), total

    def _joined(self, query: Select, joins: Sequence[str]) -> Select:
        for rel in joins:
            query = query.outerjoin(getattr(self.model, rel))
        return query

