"""DependencyScanner — does any declared table still reference an entity?

Tables are probed in declaration order. A table absent from the connected
schema is skipped. For ``active_only`` tables the ``activo`` filter is
applied only when the table actually has that column.

The scan fails open: an unexpected error is logged and reported as "no
dependents", so a broken optional table never blocks the registry. Probes run
inside a SAVEPOINT so such an error cannot abort the caller's transaction.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from vetregistry.dao.base import BaseDAO
from vetregistry.services.descriptors import ACTIVE_COLUMN, DependentTable

log = structlog.get_logger("vetregistry.dependency_scan")


class DependencyScanner:
    def __init__(self, store: BaseDAO) -> None:
        self._store = store

    async def has_dependents(
        self,
        session: AsyncSession,
        entity_id: int,
        tables: Sequence[DependentTable],
    ) -> bool:
        if not tables:
            return False
        try:
            async with session.begin_nested():
                for dep in tables:
                    if await self._references(session, entity_id, dep):
                        log.info(
                            "dependency_scan.hit",
                            table=dep.name,
                            fk_column=dep.fk_column,
                            entity_id=entity_id,
                        )
                        return True
        except Exception:
            log.exception(
                "dependency_scan.failed",
                entity_id=entity_id,
                tables=[dep.name for dep in tables],
            )
            return False
        return False

    async def _references(
        self, session: AsyncSession, entity_id: int, dep: DependentTable
    ) -> bool:
        if not await self._store.has_table(session, dep.name):
            log.debug("dependency_scan.table_missing", table=dep.name)
            return False
        active_column = None
        if dep.active_only and await self._store.has_column(session, dep.name, ACTIVE_COLUMN):
            active_column = ACTIVE_COLUMN
        return await self._store.exists_filtered(
            session, dep.name, dep.fk_column, entity_id, active_column
        )
