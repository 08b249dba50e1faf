"""UniquenessChecker — read-only duplicate detection within a field scope."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from vetregistry.dao.base import BaseDAO

log = structlog.get_logger("vetregistry.uniqueness")


class UniquenessChecker:
    def __init__(self, dao: BaseDAO) -> None:
        self._dao = dao

    async def check_unique(
        self,
        session: AsyncSession,
        fields: dict[str, Any],
        *,
        normalized: Sequence[str] = (),
        exclude_id: int | None = None,
    ) -> bool:
        """Return True if another row already holds *fields*.

        Fields in *normalized* compare case- and whitespace-insensitively.
        The row with id *exclude_id* (the one being updated) never counts.
        """
        existing = await self._dao.get_by_scope(
            session, fields, normalized=normalized, exclude_id=exclude_id
        )
        if existing is None:
            return False
        log.debug(
            "unique.conflict",
            table=self._dao.model.__tablename__,
            fields=sorted(fields),
            existing_id=existing.id,
        )
        return True
