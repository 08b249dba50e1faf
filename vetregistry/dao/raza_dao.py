"""RazaDAO — raza table operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vetregistry.dao.base import BaseDAO
from vetregistry.models.raza import Raza


class RazaDAO(BaseDAO[Raza]):
    model = Raza

    async def list_active_by_especie(self, session: AsyncSession, especie_id: int) -> list[Raza]:
        """Active razas of one especie, ordered by nombre."""
        stmt = (
            select(Raza)
            .where(Raza.especie_id == especie_id, Raza.activo.is_(True))
            .options(selectinload(Raza.especie))
            .order_by(Raza.nombre)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
