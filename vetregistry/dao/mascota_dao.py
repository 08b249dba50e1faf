"""MascotaDAO — mascota table operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vetregistry.dao.base import BaseDAO
from vetregistry.models.mascota import Mascota


class MascotaDAO(BaseDAO[Mascota]):
    model = Mascota

    async def list_active_by_cliente(self, session: AsyncSession, cliente_id: int) -> list[Mascota]:
        """Active mascotas of one cliente, ordered by nombre."""
        stmt = (
            select(Mascota)
            .where(Mascota.cliente_id == cliente_id, Mascota.activo.is_(True))
            .order_by(Mascota.nombre)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
