"""especie table."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vetregistry.core.database import AuditMixin, Base

if TYPE_CHECKING:
    from vetregistry.models.raza import Raza


class Especie(AuditMixin, Base):
    __tablename__ = "especie"

    id: Mapped[int] = mapped_column("especie_id", Integer, primary_key=True)
    nombre: Mapped[str] = mapped_column(String(100), nullable=False)
    descripcion: Mapped[Optional[str]] = mapped_column(Text)

    razas: Mapped[list["Raza"]] = relationship(back_populates="especie", passive_deletes=True)


# case/trim-insensitive name uniqueness
Index("uq_especie_nombre", func.lower(func.trim(Especie.nombre)), unique=True)
