"""raza table."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vetregistry.core.database import AuditMixin, Base

if TYPE_CHECKING:
    from vetregistry.models.especie import Especie
    from vetregistry.models.mascota import Mascota


class Raza(AuditMixin, Base):
    __tablename__ = "raza"

    id: Mapped[int] = mapped_column("raza_id", Integer, primary_key=True)
    especie_id: Mapped[int] = mapped_column(
        ForeignKey("especie.especie_id"), nullable=False
    )
    nombre: Mapped[str] = mapped_column(String(100), nullable=False)
    descripcion: Mapped[Optional[str]] = mapped_column(Text)

    especie: Mapped["Especie"] = relationship(back_populates="razas")
    mascotas: Mapped[list["Mascota"]] = relationship(back_populates="raza", passive_deletes=True)

    __table_args__ = (Index("idx_raza_especie", "especie_id"),)


# case/trim-insensitive name uniqueness within one especie
Index(
    "uq_raza_especie_nombre",
    Raza.especie_id,
    func.lower(func.trim(Raza.nombre)),
    unique=True,
)
