"""mascota table."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vetregistry.core.database import AuditMixin, Base

if TYPE_CHECKING:
    from vetregistry.models.cliente import Cliente
    from vetregistry.models.especie import Especie
    from vetregistry.models.raza import Raza

SEXOS = ("M", "H", "F")


class Mascota(AuditMixin, Base):
    __tablename__ = "mascota"

    id: Mapped[int] = mapped_column("mascota_id", Integer, primary_key=True)
    cliente_id: Mapped[int] = mapped_column(
        ForeignKey("cliente.cliente_id"), nullable=False
    )
    especie_id: Mapped[int] = mapped_column(
        ForeignKey("especie.especie_id"), nullable=False
    )
    raza_id: Mapped[int] = mapped_column(ForeignKey("raza.raza_id"), nullable=False)
    nombre: Mapped[str] = mapped_column(String(100), nullable=False)
    fecha_nacimiento: Mapped[Optional[date]] = mapped_column(Date)
    sexo: Mapped[Optional[str]] = mapped_column(String(1))
    chip: Mapped[Optional[str]] = mapped_column(String(50), unique=True)
    pelaje: Mapped[Optional[str]] = mapped_column(String(100))
    descripcion: Mapped[Optional[str]] = mapped_column(Text)

    cliente: Mapped["Cliente"] = relationship(back_populates="mascotas")
    especie: Mapped["Especie"] = relationship()
    raza: Mapped["Raza"] = relationship(back_populates="mascotas")

    __table_args__ = (
        CheckConstraint("sexo IN ('M', 'H', 'F')", name="sexo"),
        Index("idx_mascota_cliente", "cliente_id"),
        Index("idx_mascota_especie", "especie_id"),
        Index("idx_mascota_raza", "raza_id"),
    )
