"""cliente table."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Date, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vetregistry.core.database import AuditMixin, Base

if TYPE_CHECKING:
    from vetregistry.models.mascota import Mascota


class Cliente(AuditMixin, Base):
    __tablename__ = "cliente"

    id: Mapped[int] = mapped_column("cliente_id", Integer, primary_key=True)
    nombre: Mapped[str] = mapped_column(String(200), nullable=False)
    cedula: Mapped[Optional[str]] = mapped_column(String(20), unique=True)
    ruc: Mapped[Optional[str]] = mapped_column(String(20), unique=True)
    telefono: Mapped[Optional[str]] = mapped_column(String(20))
    direccion: Mapped[Optional[str]] = mapped_column(Text)
    fecha_nacimiento: Mapped[Optional[date]] = mapped_column(Date)
    # "lat,lng" as sent by the client app
    ubicacion_gps: Mapped[Optional[str]] = mapped_column(Text)

    mascotas: Mapped[list["Mascota"]] = relationship(
        back_populates="cliente", passive_deletes=True
    )
