"""Mascota request/response schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from vetregistry.schemas.cliente import ClienteSummary
from vetregistry.schemas.common import Filtros, ListRequest
from vetregistry.schemas.especie import EspecieSummary
from vetregistry.schemas.raza import RazaSummary


class MascotaListItem(BaseModel):
    """Mascota without parents, as listed under one cliente."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    nombre: str
    fecha_nacimiento: date | None
    sexo: str | None
    chip: str | None
    pelaje: str | None = None
    activo: bool
    fecha_creacion: datetime


class MascotaResponse(MascotaListItem):
    cliente_id: int
    especie_id: int
    raza_id: int
    descripcion: str | None
    fecha_mod: datetime | None = None
    usuario_creacion: str | None = None
    usuario_mod: str | None = None
    cliente: ClienteSummary
    especie: EspecieSummary
    raza: RazaSummary


class FiltrosMascota(Filtros):
    cliente_id: int | None = None
    especie_id: int | None = None
    raza_id: int | None = None
    sexo: Literal["M", "H", "F"] | None = None
    chip: str | None = None
    fecha_nacimiento_desde: date | None = None
    fecha_nacimiento_hasta: date | None = None


class ListMascotasRequest(ListRequest):
    filtros: FiltrosMascota = Field(default_factory=FiltrosMascota)
