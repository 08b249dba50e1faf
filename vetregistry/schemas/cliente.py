"""Cliente request/response schemas."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from vetregistry.schemas.common import Filtros, ListRequest


class ClienteSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nombre: str
    cedula: str | None = None
    activo: bool


class ClienteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nombre: str
    cedula: str | None
    ruc: str | None
    telefono: str | None
    direccion: str | None
    fecha_nacimiento: date | None
    ubicacion_gps: str | None
    activo: bool
    fecha_creacion: datetime
    fecha_mod: datetime | None = None
    usuario_creacion: str | None = None
    usuario_mod: str | None = None


class FiltrosCliente(Filtros):
    cedula: str | None = None
    ruc: str | None = None
    telefono: str | None = None
    direccion: str | None = None
    fecha_nacimiento_desde: date | None = None
    fecha_nacimiento_hasta: date | None = None


class ListClientesRequest(ListRequest):
    filtros: FiltrosCliente = Field(default_factory=FiltrosCliente)
