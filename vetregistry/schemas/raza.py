"""Raza request/response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from vetregistry.schemas.common import Filtros, ListRequest
from vetregistry.schemas.especie import EspecieSummary


class RazaSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nombre: str
    activo: bool


class RazaResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    especie_id: int
    nombre: str
    descripcion: str | None
    activo: bool
    fecha_creacion: datetime
    fecha_mod: datetime | None = None
    usuario_creacion: str | None = None
    usuario_mod: str | None = None
    especie: EspecieSummary


class FiltrosRaza(Filtros):
    especie_id: int | None = None


class ListRazasRequest(ListRequest):
    filtros: FiltrosRaza = Field(default_factory=FiltrosRaza)
