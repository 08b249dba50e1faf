"""Especie request/response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from vetregistry.schemas.common import Filtros, ListRequest


class EspecieSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nombre: str
    activo: bool


class EspecieResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nombre: str
    descripcion: str | None
    activo: bool
    fecha_creacion: datetime
    fecha_mod: datetime | None = None
    usuario_creacion: str | None = None
    usuario_mod: str | None = None


class FiltrosEspecie(Filtros):
    pass


class ListEspeciesRequest(ListRequest):
    filtros: FiltrosEspecie = Field(default_factory=FiltrosEspecie)
