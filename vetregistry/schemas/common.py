"""Shared list-request and pagination schemas."""

from __future__ import annotations

from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Paginacion(BaseModel):
    """Page request. ``offset`` overrides the one derived from ``pagina``."""

    pagina: int = Field(1, ge=1)
    limite: int = Field(25, ge=1)
    offset: int | None = Field(None, ge=0)

    @property
    def effective_offset(self) -> int:
        if self.offset is not None:
            return self.offset
        return (self.pagina - 1) * self.limite


class Ordenamiento(BaseModel):
    campo: str = "nombre"
    direccion: Literal["asc", "desc", "ASC", "DESC"] = "asc"

    @property
    def descending(self) -> bool:
        return self.direccion.lower() == "desc"


class Filtros(BaseModel):
    """Filters every entity listing accepts.

    ``activo`` left unset lists active rows only.
    """

    search: str | None = None
    activo: bool | None = None


class ListRequest(BaseModel):
    """Base list request; entity requests narrow ``filtros``."""

    paginacion: Paginacion = Field(default_factory=Paginacion)
    filtros: Filtros = Field(default_factory=Filtros)
    ordenamiento: Ordenamiento = Field(default_factory=Ordenamiento)


class PageMeta(BaseModel):
    pagina: int
    limite: int
    total: int
    total_paginas: int


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic paginated list response."""

    data: list[T]
    paginacion: PageMeta
