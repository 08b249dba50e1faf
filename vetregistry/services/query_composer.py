"""QueryComposer — filtered, sorted, offset-paginated entity listings."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

import structlog
from pydantic import BaseModel
from sqlalchemy import ColumnElement, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from vetregistry.dao.base import BaseDAO
from vetregistry.schemas.common import Filtros, ListRequest, Ordenamiento, PageMeta, PaginatedResponse
from vetregistry.services import InternalError, ServiceError

log = structlog.get_logger("vetregistry.query")

DEFAULT_SORT = "nombre"


@dataclass(frozen=True)
class ListSpec:
    """How one entity is listed.

    ``exact``, ``partial`` and ``date_ranges`` map filter names to columns;
    a date range ``x`` reads the filters ``x_desde`` and ``x_hasta``.
    ``sort`` is the allow-list of sortable fields.
    """

    sort: dict[str, InstrumentedAttribute]
    joins: tuple[str, ...] = ()
    search: tuple[InstrumentedAttribute, ...] = ()
    exact: dict[str, InstrumentedAttribute] = field(default_factory=dict)
    partial: dict[str, InstrumentedAttribute] = field(default_factory=dict)
    date_ranges: dict[str, InstrumentedAttribute] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if DEFAULT_SORT not in self.sort:
            raise ValueError(f"sort allow-list must contain '{DEFAULT_SORT}'")


class QueryComposer:
    def __init__(
        self, dao: BaseDAO, spec: ListSpec, item_schema: type[BaseModel], plural: str
    ) -> None:
        self._dao = dao
        self._spec = spec
        self._item_schema = item_schema
        self._plural = plural

    async def list(self, session: AsyncSession, request: ListRequest) -> PaginatedResponse:
        """Return one page of rows matching ``request.filtros``.

        The total counts every matching row, ignoring pagination.
        """
        page = request.paginacion
        try:
            rows, total = await self._dao.list_offset(
                session,
                joins=self._spec.joins,
                where=self.build_filters(request.filtros),
                order_by=[self.build_order(request.ordenamiento)],
                offset=page.effective_offset,
                limit=page.limite,
            )
        except ServiceError:
            raise
        except Exception as exc:
            log.exception("list.failed", entidad=self._plural)
            raise InternalError(f"Error al listar {self._plural}: {exc}") from exc

        log.debug("list.done", entidad=self._plural, total=total, pagina=page.pagina)
        return PaginatedResponse(
            data=[self._item_schema.model_validate(row) for row in rows],
            paginacion=PageMeta(
                pagina=page.pagina,
                limite=page.limite,
                total=total,
                total_paginas=math.ceil(total / page.limite),
            ),
        )

    def build_filters(self, filtros: Filtros) -> list[ColumnElement[bool]]:
        spec = self._spec
        values: dict[str, Any] = filtros.model_dump(exclude_none=True)
        activo = values.get("activo", True)
        clauses: list[ColumnElement[bool]] = [self._dao.model.activo.is_(activo)]

        search = values.get("search")
        if search and spec.search:
            term = f"%{search}%"
            clauses.append(or_(*(col.ilike(term) for col in spec.search)))

        for key, col in spec.exact.items():
            if key in values:
                clauses.append(col == values[key])
        for key, col in spec.partial.items():
            if values.get(key):
                clauses.append(col.ilike(f"%{values[key]}%"))
        for key, col in spec.date_ranges.items():
            if f"{key}_desde" in values:
                clauses.append(col >= values[f"{key}_desde"])
            if f"{key}_hasta" in values:
                clauses.append(col <= values[f"{key}_hasta"])
        return clauses

    def build_order(self, ordenamiento: Ordenamiento) -> ColumnElement[Any]:
        col = self._spec.sort.get(ordenamiento.campo)
        if col is None:
            col = self._spec.sort[DEFAULT_SORT]
        return col.desc() if ordenamiento.descending else col.asc()
