"""RazaService — breeds, each belonging to one especie."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from vetregistry.dao.especie_dao import EspecieDAO
from vetregistry.dao.raza_dao import RazaDAO
from vetregistry.models import Especie, Raza
from vetregistry.schemas.raza import RazaResponse
from vetregistry.services import NotFoundError
from vetregistry.services.descriptors import (
    ChildCollection,
    DependentTable,
    EntityDescriptor,
    Messages,
    ParentRef,
    RequiredField,
    UniqueScope,
)
from vetregistry.services.lifecycle import LifecycleGovernor
from vetregistry.services.query_composer import ListSpec

RAZA = EntityDescriptor(
    name="raza",
    plural="razas",
    model=Raza,
    detail_schema=RazaResponse,
    mutable_fields=("especie_id", "nombre", "descripcion"),
    required=(
        RequiredField("especie_id", "Debe proporcionar la especie de la raza"),
        RequiredField("nombre", "El nombre de la raza no puede estar vacío"),
    ),
    unique_scopes=(
        UniqueScope(
            "nombre",
            within=("especie_id",),
            conflict="Ya existe una raza con este nombre para esta especie",
            normalized=True,
        ),
    ),
    parents=(
        ParentRef(
            field="especie_id",
            relation="especie",
            not_found="Especie con ID {id} no encontrada",
            inactive_on_create="No se puede crear una raza para una especie inactiva",
            inactive_on_assign="No se puede asignar la raza a una especie inactiva",
            inactive_on_deactivate="No se puede inactivar una raza de una especie inactiva",
            inactive_on_reactivate="No se puede reactivar una raza de una especie inactiva",
        ),
    ),
    children=(
        ChildCollection("mascotas", "No se puede eliminar la raza porque tiene mascotas asociadas"),
    ),
    delete_dependents=(DependentTable("mascota", "raza_id"),),
    deactivate_dependents=(DependentTable("mascota", "raza_id", active_only=True),),
    messages=Messages(
        not_found="Raza con ID {id} no encontrada",
        already_inactive="La raza con ID {id} ya está inactiva",
        already_active="La raza con ID {id} ya está activa",
        delete_blocked="No se puede eliminar la raza porque tiene mascotas asociadas",
        delete_fk="No se puede eliminar la raza porque tiene registros relacionados",
        deactivate_blocked="No se puede inactivar la raza porque tiene mascotas activas asociadas",
        deleted="Raza con ID {id} eliminada exitosamente",
    ),
)

RAZA_LISTING = ListSpec(
    joins=("especie",),
    search=(Raza.nombre, Raza.descripcion, Especie.nombre),
    exact={"especie_id": Raza.especie_id},
    sort={
        "nombre": Raza.nombre,
        "fecha_creacion": Raza.fecha_creacion,
        "especie": Especie.nombre,
    },
)


class RazaService(LifecycleGovernor):
    """Stateless service for raza CRUD and activation."""

    def __init__(self, raza_dao: RazaDAO, especie_dao: EspecieDAO) -> None:
        super().__init__(
            RAZA, raza_dao, listing=RAZA_LISTING, parent_daos={"especie_id": especie_dao}
        )
        self._raza_dao = raza_dao
        self._especie_dao = especie_dao

    async def list_by_especie(self, session: AsyncSession, especie_id: int) -> list[RazaResponse]:
        """Return the active razas of *especie_id* ordered by nombre.

        Raises :class:`NotFoundError` if the especie does not exist.
        """
        with self._errors("obtener", especie_id):
            if await self._especie_dao.get_by_id(session, especie_id) is None:
                raise NotFoundError(f"Especie con ID {especie_id} no encontrada")
            razas = await self._raza_dao.list_active_by_especie(session, especie_id)
            return [RazaResponse.model_validate(r) for r in razas]
