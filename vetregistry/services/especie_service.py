"""EspecieService — species catalogue."""

from __future__ import annotations

from vetregistry.dao.especie_dao import EspecieDAO
from vetregistry.models import Especie
from vetregistry.schemas.especie import EspecieResponse
from vetregistry.services.descriptors import (
    ChildCollection,
    DependentTable,
    EntityDescriptor,
    Messages,
    RequiredField,
    UniqueScope,
)
from vetregistry.services.lifecycle import LifecycleGovernor
from vetregistry.services.query_composer import ListSpec

ESPECIE = EntityDescriptor(
    name="especie",
    plural="especies",
    model=Especie,
    detail_schema=EspecieResponse,
    mutable_fields=("nombre", "descripcion"),
    required=(RequiredField("nombre", "El nombre de la especie no puede estar vacío"),),
    unique_scopes=(
        UniqueScope(
            "nombre",
            conflict="Ya existe una especie con este nombre",
            conflict_on_update="Ya existe otra especie con este nombre",
            normalized=True,
        ),
    ),
    children=(
        ChildCollection("razas", "No se puede eliminar la especie porque tiene razas asociadas"),
    ),
    delete_dependents=(DependentTable("mascota", "especie_id"),),
    deactivate_dependents=(DependentTable("mascota", "especie_id", active_only=True),),
    messages=Messages(
        not_found="Especie con ID {id} no encontrada",
        already_inactive="La especie con ID {id} ya está inactiva",
        already_active="La especie con ID {id} ya está activa",
        delete_blocked="No se puede eliminar la especie porque tiene mascotas asociadas",
        delete_fk="No se puede eliminar la especie porque tiene registros relacionados",
        deactivate_blocked="No se puede inactivar la especie porque tiene mascotas activas asociadas",
        deleted="Especie con ID {id} eliminada exitosamente",
    ),
)

ESPECIE_LISTING = ListSpec(
    search=(Especie.nombre, Especie.descripcion),
    sort={"nombre": Especie.nombre, "fecha_creacion": Especie.fecha_creacion},
)


class EspecieService(LifecycleGovernor):
    """Stateless service for especie CRUD and activation."""

    def __init__(self, especie_dao: EspecieDAO) -> None:
        super().__init__(ESPECIE, especie_dao, listing=ESPECIE_LISTING)
