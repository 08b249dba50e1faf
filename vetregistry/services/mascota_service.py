"""MascotaService — pets, linked to a cliente, an especie and a raza."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from vetregistry.dao.cliente_dao import ClienteDAO
from vetregistry.dao.especie_dao import EspecieDAO
from vetregistry.dao.mascota_dao import MascotaDAO
from vetregistry.dao.raza_dao import RazaDAO
from vetregistry.models import Cliente, Especie, Mascota, Raza
from vetregistry.models.mascota import SEXOS
from vetregistry.schemas.mascota import MascotaListItem, MascotaResponse
from vetregistry.services import NotFoundError
from vetregistry.services.descriptors import (
    ConsistencyRule,
    DependentTable,
    EntityDescriptor,
    Messages,
    ParentRef,
    RequiredField,
    UniqueScope,
)
from vetregistry.services.lifecycle import LifecycleGovernor
from vetregistry.services.query_composer import ListSpec

MASCOTA = EntityDescriptor(
    name="mascota",
    plural="mascotas",
    model=Mascota,
    detail_schema=MascotaResponse,
    mutable_fields=(
        "cliente_id",
        "especie_id",
        "raza_id",
        "nombre",
        "fecha_nacimiento",
        "sexo",
        "chip",
        "pelaje",
        "descripcion",
    ),
    blank_as_none=("chip", "pelaje", "sexo"),
    required=(
        RequiredField("cliente_id", "Debe proporcionar el cliente de la mascota"),
        RequiredField("especie_id", "Debe proporcionar la especie de la mascota"),
        RequiredField("raza_id", "Debe proporcionar la raza de la mascota"),
        RequiredField("nombre", "El nombre de la mascota no puede estar vacío"),
    ),
    choices={"sexo": (SEXOS, "El sexo debe ser M (macho), H (hembra) o F (sin especificar)")},
    defaults={"sexo": "F"},
    unique_scopes=(
        UniqueScope(
            "chip",
            conflict="Ya existe una mascota con este número de chip",
            conflict_on_update="Ya existe otra mascota con este número de chip",
        ),
    ),
    parents=(
        ParentRef(
            field="cliente_id",
            relation="cliente",
            not_found="Cliente con ID {id} no encontrado",
            inactive_on_create="No se puede crear una mascota para un cliente inactivo",
            inactive_on_assign="No se puede asignar la mascota a un cliente inactivo",
            inactive_on_deactivate="No se puede inactivar una mascota de un cliente inactivo",
            inactive_on_reactivate="No se puede reactivar una mascota de un cliente inactivo",
        ),
        ParentRef(
            field="especie_id",
            relation="especie",
            not_found="Especie con ID {id} no encontrada",
            inactive_on_create="No se puede crear una mascota de una especie inactiva",
            inactive_on_assign="No se puede asignar la mascota a una especie inactiva",
            inactive_on_deactivate="No se puede inactivar una mascota de una especie inactiva",
            inactive_on_reactivate="No se puede reactivar una mascota de una especie inactiva",
        ),
        ParentRef(
            field="raza_id",
            relation="raza",
            not_found="Raza con ID {id} no encontrada",
            inactive_on_create="No se puede crear una mascota de una raza inactiva",
            inactive_on_assign="No se puede asignar la mascota a una raza inactiva",
            inactive_on_deactivate="No se puede inactivar una mascota de una raza inactiva",
            inactive_on_reactivate="No se puede reactivar una mascota de una raza inactiva",
        ),
    ),
    consistency=(
        ConsistencyRule(
            parent="raza_id",
            attribute="especie_id",
            must_equal="especie_id",
            message="La raza seleccionada no pertenece a la especie especificada",
        ),
    ),
    delete_dependents=(
        DependentTable("historial_medico", "mascota_id"),
        DependentTable("cita", "mascota_id"),
        DependentTable("vacuna", "mascota_id"),
        DependentTable("consulta", "mascota_id"),
        DependentTable("tratamiento", "mascota_id"),
    ),
    deactivate_dependents=(DependentTable("cita", "mascota_id", active_only=True),),
    messages=Messages(
        not_found="Mascota con ID {id} no encontrada",
        already_inactive="La mascota con ID {id} ya está inactiva",
        already_active="La mascota con ID {id} ya está activa",
        delete_blocked="No se puede eliminar la mascota porque tiene registros relacionados",
        delete_fk="No se puede eliminar la mascota porque tiene registros relacionados",
        deactivate_blocked=(
            "No se puede inactivar la mascota porque tiene registros activos relacionados"
        ),
        deleted="Mascota con ID {id} eliminada exitosamente",
    ),
)

MASCOTA_LISTING = ListSpec(
    joins=("cliente", "especie", "raza"),
    search=(
        Mascota.nombre,
        Mascota.chip,
        Mascota.pelaje,
        Mascota.descripcion,
        Cliente.nombre,
        Especie.nombre,
        Raza.nombre,
    ),
    exact={
        "cliente_id": Mascota.cliente_id,
        "especie_id": Mascota.especie_id,
        "raza_id": Mascota.raza_id,
        "sexo": Mascota.sexo,
    },
    partial={"chip": Mascota.chip},
    date_ranges={"fecha_nacimiento": Mascota.fecha_nacimiento},
    sort={
        "nombre": Mascota.nombre,
        "fecha_creacion": Mascota.fecha_creacion,
        "fecha_nacimiento": Mascota.fecha_nacimiento,
        "cliente": Cliente.nombre,
        "especie": Especie.nombre,
        "raza": Raza.nombre,
    },
)


class MascotaService(LifecycleGovernor):
    """Stateless service for mascota CRUD and activation."""

    def __init__(
        self,
        mascota_dao: MascotaDAO,
        cliente_dao: ClienteDAO,
        especie_dao: EspecieDAO,
        raza_dao: RazaDAO,
    ) -> None:
        super().__init__(
            MASCOTA,
            mascota_dao,
            listing=MASCOTA_LISTING,
            parent_daos={
                "cliente_id": cliente_dao,
                "especie_id": especie_dao,
                "raza_id": raza_dao,
            },
        )
        self._mascota_dao = mascota_dao
        self._cliente_dao = cliente_dao

    async def list_by_cliente(
        self, session: AsyncSession, cliente_id: int
    ) -> list[MascotaListItem]:
        """Return the active mascotas of *cliente_id* ordered by nombre.

        Raises :class:`NotFoundError` if the cliente does not exist.
        """
        with self._errors("obtener", cliente_id):
            if await self._cliente_dao.get_by_id(session, cliente_id) is None:
                raise NotFoundError(f"Cliente con ID {cliente_id} no encontrado")
            mascotas = await self._mascota_dao.list_active_by_cliente(session, cliente_id)
            return [MascotaListItem.model_validate(m) for m in mascotas]
