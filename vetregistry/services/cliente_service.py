"""ClienteService — pet owners."""

from __future__ import annotations

from vetregistry.dao.cliente_dao import ClienteDAO
from vetregistry.models import Cliente
from vetregistry.schemas.cliente import ClienteResponse
from vetregistry.services.descriptors import (
    DependentTable,
    EntityDescriptor,
    Messages,
    RequiredField,
    UniqueScope,
)
from vetregistry.services.lifecycle import LifecycleGovernor
from vetregistry.services.query_composer import ListSpec

# Billing and quoting tables live outside this registry; they may be absent.
_CLIENTE_DEPENDENTS = (
    DependentTable("factura", "cliente_id"),
    DependentTable("mascota", "cliente_id"),
    DependentTable("presupuesto", "cliente_id"),
)

CLIENTE = EntityDescriptor(
    name="cliente",
    plural="clientes",
    model=Cliente,
    detail_schema=ClienteResponse,
    mutable_fields=(
        "nombre",
        "cedula",
        "ruc",
        "telefono",
        "direccion",
        "fecha_nacimiento",
        "ubicacion_gps",
    ),
    blank_as_none=("cedula", "ruc", "telefono", "direccion", "ubicacion_gps"),
    required=(
        RequiredField("nombre", "El nombre del cliente no puede estar vacío"),
        RequiredField("cedula", "Debe proporcionar cédula"),
    ),
    unique_scopes=(
        UniqueScope(
            "cedula",
            conflict="Ya existe un cliente con esta cédula",
            conflict_on_update="Ya existe otro cliente con esta cédula",
        ),
        UniqueScope(
            "ruc",
            conflict="Ya existe un cliente con este RUC",
            conflict_on_update="Ya existe otro cliente con este RUC",
        ),
    ),
    delete_dependents=_CLIENTE_DEPENDENTS,
    deactivate_dependents=_CLIENTE_DEPENDENTS,
    default_user="admin",
    stamp_mod_on_create=False,
    messages=Messages(
        not_found="Cliente con ID {id} no encontrado",
        already_inactive="El cliente con ID {id} ya está inactivo",
        already_active="El cliente con ID {id} ya está activo",
        delete_blocked=(
            "No se puede eliminar el cliente porque tiene registros relacionados con otras tablas."
        ),
        delete_fk=(
            "No se puede eliminar el cliente porque tiene registros relacionados con otras tablas."
        ),
        deactivate_blocked=(
            "No se puede inactivar el cliente porque tiene registros relacionados con otras tablas."
        ),
        deleted="Cliente con ID {id} eliminado exitosamente",
    ),
)

CLIENTE_LISTING = ListSpec(
    search=(Cliente.nombre, Cliente.cedula, Cliente.ruc),
    exact={"cedula": Cliente.cedula, "ruc": Cliente.ruc},
    partial={"telefono": Cliente.telefono, "direccion": Cliente.direccion},
    date_ranges={"fecha_nacimiento": Cliente.fecha_nacimiento},
    sort={
        "nombre": Cliente.nombre,
        "cedula": Cliente.cedula,
        "ruc": Cliente.ruc,
        "telefono": Cliente.telefono,
        "fecha_creacion": Cliente.fecha_creacion,
        "fecha_nacimiento": Cliente.fecha_nacimiento,
    },
)


class ClienteService(LifecycleGovernor):
    """Stateless service for cliente CRUD and activation."""

    def __init__(self, cliente_dao: ClienteDAO) -> None:
        super().__init__(CLIENTE, cliente_dao, listing=CLIENTE_LISTING)
