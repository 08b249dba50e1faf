"""Service wiring — DAO and service singletons for the outer layers."""

from __future__ import annotations

from vetregistry.dao.cliente_dao import ClienteDAO
from vetregistry.dao.especie_dao import EspecieDAO
from vetregistry.dao.mascota_dao import MascotaDAO
from vetregistry.dao.raza_dao import RazaDAO
from vetregistry.services.cliente_service import ClienteService
from vetregistry.services.especie_service import EspecieService
from vetregistry.services.mascota_service import MascotaService
from vetregistry.services.raza_service import RazaService

# ---------------------------------------------------------------------------
# DAO singletons
# ---------------------------------------------------------------------------
_especie_dao = EspecieDAO()
_raza_dao = RazaDAO()
_cliente_dao = ClienteDAO()
_mascota_dao = MascotaDAO()

# ---------------------------------------------------------------------------
# Service singletons
# ---------------------------------------------------------------------------
_especie_service = EspecieService(_especie_dao)
_raza_service = RazaService(_raza_dao, _especie_dao)
_cliente_service = ClienteService(_cliente_dao)
_mascota_service = MascotaService(_mascota_dao, _cliente_dao, _especie_dao, _raza_dao)

# ---------------------------------------------------------------------------
# Service getters
# ---------------------------------------------------------------------------


def get_especie_service() -> EspecieService:
    return _especie_service


def get_raza_service() -> RazaService:
    return _raza_service


def get_cliente_service() -> ClienteService:
    return _cliente_service


def get_mascota_service() -> MascotaService:
    return _mascota_service
