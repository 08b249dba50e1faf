"""Tests for EspecieService — the lifecycle rules as applied to especie."""

from datetime import datetime, timezone
from unittest.mock import ANY, AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError

from vetregistry.dao.especie_dao import EspecieDAO
from vetregistry.models.especie import Especie
from vetregistry.models.raza import Raza
from vetregistry.services import (
    BadRequestError,
    ConflictError,
    InternalError,
    NotFoundError,
)
from vetregistry.services.especie_service import ESPECIE, EspecieService

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_especie(**overrides) -> Especie:
    defaults = {
        "id": 1,
        "nombre": "Canino",
        "descripcion": None,
        "activo": True,
        "usuario_creacion": "system",
        "fecha_creacion": datetime.now(timezone.utc),
        "usuario_mod": None,
        "fecha_mod": datetime.now(timezone.utc),
    }
    defaults.update(overrides)
    return Especie(**defaults)


def _make_raza(**overrides) -> Raza:
    defaults = {
        "id": 10,
        "especie_id": 1,
        "nombre": "Labrador",
        "descripcion": None,
        "activo": True,
        "fecha_creacion": datetime.now(timezone.utc),
        "fecha_mod": datetime.now(timezone.utc),
    }
    defaults.update(overrides)
    return Raza(**defaults)


def _make_service() -> tuple[EspecieService, EspecieDAO]:
    dao = EspecieDAO()
    return EspecieService(dao), dao


class _PgError(Exception):
    def __init__(self, message: str, sqlstate: str) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


# ---------------------------------------------------------------------------
# get
# ---------------------------------------------------------------------------


class TestGet:
    async def test_get_success(self):
        especie = _make_especie()
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(return_value=especie)

        result = await service.get(AsyncMock(), 1)

        assert result.id == 1
        assert result.nombre == "Canino"
        assert result.activo is True

    async def test_get_not_found(self):
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError, match="Especie con ID 99 no encontrada"):
            await service.get(AsyncMock(), 99)

    async def test_unexpected_error_wrapped(self):
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(side_effect=RuntimeError("connection lost"))

        with pytest.raises(InternalError, match="Error al obtener especie: connection lost") as info:
            await service.get(AsyncMock(), 1)
        assert isinstance(info.value.__cause__, RuntimeError)


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


class TestCreate:
    async def test_create_trims_and_stamps(self):
        created = _make_especie(id=5, nombre="Felino")
        service, dao = _make_service()
        dao.get_by_scope = AsyncMock(return_value=None)
        dao.create = AsyncMock(return_value=created)
        dao.get_by_id = AsyncMock(return_value=created)

        result = await service.create(AsyncMock(), nombre="  Felino ", descripcion="Gatos")

        assert result.id == 5
        dao.get_by_scope.assert_awaited_once_with(
            ANY, {"nombre": "Felino"}, normalized=("nombre",), exclude_id=None
        )
        kwargs = dao.create.call_args.kwargs
        assert kwargs["nombre"] == "Felino"
        assert kwargs["descripcion"] == "Gatos"
        assert kwargs["activo"] is True
        assert kwargs["usuario_creacion"] == "system"
        assert kwargs["fecha_creacion"] == kwargs["fecha_mod"]

    async def test_create_uses_given_user(self):
        created = _make_especie()
        service, dao = _make_service()
        dao.get_by_scope = AsyncMock(return_value=None)
        dao.create = AsyncMock(return_value=created)
        dao.get_by_id = AsyncMock(return_value=created)

        await service.create(AsyncMock(), nombre="Canino", usuario="recepcion")

        assert dao.create.call_args.kwargs["usuario_creacion"] == "recepcion"

    async def test_create_ignores_activo(self):
        created = _make_especie()
        service, dao = _make_service()
        dao.get_by_scope = AsyncMock(return_value=None)
        dao.create = AsyncMock(return_value=created)
        dao.get_by_id = AsyncMock(return_value=created)

        await service.create(AsyncMock(), nombre="Canino", activo=False)

        assert dao.create.call_args.kwargs["activo"] is True

    async def test_create_duplicate_name_case_insensitive(self):
        service, dao = _make_service()
        dao.get_by_scope = AsyncMock(return_value=_make_especie(nombre="Canino"))
        dao.create = AsyncMock()

        with pytest.raises(ConflictError, match="Ya existe una especie con este nombre"):
            await service.create(AsyncMock(), nombre="canino ")
        dao.create.assert_not_awaited()

    @pytest.mark.parametrize("nombre", ["", "   ", None])
    async def test_create_empty_name(self, nombre):
        service, dao = _make_service()
        dao.get_by_scope = AsyncMock()

        with pytest.raises(BadRequestError, match="El nombre de la especie no puede estar vacío"):
            await service.create(AsyncMock(), nombre=nombre)
        dao.get_by_scope.assert_not_awaited()

    async def test_storage_unique_violation_translated(self):
        service, dao = _make_service()
        dao.get_by_scope = AsyncMock(return_value=None)
        orig = _PgError(
            'duplicate key value violates unique constraint "uq_especie_nombre"', "23505"
        )
        dao.create = AsyncMock(side_effect=IntegrityError("INSERT", {}, orig))

        with pytest.raises(ConflictError, match="Ya existe una especie con este nombre"):
            await service.create(AsyncMock(), nombre="Canino")

    async def test_unknown_integrity_error_is_internal(self):
        service, dao = _make_service()
        dao.get_by_scope = AsyncMock(return_value=None)
        orig = _PgError('null value in column "nombre" violates not-null constraint', "23502")
        dao.create = AsyncMock(side_effect=IntegrityError("INSERT", {}, orig))

        with pytest.raises(InternalError, match="Error al crear especie"):
            await service.create(AsyncMock(), nombre="Canino")


# ---------------------------------------------------------------------------
# update
# ---------------------------------------------------------------------------


class TestUpdate:
    async def test_update_renames(self):
        current = _make_especie(nombre="Canino")
        updated = _make_especie(nombre="Perro")
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(side_effect=[current, updated])
        dao.get_by_scope = AsyncMock(return_value=None)
        dao.update = AsyncMock(return_value=updated)

        result = await service.update(AsyncMock(), 1, nombre=" Perro ")

        assert result.nombre == "Perro"
        dao.get_by_scope.assert_awaited_once_with(
            ANY, {"nombre": "Perro"}, normalized=("nombre",), exclude_id=1
        )
        kwargs = dao.update.call_args.kwargs
        assert kwargs["nombre"] == "Perro"
        assert kwargs["usuario_mod"] == "system"
        assert "fecha_mod" in kwargs

    async def test_update_conflict_with_other(self):
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(return_value=_make_especie(nombre="Canino"))
        dao.get_by_scope = AsyncMock(return_value=_make_especie(id=2, nombre="Felino"))
        dao.update = AsyncMock()

        with pytest.raises(ConflictError, match="Ya existe otra especie con este nombre"):
            await service.update(AsyncMock(), 1, nombre="felino")
        dao.update.assert_not_awaited()

    async def test_case_change_skips_uniqueness_check(self):
        current = _make_especie(nombre="Canino")
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(return_value=current)
        dao.get_by_scope = AsyncMock()
        dao.update = AsyncMock(return_value=current)

        await service.update(AsyncMock(), 1, nombre="CANINO")

        dao.get_by_scope.assert_not_awaited()
        assert dao.update.call_args.kwargs["nombre"] == "CANINO"

    async def test_fields_set_limits_update(self):
        current = _make_especie()
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(return_value=current)
        dao.get_by_scope = AsyncMock()
        dao.update = AsyncMock(return_value=current)

        await service.update(
            AsyncMock(), 1, fields_set={"descripcion"}, nombre="Otro", descripcion="Perros"
        )

        dao.get_by_scope.assert_not_awaited()
        kwargs = dao.update.call_args.kwargs
        assert kwargs["descripcion"] == "Perros"
        assert "nombre" not in kwargs

    async def test_activo_is_not_updatable(self):
        current = _make_especie()
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(return_value=current)
        dao.update = AsyncMock()

        result = await service.update(AsyncMock(), 1, activo=False)

        dao.update.assert_not_awaited()
        assert result.activo is True

    async def test_update_empty_name(self):
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(return_value=_make_especie())

        with pytest.raises(BadRequestError, match="no puede estar vacío"):
            await service.update(AsyncMock(), 1, nombre="  ")

    async def test_update_not_found(self):
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError, match="Especie con ID 7 no encontrada"):
            await service.update(AsyncMock(), 7, nombre="X")


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------


class TestDelete:
    async def test_delete_success(self):
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(return_value=_make_especie(razas=[]))
        dao.delete = AsyncMock(return_value=True)
        service._scanner.has_dependents = AsyncMock(return_value=False)

        result = await service.delete(AsyncMock(), 1)

        assert result == {"mensaje": "Especie con ID 1 eliminada exitosamente"}
        dao.delete.assert_awaited_once_with(ANY, 1)
        dao.get_by_id.assert_awaited_once_with(ANY, 1, load=("razas",))

    async def test_delete_blocked_by_razas(self):
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(return_value=_make_especie(razas=[_make_raza()]))
        dao.delete = AsyncMock()
        service._scanner.has_dependents = AsyncMock(return_value=False)

        with pytest.raises(ConflictError, match="tiene razas asociadas"):
            await service.delete(AsyncMock(), 1)
        dao.delete.assert_not_awaited()
        service._scanner.has_dependents.assert_not_awaited()

    async def test_delete_blocked_by_mascotas(self):
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(return_value=_make_especie(razas=[]))
        dao.delete = AsyncMock()
        service._scanner.has_dependents = AsyncMock(return_value=True)

        with pytest.raises(ConflictError, match="tiene mascotas asociadas"):
            await service.delete(AsyncMock(), 1)
        service._scanner.has_dependents.assert_awaited_once_with(
            ANY, 1, ESPECIE.delete_dependents
        )
        dao.delete.assert_not_awaited()

    async def test_storage_fk_violation_is_conflict(self):
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(return_value=_make_especie(razas=[]))
        service._scanner.has_dependents = AsyncMock(return_value=False)
        orig = _PgError(
            'update or delete on table "especie" violates foreign key constraint', "23503"
        )
        dao.delete = AsyncMock(side_effect=IntegrityError("DELETE", {}, orig))

        with pytest.raises(ConflictError, match="tiene registros relacionados"):
            await service.delete(AsyncMock(), 1)

    async def test_delete_not_found(self):
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError):
            await service.delete(AsyncMock(), 1)


# ---------------------------------------------------------------------------
# deactivate / reactivate
# ---------------------------------------------------------------------------


class TestActivation:
    async def test_deactivate_success(self):
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(
            side_effect=[_make_especie(), _make_especie(activo=False)]
        )
        dao.update = AsyncMock()
        service._scanner.has_dependents = AsyncMock(return_value=False)

        result = await service.deactivate(AsyncMock(), 1)

        assert result.activo is False
        service._scanner.has_dependents.assert_awaited_once_with(
            ANY, 1, ESPECIE.deactivate_dependents
        )
        kwargs = dao.update.call_args.kwargs
        assert kwargs["activo"] is False
        assert kwargs["usuario_mod"] == "system"

    async def test_deactivate_already_inactive(self):
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(return_value=_make_especie(activo=False))

        with pytest.raises(BadRequestError, match="La especie con ID 1 ya está inactiva"):
            await service.deactivate(AsyncMock(), 1)

    async def test_deactivate_blocked_by_active_mascotas(self):
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(return_value=_make_especie())
        dao.update = AsyncMock()
        service._scanner.has_dependents = AsyncMock(return_value=True)

        with pytest.raises(ConflictError, match="tiene mascotas activas asociadas"):
            await service.deactivate(AsyncMock(), 1)
        dao.update.assert_not_awaited()

    def test_deactivate_scan_is_active_only(self):
        (table,) = ESPECIE.deactivate_dependents
        assert table.name == "mascota"
        assert table.fk_column == "especie_id"
        assert table.active_only is True

    async def test_reactivate_success(self):
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(
            side_effect=[_make_especie(activo=False), _make_especie(activo=True)]
        )
        dao.update = AsyncMock()
        service._scanner.has_dependents = AsyncMock()

        result = await service.reactivate(AsyncMock(), 1, usuario="vet")

        assert result.activo is True
        assert dao.update.call_args.kwargs["usuario_mod"] == "vet"
        service._scanner.has_dependents.assert_not_awaited()

    async def test_reactivate_already_active(self):
        service, dao = _make_service()
        dao.get_by_id = AsyncMock(return_value=_make_especie())

        with pytest.raises(BadRequestError, match="La especie con ID 1 ya está activa"):
            await service.reactivate(AsyncMock(), 1)
