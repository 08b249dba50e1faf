"""Tests for DependencyScanner — schema probes, active-only filter, fail-open."""

from unittest.mock import ANY, AsyncMock, MagicMock

from vetregistry.dao.base import BaseDAO
from vetregistry.models.mascota import Mascota
from vetregistry.services.dependency_scanner import DependencyScanner
from vetregistry.services.descriptors import DependentTable


class _StoreDAO(BaseDAO[Mascota]):
    model = Mascota


def _make_session() -> MagicMock:
    """Session whose begin_nested() works as an async context manager."""
    session = MagicMock()
    nested = MagicMock()
    nested.__aenter__ = AsyncMock(return_value=None)
    nested.__aexit__ = AsyncMock(return_value=False)
    session.begin_nested.return_value = nested
    return session


def _make_scanner(*, tables=(), columns=(), hits=()) -> tuple[DependencyScanner, _StoreDAO]:
    store = _StoreDAO()
    store.has_table = AsyncMock(side_effect=lambda _s, name: name in tables)
    store.has_column = AsyncMock(side_effect=lambda _s, name, col: (name, col) in columns)
    store.exists_filtered = AsyncMock(
        side_effect=lambda _s, name, fk, value, active=None: name in hits
    )
    return DependencyScanner(store), store


_CLINICAL = (
    DependentTable("historial_medico", "mascota_id"),
    DependentTable("cita", "mascota_id"),
    DependentTable("vacuna", "mascota_id"),
)


class TestHasDependents:
    async def test_no_tables_declared(self):
        scanner, store = _make_scanner()
        session = _make_session()

        assert await scanner.has_dependents(session, 1, ()) is False
        session.begin_nested.assert_not_called()
        store.has_table.assert_not_awaited()

    async def test_missing_tables_are_skipped(self):
        scanner, store = _make_scanner(tables={"cita"}, hits={"cita"})

        assert await scanner.has_dependents(_make_session(), 7, _CLINICAL) is True
        store.exists_filtered.assert_awaited_once_with(ANY, "cita", "mascota_id", 7, None)

    async def test_all_tables_missing(self):
        scanner, store = _make_scanner()

        assert await scanner.has_dependents(_make_session(), 7, _CLINICAL) is False
        assert store.has_table.await_count == 3
        store.exists_filtered.assert_not_awaited()

    async def test_stops_at_first_hit(self):
        scanner, store = _make_scanner(
            tables={"historial_medico", "cita", "vacuna"}, hits={"historial_medico", "vacuna"}
        )

        assert await scanner.has_dependents(_make_session(), 7, _CLINICAL) is True
        assert store.exists_filtered.await_count == 1

    async def test_no_referencing_rows(self):
        scanner, _ = _make_scanner(tables={"historial_medico", "cita", "vacuna"})

        assert await scanner.has_dependents(_make_session(), 7, _CLINICAL) is False

    async def test_active_only_uses_activo_column_when_present(self):
        scanner, store = _make_scanner(
            tables={"cita"}, columns={("cita", "activo")}, hits={"cita"}
        )
        tables = (DependentTable("cita", "mascota_id", active_only=True),)

        assert await scanner.has_dependents(_make_session(), 7, tables) is True
        store.exists_filtered.assert_awaited_once_with(ANY, "cita", "mascota_id", 7, "activo")

    async def test_active_only_without_activo_column_counts_all_rows(self):
        scanner, store = _make_scanner(tables={"cita"}, hits={"cita"})
        tables = (DependentTable("cita", "mascota_id", active_only=True),)

        assert await scanner.has_dependents(_make_session(), 7, tables) is True
        store.exists_filtered.assert_awaited_once_with(ANY, "cita", "mascota_id", 7, None)

    async def test_plain_table_never_probes_columns(self):
        scanner, store = _make_scanner(tables={"cita"})

        await scanner.has_dependents(
            _make_session(), 7, (DependentTable("cita", "mascota_id"),)
        )
        store.has_column.assert_not_awaited()

    async def test_fails_open_on_unexpected_error(self):
        scanner, store = _make_scanner(tables={"cita"})
        store.exists_filtered = AsyncMock(side_effect=RuntimeError("relation vanished"))

        result = await scanner.has_dependents(
            _make_session(), 7, (DependentTable("cita", "mascota_id"),)
        )

        assert result is False

    async def test_runs_inside_savepoint(self):
        scanner, _ = _make_scanner(tables={"cita"})
        session = _make_session()

        await scanner.has_dependents(session, 7, (DependentTable("cita", "mascota_id"),))

        session.begin_nested.assert_called_once_with()
        session.begin_nested.return_value.__aenter__.assert_awaited_once()
