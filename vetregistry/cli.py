"""CLI entry point: vetregistry.

Subcommands:
    vetregistry init-db                    # Create the registry tables
    vetregistry seed [--catalog file]      # Seed especies/razas (re-runnable)
    vetregistry especies [--inactivas]     # Print the especie catalogue
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click
import structlog
from dotenv import load_dotenv

from vetregistry.core.database import (
    Base,
    dispose_engine,
    get_engine,
    init_session_factory,
    session_scope,
)
from vetregistry.core.logging import setup_logging
from vetregistry.deps import get_especie_service, get_raza_service
from vetregistry.schemas.especie import ListEspeciesRequest
from vetregistry.services import ConflictError

DEFAULT_CATALOG = Path(__file__).resolve().parent / "data" / "catalog.json"

log = structlog.get_logger("vetregistry.cli")


async def _create_tables() -> None:
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _list_especies(activo: bool, limite: int = 1000) -> list:
    request = ListEspeciesRequest.model_validate(
        {"paginacion": {"limite": limite}, "filtros": {"activo": activo}}
    )
    async with session_scope() as session:
        page = await get_especie_service().list(session, request)
    return page.data


def _catalog_errors(catalog: list) -> list[str]:
    """Describe every malformed entry; an empty list means the catalogue is seedable."""
    errors = []
    for i, entry in enumerate(catalog):
        if not isinstance(entry, dict):
            errors.append(f"entry {i}: must be a JSON object")
            continue
        nombre = entry.get("nombre")
        if not isinstance(nombre, str) or not nombre.strip():
            errors.append(f"entry {i}: missing required field 'nombre'")
        descripcion = entry.get("descripcion")
        if descripcion is not None and not isinstance(descripcion, str):
            errors.append(f"entry {i}: 'descripcion' must be a string")
        razas = entry.get("razas", [])
        if not isinstance(razas, list) or not all(
            isinstance(r, str) and r.strip() for r in razas
        ):
            errors.append(f"entry {i}: 'razas' must be a list of names")
    return errors


async def _seed(catalog: list[dict]) -> tuple[int, int]:
    """Create every especie and raza in *catalog*; return (created, skipped)."""
    especies = get_especie_service()
    razas = get_raza_service()
    created = skipped = 0

    for entry in catalog:
        try:
            async with session_scope() as session:
                await especies.create(
                    session, nombre=entry["nombre"], descripcion=entry.get("descripcion")
                )
            created += 1
        except ConflictError:
            skipped += 1
            log.info("seed.skip", especie=entry["nombre"])

    # existing especies may be inactive; razas under them are rejected below
    ids = {
        e.nombre.strip().lower(): e.id
        for activo in (True, False)
        for e in await _list_especies(activo)
    }
    for entry in catalog:
        especie_id = ids.get(entry["nombre"].strip().lower())
        if especie_id is None:
            continue
        for nombre in entry.get("razas", []):
            try:
                async with session_scope() as session:
                    await razas.create(session, especie_id=especie_id, nombre=nombre)
                created += 1
            except ConflictError:
                skipped += 1
                log.info("seed.skip", especie=entry["nombre"], raza=nombre)
    return created, skipped


def _run(coro):
    """Run *coro* against a fresh engine and always dispose it."""

    async def _wrapped():
        try:
            return await coro
        finally:
            await dispose_engine()

    return asyncio.run(_wrapped())


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.option(
    "--database-url",
    envvar="VETREGISTRY_DATABASE_URL",
    default=None,
    help="SQLAlchemy URL (postgresql+asyncpg://...)",
)
def main(verbose: bool, database_url: str | None) -> None:
    """Veterinary registry maintenance commands."""
    load_dotenv()
    setup_logging("DEBUG" if verbose else None)
    init_session_factory(database_url)


@main.command("init-db")
def init_db() -> None:
    """Create the registry tables (existing tables are left untouched)."""
    _run(_create_tables())
    click.echo("Tables created.")


@main.command()
@click.option(
    "--catalog",
    "catalog_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=DEFAULT_CATALOG,
    show_default=True,
    help="JSON list of {nombre, descripcion, razas[]}",
)
def seed(catalog_path: Path) -> None:
    """Seed the especie/raza catalogue, skipping entries that already exist."""
    try:
        catalog = json.loads(catalog_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        click.echo(f"Error: Invalid JSON in {catalog_path}: {e}", err=True)
        sys.exit(1)
    if not isinstance(catalog, list):
        click.echo(f"Error: {catalog_path} must contain a JSON list", err=True)
        sys.exit(1)
    errors = _catalog_errors(catalog)
    if errors:
        for error in errors:
            click.echo(f"Error: {catalog_path}: {error}", err=True)
        sys.exit(1)

    created, skipped = _run(_seed(catalog))
    click.echo(f"Created {created}, skipped {skipped} existing.")


@main.command()
@click.option("--inactivas", is_flag=True, help="List inactive especies instead")
def especies(inactivas: bool) -> None:
    """Print the especie catalogue, one per line."""
    for especie in _run(_list_especies(not inactivas)):
        click.echo(f"{especie.id}\t{especie.nombre}")
