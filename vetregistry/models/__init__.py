"""SQLAlchemy ORM models — one file per table."""

from vetregistry.models.cliente import Cliente
from vetregistry.models.especie import Especie
from vetregistry.models.mascota import Mascota
from vetregistry.models.raza import Raza

__all__ = [
    "Cliente",
    "Especie",
    "Raza",
    "Mascota",
]
