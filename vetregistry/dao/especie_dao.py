"""EspecieDAO — especie table operations."""

from vetregistry.dao.base import BaseDAO
from vetregistry.models.especie import Especie


class EspecieDAO(BaseDAO[Especie]):
    model = Especie
