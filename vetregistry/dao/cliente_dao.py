"""ClienteDAO — cliente table operations."""

from vetregistry.dao.base import BaseDAO
from vetregistry.models.cliente import Cliente


class ClienteDAO(BaseDAO[Cliente]):
    model = Cliente
