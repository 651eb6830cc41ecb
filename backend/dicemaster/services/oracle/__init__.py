from .client import InMemoryOracle, OracleGateway
from .exceptions import DuplicateRequest, OracleError
from .models import OracleSnapshot

__all__ = [
    "OracleGateway",
    "InMemoryOracle",
    "OracleError",
    "DuplicateRequest",
    "OracleSnapshot",
]
