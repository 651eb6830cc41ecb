from .client import InMemoryLedger, LedgerGateway
from .exceptions import (
    InsufficientAllowance,
    InsufficientBalance,
    InvalidAmount,
    LedgerError,
)
from .models import Balance, LedgerSnapshot

__all__ = [
    "LedgerGateway",
    "InMemoryLedger",
    "LedgerError",
    "InsufficientAllowance",
    "InsufficientBalance",
    "InvalidAmount",
    "Balance",
    "LedgerSnapshot",
]
