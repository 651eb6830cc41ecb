from __future__ import annotations

import copy
import logging
from typing import Protocol

from .exceptions import InsufficientAllowance, InsufficientBalance, InvalidAmount
from .models import Balance, LedgerSnapshot

logger = logging.getLogger(__name__)


class LedgerGateway(Protocol):
    """Token ledger as seen by the engine."""

    def get_balance(self, owner: str, symbol: str) -> Balance: ...

    def transfer(self, sender: str, to: str, symbol: str, amount: int) -> None: ...

    def transfer_from(
        self, spender: str, from_: str, to: str, symbol: str, amount: int
    ) -> None: ...


class InMemoryLedger:
    """Local token ledger with balances and allowances.

    Used by the host runtime and tests in place of a real token service.
    """

    def __init__(self, snapshot: LedgerSnapshot | None = None):
        snapshot = snapshot or LedgerSnapshot()
        self._balances = {
            symbol: dict(owners) for symbol, owners in snapshot.balances.items()
        }
        self._allowances = {
            symbol: {owner: dict(spenders) for owner, spenders in owners.items()}
            for symbol, owners in snapshot.allowances.items()
        }

    def get_balance(self, owner: str, symbol: str) -> Balance:
        amount = self._balances.get(symbol, {}).get(owner, 0)
        return Balance(owner=owner, symbol=symbol, balance=amount)

    def get_allowance(self, owner: str, spender: str, symbol: str) -> int:
        return self._allowances.get(symbol, {}).get(owner, {}).get(spender, 0)

    def mint(self, to: str, symbol: str, amount: int) -> None:
        self._check_amount(amount)
        balances = self._balances.setdefault(symbol, {})
        balances[to] = balances.get(to, 0) + amount
        logger.debug(f"Minted {amount} {symbol} to {to}")

    def approve(self, owner: str, spender: str, symbol: str, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount(f"Invalid allowance: {amount}", owner)
        spenders = self._allowances.setdefault(symbol, {}).setdefault(owner, {})
        spenders[spender] = amount
        logger.debug(f"{owner} approved {spender} for {amount} {symbol}")

    def transfer(self, sender: str, to: str, symbol: str, amount: int) -> None:
        self._check_amount(amount)
        self._move(sender, to, symbol, amount)
        logger.debug(f"Transferred {amount} {symbol}: {sender} -> {to}")

    def transfer_from(
        self, spender: str, from_: str, to: str, symbol: str, amount: int
    ) -> None:
        self._check_amount(amount)
        allowance = self.get_allowance(from_, spender, symbol)
        if allowance < amount:
            raise InsufficientAllowance(
                f"Insufficient allowance: {spender} may spend {allowance} "
                f"of {from_}'s {symbol}, needs {amount}",
                from_,
            )
        self._move(from_, to, symbol, amount)
        self._allowances[symbol][from_][spender] = allowance - amount
        logger.debug(
            f"Transferred {amount} {symbol}: {from_} -> {to} (spender {spender})"
        )

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            balances=copy.deepcopy(self._balances),
            allowances=copy.deepcopy(self._allowances),
        )

    def restore(self, snapshot: LedgerSnapshot) -> None:
        restored = InMemoryLedger(snapshot)
        self._balances = restored._balances
        self._allowances = restored._allowances

    def _move(self, from_: str, to: str, symbol: str, amount: int) -> None:
        balances = self._balances.setdefault(symbol, {})
        available = balances.get(from_, 0)
        if available < amount:
            raise InsufficientBalance(
                f"Insufficient balance: {from_} has {available} {symbol}, "
                f"needs {amount}",
                from_,
            )
        balances[from_] = available - amount
        balances[to] = balances.get(to, 0) + amount

    @staticmethod
    def _check_amount(amount: int) -> None:
        if amount <= 0:
            raise InvalidAmount(f"Invalid amount: {amount}")
