"""Local hosting runtime for the engine.

Plays the part of the execution environment around the engine: assigns
heights and block times, authenticates the oracle callback, and makes every
invocation all-or-nothing across engine state, ledger and oracle queue.
"""

from __future__ import annotations

import logging
import secrets
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator

from dicemaster.config import Settings, get_settings
from dicemaster.engine import (
    CallContext,
    DiceMasterEngine,
    EngineRecord,
    EngineState,
    Unauthorized,
    encode_words,
)
from dicemaster.engine.dice import HASH_SIZE
from dicemaster.services.ledger import InMemoryLedger, LedgerError
from dicemaster.services.oracle import InMemoryOracle
from dicemaster.storage.state import HostSnapshot

logger = logging.getLogger(__name__)

BLOCK_INTERVAL = timedelta(seconds=4)

ENTRY_POINTS = frozenset(
    {
        "initialize",
        "place_bet",
        "fulfill",
        "set_subscription_id",
        "set_oracle_key_index",
        "withdraw",
        "deposit",
        "transfer_ownership",
    }
)


class EngineHost:
    def __init__(
        self,
        settings: Settings | None = None,
        snapshot: HostSnapshot | None = None,
    ):
        self.settings = settings or get_settings()
        snapshot = snapshot or HostSnapshot(genesis_time=datetime.now(timezone.utc))

        self.ledger = InMemoryLedger(snapshot.ledger)
        self.oracle = InMemoryOracle(self.settings.oracle.signing_keys)
        if snapshot.oracle.signing_keys or snapshot.oracle.queue:
            self.oracle.restore(snapshot.oracle)
        self.engine = DiceMasterEngine(
            address=self.settings.ledger.engine_address,
            ledger=self.ledger,
            oracle=self.oracle,
            game=self.settings.game,
        )
        self.state: EngineState = snapshot.engine
        self.height = snapshot.height
        self.genesis_time = snapshot.genesis_time
        self.records: list[EngineRecord] = []
        self._check_wiring()

    def _check_wiring(self) -> None:
        if not self.state.initialized:
            return
        if self.state.ledger_address != self.settings.ledger.address:
            logger.warning(
                f"Engine was initialized with ledger {self.state.ledger_address}, "
                f"but settings point at {self.settings.ledger.address}"
            )
        if self.state.oracle_address != self.settings.oracle.address:
            logger.warning(
                f"Engine was initialized with oracle {self.state.oracle_address}, "
                f"but settings point at {self.settings.oracle.address}"
            )

    @classmethod
    def bootstrap(cls, settings: Settings | None = None) -> EngineHost:
        """Fund configured accounts, initialize the engine and seed the treasury."""
        host = cls(settings)
        ledger_config = host.settings.ledger
        symbol = host.settings.game.token_symbol

        for account, amount in ledger_config.initial_balances.items():
            host.ledger.mint(account, symbol, amount)

        owner = ledger_config.owner_address
        host.invoke(owner, "initialize", ledger_config.address, host.settings.oracle.address)
        if ledger_config.treasury_seed > 0:
            host.approve(owner, ledger_config.treasury_seed)
            host.invoke(owner, "deposit", ledger_config.treasury_seed)

        logger.info(f"Bootstrapped engine at height {host.height}")
        return host

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------

    def invoke(self, sender: str, entry_point: str, *args: Any) -> Any:
        """Run one entry point as `sender` in a new block.

        On any error, engine state, ledger and oracle queue are left exactly
        as they were and the error propagates.
        """
        if entry_point not in ENTRY_POINTS:
            raise ValueError(f"Unknown entry point: {entry_point}")

        oracle_address = self.state.oracle_address
        if entry_point == "fulfill" and (oracle_address is None or sender != oracle_address):
            raise Unauthorized("Only the oracle may fulfill requests.", sender)

        ctx = self._next_context(sender)
        handler = getattr(self.engine, entry_point)

        with self._transaction():
            if entry_point == "fulfill":
                self.oracle.take(args[0])
            result = handler(self.state, ctx, *args)

        self.state = result.state
        self.records.extend(result.records)
        return result.value

    def place_bet(self, account: str, stake: int) -> str:
        return self.invoke(account, "place_bet", stake)

    def fulfill(self, correlation_id: str, payload: bytes) -> bool:
        return self.invoke(self.state.oracle_address, "fulfill", correlation_id, payload)

    def deliver_fulfillments(self, words: list[int] | None = None) -> list[str]:
        """Answer every queued randomness request.

        With `words`, every request gets the same words; otherwise each gets a
        fresh random payload. Returns the correlation ids that settled a bet.
        """
        settled = []
        for request in self.oracle.queued:
            correlation_id = request.correlation_id
            if words is not None:
                payload = encode_words(words)
            else:
                payload = self.random_payload(request.specific_data.num_words)

            try:
                if self.fulfill(correlation_id, payload):
                    settled.append(correlation_id)
            except LedgerError as e:
                logger.error(f"Fulfillment {correlation_id[:12]} rolled back: {e}")

        return settled

    # ------------------------------------------------------------------
    # Ledger helpers
    # ------------------------------------------------------------------

    def fund(self, account: str, amount: int) -> None:
        self.ledger.mint(account, self.settings.game.token_symbol, amount)

    def approve(self, account: str, amount: int) -> None:
        """Let the engine pull up to `amount` from the account."""
        self.ledger.approve(
            account, self.engine.address, self.settings.game.token_symbol, amount
        )

    def balance_of(self, account: str) -> int:
        return self.ledger.get_balance(account, self.settings.game.token_symbol).balance

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot(self) -> HostSnapshot:
        return HostSnapshot(
            engine=self.state.model_copy(deep=True),
            ledger=self.ledger.snapshot(),
            oracle=self.oracle.snapshot(),
            height=self.height,
            genesis_time=self.genesis_time,
        )

    def drain_records(self) -> list[EngineRecord]:
        records, self.records = self.records, []
        return records

    @staticmethod
    def random_payload(num_words: int) -> bytes:
        return b"".join(secrets.token_bytes(HASH_SIZE) for _ in range(num_words))

    def _next_context(self, sender: str) -> CallContext:
        self.height += 1
        return CallContext(
            sender=sender,
            origin=sender,
            height=self.height,
            block_time=self.genesis_time + BLOCK_INTERVAL * self.height,
        )

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        ledger_snapshot = self.ledger.snapshot()
        oracle_snapshot = self.oracle.snapshot()
        try:
            yield
        except Exception:
            self.ledger.restore(ledger_snapshot)
            self.oracle.restore(oracle_snapshot)
            raise
