from __future__ import annotations

from datetime import datetime
from typing import Annotated, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


# ============================================================================
# Bet Ledger
# ============================================================================


class AccountBet(BaseModel):
    """Current or last bet of one account. Overwritten by every new bet."""

    account: str
    pending: bool = False
    won: bool = False
    die1: int = Field(default=1, ge=1, le=6)
    die2: int = Field(default=1, ge=1, le=6)
    stake: int = 0
    request_height: int = 0

    @property
    def total(self) -> int:
        return self.die1 + self.die2


class PendingRequest(BaseModel):
    """Randomness request awaiting fulfillment, keyed by correlation id."""

    account: str
    request_height: int


class EngineState(BaseModel):
    """Everything the engine owns. Passed explicitly into every entry point."""

    initialized: bool = False
    owner: str | None = None
    ledger_address: str | None = None
    oracle_address: str | None = None
    subscription_id: int = 0
    oracle_key_index: int = 0
    account_bets: dict[str, AccountBet] = Field(default_factory=dict)
    pending_requests: dict[str, PendingRequest] = Field(default_factory=dict)

    def has_outstanding_request(self, account: str) -> bool:
        """True if a request for the account's current bet is still valid."""
        bet = self.account_bets.get(account)
        if bet is None or not bet.pending:
            return False
        return any(
            request.account == account
            and request.request_height == bet.request_height
            for request in self.pending_requests.values()
        )


# ============================================================================
# Invocation context and results
# ============================================================================


class CallContext(BaseModel):
    """What the host runtime knows about the current invocation."""

    model_config = ConfigDict(frozen=True)

    sender: str
    origin: str
    height: int
    block_time: datetime


class StakeLimits(BaseModel):
    minimum: int
    maximum: int


# ============================================================================
# Randomness requests
# ============================================================================


class SpecificData(BaseModel):
    """VRF parameters embedded in a randomness request."""

    key_hash: str
    num_words: int = 2
    request_confirmations: int = 1


class RandomnessRequest(BaseModel):
    subscription_id: int
    request_type_index: int
    specific_data: SpecificData
    correlation_id: str | None = None


# ============================================================================
# Emitted records
# ============================================================================


class OutcomeRecord(BaseModel):
    kind: Literal["outcome"] = "outcome"
    account: str
    stake_amount: int
    delta: int


class WithdrawRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["withdraw"] = "withdraw"
    amount: int
    from_: str = Field(alias="from")
    to: str


class DepositRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["deposit"] = "deposit"
    amount: int
    from_: str = Field(alias="from")
    to: str


EngineRecord = Annotated[
    Union[OutcomeRecord, WithdrawRecord, DepositRecord],
    Field(discriminator="kind"),
]


class EngineResult(BaseModel, Generic[T]):
    """New state, records emitted by the call, and the call's return value."""

    state: EngineState
    records: list[EngineRecord] = Field(default_factory=list)
    value: T | None = None
