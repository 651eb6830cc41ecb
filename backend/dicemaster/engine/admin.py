"""Owner-gated configuration, treasury movements and read-only queries."""

import logging

from .base import EngineBase
from .exceptions import AlreadyInitialized, NotFound
from .models import (
    AccountBet,
    CallContext,
    DepositRecord,
    EngineResult,
    EngineState,
    StakeLimits,
    WithdrawRecord,
)

logger = logging.getLogger(__name__)


class AdminOperations(EngineBase):

    def initialize(
        self,
        state: EngineState,
        ctx: CallContext,
        ledger_address: str,
        oracle_address: str,
    ) -> EngineResult[None]:
        """One-time setup. The caller becomes the owner."""
        if state.initialized:
            raise AlreadyInitialized("Already initialized.", ctx.sender)

        new_state = state.model_copy(deep=True)
        new_state.initialized = True
        new_state.owner = ctx.sender
        new_state.ledger_address = ledger_address
        new_state.oracle_address = oracle_address

        logger.info(
            f"Initialized engine {self.address} (owner={ctx.sender}, "
            f"ledger={ledger_address}, oracle={oracle_address})"
        )
        return EngineResult(state=new_state)

    def set_subscription_id(
        self, state: EngineState, ctx: CallContext, subscription_id: int
    ) -> EngineResult[None]:
        self._require_owner(state, ctx)
        new_state = state.model_copy(deep=True)
        new_state.subscription_id = subscription_id
        logger.info(f"Subscription id set to {subscription_id}")
        return EngineResult(state=new_state)

    def set_oracle_key_index(
        self, state: EngineState, ctx: CallContext, key_index: int
    ) -> EngineResult[None]:
        self._require_owner(state, ctx)
        new_state = state.model_copy(deep=True)
        new_state.oracle_key_index = key_index
        logger.info(f"Oracle key index set to {key_index}")
        return EngineResult(state=new_state)

    def withdraw(
        self, state: EngineState, ctx: CallContext, amount: int
    ) -> EngineResult[None]:
        """Move treasury funds to the owner."""
        self._require_owner(state, ctx)

        self.ledger.transfer(self.address, ctx.sender, self.symbol, amount)

        record = WithdrawRecord(amount=amount, from_=self.address, to=state.owner)
        logger.info(f"Withdrew {amount} {self.symbol} to {state.owner}")
        return EngineResult(state=state.model_copy(deep=True), records=[record])

    def deposit(
        self, state: EngineState, ctx: CallContext, amount: int
    ) -> EngineResult[None]:
        """Move owner funds into the treasury. Needs a prior allowance."""
        self._require_owner(state, ctx)

        self.ledger.transfer_from(
            self.address, ctx.sender, self.address, self.symbol, amount
        )

        record = DepositRecord(amount=amount, from_=ctx.sender, to=self.address)
        logger.info(f"Deposited {amount} {self.symbol} from {ctx.sender}")
        return EngineResult(state=state.model_copy(deep=True), records=[record])

    def transfer_ownership(
        self, state: EngineState, ctx: CallContext, new_owner: str
    ) -> EngineResult[None]:
        self._require_owner(state, ctx)
        new_state = state.model_copy(deep=True)
        new_state.owner = new_owner
        logger.info(f"Ownership transferred: {ctx.sender} -> {new_owner}")
        return EngineResult(state=new_state)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_owner(self, state: EngineState) -> str:
        return state.owner or ""

    def get_stake_limits(self) -> StakeLimits:
        return StakeLimits(minimum=self.game.min_stake, maximum=self.game.max_stake)

    def get_treasury_balance(self) -> int:
        return self.treasury_balance()

    def get_subscription_id(self, state: EngineState) -> int:
        return state.subscription_id

    def get_oracle_key_index(self, state: EngineState) -> int:
        return state.oracle_key_index

    def get_account_bet(self, state: EngineState, account: str) -> AccountBet:
        bet = state.account_bets.get(account)
        if bet is None:
            raise NotFound("No player info found.", account)
        return bet.model_copy()
