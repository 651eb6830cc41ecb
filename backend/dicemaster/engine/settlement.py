"""Bet lifecycle: open a bet against a randomness request, settle it on callback.

PlaceBet and Fulfill are independent entry points. The only link between
them is the correlation id stored in EngineState.pending_requests, checked
against the account's current request height so that a late or repeated
callback cannot touch a bet it does not belong to.
"""

import logging

from .base import EngineBase
from .correlation import derive_correlation_id
from .dice import MalformedPayload, is_winner, roll_dice
from .exceptions import (
    BetAlreadyPending,
    InsufficientFunds,
    InvalidOracleKeyIndex,
    InvalidStake,
)
from .models import (
    AccountBet,
    CallContext,
    EngineResult,
    EngineState,
    OutcomeRecord,
    PendingRequest,
    RandomnessRequest,
    SpecificData,
)

logger = logging.getLogger(__name__)

VRF_REQUEST_TYPE = 2
NUM_WORDS = 2
REQUEST_CONFIRMATIONS = 1
PAYOUT_MULTIPLIER = 2  # winner gets the stake back plus an equal amount


class SettlementOperations(EngineBase):

    def place_bet(
        self, state: EngineState, ctx: CallContext, stake: int
    ) -> EngineResult[str]:
        """
        Open a bet for the caller and request randomness for it.

        Process:
        1. Validate stake bounds and both balances
        2. Reject if the caller's previous bet is still pending
        3. Submit a randomness request under a fresh correlation id
        4. Mark the bet pending at the current height
        5. Pull the stake from the caller into the treasury

        Returns the correlation id. The outcome is only known after fulfill.
        """
        self._require_initialized(state)
        account = ctx.sender

        if not self.game.min_stake <= stake <= self.game.max_stake:
            raise InvalidStake("Invalid play amount.", account)

        balance = self.ledger.get_balance(account, self.symbol).balance
        if balance < stake:
            raise InsufficientFunds("Insufficient balance.", account)

        # Only the stake itself is checked, not the full payout owed on a win.
        treasury = self.treasury_balance()
        if treasury < stake:
            raise InsufficientFunds("Insufficient contract balance.", account)
        if treasury < stake * PAYOUT_MULTIPLIER:
            logger.warning(
                f"Treasury {treasury} cannot cover a winning payout of "
                f"{stake * PAYOUT_MULTIPLIER} for {account}"
            )

        new_state = state.model_copy(deep=True)
        bet = new_state.account_bets.get(account)
        if bet is None:
            bet = AccountBet(account=account, stake=stake, request_height=ctx.height)
            new_state.account_bets[account] = bet
        if bet.pending:
            raise BetAlreadyPending(
                "Pending result. Please wait for the result.", account
            )

        request = self._build_request(new_state)
        correlation_id = derive_correlation_id(ctx.block_time, ctx.origin, request)
        request.correlation_id = correlation_id
        self.oracle.submit_request(request)

        new_state.pending_requests[correlation_id] = PendingRequest(
            account=account, request_height=ctx.height
        )

        bet.pending = True
        bet.won = False
        bet.stake = stake
        bet.request_height = ctx.height

        self.ledger.transfer_from(self.address, account, self.address, self.symbol, stake)

        logger.info(
            f"Placed bet: {account} staked {stake} {self.symbol} at height "
            f"{ctx.height} (request {correlation_id[:12]})"
        )
        return EngineResult(state=new_state, value=correlation_id)

    def fulfill(
        self,
        state: EngineState,
        ctx: CallContext,
        correlation_id: str,
        payload: bytes,
    ) -> EngineResult[bool]:
        """
        Settle the bet behind a correlation id using the oracle's payload.

        Unknown ids, superseded or already settled bets and undecodable
        payloads are ignored: the oracle cannot act on an error, so nothing is
        raised here. Returns True only when a bet was settled.
        """
        request = state.pending_requests.get(correlation_id)
        if request is None:
            logger.debug(f"Ignoring fulfillment for unknown request {correlation_id[:12]}")
            return EngineResult(state=state, value=False)

        account = request.account
        bet = state.account_bets.get(account)
        if bet is None or bet.request_height != request.request_height:
            logger.debug(
                f"Ignoring stale fulfillment {correlation_id[:12]} for {account}"
            )
            return EngineResult(state=state, value=False)

        if not bet.pending:
            logger.debug(
                f"Ignoring repeated fulfillment {correlation_id[:12]} for {account}"
            )
            return EngineResult(state=state, value=False)

        try:
            die1, die2 = roll_dice(payload)
        except MalformedPayload as e:
            logger.warning(f"Ignoring fulfillment {correlation_id[:12]}: {e}")
            return EngineResult(state=state, value=False)

        new_state = state.model_copy(deep=True)
        bet = new_state.account_bets[account]
        bet.die1 = die1
        bet.die2 = die2
        bet.pending = False

        stake = bet.stake
        if is_winner(die1, die2):
            payout = stake * PAYOUT_MULTIPLIER
            self.ledger.transfer(self.address, account, self.symbol, payout)
            bet.won = True
            record = OutcomeRecord(
                account=account, stake_amount=stake, delta=payout - stake
            )
        else:
            bet.won = False
            record = OutcomeRecord(account=account, stake_amount=stake, delta=-stake)

        logger.info(
            f"Settled bet: {account} rolled {die1}+{die2} -> "
            f"{'WIN' if bet.won else 'LOSS'} {record.delta:+d} {self.symbol}"
        )
        return EngineResult(state=new_state, records=[record], value=True)

    def _build_request(self, state: EngineState) -> RandomnessRequest:
        keys = self.oracle.get_signing_keys()
        index = state.oracle_key_index
        if not 0 <= index < len(keys):
            raise InvalidOracleKeyIndex(
                f"Oracle key index {index} out of range ({len(keys)} keys)"
            )

        return RandomnessRequest(
            subscription_id=state.subscription_id,
            request_type_index=VRF_REQUEST_TYPE,
            specific_data=SpecificData(
                key_hash=keys[index],
                num_words=NUM_WORDS,
                request_confirmations=REQUEST_CONFIRMATIONS,
            ),
        )
