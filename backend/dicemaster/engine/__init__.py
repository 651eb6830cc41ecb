"""Wager settlement engine: bet ledger, settlement state machine, administration."""

from .core import DiceMasterEngine
from .correlation import derive_correlation_id
from .dice import MalformedPayload, decode_words, die_from_word, encode_words, is_winner
from .exceptions import (
    AlreadyInitialized,
    BetAlreadyPending,
    DiceMasterError,
    InsufficientFunds,
    InvalidOracleKeyIndex,
    InvalidStake,
    NotFound,
    NotInitialized,
    Unauthorized,
)
from .models import (
    AccountBet,
    CallContext,
    DepositRecord,
    EngineRecord,
    EngineResult,
    EngineState,
    OutcomeRecord,
    PendingRequest,
    RandomnessRequest,
    SpecificData,
    StakeLimits,
    WithdrawRecord,
)

__all__ = [
    "DiceMasterEngine",
    "derive_correlation_id",
    "MalformedPayload",
    "decode_words",
    "die_from_word",
    "encode_words",
    "is_winner",
    "DiceMasterError",
    "AlreadyInitialized",
    "BetAlreadyPending",
    "InsufficientFunds",
    "InvalidOracleKeyIndex",
    "InvalidStake",
    "NotFound",
    "NotInitialized",
    "Unauthorized",
    "AccountBet",
    "CallContext",
    "DepositRecord",
    "EngineRecord",
    "EngineResult",
    "EngineState",
    "OutcomeRecord",
    "PendingRequest",
    "RandomnessRequest",
    "SpecificData",
    "StakeLimits",
    "WithdrawRecord",
]
