from __future__ import annotations

from typing import TYPE_CHECKING

from .exceptions import NotInitialized, Unauthorized
from .models import CallContext, EngineState

if TYPE_CHECKING:
    from dicemaster.config import GameConfig
    from dicemaster.services.ledger import LedgerGateway
    from dicemaster.services.oracle import OracleGateway


class EngineBase:
    """Collaborators and guards shared by every entry point.

    Entry points never mutate the state they are given. They work on a deep
    copy and hand it back inside an EngineResult, so a raised error leaves
    the caller's state untouched.
    """

    def __init__(
        self,
        address: str,
        ledger: LedgerGateway,
        oracle: OracleGateway,
        game: GameConfig,
    ):
        self.address = address
        self.ledger = ledger
        self.oracle = oracle
        self.game = game

    @property
    def symbol(self) -> str:
        return self.game.token_symbol

    def treasury_balance(self) -> int:
        return self.ledger.get_balance(self.address, self.symbol).balance

    @staticmethod
    def _require_initialized(state: EngineState) -> None:
        if not state.initialized:
            raise NotInitialized("Contract not initialized.")

    def _require_owner(self, state: EngineState, ctx: CallContext) -> None:
        if ctx.sender != state.owner:
            raise Unauthorized("Unauthorized to perform the action.", ctx.sender)
