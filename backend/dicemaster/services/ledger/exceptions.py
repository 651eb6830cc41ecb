class LedgerError(Exception):
    """Base exception for token ledger failures."""

    def __init__(self, message: str, owner: str | None = None):
        super().__init__(message)
        self.owner = owner


class InsufficientBalance(LedgerError):
    """Owner balance is lower than the transfer amount."""

    pass


class InsufficientAllowance(LedgerError):
    """Spender was not approved for the transfer amount."""

    pass


class InvalidAmount(LedgerError):
    """Transfer amount is not a positive integer."""

    pass
