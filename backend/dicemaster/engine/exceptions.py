class DiceMasterError(Exception):
    """Base exception for engine errors surfaced to the caller."""

    def __init__(self, message: str, account: str | None = None):
        super().__init__(message)
        self.account = account


class InvalidStake(DiceMasterError):
    """Stake outside the configured bounds."""

    pass


class InsufficientFunds(DiceMasterError):
    """Caller or engine treasury cannot cover the stake."""

    pass


class BetAlreadyPending(DiceMasterError):
    """Account already has a bet waiting for randomness."""

    pass


class Unauthorized(DiceMasterError):
    """Caller is not allowed to perform the action."""

    pass


class AlreadyInitialized(DiceMasterError):
    """Initialize was called more than once."""

    pass


class NotInitialized(DiceMasterError):
    """Engine has not been initialized yet."""

    pass


class NotFound(DiceMasterError):
    """Requested record does not exist."""

    pass


class InvalidOracleKeyIndex(DiceMasterError):
    """Configured oracle key index does not match any signing key."""

    pass
