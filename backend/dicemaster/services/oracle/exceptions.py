class OracleError(Exception):
    """Base exception for randomness oracle failures."""

    def __init__(self, message: str, correlation_id: str | None = None):
        super().__init__(message)
        self.correlation_id = correlation_id


class DuplicateRequest(OracleError):
    """A request with the same correlation id is already queued."""

    pass
