"""External collaborators of the engine: token ledger and randomness oracle."""
