from pydantic import BaseModel, Field


class Balance(BaseModel):
    owner: str
    symbol: str
    balance: int = 0


class LedgerSnapshot(BaseModel):
    """Balances and allowances per symbol, as persisted by the host."""

    # symbol -> owner -> amount
    balances: dict[str, dict[str, int]] = Field(default_factory=dict)
    # symbol -> owner -> spender -> amount
    allowances: dict[str, dict[str, dict[str, int]]] = Field(default_factory=dict)
