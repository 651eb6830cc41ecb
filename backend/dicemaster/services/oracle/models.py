from pydantic import BaseModel, Field

from dicemaster.engine.models import RandomnessRequest


class OracleSnapshot(BaseModel):
    signing_keys: list[str] = Field(default_factory=list)
    queue: dict[str, RandomnessRequest] = Field(default_factory=dict)
