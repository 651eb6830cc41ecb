from __future__ import annotations

import copy
import logging
from typing import Protocol

from dicemaster.engine.models import RandomnessRequest

from .exceptions import DuplicateRequest, OracleError
from .models import OracleSnapshot

logger = logging.getLogger(__name__)


class OracleGateway(Protocol):
    """Randomness oracle as seen by the engine."""

    def get_signing_keys(self) -> list[str]: ...

    def submit_request(self, request: RandomnessRequest) -> None: ...


class InMemoryOracle:
    """Local randomness oracle that queues requests until delivered.

    Fulfillment is driven from outside (see EngineHost.deliver_fulfillments),
    mirroring an oracle network that answers at some later block.
    """

    def __init__(
        self,
        signing_keys: list[str],
        snapshot: OracleSnapshot | None = None,
    ):
        self._signing_keys = list(signing_keys)
        self._queue: dict[str, RandomnessRequest] = {}
        if snapshot is not None:
            self.restore(snapshot)

    def get_signing_keys(self) -> list[str]:
        return list(self._signing_keys)

    def submit_request(self, request: RandomnessRequest) -> None:
        if not request.correlation_id:
            raise OracleError("Randomness request has no correlation id")
        if request.correlation_id in self._queue:
            raise DuplicateRequest(
                f"Request {request.correlation_id} already queued",
                request.correlation_id,
            )
        self._queue[request.correlation_id] = request
        logger.info(
            f"Queued randomness request {request.correlation_id[:12]} "
            f"(subscription {request.subscription_id}, "
            f"{request.specific_data.num_words} words)"
        )

    @property
    def queued(self) -> list[RandomnessRequest]:
        return list(self._queue.values())

    def take(self, correlation_id: str) -> RandomnessRequest | None:
        """Remove a request from the queue once it is being answered."""
        return self._queue.pop(correlation_id, None)

    def snapshot(self) -> OracleSnapshot:
        return OracleSnapshot(
            signing_keys=list(self._signing_keys),
            queue=copy.deepcopy(self._queue),
        )

    def restore(self, snapshot: OracleSnapshot) -> None:
        self._signing_keys = list(snapshot.signing_keys)
        self._queue = copy.deepcopy(snapshot.queue)
