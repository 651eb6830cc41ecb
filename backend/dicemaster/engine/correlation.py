"""Correlation ids binding an oracle fulfillment to the bet that requested it."""

import hashlib
from datetime import datetime

from .models import RandomnessRequest


def compute_from(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def concat_and_compute(left: bytes, right: bytes) -> bytes:
    return compute_from(left + right)


def hash_block_time(block_time: datetime) -> bytes:
    return compute_from(block_time.isoformat().encode("utf-8"))


def hash_origin(origin: str) -> bytes:
    return compute_from(origin.encode("utf-8"))


def hash_request(request: RandomnessRequest) -> bytes:
    # The id is derived before it is attached, so it never hashes itself.
    body = request.model_dump_json(exclude={"correlation_id"})
    return compute_from(body.encode("utf-8"))


def derive_correlation_id(
    block_time: datetime,
    origin: str,
    request: RandomnessRequest,
) -> str:
    """H(H(H(block_time) || H(origin)) || H(request)) as hex.

    Depends on block data the caller cannot know when signing, yet anyone can
    recompute it afterwards from the mined block and the stored request.
    """
    head = concat_and_compute(hash_block_time(block_time), hash_origin(origin))
    return concat_and_compute(head, hash_request(request)).hex()
