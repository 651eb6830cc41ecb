"""Random word decoding and the dice game rule.

Dice are derived with a plain modulo reduction: the remainder of a signed
64-bit word by 6 (truncated toward zero, as in fixed-width integer math),
made non-negative, plus one. The reduction is slightly biased over the full
word range; the face produced by a given word is fixed by this mapping.
"""

HASH_SIZE = 32
WORD_SIZE = 8
DIE_FACES = 6


class MalformedPayload(ValueError):
    """Oracle payload could not be decoded into random words."""

    pass


def decode_words(payload: bytes) -> list[int]:
    """Split a payload of 32-byte hashes into signed 64-bit words.

    Each word is the first 8 bytes of a hash read as little-endian signed.
    """
    if not payload or len(payload) % HASH_SIZE != 0:
        raise MalformedPayload(
            f"Payload length {len(payload)} is not a multiple of {HASH_SIZE}"
        )

    return [
        int.from_bytes(payload[i : i + WORD_SIZE], "little", signed=True)
        for i in range(0, len(payload), HASH_SIZE)
    ]


def encode_words(words: list[int]) -> bytes:
    """Build a payload whose hashes decode back to the given words."""
    chunks = []
    for word in words:
        head = word.to_bytes(WORD_SIZE, "little", signed=True)
        chunks.append(head + bytes(HASH_SIZE - WORD_SIZE))
    return b"".join(chunks)


def _truncated_mod(value: int, modulus: int) -> int:
    # Python's % floors; the remainder here takes the sign of the dividend.
    remainder = abs(value) % modulus
    return -remainder if value < 0 else remainder


def die_from_word(word: int) -> int:
    """Map a signed 64-bit word onto a die face in [1, 6]."""
    remainder = _truncated_mod(word, DIE_FACES)
    if remainder < 0:
        remainder = -remainder
    return remainder + 1


def roll_dice(payload: bytes) -> tuple[int, int]:
    """Decode the first two words of a payload into a pair of dice."""
    words = decode_words(payload)
    if len(words) < 2:
        raise MalformedPayload(f"Expected 2 random words, got {len(words)}")
    return die_from_word(words[0]), die_from_word(words[1])


def is_winner(die1: int, die2: int) -> bool:
    """An odd total wins."""
    return (die1 + die2) % 2 == 1
