"""Deterministic xorshift32 stream used to derive round outcomes."""
import math
import re
from abc import ABC, abstractmethod

from plinko.logic.exceptions import SeedDecodeError

MASK32 = 0xFFFFFFFF
TWO_POW_32 = 2**32

_SEED_HEX = re.compile(r"[0-9a-fA-F]{8}")


class RNGBase(ABC):
    """Abstract random stream."""

    @abstractmethod
    def random(self) -> float:
        """Return random float in [0, 1)."""
        pass


class Xorshift32(RNGBase):
    """
    Seeded xorshift32 stream (shifts 13, 17, 5).

    Stateful and sequential: every call to ``random()`` advances the
    32-bit state, so the peg map and the drop must consume one instance
    in order. A zero seed is replaced by 1 since xorshift cannot leave
    the all-zero state.
    """

    def __init__(self, seed: int):
        self.seed = seed & MASK32
        self._state = self.seed or 1
        self.draws = 0

    @property
    def state(self) -> int:
        return self._state

    def random(self) -> float:
        state = self._state
        state ^= (state << 13) & MASK32
        state ^= state >> 17
        state ^= (state << 5) & MASK32
        self._state = state
        self.draws += 1
        return state / TWO_POW_32


def seed_from_hex(hex_string: str) -> int:
    """
    Parse the first 8 hex characters as a big-endian uint32.

    Raises SeedDecodeError if fewer than 8 characters are given or they
    are not hexadecimal.
    """
    head = hex_string[:8]
    if not _SEED_HEX.fullmatch(head):
        raise SeedDecodeError(
            f"Seed needs at least 8 hex characters, got {hex_string!r}"
        )
    return int.from_bytes(bytes.fromhex(head), "big")


def round_to(value: float, decimals: int) -> float:
    """Round to ``decimals`` places, ties away from zero."""
    factor = 10**decimals
    scaled = value * factor
    return math.copysign(math.floor(abs(scaled) + 0.5), scaled) / factor
