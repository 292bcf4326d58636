"""Seeded 32-bit pseudo random stream used for throw resolution.

The stream is reproducible: the same seed always yields the same draws.
It is not a source of secrets, only of fair and replayable randomness.
"""

UINT32_MASK = 0xFFFFFFFF
UINT32_RANGE = 4294967296  # 2**32

# xorshift stays at zero forever when seeded with zero.
ZERO_SEED_REPLACEMENT = 0x9E3779B9


def to_uint32(value: int) -> int:
    """Force an integer into the unsigned 32-bit range."""
    return int(value) & UINT32_MASK


class Xorshift32:
    """Xorshift32 generator over an unsigned 32-bit register."""

    def __init__(self, seed: int):
        state = to_uint32(seed)
        self._state: int = state if state != 0 else ZERO_SEED_REPLACEMENT

    @property
    def state(self) -> int:
        return self._state

    def next_u32(self) -> int:
        """Advance the register and return the new unsigned 32-bit value."""
        x = self._state
        x ^= (x << 13) & UINT32_MASK
        x ^= x >> 17
        x ^= (x << 5) & UINT32_MASK
        self._state = x
        return x

    def next01(self) -> float:
        """Return a float in [0, 1) built from the next raw draw."""
        return self.next_u32() / UINT32_RANGE

    def __iter__(self):
        return self

    def __next__(self) -> int:
        return self.next_u32()
