"""
Deterministic pseudo-random source for variant generation.

The algorithm, not a platform RNG, is the source of truth: any
implementation that follows the steps below reproduces the same variants
from the same seed.

1. Seed hashing. The seed string is read as UTF-16 code units u_1..u_n and
   folded with h <- (31 * h + u_i) wrapped to a signed 32-bit integer,
   starting from h = 0. The initial state is |h|.
2. State update (linear congruential):
   state <- (state * 9301 + 49297) mod 233280; output state / 233280.
3. Shuffle. Fisher-Yates from the last index down to 1, swapping i with
   j = floor(next_float() * (i + 1)).

Sub-seeds are plain strings: "{seed}_v{index}" for variant ``index``
(0-based), extended by ":questions" for the question-order stream and by
":{question_id}" for each question's option stream.
"""

from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")

LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297
LCG_MODULUS = 233280

QUESTION_ORDER_DISCRIMINATOR = "questions"


def hash_seed(seed: str) -> int:
    """Fold a seed string into a non-negative 32-bit state."""
    data = seed.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def variant_seed(seed: str, variant_index: int) -> str:
    return f"{seed}_v{variant_index}"


class SeededRandom:
    """
    Reproducible stream of floats in [0, 1) derived from a seed string.

    Instances carry their own state, so independent streams never
    interfere with each other.
    """

    def __init__(self, seed: str) -> None:
        self.seed = seed
        self._state = hash_seed(seed)

    def next_float(self) -> float:
        self._state = (self._state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return self._state / LCG_MODULUS

    def next_int(self, upper: int) -> int:
        """Integer in [0, upper)."""
        return int(self.next_float() * upper)

    def shuffle(self, items: Sequence[T]) -> list[T]:
        """Return a shuffled copy of ``items`` (Fisher-Yates)."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self.next_int(i + 1)
            result[i], result[j] = result[j], result[i]
        return result

    def permutation(self, n: int) -> tuple[int, ...]:
        return tuple(self.shuffle(range(n)))

    def derive(self, discriminator: str) -> "SeededRandom":
        """Independent stream for a sub-use of this seed."""
        return SeededRandom(f"{self.seed}:{discriminator}")
