"""
Seeded random stream used by every generation stage.

Based on Johannes Baagøe's Alea algorithm; the Mash seeding and the
generator step are a direct port of his JavaScript reference implementation.
The stream is created once per map from the seed and passed explicitly to
each stage, so the sequence of draws (and therefore the map) depends only on
the seed and the stage order.
"""

from typing import List, MutableSequence, Sequence, TypeVar

import numpy as np

T = TypeVar("T")

TWO_POW_MINUS_32 = 2.3283064365386963e-10


def _uint32(n):
    """Convert to unsigned 32-bit integer."""
    return int(n) & 0xFFFFFFFF


class RandomStream:
    """
    Alea PRNG with the helpers the generator needs.

    Integer ranges follow Python's ``random`` module conventions:
    ``randint`` is inclusive, ``randrange`` is half-open.
    """

    def __init__(self, seed):
        """Initialize with seed string or number."""
        self.seed = seed
        self.call_count = 0

        if hasattr(seed, "__iter__") and not isinstance(seed, str):
            args = list(seed)
        else:
            args = [seed]

        mash_n = 0xEFC8249D

        def mash(data):
            nonlocal mash_n
            for char in str(data):
                mash_n = mash_n + ord(char)
                h = 0.02519603282416938 * mash_n
                mash_n = _uint32(h)
                h -= mash_n
                h *= mash_n
                mash_n = _uint32(h)
                h -= mash_n
                mash_n += h * 0x100000000
            return _uint32(mash_n) * TWO_POW_MINUS_32

        self.s0 = mash(" ")
        self.s1 = mash(" ")
        self.s2 = mash(" ")
        self.c = 1

        for arg in args:
            self.s0 -= mash(arg)
            if self.s0 < 0:
                self.s0 += 1
            self.s1 -= mash(arg)
            if self.s1 < 0:
                self.s1 += 1
            self.s2 -= mash(arg)
            if self.s2 < 0:
                self.s2 += 1

    def random(self) -> float:
        """Next float in [0, 1)."""
        self.call_count += 1
        t = 2091639 * self.s0 + self.c * TWO_POW_MINUS_32
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(t)
        self.s2 = t - self.c
        return self.s2

    def uniform(self, low: float, high: float) -> float:
        return low + (high - low) * self.random()

    def randrange(self, low: int, high: int) -> int:
        """Integer in [low, high)."""
        if high <= low:
            raise ValueError(f"Empty range [{low}, {high})")
        return low + int(self.random() * (high - low))

    def randint(self, low: int, high: int) -> int:
        """Integer in [low, high]."""
        return self.randrange(low, high + 1)

    def chance(self, probability: float) -> bool:
        """True with the given probability."""
        if probability >= 1:
            return True
        if probability <= 0:
            return False
        return self.random() < probability

    def choice(self, seq: Sequence[T]) -> T:
        """Choose a random element from a non-empty sequence."""
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[int(self.random() * len(seq))]

    def shuffle(self, items: MutableSequence) -> None:
        """Fisher-Yates shuffle in place."""
        for i in range(len(items) - 1, 0, -1):
            j = int(self.random() * (i + 1))
            items[i], items[j] = items[j], items[i]

    def weighted_index(self, weights: Sequence[float]) -> int:
        """Index drawn proportionally to non-negative weights."""
        total = float(sum(weights))
        if total <= 0:
            raise ValueError("Weights must have a positive sum")
        target = self.random() * total
        cumulative = 0.0
        for index, weight in enumerate(weights):
            cumulative += weight
            if target < cumulative:
                return index
        # Float round-off can leave target == total
        return max(i for i, w in enumerate(weights) if w > 0)

    def weighted_sample(
        self, items: Sequence[T], weights: Sequence[float], k: int
    ) -> List[T]:
        """Draw up to `k` distinct items, each pick weighted, without replacement."""
        pool = [(item, weight) for item, weight in zip(items, weights) if weight > 0]
        picked = []
        while pool and len(picked) < k:
            index = self.weighted_index([weight for _, weight in pool])
            picked.append(pool.pop(index)[0])
        return picked

    def random_array(self, count: int) -> np.ndarray:
        """`count` successive draws as a float array."""
        return np.fromiter(
            (self.random() for _ in range(count)), dtype=np.float64, count=count
        )
