from __future__ import annotations
import hashlib, random
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, TypeVar

T = TypeVar("T")

def hash64(*parts: Any) -> int:
    h = hashlib.blake2b(digest_size=8)
    for p in parts:
        h.update(str(p).encode("utf-8"))
        h.update(b"\x1f")
    return int.from_bytes(h.digest(), "big", signed=False)

@dataclass
class RNG:
    """Seedable random source threaded through every probabilistic call.

    seed=None draws from OS entropy, which is what a normal game session uses;
    tests pass a fixed seed.
    """
    seed: Optional[int] = None
    _r: random.Random = None  # type: ignore

    def __post_init__(self) -> None:
        self._r = random.Random(self.seed)

    def random(self) -> float:
        return self._r.random()

    def uniform(self, a: float, b: float) -> float:
        return self._r.uniform(a, b)

    def randint(self, a: int, b: int) -> int:
        return self._r.randint(a, b)

    def choice(self, seq: Sequence[T]) -> T:
        return self._r.choice(seq)

    def shuffle(self, items: List[T]) -> None:
        self._r.shuffle(items)

    def shuffled(self, seq: Sequence[T]) -> List[T]:
        out = list(seq)
        self._r.shuffle(out)
        return out

    def sample(self, seq: Sequence[T], k: int) -> List[T]:
        return self._r.sample(list(seq), k)

    def gauss(self, mu: float, sigma: float) -> float:
        return self._r.gauss(mu, sigma)

    def chance(self, p: float) -> bool:
        return self._r.random() < p

    def weighted_choice(self, items: Sequence[T], weights: Sequence[float]) -> T:
        """Cumulative-weight draw. Non-positive weights never win unless all are non-positive."""
        if not items:
            raise ValueError("weighted_choice: empty items")
        if len(items) != len(weights):
            raise ValueError("weighted_choice: items/weights length mismatch")
        total = sum(max(0.0, float(w)) for w in weights)
        if total <= 0:
            return self.choice(items)
        r = self.random() * total
        acc = 0.0
        for item, w in zip(items, weights):
            acc += max(0.0, float(w))
            if r < acc:
                return item
        return items[-1]
