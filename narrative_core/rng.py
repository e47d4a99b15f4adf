"""Injected random sources.

Propagators and generators take a ``RandomSource`` argument instead of
reaching for module-level randomness, so a session seeded with the same value
replays bit-identically.
"""

from __future__ import annotations

import random
from typing import Optional, Protocol, Sequence, TypeVar

T = TypeVar("T")


class RandomSource(Protocol):
    """The subset of ``random.Random`` the engine draws from."""

    def random(self) -> float: ...

    def randrange(self, start: int, stop: Optional[int] = None, step: int = 1) -> int: ...

    def choice(self, seq: Sequence[T]) -> T: ...


def make_rng(seed: Optional[int] = None) -> random.Random:
    """Create an isolated random stream.

    Args:
        seed: Seed value. ``None`` seeds from system entropy (non-replayable).

    Returns:
        A private ``random.Random`` instance
    """
    return random.Random(seed)
