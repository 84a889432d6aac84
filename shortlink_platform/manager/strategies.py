"""
Strategies for short-code generation in shortlink_platform.

Provided strategies:
- RandomStrategy: uniform Base62 code of length L drawn from the OS CSPRNG

Common helpers:
- BASE62_ALPHABET: the 62-symbol alphanumeric alphabet (case-sensitive)
- _safe_len: resolve the desired code length (config default when omitted)

Notes:
- Random codes can collide. The registry checks storage and regenerates;
  the storage layer's unique constraint stays the final authority.
- With 62^6 (~5.7e10) possible 6-char codes a collision is negligible but not
  impossible, which is why the registry retry path exists at all.
"""

import random
import string
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from ..config import settings

BASE62_ALPHABET = string.ascii_letters + string.digits


def _safe_len(length: Optional[int]) -> int:
    """
    Resolve desired code length from arg or config.

    Explicit lengths are honoured as given so the registry can widen past
    the configured default; only the config value is clamped (in config.py).
    """
    L = int(length) if length is not None else int(settings.CODE_LENGTH)
    if L < 1:
        raise ValueError("code length must be positive")
    return L


class BaseStrategy(ABC):
    """Abstract base for code generation strategies."""

    @abstractmethod
    def generate(self, length: Optional[int] = None) -> str:  # pragma: no cover
        """Return a candidate short code of the requested length."""
        raise NotImplementedError


@dataclass(frozen=True)
class RandomStrategy(BaseStrategy):
    """
    Random Base62 codes; rely on storage-level uniqueness (unique index + retry).

    `random.SystemRandom` reads from os.urandom, so candidates are not
    predictable from previously issued codes.
    """
    alphabet: str = BASE62_ALPHABET
    _rng: random.SystemRandom = field(default_factory=random.SystemRandom, repr=False, compare=False)

    def generate(self, length: Optional[int] = None) -> str:
        L = _safe_len(length)
        return "".join(self._rng.choice(self.alphabet) for _ in range(L))
