"""Deterministic random number generation with isolated streams.

Each generator (maze carving and braiding, tile collapse) draws from its own
stream derived from a master seed, so:

1. A run is fully reproducible from the same master seed
2. Changing how much randomness one generator consumes never shifts another
3. Tests can hand a plain ``random.Random`` to any generator instead

Usage:
    from wfcmaze.util import rng
    rng.init(config.RANDOM_SEED)

    _rng = rng.get("map.collapse")
    _rng.shuffle(candidates)

Domain naming convention (hierarchical):
    - "map.collapse"
    - "maze.carve"
"""

from __future__ import annotations

import zlib
from collections.abc import MutableSequence, Sequence
from random import Random
from typing import TYPE_CHECKING, TypeAlias, TypeVar

if TYPE_CHECKING:
    from wfcmaze.types import RandomSeed

T = TypeVar("T")


class RNGStream:
    """Proxy that delegates to the current RNG for a domain.

    Callers may cache the proxy at module level; after ``reset()`` it picks up
    the freshly seeded stream.
    """

    def __init__(self, provider: RNGProvider, domain: str) -> None:
        self._provider = provider
        self._domain = domain

    def _rng(self) -> Random:
        return self._provider._get_raw(self._domain)

    def random(self) -> float:
        """Return random float in [0.0, 1.0)."""
        return self._rng().random()

    def randrange(self, start: int, stop: int | None = None, step: int = 1) -> int:
        """Return randomly selected element from range(start, stop, step)."""
        return self._rng().randrange(start, stop, step)

    def choice(self, seq: Sequence[T]) -> T:
        """Return random element from non-empty sequence."""
        return self._rng().choice(seq)

    def shuffle(self, x: MutableSequence) -> None:
        """Shuffle x in place (Fisher-Yates)."""
        self._rng().shuffle(x)


# Type alias for functions that accept either Random or RNGStream.
RNG: TypeAlias = Random | RNGStream


class RNGProvider:
    """Provides isolated RNG streams keyed by domain name."""

    def __init__(self, master_seed: RandomSeed = None) -> None:
        self._master_seed = master_seed
        self._streams: dict[str, Random] = {}
        self._proxies: dict[str, RNGStream] = {}

    def get(self, domain: str) -> RNGStream:
        """Return a cacheable stream proxy for ``domain``."""
        if domain not in self._proxies:
            self._proxies[domain] = RNGStream(self, domain)
        return self._proxies[domain]

    def _get_raw(self, domain: str) -> Random:
        if domain not in self._streams:
            if self._master_seed is None:
                self._streams[domain] = Random()
            else:
                # crc32 rather than hash(): hash() is salted per interpreter
                # session and would break cross-session determinism
                derived_seed = zlib.crc32(f"{self._master_seed}:{domain}".encode())
                self._streams[domain] = Random(derived_seed)
        return self._streams[domain]

    def reset(self, master_seed: RandomSeed = None) -> None:
        """Reseed every stream. Existing proxies stay valid."""
        self._master_seed = master_seed
        self._streams.clear()


# =============================================================================
# Module-level API
# =============================================================================

_provider: RNGProvider | None = None


def init(master_seed: RandomSeed = None) -> None:
    """Initialize (or reseed) the global provider."""
    global _provider
    if _provider is not None:
        _provider.reset(master_seed)
    else:
        _provider = RNGProvider(master_seed)


def get(domain: str) -> RNGStream:
    """Get an RNG stream for the named domain.

    Auto-initializes an unseeded provider when ``init()`` has not been called.
    """
    global _provider
    if _provider is None:
        _provider = RNGProvider(None)
    return _provider.get(domain)


def reset(master_seed: RandomSeed = None) -> None:
    """Reseed all streams of the global provider."""
    if _provider is None:
        raise RuntimeError("RNG not initialized - call rng.init() first")
    _provider.reset(master_seed)
