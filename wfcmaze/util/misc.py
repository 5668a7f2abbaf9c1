from __future__ import annotations

from collections.abc import Hashable, Iterable
from typing import TypeVar

H = TypeVar("H", bound=Hashable)


def unique(values: Iterable[H]) -> list[H]:
    """Return ``values`` without duplicates, keeping first-seen order."""
    return list(dict.fromkeys(values))


def require_fraction(name: str, value: float) -> float:
    """Return ``value`` as a float, or raise ``ValueError`` if not in [0, 1]."""
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be within [0, 1], got {value}")
    return value
