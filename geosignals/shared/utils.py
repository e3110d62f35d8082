from __future__ import annotations

from typing import Optional

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193
_JITTER_RESOLUTION = 10_000


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def stable_hash(seed: str) -> int:
    """32-bit FNV-1a over the UTF-8 bytes of ``seed``; always non-negative."""
    value = FNV_OFFSET_BASIS
    for byte in str(seed).encode("utf-8"):
        value ^= byte
        value = (value * FNV_PRIME) & 0xFFFFFFFF
    return value


def seeded_jitter(seed: str, minimum: float, maximum: float) -> float:
    """Map ``seed`` deterministically into ``[minimum, maximum]``.

    Every call site that needs reproducible pseudo-randomness goes through here,
    so identical seeds always produce identical factors across processes.
    """
    fraction = (stable_hash(seed) % (_JITTER_RESOLUTION + 1)) / _JITTER_RESOLUTION
    return minimum + fraction * (maximum - minimum)


def build_seed(*parts: Optional[str]) -> str:
    return "|".join("" if part is None else str(part) for part in parts)
