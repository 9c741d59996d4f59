"""Reproducible seeded randomness for synthetic placement.

Hashing uses 32-bit FNV-1a over UTF-16 code units and the generator is
mulberry32, so sequences match the browser globe for the same seed strings.
"""

from __future__ import annotations

from typing import Iterator

_MASK32 = 0xFFFFFFFF
_FNV_OFFSET_BASIS = 2166136261
_FNV_PRIME = 16777619
_MULBERRY_INCREMENT = 0x6D2B79F5


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK32


def _utf16_units(text: str) -> Iterator[int]:
    data = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def hash32(text: str) -> int:
    """FNV-1a hash of `text` as an unsigned 32-bit integer."""
    h = _FNV_OFFSET_BASIS
    for unit in _utf16_units(text):
        h ^= unit
        h = _imul(h, _FNV_PRIME)
    return h


class Mulberry32:
    """Small 32-bit mixing PRNG; same seed always gives the same sequence."""

    __slots__ = ("_state",)

    def __init__(self, seed: int) -> None:
        self._state = seed & _MASK32

    def random(self) -> float:
        """Next value in [0, 1)."""
        self._state = (self._state + _MULBERRY_INCREMENT) & _MASK32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        return ((t ^ (t >> 14)) & _MASK32) / 4294967296.0


def seeded_random(seed_text: str) -> Mulberry32:
    return Mulberry32(hash32(seed_text))
