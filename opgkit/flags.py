"""Bit-flag helpers for integer-backed enumerations."""

from __future__ import annotations

from enum import Enum
from typing import Union

FlagLike = Union[Enum, int]


def to_underlying(e: FlagLike) -> int:
    """Return the integer value behind an enumeration member."""
    if isinstance(e, Enum):
        return int(e.value)
    return int(e)


def has_flag(value: FlagLike, flag: FlagLike) -> bool:
    """True if any bit of ``flag`` is set in ``value``."""
    return (to_underlying(value) & to_underlying(flag)) != 0


def set_flag(value: FlagLike, flag: FlagLike) -> int:
    """Return ``value`` with the bits of ``flag`` set."""
    return to_underlying(value) | to_underlying(flag)


def reset_flag(value: FlagLike, flag: FlagLike) -> int:
    """Return ``value`` with the bits of ``flag`` cleared."""
    return to_underlying(value) & ~to_underlying(flag)