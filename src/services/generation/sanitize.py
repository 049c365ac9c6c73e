"""Inbound field sanitizing shared by every generation entry point."""

from __future__ import annotations

import math
import re
from typing import Any


# Characters that break prompt templates or smuggle markdown fences.
_STRIPPED_CHARS = re.compile(r"[\\`]")


def normalize(raw: Any) -> str:
    """Return ``raw`` as text without backslashes/backticks and outer whitespace.

    Never raises. ``None`` and empty input give ``""``; other scalars are
    stringified. Characters are removed before trimming so that removing a
    character can never expose new outer whitespace, which keeps the function
    idempotent.
    """
    if raw is None:
        return ""
    text = raw if isinstance(raw, str) else str(raw)
    return _STRIPPED_CHARS.sub("", text).strip()


def _clamp(value: int, minimum: int, maximum: int) -> int:
    return max(minimum, min(maximum, value))


def clamp_count(value: Any, minimum: int, maximum: int, default: int) -> int:
    """Coerce ``value`` to an int inside ``[minimum, maximum]``.

    Ints, finite floats and numeric strings are truncated toward zero and
    clamped. Anything else (booleans, NaN, infinities, junk) yields
    ``default``, itself clamped so the result is always in range.
    """
    if minimum > maximum:
        raise ValueError("minimum must not exceed maximum")

    number: float | None = None
    if isinstance(value, bool):
        number = None
    elif isinstance(value, int):
        return _clamp(value, minimum, maximum)
    elif isinstance(value, float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            number = None

    if number is None or not math.isfinite(number):
        return _clamp(default, minimum, maximum)
    return _clamp(int(number), minimum, maximum)


def pick_choice(value: Any, allowed: tuple[str, ...], default: str) -> str:
    """Lower-case ``value`` and return it when allowed, else ``default``."""
    candidate = normalize(value).lower()
    return candidate if candidate in allowed else default
