"""
Elapsed-time reporting for a whole run.
"""

from __future__ import annotations

_UNITS = (
    ("day", 86400),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


def format_elapsed(start: float, end: float) -> str:
    """Human-readable wall-clock duration between two epoch seconds.

    Zero-valued units are omitted and each unit is pluralised on its own
    count, e.g. ``format_elapsed(0, 90061) == "1 day 1 hour 1 minute 1 second"``.
    A zero (or negative) span reads ``"0 seconds"``.
    """
    remaining = int(end - start)
    if remaining <= 0:
        return "0 seconds"

    parts: list[str] = []
    for unit, size in _UNITS:
        count, remaining = divmod(remaining, size)
        if count:
            parts.append(f"{count} {unit}" if count == 1 else f"{count} {unit}s")
    return " ".join(parts)
