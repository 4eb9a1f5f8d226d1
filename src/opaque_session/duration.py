"""Session TTL normalisation.

``to_seconds`` turns the duration forms accepted in configuration into a
whole number of seconds clamped to a sane range.
"""
from __future__ import annotations

import math
from datetime import timedelta
from typing import Mapping, Union

from opaque_session.errors import ConfigurationError

MIN_TTL_SECONDS: int = 60
MAX_TTL_SECONDS: int = 2_147_483_647  # signed 32-bit, roughly 68 years
DEFAULT_TTL_SECONDS: int = 86_400

_UNIT_SECONDS: dict[str, int] = {
    "years": 365 * 86_400,
    "months": 30 * 86_400,
    "weeks": 7 * 86_400,
    "days": 86_400,
    "hours": 3_600,
    "minutes": 60,
    "seconds": 1,
}

DurationLike = Union[int, float, timedelta, Mapping[str, float], None]


def to_seconds(
    duration: DurationLike,
    *,
    min_seconds: int = MIN_TTL_SECONDS,
    max_seconds: int = MAX_TTL_SECONDS,
    default: int = DEFAULT_TTL_SECONDS,
) -> int:
    """Return *duration* as integer seconds within ``[min_seconds, max_seconds]``.

    Parameters
    ----------
    duration:
        Seconds as a number, a ``timedelta``, a mapping of units
        (``years``, ``months``, ``weeks``, ``days``, ``hours``,
        ``minutes``, ``seconds``) or ``None`` for *default*.

    Raises
    ------
    ConfigurationError
        On negative or non-finite durations, unknown units and
        unsupported types.
    """
    if duration is None:
        total = float(default)
    elif isinstance(duration, bool):
        raise ConfigurationError("TTL must be a duration, not a boolean")
    elif isinstance(duration, timedelta):
        total = duration.total_seconds()
    elif isinstance(duration, (int, float)):
        total = float(duration)
    elif isinstance(duration, Mapping):
        unknown = set(duration) - set(_UNIT_SECONDS)
        if unknown:
            raise ConfigurationError(f"Unknown TTL units: {', '.join(sorted(unknown))}")
        total = sum(float(value) * _UNIT_SECONDS[unit] for unit, value in duration.items())
    else:
        raise ConfigurationError(f"Unsupported TTL type {type(duration).__name__}")

    if not math.isfinite(total):
        raise ConfigurationError(f"TTL must be a finite duration, got {total}")
    if total < 0:
        raise ConfigurationError(f"TTL must not be negative, got {total}")
    return int(min(max(total, min_seconds), max_seconds))


__all__ = [
    "DEFAULT_TTL_SECONDS",
    "DurationLike",
    "MAX_TTL_SECONDS",
    "MIN_TTL_SECONDS",
    "to_seconds",
]
