"""Parse and format the Go-style durations accepted by ``--timeout``.

Accepted forms are a sequence of ``<number><unit>`` pairs such as ``90s``,
``10m``, ``1h30m`` or ``250ms``, or a bare number interpreted as seconds.
Recognised units: ``ns``, ``us`` (or ``µs``), ``ms``, ``s``, ``m``, ``h``.
"""

from __future__ import annotations

import re
from typing import Union

from tbox.exceptions import InvalidUsageError

_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_NUMBER_RE = re.compile(r"^(\d+(?:\.\d*)?|\.\d+)$")


def parse_duration(value: Union[str, int, float]) -> float:
    """Convert *value* to a positive number of seconds.

    Args:
        value: A duration string (``"10m"``, ``"1h30m"``), a bare number
            string, or an int/float already expressed in seconds.

    Returns:
        The duration in seconds.

    Raises:
        InvalidUsageError: If the value cannot be parsed or is not positive.
    """
    if isinstance(value, bool):
        raise InvalidUsageError(f"invalid timeout duration: {value!r}")

    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = value.strip()
        if _NUMBER_RE.match(text):
            seconds = float(text)
        else:
            seconds = _parse_parts(text)

    if seconds <= 0:
        raise InvalidUsageError(f"timeout must be positive, got {value!r}")
    return seconds


def _parse_parts(text: str) -> float:
    pos = 0
    total = 0.0
    while pos < len(text):
        match = _PART_RE.match(text, pos)
        if match is None:
            raise InvalidUsageError(
                f"invalid timeout duration: {text!r} (expected e.g. 30s, 10m, 1h30m)"
            )
        total += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()
    if pos == 0:
        raise InvalidUsageError("invalid timeout duration: empty value")
    return total


def format_duration(seconds: float) -> str:
    """Render *seconds* compactly, e.g. ``600`` -> ``"10m"``, ``90`` -> ``"1m30s"``."""
    if seconds < 1:
        return f"{seconds * 1000:g}ms"

    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    parts = []
    if hours:
        parts.append(f"{int(hours)}h")
    if minutes:
        parts.append(f"{int(minutes)}m")
    if secs or not parts:
        parts.append(f"{secs:g}s")
    return "".join(parts)
