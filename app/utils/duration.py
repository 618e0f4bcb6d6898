from __future__ import annotations

import re
from datetime import timedelta

_UNIT_NANOSECONDS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,  # U+00B5 micro sign
    "μs": 1_000,  # U+03BC greek mu
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

_TERM_PATTERN = re.compile(r"([0-9]*)(?:\.([0-9]*))?(ns|us|µs|μs|ms|s|m|h)")

# largest magnitude of a signed 64-bit nanosecond count
_MAX_NANOSECONDS = 2**63 - 1


def parse_duration(text: str) -> timedelta:
    """Parse a duration expression such as ``5m``, ``1h30m`` or ``1.5s``.

    A duration is an optionally signed sequence of decimal numbers, each with
    a unit suffix. ``0`` on its own is accepted. Precision is one microsecond.
    """
    raw = text
    if not raw:
        raise ValueError("empty duration")

    negative = False
    if raw[0] in "+-":
        negative = raw[0] == "-"
        raw = raw[1:]

    if raw == "0":
        return timedelta(0)
    if not raw:
        raise ValueError(f"invalid duration {text!r}")

    limit = _MAX_NANOSECONDS + 1 if negative else _MAX_NANOSECONDS
    total_ns = 0
    pos = 0
    while pos < len(raw):
        match = _TERM_PATTERN.match(raw, pos)
        if not match:
            raise ValueError(f"invalid duration {text!r}")
        whole, fraction, unit = match.group(1), match.group(2) or "", match.group(3)
        if not whole and not fraction:
            raise ValueError(f"invalid duration {text!r}")

        scale = _UNIT_NANOSECONDS[unit]
        total_ns += int(whole or "0") * scale
        if fraction:
            total_ns += int(fraction) * scale // 10 ** len(fraction)
        if total_ns > limit:
            raise ValueError(f"duration {text!r} out of range")
        pos = match.end()

    micros = total_ns // 1_000
    return timedelta(microseconds=-micros if negative else micros)


def format_duration(value: timedelta) -> str:
    """Render a timedelta in a form ``parse_duration`` reads back exactly."""
    return f"{value // timedelta(microseconds=1)}us"
