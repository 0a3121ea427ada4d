from __future__ import annotations

import re


DEFAULT_DURATION_SECONDS = 3600

_DURATION_RE = re.compile(r"^(\d+)([smhd])$")
_UNIT_SECONDS = {
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
}


def parse_duration_seconds(value: str) -> int:
    """Parse "<integer><unit>" with unit in s/m/h/d; anything else is one hour."""
    match = _DURATION_RE.match(value.strip()) if value else None
    if match is None:
        return DEFAULT_DURATION_SECONDS
    return int(match.group(1)) * _UNIT_SECONDS[match.group(2)]
