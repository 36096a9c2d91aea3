from __future__ import annotations

import os
import re
from decimal import Decimal, ROUND_CEILING

INTERPRETER_ENV_KEY = "MARAUDER_PHP"
LOG_LEVEL_ENV_KEY = "MARAUDER_LOG_LEVEL"

_DEFAULT_LOG_LEVEL = "WARNING"
_DURATION_TOKEN_RE = re.compile(r"(?P<value>\d+(?:\.\d+)?)(?P<unit>ns|us|ms|s|m|h)")
_DURATION_UNIT_NS: dict[str, Decimal] = {
    "ns": Decimal("1"),
    "us": Decimal("1000"),
    "ms": Decimal("1000000"),
    "s": Decimal("1000000000"),
    "m": Decimal("60000000000"),
    "h": Decimal("3600000000000"),
}


def env_text(name: str, *, default: str = "") -> str:
    return os.getenv(name, default).strip()


def interpreter_override() -> str | None:
    return env_text(INTERPRETER_ENV_KEY) or None


def default_log_level() -> str:
    return env_text(LOG_LEVEL_ENV_KEY) or _DEFAULT_LOG_LEVEL


def parse_duration_to_ns(duration: str, *, field_name: str = "timeout") -> int:
    """Parse ``"1m30s"``-style durations into whole nanoseconds (rounded up)."""
    text = str(duration).strip().lower()
    if not text:
        raise ValueError(f"invalid {field_name} duration: {duration!r}")
    idx = 0
    total_ns = Decimal("0")
    while idx < len(text):
        match = _DURATION_TOKEN_RE.match(text, idx)
        if match is None:
            raise ValueError(f"invalid {field_name} duration: {duration!r}")
        value = Decimal(match.group("value"))
        total_ns += value * _DURATION_UNIT_NS[match.group("unit")]
        idx = match.end()
    total_ns_int = int(total_ns.to_integral_value(rounding=ROUND_CEILING))
    if total_ns_int <= 0:
        raise ValueError(f"invalid {field_name} duration: {duration!r}")
    return total_ns_int
