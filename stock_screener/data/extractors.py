"""
Field extraction from loosely structured API payloads.

Upstream responses don't agree on where a metric lives (flat vs nested,
snake_case vs camelCase), so each metric is read by trying an ordered list
of candidate paths and taking the first one that yields a usable value.

A candidate is a (source, "dotted.path") pair, so one list can walk
across several payloads in priority order:

    pe = extract_number([
        (statistics, "valuations_metrics.pe_ratio"),
        (statistics, "pe_ratio"),
        (quote, "pe_ratio"),
    ])
"""

import math
import re
from collections.abc import Iterable
from typing import Any

Candidate = tuple[Any, str]

# Leading decimal number, as a lenient float parser reads "28.5%" or "1e3x"
_LEADING_NUMBER = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def dig(source: Any, path: str) -> Any:
    """Follow a dotted path through nested dicts. Missing keys give None."""
    current = source
    for key in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current


def parse_float(value: Any) -> float | None:
    """
    Parse a numeric value leniently.

    Returns None for None, booleans, containers, unparseable strings and
    non-finite results so callers can fall through to the next candidate.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str):
        match = _LEADING_NUMBER.match(value.strip().replace(",", ""))
        if not match:
            return None
        result = float(match.group(0))
    else:
        return None
    return result if math.isfinite(result) else None


def extract_number(candidates: Iterable[Candidate], default: float = 0.0) -> float:
    """First candidate that resolves to a finite number, else default."""
    for source, path in candidates:
        value = parse_float(dig(source, path))
        if value is not None:
            return value
    return default


def extract_int(candidates: Iterable[Candidate], default: int = 1) -> int:
    """Like extract_number, truncated to int."""
    for source, path in candidates:
        value = parse_float(dig(source, path))
        if value is not None:
            return int(value)
    return default


def extract_text(candidates: Iterable[Candidate], default: str | None = None) -> str | None:
    """First candidate that is a non-blank string (stripped), else default."""
    for source, path in candidates:
        value = dig(source, path)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return default
