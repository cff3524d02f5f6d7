"""Total value-coercion helpers.

Every function here accepts whatever a spreadsheet cell, a JSON payload or a
hand edit may hold and never raises: malformed input degrades to a default.
"""
import re
import json
import math
from typing import Any, List, Optional

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_RANGE = re.compile(r"^\s*(-?\d+)\s*[-–]\s*(-?\d+)\s*$")
_QUOTES = "\"'"


def is_blank(value: Any) -> bool:
    """True for None, NaN, empty/whitespace strings and empty containers."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def int_value(value: Any) -> Optional[int]:
    """Return value as an int, or None when it is not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match:
            return int(match.group(1))
    return None


def parse_int(value: Any, default: int = 0) -> int:
    parsed = int_value(value)
    return default if parsed is None else parsed


def _strip_brackets(text: str) -> str:
    return text.strip().lstrip("[").rstrip("]")


def parse_string_list(value: Any) -> List[str]:
    """Parse "a, b", "[a, b]" or '["a", "b"]' (or an actual list) into a list of strings."""
    if isinstance(value, (list, tuple, set)):
        items = [str(v) for v in value if not is_blank(v)]
    elif isinstance(value, str):
        items = _strip_brackets(value).split(",")
    else:
        return []
    result = []
    for item in items:
        cleaned = item.strip().strip(_QUOTES).strip()
        if cleaned:
            result.append(cleaned)
    return result


def parse_number_list(value: Any) -> List[int]:
    """Parse "1,2,3", "[1,2,3]" or "1-3" (or an actual list) into a list of ints."""
    if isinstance(value, bool):
        return []
    if isinstance(value, (list, tuple, set)):
        numbers = (int_value(v) for v in value)
        return [n for n in numbers if n is not None]
    if isinstance(value, (int, float)):
        single = int_value(value)
        return [] if single is None else [single]
    if not isinstance(value, str):
        return []

    range_match = _RANGE.match(value)
    if range_match:
        start, end = int(range_match.group(1)), int(range_match.group(2))
        return list(range(start, end + 1))

    result = []
    for part in _strip_brackets(value).split(","):
        part = part.strip().strip(_QUOTES)
        if re.fullmatch(r"[+-]?\d+", part):
            result.append(int(part))
    return result


def distinct_numbers(value: Any) -> List[int]:
    """parse_number_list with repeats dropped, first occurrence order kept."""
    return list(dict.fromkeys(parse_number_list(value)))


def is_number_sequence(value: Any) -> bool:
    """True when value is a list/tuple/set whose items are all integers."""
    if not isinstance(value, (list, tuple, set)):
        return False
    return all(isinstance(v, int) and not isinstance(v, bool) for v in value)


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def is_valid_json(value: Any) -> bool:
    """Strict JSON check: NaN and Infinity are rejected."""
    if not isinstance(value, str):
        return False
    try:
        json.loads(value, parse_constant=_reject_constant)
    except (TypeError, ValueError):
        return False
    return True
