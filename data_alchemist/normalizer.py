import re
import json
import logging
from typing import List, Dict, Any, Optional, NamedTuple

from .coercion import is_blank, parse_int, parse_string_list, parse_number_list, is_valid_json
from .errors import UnsupportedInputError
from .models import (
    EntityKind,
    INTEGER_FIELDS,
    STRING_LIST_FIELDS,
    NUMBER_LIST_FIELDS,
    JSON_FIELDS,
    GROUPING_FIELDS,
)
from .tables import load_table

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]")

DEFAULT_VALUES = {
    "PriorityLevel": 3,
    "Duration": 1,
    "MaxLoadPerPhase": 1,
    "MaxConcurrent": 1,
    "QualificationLevel": 1,
    "AttributesJSON": "{}",
}


class NormalizationResult(NamedTuple):
    records: List[Dict[str, Any]]
    header_mapping: Dict[str, str]
    errors: List[str]


# --------- Header Mapping ---------

def _squash(name: str) -> str:
    return _NON_ALNUM.sub("", name.lower())


def _exact_match(expected: str, headers: List[str]) -> Optional[str]:
    for header in headers:
        if header.lower() == expected.lower():
            return header
    return None


def _fuzzy_match(expected: str, headers: List[str]) -> Optional[str]:
    expected_squashed = _squash(expected)
    for header in headers:
        header_squashed = _squash(header)
        if not header_squashed:
            continue
        if header_squashed in expected_squashed or expected_squashed in header_squashed:
            return header
    return None


def _semantic_match(expected: str, headers: List[str]) -> Optional[str]:
    alternatives = load_table("header_synonyms").get(expected, [])
    for header in headers:
        header_lower = header.lower()
        if any(alt in header_lower for alt in alternatives):
            return header
    return None


MATCHERS = [_exact_match, _fuzzy_match, _semantic_match]


def map_headers(raw_headers: List[str], expected_fields: List[str]) -> Dict[str, str]:
    """Map each canonical field onto a raw header; the first matcher that finds one wins."""
    headers = [str(h) for h in raw_headers if h is not None]
    mapping = {}
    for expected in expected_fields:
        for matcher in MATCHERS:
            match = matcher(expected, headers)
            if match is not None:
                mapping[expected] = match
                break
    return mapping


# --------- Value Coercion ---------

def default_value(field: str) -> Any:
    if field in DEFAULT_VALUES:
        return DEFAULT_VALUES[field]
    if field in STRING_LIST_FIELDS or field in NUMBER_LIST_FIELDS:
        return []
    if field in GROUPING_FIELDS:
        return "default"
    return ""


def transform_value(value: Any, field: str) -> Any:
    if is_blank(value):
        return default_value(field)

    if field in INTEGER_FIELDS:
        return parse_int(value, 0)
    if field in STRING_LIST_FIELDS:
        return parse_string_list(value)
    if field in NUMBER_LIST_FIELDS:
        return parse_number_list(value)
    if field in JSON_FIELDS:
        if isinstance(value, str):
            return value if is_valid_json(value) else "{}"
        try:
            return json.dumps(value)
        except (TypeError, ValueError):
            return "{}"
    if isinstance(value, str):
        return value.strip()
    return str(value)


# --------- Row Validation ---------

def validate_row(row: Dict[str, Any], kind: EntityKind, row_number: int) -> List[str]:
    errors = []
    for field in kind.required_fields:
        if field not in row or is_blank(row[field]):
            errors.append(f"Row {row_number}: Missing required field '{field}'")

    if kind == EntityKind.CLIENT and isinstance(row.get("PriorityLevel"), int):
        if row["PriorityLevel"] < 1 or row["PriorityLevel"] > 5:
            errors.append(f"Row {row_number}: PriorityLevel must be between 1-5")

    if kind == EntityKind.TASK and isinstance(row.get("Duration"), int):
        if row["Duration"] < 1:
            errors.append(f"Row {row_number}: Duration must be at least 1")

    return errors


# --------- Normalization ---------

def normalize(raw_rows: List[Dict[str, Any]], raw_headers: List[str], entity_kind) -> NormalizationResult:
    """
    Map raw parsed rows onto the canonical schema of entity_kind.

    Raises UnsupportedInputError for an unknown entity kind or an empty header
    set; every other problem is repaired or reported in the error list.
    """
    kind = EntityKind.parse(entity_kind)
    headers = [str(h).strip() for h in (raw_headers or []) if h is not None and str(h).strip()]
    if not headers:
        raise UnsupportedInputError(f"No column headers found for {kind.value} data")

    mapping = map_headers(headers, kind.fields)
    logger.debug("Header mapping for %s: %s", kind.value, mapping)

    errors = []
    missing = [f for f in kind.required_fields if f not in mapping]
    if missing:
        errors.append(f"Missing required columns: {', '.join(missing)}")

    records = []
    for index, raw in enumerate(raw_rows or []):
        if not isinstance(raw, dict):
            continue
        raw_values = {field: raw.get(header) for field, header in mapping.items()}
        # Structurally empty line
        if all(is_blank(v) for v in raw_values.values()):
            continue

        row = {field: transform_value(value, field) for field, value in raw_values.items()}
        errors.extend(validate_row(row, kind, index + 1))
        records.append(row)

    logger.info(
        "Normalized %d/%d %s rows (%d errors)",
        len(records), len(raw_rows or []), kind.value, len(errors)
    )
    return NormalizationResult(records, mapping, errors)
