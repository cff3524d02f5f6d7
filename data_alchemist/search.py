"""
Pattern-based free-text search over canonical records.

The query is run through EXTRACTORS in order; the first extractor that
recognizes its pattern and leaves fewer records than it was given decides the
result. When none does, a general keyword search over the text fields runs.
"""
import re
import logging
from typing import List, Dict, Any, Optional, Callable

from .coercion import int_value, parse_string_list, parse_number_list
from .models import EntityKind, entity_kind_of
from .tables import load_table

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Extractor = Callable[[str, List[Record]], Optional[List[Record]]]

ABOVE = r"(?:above|over|greater than|more than|>)"
BELOW = r"(?:below|under|less than|fewer than|<)"
EXACT = r"(?:of\s+|=\s*|equal to\s+|equals\s+|is\s+)?"

SEARCHABLE_TEXT_FIELDS = ["ClientName", "WorkerName", "TaskName", "Category", "WorkerGroup", "GroupTag"]
SEARCHABLE_LIST_FIELDS = ["Skills", "RequiredSkills"]


def _word_regex(term: str) -> re.Pattern:
    return re.compile(r"(?<![\w#.])" + re.escape(term) + r"(?![\w#])", re.IGNORECASE)


def _number(item: Record, field: str) -> Optional[int]:
    value = item.get(field)
    if isinstance(value, str):
        return None
    return int_value(value)


def _text(item: Record, field: str) -> str:
    value = item.get(field)
    return value.lower() if isinstance(value, str) else ""


def _numeric_filter(data: List[Record], field: str, predicate: Callable[[int], bool]) -> List[Record]:
    result = []
    for item in data:
        value = _number(item, field)
        if value is not None and predicate(value):
            result.append(item)
    return result


def _compare(query: str, subject: str, field: str, data: List[Record]) -> Optional[List[Record]]:
    """Apply "<subject> above N", "<subject> below N" and "<subject> N" to a numeric field."""
    above = re.search(subject + r"\s+" + ABOVE + r"\s*(\d+)", query)
    if above:
        threshold = int(above.group(1))
        return _numeric_filter(data, field, lambda v: v > threshold)

    below = re.search(subject + r"\s+" + BELOW + r"\s*(\d+)", query)
    if below:
        threshold = int(below.group(1))
        return _numeric_filter(data, field, lambda v: v < threshold)

    equal = re.search(subject + r"\s+" + EXACT + r"(\d+)", query)
    if equal:
        value = int(equal.group(1))
        return _numeric_filter(data, field, lambda v: v == value)
    return None


# --------- Extractors ---------

def apply_skill_filters(query: str, data: List[Record]) -> Optional[List[Record]]:
    synonyms = load_table("skill_synonyms")
    skills_to_find = [skill for skill in synonyms if _word_regex(skill).search(query)]
    if not skills_to_find:
        return None

    def matches(item: Record) -> bool:
        raw = item.get("Skills") if "Skills" in item else item.get("RequiredSkills")
        if not isinstance(raw, (list, tuple, set)):
            return False
        item_skills = [s.lower().strip() for s in parse_string_list(raw)]
        for skill in skills_to_find:
            for variation in synonyms.get(skill, [skill]):
                for item_skill in item_skills:
                    if item_skill == variation or variation in item_skill or item_skill in variation:
                        return True
        return False

    return [item for item in data if matches(item)]


def apply_priority_filters(query: str, data: List[Record]) -> Optional[List[Record]]:
    if "high priority" in query or "highest priority" in query:
        return _numeric_filter(data, "PriorityLevel", lambda v: v >= 4)
    if "low priority" in query or "lowest priority" in query:
        return _numeric_filter(data, "PriorityLevel", lambda v: 0 < v <= 2)
    if "medium priority" in query or "mid priority" in query:
        return _numeric_filter(data, "PriorityLevel", lambda v: v == 3)
    return _compare(query, r"priority(?:\s+level)?", "PriorityLevel", data)


def apply_duration_filters(query: str, data: List[Record]) -> Optional[List[Record]]:
    result = _compare(query, r"duration", "Duration", data)
    if result is not None:
        return result
    phases = re.search(r"(\d+)\s+phases?\b", query)
    if phases:
        value = int(phases.group(1))
        return _numeric_filter(data, "Duration", lambda v: v == value)
    return None


def apply_phase_filters(query: str, data: List[Record]) -> Optional[List[Record]]:
    match = re.search(r"phase\s+(\d+)", query)
    if not match:
        return None
    phase = int(match.group(1))

    def available(item: Record) -> bool:
        if isinstance(item.get("AvailableSlots"), (list, tuple, set)):
            return phase in parse_number_list(item["AvailableSlots"])
        if isinstance(item.get("PreferredPhases"), (list, tuple, set)):
            return phase in parse_number_list(item["PreferredPhases"])
        return False

    return [item for item in data if available(item)]


def apply_category_filters(query: str, data: List[Record]) -> Optional[List[Record]]:
    categories = load_table("search_keywords")["categories"]
    mentioned = next((c for c in categories if _word_regex(c).search(query)), None)
    if mentioned is None:
        match = re.search(r"category\s+(?:is\s+)?['\"]?([a-z][a-z\s]*?)['\"]?\s*$", query)
        if not match:
            return None
        mentioned = match.group(1).strip()
    return [item for item in data if mentioned in _text(item, "Category")]


def apply_group_filters(query: str, data: List[Record]) -> Optional[List[Record]]:
    groups = load_table("search_keywords")["groups"]
    mentioned = next((g for g in groups if _word_regex(g).search(query)), None)
    if mentioned is None:
        match = re.search(r"group\s+(?:is\s+|tag\s+)?['\"]?([\w-]+)['\"]?", query)
        if not match:
            return None
        mentioned = match.group(1)
    return [
        item for item in data
        if mentioned in _text(item, "WorkerGroup") or mentioned in _text(item, "GroupTag")
    ]


def apply_name_filters(query: str, data: List[Record]) -> Optional[List[Record]]:
    match = re.search(r"name\s+(?:contains?|includes?|has|is)\s+['\"]?([a-z0-9\s]+?)['\"]?\s*$", query)
    if not match:
        return None
    name = match.group(1).strip()
    return [
        item for item in data
        if any(name in _text(item, f) for f in ("ClientName", "WorkerName", "TaskName"))
    ]


def apply_qualification_filters(query: str, data: List[Record]) -> Optional[List[Record]]:
    return _compare(query, r"qualification(?:\s+level)?", "QualificationLevel", data)


def apply_load_filters(query: str, data: List[Record]) -> Optional[List[Record]]:
    return _compare(query, r"(?:load|capacity)", "MaxLoadPerPhase", data)


def apply_concurrency_filters(query: str, data: List[Record]) -> Optional[List[Record]]:
    return _compare(query, r"(?:concurrent|concurrency|parallel)", "MaxConcurrent", data)


EXTRACTORS: List[Extractor] = [
    apply_skill_filters,
    apply_priority_filters,
    apply_duration_filters,
    apply_phase_filters,
    apply_category_filters,
    apply_group_filters,
    apply_name_filters,
    apply_qualification_filters,
    apply_load_filters,
    apply_concurrency_filters,
]


# --------- General Search ---------

def _searchable_fields(item: Record) -> List[str]:
    fields = [_text(item, f) for f in SEARCHABLE_TEXT_FIELDS if _text(item, f)]
    for list_field in SEARCHABLE_LIST_FIELDS:
        value = item.get(list_field)
        if isinstance(value, (list, tuple, set)):
            fields.extend(s.lower() for s in parse_string_list(value))
    return fields


def apply_general_search(query: str, data: List[Record]) -> List[Record]:
    stop_words = set(load_table("search_keywords")["stop_words"])
    words = [w.strip(".,!?;:\"'()") for w in query.split()]
    words = [w for w in words if len(w) >= 3 and w not in stop_words]
    if not words:
        return data

    matches = [
        item for item in data
        if any(word in field for word in words for field in _searchable_fields(item))
    ]
    # Nothing recognizable in the query: leave the records untouched
    return matches or data


def natural_language_search(query: str, data: List[Record]) -> List[Record]:
    records = [item for item in (data or []) if isinstance(item, dict)]
    if not isinstance(query, str) or not query.strip() or not records:
        return records

    lowered = query.lower().strip()
    for extractor in EXTRACTORS:
        result = extractor(lowered, records)
        if result is not None and len(result) < len(records):
            logger.debug("Query %r narrowed by %s to %d records", query, extractor.__name__, len(result))
            return result

    return apply_general_search(lowered, records)


def categorize(records: List[Record]) -> Dict[str, List[Record]]:
    """Split a mixed record list into clients, workers and tasks."""
    categorized = {"clients": [], "workers": [], "tasks": []}
    keys = {EntityKind.CLIENT: "clients", EntityKind.WORKER: "workers", EntityKind.TASK: "tasks"}
    for item in records:
        kind = entity_kind_of(item)
        if kind is not None:
            categorized[keys[kind]].append(item)
    return categorized
