import re
import logging
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional, Callable, Tuple

from .models import (
    BusinessRule,
    RuleType,
    CoRunConfig,
    LoadLimitConfig,
    PhaseWindowConfig,
    CustomConfig,
    new_rule_id,
)

logger = logging.getLogger(__name__)

MAX_LOAD_BOUND = 1000

_TASKS_WORD = re.compile(r"\btasks?\b", re.IGNORECASE)
_TASK_ID = re.compile(r"\b[A-Za-z]+[-_]?\d+[A-Za-z0-9]*\b")
_LOAD_VALUE = re.compile(r"(?:maximum|max|limit)\s+(?:of\s+)?(\d+)", re.IGNORECASE)
_GROUP_NAME = re.compile(r"(?:worker\s+)?group\s+([A-Za-z0-9_-]+)", re.IGNORECASE)
_PHASE_LIST = re.compile(r"phases?\s+\[([0-9,\s]+)\]", re.IGNORECASE)
_PHASE_RANGE = re.compile(r"phases?\s+(\d+)(?:\s*[-–]\s*(\d+))?", re.IGNORECASE)


# --------- Config Extraction ---------

def extract_co_run(description: str) -> Optional[CoRunConfig]:
    match = _TASKS_WORD.search(description)
    if not match:
        return None
    task_ids = list(dict.fromkeys(_TASK_ID.findall(description[match.end():])))
    if len(task_ids) < 2:
        return None
    return CoRunConfig(tasks=task_ids)


def extract_load_limit(description: str) -> Optional[LoadLimitConfig]:
    load = _LOAD_VALUE.search(description)
    if not load:
        return None
    max_load = int(load.group(1))
    if max_load < 1 or max_load > MAX_LOAD_BOUND:
        return None
    group = _GROUP_NAME.search(description)
    return LoadLimitConfig(max_load=max_load, group=group.group(1) if group else "all")


def extract_phase_window(description: str) -> Optional[PhaseWindowConfig]:
    phases = []
    listed = _PHASE_LIST.search(description)
    if listed:
        phases = [int(p) for p in re.findall(r"\d+", listed.group(1))]
    else:
        ranged = _PHASE_RANGE.search(description)
        if ranged:
            start = int(ranged.group(1))
            end = int(ranged.group(2)) if ranged.group(2) else start
            phases = list(range(start, end + 1))
    if not phases:
        return None
    return PhaseWindowConfig(phases=sorted(set(phases)))


def _mentions(*words: str) -> Callable[[str], bool]:
    return lambda text: any(word in text for word in words)


def _phase_restriction(text: str) -> bool:
    return "phase" in text and any(word in text for word in ("window", "only", "restrict"))


# Ordered: the first classifier whose trigger fires and whose config can be extracted wins
CLASSIFIERS: List[Tuple[RuleType, str, Callable[[str], bool], Callable[[str], Any]]] = [
    (
        RuleType.CO_RUN, "Co-run Tasks",
        _mentions("co-run", "corun", "together", "same time", "simultaneously"),
        extract_co_run,
    ),
    (
        RuleType.LOAD_LIMIT, "Load Limit Rule",
        _mentions("load limit", "max load", "maximum", "limit"),
        extract_load_limit,
    ),
    (
        RuleType.PHASE_WINDOW, "Phase Window Rule",
        _phase_restriction,
        extract_phase_window,
    ),
]


# --------- Rule Synthesis ---------

def nl_to_rule(description: str, rule_id: Optional[str] = None, created_at: Optional[datetime] = None) -> BusinessRule:
    """
    Convert a natural language rule description into a structured BusinessRule.

    Never fails: text that no classifier can turn into a config is kept
    verbatim as a custom rule.
    """
    text = (description or "").strip()
    lowered = text.lower()
    created_at = created_at or datetime.now(timezone.utc)

    for rule_type, name, triggered, extract in CLASSIFIERS:
        if not triggered(lowered):
            continue
        config = extract(text)
        if config is None:
            logger.debug("%s trigger matched but no config could be extracted from %r", rule_type.value, text)
            continue
        return BusinessRule(
            id=rule_id or new_rule_id(rule_type),
            type=rule_type,
            name=name,
            description=text,
            config=config,
            created_at=created_at,
        )

    return BusinessRule(
        id=rule_id or new_rule_id(RuleType.CUSTOM),
        type=RuleType.CUSTOM,
        name="Custom Rule",
        description=text,
        config=CustomConfig(raw_description=text),
        created_at=created_at,
    )


def build_rules_config(rules: List[BusinessRule]) -> Dict[str, Any]:
    """Exported rules configuration: enabled rules plus metadata."""
    enabled = [rule for rule in rules if rule.enabled]
    return {
        "rules": [rule.to_dict() for rule in enabled],
        "metadata": {
            "totalRules": len(rules),
            "enabledRules": len(enabled),
            "exportedAt": datetime.now(timezone.utc).isoformat(),
            "version": "1.0",
        },
    }
