import copy
import logging
from typing import List, Dict, Any, Iterable, Tuple

from .coercion import is_blank, int_value, parse_string_list, distinct_numbers
from .models import (
    EntityKind,
    Severity,
    ValidationIssue,
    CorrectionSuggestion,
    RecommendationKind,
    RuleRecommendation,
    ID_FIELDS,
)
from .tables import load_table

logger = logging.getLogger(__name__)


def _index_entities(records: Iterable[Dict[str, Any]]) -> Dict[Tuple[EntityKind, str], Dict[str, Any]]:
    """Map (kind, id) to the first record carrying that id."""
    index = {}
    for record in records or []:
        if not isinstance(record, dict):
            continue
        for kind, id_field in ID_FIELDS.items():
            value = record.get(id_field)
            if not is_blank(value):
                index.setdefault((kind, str(value)), record)
                break
    return index


# --------- Correction Suggestions ---------

def suggest_corrections(records: Iterable[Dict[str, Any]], issues: Iterable[ValidationIssue]) -> List[CorrectionSuggestion]:
    """
    One suggestion per error issue on a recognized field, using the safe
    defaults of data/correction_defaults.json. Entities are never modified.
    """
    defaults = load_table("correction_defaults")
    entities = _index_entities(records)
    suggestions = []

    for issue in issues or []:
        if issue.severity != Severity.ERROR or issue.field not in defaults:
            continue
        entity = entities.get((issue.entity_type, issue.entity_id))
        current_value = copy.deepcopy(entity.get(issue.field)) if entity is not None else None
        default = defaults[issue.field]
        suggestions.append(CorrectionSuggestion(
            entity_id=issue.entity_id,
            field=issue.field,
            current_value=current_value,
            suggested_value=copy.deepcopy(default["suggested_value"]),
            reason=default["reason"],
            confidence=float(default["confidence"]),
        ))

    logger.debug("Generated %d correction suggestions", len(suggestions))
    return suggestions


def apply_suggestions(
    clients: List[Dict[str, Any]],
    workers: List[Dict[str, Any]],
    tasks: List[Dict[str, Any]],
    suggestions: Iterable[CorrectionSuggestion],
) -> Dict[str, Any]:
    """
    Apply suggestions to copies of the collections. Every record carrying the
    suggestion's entity id gets the suggested value for that field.
    """
    updated = {
        EntityKind.CLIENT: [dict(c) for c in clients],
        EntityKind.WORKER: [dict(w) for w in workers],
        EntityKind.TASK: [dict(t) for t in tasks],
    }
    changes = []
    for suggestion in suggestions or []:
        applied = False
        for kind, records in updated.items():
            for record in records:
                if str(record.get(kind.id_field)) != suggestion.entity_id or suggestion.field not in kind.fields:
                    continue
                old_value = record.get(suggestion.field)
                record[suggestion.field] = copy.deepcopy(suggestion.suggested_value)
                applied = True
                changes.append(
                    f"Fixed {suggestion.field} {old_value!r} -> {suggestion.suggested_value!r} "
                    f"for {kind.value} {suggestion.entity_id}"
                )
        if not applied:
            logger.warning("No entity %s with field %s to correct", suggestion.entity_id, suggestion.field)

    return {
        "clients": updated[EntityKind.CLIENT],
        "workers": updated[EntityKind.WORKER],
        "tasks": updated[EntityKind.TASK],
        "changes": changes,
    }


# --------- Rule Recommendations ---------

def _co_run_recommendations(tasks: List[Dict[str, Any]]) -> List[RuleRecommendation]:
    task_categories = {}
    for task in tasks:
        category = task.get("Category") if not is_blank(task.get("Category")) else "uncategorized"
        task_categories.setdefault(str(category), []).append(str(task.get("TaskID")))

    recommendations = []
    for category, task_ids in task_categories.items():
        if len(task_ids) > 1:
            preview = ", ".join(task_ids[:3]) + ("..." if len(task_ids) > 3 else "")
            recommendations.append(RuleRecommendation(
                kind=RecommendationKind.CO_RUN,
                title=f"Co-run {category} tasks",
                description=f"Tasks {preview} belong to the same category and might benefit from running together",
                config={"tasks": task_ids},
                confidence=0.6,
            ))
    return recommendations


def _overload_recommendations(workers: List[Dict[str, Any]]) -> List[RuleRecommendation]:
    overloaded = []
    for worker in workers:
        max_load = int_value(worker.get("MaxLoadPerPhase"))
        slots = distinct_numbers(worker.get("AvailableSlots"))
        if max_load and max_load > len(slots):
            overloaded.append(len(slots) or 1)

    if not overloaded:
        return []
    return [RuleRecommendation(
        kind=RecommendationKind.LOAD_LIMIT,
        title="Reduce worker overload",
        description=f"{len(overloaded)} workers have load limits exceeding their available slots",
        config={"maxLoad": min(overloaded), "group": "all"},
        confidence=0.8,
    )]


def _skill_gap_recommendations(workers: List[Dict[str, Any]], tasks: List[Dict[str, Any]]) -> List[RuleRecommendation]:
    required = []
    for task in tasks:
        required.extend(parse_string_list(task.get("RequiredSkills")))
    worker_skills = set()
    for worker in workers:
        worker_skills.update(s.lower() for s in parse_string_list(worker.get("Skills")))

    missing = [
        skill for skill in dict.fromkeys(required)
        if not any(ws in skill.lower() or skill.lower() in ws for ws in worker_skills)
    ]
    if not missing:
        return []
    return [RuleRecommendation(
        kind=RecommendationKind.SKILL_GAP,
        title="Address skill coverage gaps",
        description=f"Skills {', '.join(missing[:3])} are required by tasks but not available in workers",
        config={"missingSkills": missing},
        confidence=0.9,
    )]


def recommend_rules(clients: List[Dict[str, Any]], workers: List[Dict[str, Any]], tasks: List[Dict[str, Any]]) -> List[RuleRecommendation]:
    workers = [w for w in (workers or []) if isinstance(w, dict)]
    tasks = [t for t in (tasks or []) if isinstance(t, dict)]
    recommendations = (
        _co_run_recommendations(tasks)
        + _overload_recommendations(workers)
        + _skill_gap_recommendations(workers, tasks)
    )
    logger.info("Recommended %d rules", len(recommendations))
    return recommendations
