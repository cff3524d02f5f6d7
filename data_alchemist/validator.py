import logging
from typing import List, Dict, Any, Iterable

from .coercion import is_blank, int_value, parse_string_list, distinct_numbers, is_number_sequence, is_valid_json
from .models import EntityKind, Severity, ValidationIssue

logger = logging.getLogger(__name__)


def _skills(record: Dict[str, Any], field: str) -> List[str]:
    return parse_string_list(record.get(field))


def _phases(record: Dict[str, Any], field: str) -> List[int]:
    # Duplicate phase numbers count once
    return distinct_numbers(record.get(field))


def _entity_id(record: Dict[str, Any], kind: EntityKind) -> str:
    value = record.get(kind.id_field)
    return "unknown" if is_blank(value) else str(value)


class DataValidator:
    """
    Runs the fixed battery of consistency checks over normalized clients,
    workers and tasks. Inputs are never mutated; every run starts from scratch.
    """

    CHECKS = [
        "validate_missing_keys",
        "validate_duplicate_ids",
        "validate_malformed_data",
        "validate_range_values",
        "validate_json_fields",
        "validate_references",
        "validate_worker_capacity",
        "validate_skill_coverage",
        "validate_phase_constraints",
        "validate_concurrency_limits",
    ]

    def __init__(self, clients: Iterable[Dict[str, Any]], workers: Iterable[Dict[str, Any]], tasks: Iterable[Dict[str, Any]]):
        self.clients = [c for c in (clients or []) if isinstance(c, dict)]
        self.workers = [w for w in (workers or []) if isinstance(w, dict)]
        self.tasks = [t for t in (tasks or []) if isinstance(t, dict)]

    def _collections(self):
        return [
            (EntityKind.CLIENT, self.clients),
            (EntityKind.WORKER, self.workers),
            (EntityKind.TASK, self.tasks),
        ]

    def validate_all(self) -> List[ValidationIssue]:
        results = []
        for name in self.CHECKS:
            try:
                results.extend(getattr(self, name)())
            except Exception:
                logger.exception("Validation check %s failed", name)
        logger.info(
            "Validation produced %d issues for %d clients, %d workers, %d tasks",
            len(results), len(self.clients), len(self.workers), len(self.tasks)
        )
        return results

    # a. Missing identifiers
    def validate_missing_keys(self) -> List[ValidationIssue]:
        results = []
        for kind, records in self._collections():
            for index, record in enumerate(records):
                if is_blank(record.get(kind.id_field)):
                    results.append(ValidationIssue(
                        id=f"missing-{kind.value}-id-{index + 1}",
                        severity=Severity.ERROR,
                        message=f"Missing required {kind.id_field} (row {index + 1})",
                        entity_type=kind,
                        entity_id="unknown",
                        field=kind.id_field,
                        suggestion=f"Provide a unique {kind.id_field}",
                    ))
        return results

    # b. Duplicate IDs, first occurrence is not flagged
    def validate_duplicate_ids(self) -> List[ValidationIssue]:
        results = []
        for kind, records in self._collections():
            seen = {}
            for record in records:
                value = record.get(kind.id_field)
                if is_blank(value):
                    continue
                entity_id = str(value)
                count = seen.get(entity_id, 0)
                if count:
                    results.append(ValidationIssue(
                        id=f"duplicate-{kind.value}-{entity_id}-{count + 1}",
                        severity=Severity.ERROR,
                        message=f"Duplicate {kind.id_field}: {entity_id}",
                        entity_type=kind,
                        entity_id=entity_id,
                        field=kind.id_field,
                        suggestion=f"Rename or remove the repeated {kind.id_field}",
                    ))
                seen[entity_id] = count + 1
        return results

    # c. Malformed lists
    def validate_malformed_data(self) -> List[ValidationIssue]:
        results = []
        for worker in self.workers:
            if not is_number_sequence(worker.get("AvailableSlots")):
                entity_id = _entity_id(worker, EntityKind.WORKER)
                results.append(ValidationIssue(
                    id=f"malformed-slots-{entity_id}",
                    severity=Severity.ERROR,
                    message="AvailableSlots must be an array of numbers",
                    entity_type=EntityKind.WORKER,
                    entity_id=entity_id,
                    field="AvailableSlots",
                    suggestion="Convert to array format: [1, 2, 3]",
                ))
        return results

    # d. Out-of-range values
    def validate_range_values(self) -> List[ValidationIssue]:
        results = []
        for client in self.clients:
            value = client.get("PriorityLevel")
            if value is None:
                continue
            level = int_value(value)
            if level is None or level < 1 or level > 5:
                entity_id = _entity_id(client, EntityKind.CLIENT)
                results.append(ValidationIssue(
                    id=f"priority-range-{entity_id}",
                    severity=Severity.ERROR,
                    message=f"PriorityLevel must be between 1-5, got {value}",
                    entity_type=EntityKind.CLIENT,
                    entity_id=entity_id,
                    field="PriorityLevel",
                    suggestion="Set value between 1 and 5",
                ))

        for task in self.tasks:
            value = task.get("Duration")
            if value is None:
                continue
            duration = int_value(value)
            if duration is None or duration < 1:
                entity_id = _entity_id(task, EntityKind.TASK)
                results.append(ValidationIssue(
                    id=f"duration-range-{entity_id}",
                    severity=Severity.ERROR,
                    message=f"Duration must be >= 1, got {value}",
                    entity_type=EntityKind.TASK,
                    entity_id=entity_id,
                    field="Duration",
                    suggestion="Set duration to at least 1 phase",
                ))
        return results

    # e. Broken JSON in AttributesJSON
    def validate_json_fields(self) -> List[ValidationIssue]:
        results = []
        for client in self.clients:
            value = client.get("AttributesJSON")
            if is_blank(value) or isinstance(value, (dict, list)):
                continue
            if not is_valid_json(value):
                entity_id = _entity_id(client, EntityKind.CLIENT)
                results.append(ValidationIssue(
                    id=f"json-error-{entity_id}",
                    severity=Severity.ERROR,
                    message="Invalid JSON in AttributesJSON field",
                    entity_type=EntityKind.CLIENT,
                    entity_id=entity_id,
                    field="AttributesJSON",
                    suggestion="Fix JSON syntax or clear field",
                ))
        return results

    # f. Unknown task references
    def validate_references(self) -> List[ValidationIssue]:
        results = []
        task_ids = {str(t.get("TaskID")) for t in self.tasks if not is_blank(t.get("TaskID"))}
        for client in self.clients:
            entity_id = _entity_id(client, EntityKind.CLIENT)
            for task_id in parse_string_list(client.get("RequestedTaskIDs")):
                if task_id not in task_ids:
                    results.append(ValidationIssue(
                        id=f"missing-task-ref-{entity_id}-{task_id}",
                        severity=Severity.ERROR,
                        message=f"Referenced TaskID '{task_id}' not found in tasks",
                        entity_type=EntityKind.CLIENT,
                        entity_id=entity_id,
                        field="RequestedTaskIDs",
                        suggestion=f"Remove '{task_id}' or add corresponding task",
                    ))
        return results

    # g. Worker load vs slots
    def validate_worker_capacity(self) -> List[ValidationIssue]:
        results = []
        for worker in self.workers:
            max_load = int_value(worker.get("MaxLoadPerPhase"))
            if max_load is None:
                continue
            slot_count = len(_phases(worker, "AvailableSlots"))
            if max_load > slot_count:
                entity_id = _entity_id(worker, EntityKind.WORKER)
                results.append(ValidationIssue(
                    id=f"capacity-mismatch-{entity_id}",
                    severity=Severity.WARNING,
                    message=f"MaxLoadPerPhase ({max_load}) exceeds available slots ({slot_count})",
                    entity_type=EntityKind.WORKER,
                    entity_id=entity_id,
                    field="MaxLoadPerPhase",
                    suggestion=f"Reduce MaxLoadPerPhase to {slot_count} or add more slots",
                ))
        return results

    # h. Skill coverage
    def validate_skill_coverage(self) -> List[ValidationIssue]:
        results = []
        all_worker_skills = set()
        for worker in self.workers:
            all_worker_skills.update(_skills(worker, "Skills"))

        for task in self.tasks:
            entity_id = _entity_id(task, EntityKind.TASK)
            for skill in dict.fromkeys(_skills(task, "RequiredSkills")):
                if skill not in all_worker_skills:
                    results.append(ValidationIssue(
                        id=f"skill-coverage-{entity_id}-{skill}",
                        severity=Severity.ERROR,
                        message=f"Required skill '{skill}' not available in any worker",
                        entity_type=EntityKind.TASK,
                        entity_id=entity_id,
                        field="RequiredSkills",
                        suggestion=f"Add worker with '{skill}' skill or remove from task requirements",
                    ))
        return results

    # i. Phase-slot saturation
    def validate_phase_constraints(self) -> List[ValidationIssue]:
        results = []
        phase_loads = {}
        for task in self.tasks:
            duration = int_value(task.get("Duration")) or 0
            for phase in _phases(task, "PreferredPhases"):
                phase_loads[phase] = phase_loads.get(phase, 0) + duration

        phase_capacities = {}
        for worker in self.workers:
            max_load = int_value(worker.get("MaxLoadPerPhase")) or 0
            for phase in _phases(worker, "AvailableSlots"):
                phase_capacities[phase] = phase_capacities.get(phase, 0) + max_load

        for phase, load in phase_loads.items():
            capacity = phase_capacities.get(phase, 0)
            if load > 0 and load > capacity:
                results.append(ValidationIssue(
                    id=f"phase-saturation-{phase}",
                    severity=Severity.WARNING,
                    message=f"Phase {phase} overloaded: {load} duration units vs {capacity} capacity",
                    entity_type=EntityKind.TASK,
                    entity_id="multiple",
                    field="PreferredPhases",
                    suggestion=f"Redistribute tasks or increase worker capacity for phase {phase}",
                ))
        return results

    # j. MaxConcurrent feasibility
    def validate_concurrency_limits(self) -> List[ValidationIssue]:
        results = []
        worker_skills = [set(_skills(w, "Skills")) for w in self.workers]
        for task in self.tasks:
            max_concurrent = int_value(task.get("MaxConcurrent"))
            if max_concurrent is None:
                continue
            required = set(_skills(task, "RequiredSkills"))
            qualified = sum(1 for skills in worker_skills if required <= skills)
            if max_concurrent > qualified:
                entity_id = _entity_id(task, EntityKind.TASK)
                results.append(ValidationIssue(
                    id=f"concurrency-limit-{entity_id}",
                    severity=Severity.WARNING,
                    message=f"MaxConcurrent ({max_concurrent}) exceeds qualified workers ({qualified})",
                    entity_type=EntityKind.TASK,
                    entity_id=entity_id,
                    field="MaxConcurrent",
                    suggestion=f"Reduce MaxConcurrent to {qualified} or train more workers",
                ))
        return results


def validate(clients, workers, tasks) -> List[ValidationIssue]:
    return DataValidator(clients, workers, tasks).validate_all()


def summarize(issues: List[ValidationIssue]) -> Dict[str, int]:
    summary = {"total": len(issues)}
    for severity in Severity:
        summary[severity.value] = sum(1 for i in issues if i.severity == severity)
    return summary
