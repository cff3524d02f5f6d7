"""
Tests for the validation checks.

Each check is exercised on its own through DataValidator and end to end
through validate().
"""

import pytest

from data_alchemist.models import EntityKind, Severity
from data_alchemist.validator import DataValidator, validate, summarize


def _ids(issues):
    return [issue.id for issue in issues]


class TestValidateAll:
    """Whole-run behaviour."""

    def test_clean_data_has_no_issues(self, clients, workers, tasks):
        assert validate(clients, workers, tasks) == []

    def test_runs_are_idempotent(self, clients, workers, tasks):
        clients[0]["PriorityLevel"] = 7
        tasks[0]["RequiredSkills"] = ["Rust"]
        first = validate(clients, workers, tasks)
        second = validate(clients, workers, tasks)
        assert first == second
        assert len(first) > 0

    def test_inputs_are_not_mutated(self, clients, workers, tasks):
        workers[0]["AvailableSlots"] = "1,2"
        snapshot = [dict(w) for w in workers]
        validate(clients, workers, tasks)
        assert workers == snapshot

    def test_empty_collections(self):
        assert validate([], [], []) == []

    def test_failing_check_does_not_stop_others(self, clients, workers, tasks, monkeypatch):
        def broken(self):
            raise RuntimeError("boom")

        monkeypatch.setattr(DataValidator, "validate_duplicate_ids", broken)
        clients[0]["PriorityLevel"] = 0
        issues = validate(clients, workers, tasks)
        assert _ids(issues) == ["priority-range-C1"]

    def test_summarize_counts_by_severity(self, clients, workers, tasks):
        clients[0]["PriorityLevel"] = 0
        workers[2]["MaxLoadPerPhase"] = 5
        summary = summarize(validate(clients, workers, tasks))
        assert summary["total"] == summary["error"] + summary["warning"] + summary["info"]
        assert summary["error"] >= 1
        assert summary["warning"] >= 1


class TestIdentityChecks:
    """Missing and duplicate identifiers."""

    def test_missing_ids_in_every_collection(self, clients, workers, tasks):
        clients[1]["ClientID"] = ""
        workers[0]["WorkerID"] = None
        del tasks[2]["TaskID"]
        issues = DataValidator(clients, workers, tasks).validate_missing_keys()
        assert _ids(issues) == ["missing-client-id-2", "missing-worker-id-1", "missing-task-id-3"]
        assert all(i.entity_id == "unknown" for i in issues)

    def test_duplicates_flag_later_occurrences_only(self, workers):
        ids = ["A", "B", "A", "A"]
        records = []
        for worker_id in ids:
            worker = dict(workers[0])
            worker["WorkerID"] = worker_id
            records.append(worker)

        issues = DataValidator([], records, []).validate_duplicate_ids()
        assert len(issues) == 2
        assert _ids(issues) == ["duplicate-worker-A-2", "duplicate-worker-A-3"]
        assert all(i.severity == Severity.ERROR for i in issues)


class TestValueChecks:
    """Shape and range checks on individual fields."""

    def test_malformed_slots(self, workers):
        workers[1]["AvailableSlots"] = "1,2"
        issues = DataValidator([], workers, []).validate_malformed_data()
        assert _ids(issues) == ["malformed-slots-W2"]

    @pytest.mark.parametrize("level", [0, 6])
    def test_priority_out_of_range(self, clients, level):
        clients[0]["PriorityLevel"] = level
        issues = DataValidator(clients, [], []).validate_range_values()
        assert _ids(issues) == ["priority-range-C1"]
        assert issues[0].entity_type == EntityKind.CLIENT

    @pytest.mark.parametrize("level", [1, 2, 3, 4, 5])
    def test_priority_in_range(self, clients, level):
        clients[0]["PriorityLevel"] = level
        assert DataValidator(clients, [], []).validate_range_values() == []

    def test_non_numeric_priority_is_flagged(self, clients):
        clients[1]["PriorityLevel"] = "high"
        issues = DataValidator(clients, [], []).validate_range_values()
        assert _ids(issues) == ["priority-range-C2"]

    def test_duration_below_one(self, tasks):
        tasks[1]["Duration"] = 0
        issues = DataValidator([], [], tasks).validate_range_values()
        assert _ids(issues) == ["duration-range-T2"]

    def test_invalid_json(self, clients):
        clients[2]["AttributesJSON"] = "{not json"
        issues = DataValidator(clients, [], []).validate_json_fields()
        assert _ids(issues) == ["json-error-C3"]

    def test_nan_is_not_json(self, clients):
        clients[0]["AttributesJSON"] = "NaN"
        issues = DataValidator(clients, [], []).validate_json_fields()
        assert _ids(issues) == ["json-error-C1"]


class TestCrossEntityChecks:
    """References, capacity and coverage across collections."""

    def test_one_issue_per_missing_reference(self, clients, workers, tasks):
        clients[0]["RequestedTaskIDs"] = ["T1", "T99", "T98"]
        issues = DataValidator(clients, workers, tasks).validate_references()
        assert _ids(issues) == ["missing-task-ref-C1-T99", "missing-task-ref-C1-T98"]
        assert all(i.entity_id == "C1" for i in issues)

    def test_capacity_mismatch_is_warning(self, workers):
        workers[2]["MaxLoadPerPhase"] = 3
        issues = DataValidator([], workers, []).validate_worker_capacity()
        assert _ids(issues) == ["capacity-mismatch-W3"]
        assert issues[0].severity == Severity.WARNING

    def test_uncovered_skill(self, workers, tasks):
        tasks[0]["RequiredSkills"] = ["JavaScript", "Rust"]
        issues = DataValidator([], workers, tasks).validate_skill_coverage()
        assert _ids(issues) == ["skill-coverage-T1-Rust"]

    def test_concurrency_exceeds_qualified_workers(self, workers, tasks):
        tasks[1]["MaxConcurrent"] = 3
        issues = DataValidator([], workers, tasks).validate_concurrency_limits()
        assert _ids(issues) == ["concurrency-limit-T2"]
        assert "qualified workers (1)" in issues[0].message


class TestPhaseSaturation:
    """Per-phase load against summed worker capacity."""

    TASK = {"TaskID": "T1", "TaskName": "Build", "Duration": 3, "RequiredSkills": [], "PreferredPhases": [1]}

    @staticmethod
    def _worker(worker_id):
        return {
            "WorkerID": worker_id, "WorkerName": worker_id, "Skills": [],
            "AvailableSlots": [1], "MaxLoadPerPhase": 2,
        }

    def test_overloaded_phase_warns_once(self):
        issues = DataValidator([], [self._worker("W1")], [self.TASK]).validate_phase_constraints()
        assert _ids(issues) == ["phase-saturation-1"]
        assert issues[0].severity == Severity.WARNING
        assert issues[0].message == "Phase 1 overloaded: 3 duration units vs 2 capacity"

    def test_added_capacity_clears_warning(self):
        workers = [self._worker("W1"), self._worker("W2")]
        assert DataValidator([], workers, [self.TASK]).validate_phase_constraints() == []

    def test_zero_load_phase_never_flagged(self):
        task = dict(self.TASK, Duration=0)
        assert DataValidator([], [], [task]).validate_phase_constraints() == []
