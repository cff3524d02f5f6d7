"""
Tests for the DataManager session object.
"""

import json

import pytest

from data_alchemist.backend import DataManager
from data_alchemist.errors import UnknownPresetError, UnsupportedInputError
from data_alchemist.models import RuleType


@pytest.fixture
def manager(clients, workers, tasks):
    dm = DataManager()
    dm.load_records("clients", clients)
    dm.load_records("workers", workers)
    dm.load_records("tasks", tasks)
    return dm


class TestLoading:
    def test_canonical_records_load_unchanged(self, manager, clients, workers, tasks):
        assert manager.clients == clients
        assert manager.workers == workers
        assert manager.tasks == tasks
        assert manager.load_errors == {"clients": [], "workers": [], "tasks": []}

    def test_load_files(self, tmp_path):
        paths = {}
        for name, content in {
            "clients": "ClientID,ClientName,PriorityLevel,RequestedTaskIDs\nC1,Acme,3,T1\n",
            "workers": "WorkerID,WorkerName,Skills,AvailableSlots,MaxLoadPerPhase\nW1,Alice,Python,\"1,2\",1\n",
            "tasks": "TaskID,TaskName,Duration,RequiredSkills,PreferredPhases,MaxConcurrent\nT1,ETL,1,Python,1,1\n",
        }.items():
            path = tmp_path / f"{name}.csv"
            path.write_text(content)
            paths[name] = str(path)

        dm = DataManager()
        dm.load_files(paths["clients"], paths["workers"], paths["tasks"])
        assert dm.has_data()
        assert dm.workers[0]["AvailableSlots"] == [1, 2]
        assert dm.validate_all() == []

    def test_unknown_kind(self):
        with pytest.raises(UnsupportedInputError):
            DataManager().load_records("vendors", [{"VendorID": "V1"}])


class TestValidationAndSearch:
    def test_validate_replaces_previous_run(self, manager):
        manager.tasks[0]["Duration"] = 0
        assert len(manager.validate_all()) == 1
        manager.tasks[0]["Duration"] = 1
        assert manager.validate_all() == []
        assert manager.validation_summary()["total"] == 0

    def test_search_is_categorized(self, manager):
        results = manager.natural_language_search("javascript")
        assert [w["WorkerID"] for w in results["workers"]] == ["W1"]
        assert [t["TaskID"] for t in results["tasks"]] == ["T1"]
        assert results["clients"] == []


class TestRules:
    def test_generate_does_not_add(self, manager):
        rule = manager.generate_rule_from_natural_language("Tasks T1 and T2 together")
        assert rule.type == RuleType.CO_RUN
        assert manager.rules == []

    def test_add_toggle_remove(self, manager):
        rule = manager.add_rule_from_nl("Limit group A to maximum 5 tasks per phase")
        assert manager.get_rule(rule.id) is rule

        assert manager.set_rule_enabled(rule.id, False).enabled is False
        assert manager.set_rule_enabled("missing", True) is None

        assert manager.remove_rule(rule.id)
        assert not manager.remove_rule(rule.id)
        assert manager.rules == []

    def test_accept_recommendation(self, manager):
        manager.tasks[2]["Category"] = "frontend"
        recommendation = manager.get_recommended_rules()[0]
        rule = manager.accept_recommendation(recommendation)
        assert manager.rules == [rule]


class TestCorrections:
    def test_apply_all_suggestions(self, manager):
        manager.tasks[1]["Duration"] = 0
        manager.clients[0]["PriorityLevel"] = 8

        suggestions = manager.suggest_corrections()
        assert {(s.entity_id, s.field) for s in suggestions} == {("T2", "Duration"), ("C1", "PriorityLevel")}

        result = manager.apply_corrections()
        assert result["issues_before"] == 2
        assert result["issues_after"] == 0
        assert manager.tasks[1]["Duration"] == 1
        assert manager.clients[0]["PriorityLevel"] == 3


class TestPriorities:
    def test_preset(self, manager):
        weights = manager.apply_preset("priority-driven")
        assert weights["priorityLevel"] == 0.4
        assert manager.priorities == weights

    def test_unknown_preset(self, manager):
        with pytest.raises(UnknownPresetError):
            manager.apply_preset("nope")

    def test_custom_weights_normalized(self, manager):
        weights = manager.set_priorities({"skillMatch": 0.85})
        assert sum(weights.values()) == pytest.approx(1.0)


class TestExport:
    def test_payload_files(self, manager):
        manager.add_rule_from_nl("Tasks T1 and T2 together")
        manager.validate_all()
        files = manager.export_payload()

        assert [f["name"] for f in files] == [
            "clients.csv", "workers.csv", "tasks.csv",
            "rules.json", "priorities.json", "validation-report.json",
        ]
        workers_csv = files[1]["content"]
        assert workers_csv.splitlines()[0].startswith("WorkerID,WorkerName,Skills")
        assert '"JavaScript,React"' in workers_csv

        rules = json.loads(files[3]["content"])
        assert rules["metadata"]["enabledRules"] == 1
        report = json.loads(files[5]["content"])
        assert report["summary"]["totalIssues"] == 0
        assert report["metadata"]["dataStats"] == {"clients": 3, "workers": 3, "tasks": 3}
        assert all(f["size"] == len(f["content"].encode("utf-8")) for f in files)

    def test_empty_collections_skipped(self):
        names = [f["name"] for f in DataManager().export_payload()]
        assert names == ["rules.json", "priorities.json", "validation-report.json"]
