import json
import logging
from typing import List, Dict, Any, Optional

from .corrections import suggest_corrections, apply_suggestions, recommend_rules
from .loaders import load_entity_file
from .models import (
    EntityKind,
    BusinessRule,
    ValidationIssue,
    CorrectionSuggestion,
    RuleRecommendation,
)
from .normalizer import normalize
from .priorities import DEFAULT_WEIGHTS, normalize_weights, get_preset, build_priorities_config
from .reports import build_validation_report, records_to_csv
from .rules import nl_to_rule, build_rules_config
from .search import natural_language_search, categorize
from .validator import validate, summarize

logger = logging.getLogger(__name__)


# --------- Main DataManager Class ---------
class DataManager:
    """
    Session state for the HTTP service: the current datasets, the latest
    validation run, the rule set and the priority weights. All logic lives in
    the library functions it delegates to.
    """

    def __init__(self):
        self.clients: List[Dict[str, Any]] = []
        self.workers: List[Dict[str, Any]] = []
        self.tasks: List[Dict[str, Any]] = []
        self.issues: List[ValidationIssue] = []
        self.header_mappings: Dict[str, Dict[str, str]] = {}
        self.load_errors: Dict[str, List[str]] = {}
        self.rules: List[BusinessRule] = []
        self.priorities: Dict[str, float] = dict(DEFAULT_WEIGHTS)

    def has_data(self) -> bool:
        return bool(self.clients or self.workers or self.tasks)

    def _store(self, kind: EntityKind, result):
        records, mapping, errors = result
        key = f"{kind.value}s"
        setattr(self, key, records)
        self.header_mappings[key] = mapping
        self.load_errors[key] = errors

    def load_files(self, clients_path, workers_path, tasks_path):
        self._store(EntityKind.CLIENT, load_entity_file(clients_path, EntityKind.CLIENT))
        self._store(EntityKind.WORKER, load_entity_file(workers_path, EntityKind.WORKER))
        self._store(EntityKind.TASK, load_entity_file(tasks_path, EntityKind.TASK))
        logger.info(
            "Loaded %d clients, %d workers, %d tasks",
            len(self.clients), len(self.workers), len(self.tasks)
        )

    def load_records(self, entity_kind, rows: List[Dict[str, Any]], headers: Optional[List[str]] = None):
        kind = EntityKind.parse(entity_kind)
        if headers is None:
            headers = list(dict.fromkeys(h for row in rows for h in row))
        self._store(kind, normalize(rows, headers, kind))

    def validate_all(self) -> List[ValidationIssue]:
        # A fresh run always replaces the previous issue list
        self.issues = validate(self.clients, self.workers, self.tasks)
        return self.issues

    def validation_summary(self) -> Dict[str, int]:
        return summarize(self.issues)

    def natural_language_search(self, query: str) -> Dict[str, List[Dict[str, Any]]]:
        combined = self.clients + self.workers + self.tasks
        return categorize(natural_language_search(query, combined))

    # --------- Rules ---------

    def generate_rule_from_natural_language(self, user_rule_request: str) -> BusinessRule:
        """Generate a rule from natural language without adding it to the rules list"""
        return nl_to_rule(user_rule_request)

    def add_rule_from_nl(self, user_rule_request: str) -> BusinessRule:
        return self.add_rule(nl_to_rule(user_rule_request))

    def add_rule(self, rule: BusinessRule) -> BusinessRule:
        self.rules.append(rule)
        return rule

    def get_rule(self, rule_id: str) -> Optional[BusinessRule]:
        return next((r for r in self.rules if r.id == rule_id), None)

    def remove_rule(self, rule_id: str) -> bool:
        before = len(self.rules)
        self.rules = [r for r in self.rules if r.id != rule_id]
        return len(self.rules) != before

    def set_rule_enabled(self, rule_id: str, enabled: bool) -> Optional[BusinessRule]:
        rule = self.get_rule(rule_id)
        if rule is not None:
            rule.enabled = enabled
        return rule

    def get_recommended_rules(self) -> List[RuleRecommendation]:
        return recommend_rules(self.clients, self.workers, self.tasks)

    def accept_recommendation(self, recommendation: RuleRecommendation) -> BusinessRule:
        return self.add_rule(recommendation.to_rule())

    # --------- Corrections ---------

    def suggest_corrections(self) -> List[CorrectionSuggestion]:
        issues = self.validate_all()
        return suggest_corrections(self.clients + self.workers + self.tasks, issues)

    def apply_corrections(self, suggestions: Optional[List[CorrectionSuggestion]] = None) -> Dict[str, Any]:
        """Apply the given suggestions (or all current ones) and re-validate."""
        before = len(self.validate_all())
        if suggestions is None:
            suggestions = suggest_corrections(self.clients + self.workers + self.tasks, self.issues)

        result = apply_suggestions(self.clients, self.workers, self.tasks, suggestions)
        self.clients = result["clients"]
        self.workers = result["workers"]
        self.tasks = result["tasks"]

        after = len(self.validate_all())
        logger.info("Applied %d corrections, issues %d -> %d", len(result["changes"]), before, after)
        return {"changes": result["changes"], "issues_before": before, "issues_after": after}

    # --------- Priorities ---------

    def set_priorities(self, priorities: Dict[str, float]) -> Dict[str, float]:
        self.priorities = normalize_weights(priorities)
        return self.priorities

    def apply_preset(self, name: str) -> Dict[str, float]:
        self.priorities = get_preset(name)
        return self.priorities

    # --------- Export ---------

    def export_payload(self) -> List[Dict[str, Any]]:
        """Build the downloadable files (cleaned CSVs and JSON configs) in memory."""
        files_data = []
        for name, records in (("clients", self.clients), ("workers", self.workers), ("tasks", self.tasks)):
            if records:
                content = records_to_csv(records)
                files_data.append({
                    "name": f"{name}.csv",
                    "content": content,
                    "type": "text/csv",
                    "size": len(content.encode("utf-8")),
                })

        configs = [
            ("rules.json", build_rules_config(self.rules)),
            ("priorities.json", build_priorities_config(self.priorities)),
            ("validation-report.json", build_validation_report(self.issues, self.clients, self.workers, self.tasks)),
        ]
        for name, config in configs:
            content = json.dumps(config, indent=2)
            files_data.append({
                "name": name,
                "content": content,
                "type": "application/json",
                "size": len(content.encode("utf-8")),
            })
        return files_data
