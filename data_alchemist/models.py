import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Dict, Any, Optional

from .errors import UnsupportedInputError


# --------- Entity Kinds ---------

class EntityKind(str, Enum):
    CLIENT = "client"
    WORKER = "worker"
    TASK = "task"

    @classmethod
    def parse(cls, value) -> "EntityKind":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            if key.endswith("s"):
                key = key[:-1]
            for kind in cls:
                if kind.value == key:
                    return kind
        raise UnsupportedInputError(f"Unsupported entity kind: {value!r}")

    @property
    def id_field(self) -> str:
        return ID_FIELDS[self]

    @property
    def fields(self) -> List[str]:
        return EXPECTED_FIELDS[self]

    @property
    def required_fields(self) -> List[str]:
        return REQUIRED_FIELDS[self]


ID_FIELDS = {
    EntityKind.CLIENT: "ClientID",
    EntityKind.WORKER: "WorkerID",
    EntityKind.TASK: "TaskID",
}

EXPECTED_FIELDS = {
    EntityKind.CLIENT: [
        "ClientID", "ClientName", "PriorityLevel",
        "RequestedTaskIDs", "GroupTag", "AttributesJSON"
    ],
    EntityKind.WORKER: [
        "WorkerID", "WorkerName", "Skills",
        "AvailableSlots", "MaxLoadPerPhase",
        "WorkerGroup", "QualificationLevel"
    ],
    EntityKind.TASK: [
        "TaskID", "TaskName", "Category",
        "Duration", "RequiredSkills",
        "PreferredPhases", "MaxConcurrent"
    ],
}

REQUIRED_FIELDS = {
    EntityKind.CLIENT: ["ClientID", "ClientName", "PriorityLevel"],
    EntityKind.WORKER: ["WorkerID", "WorkerName", "Skills"],
    EntityKind.TASK: ["TaskID", "TaskName", "Duration"],
}

INTEGER_FIELDS = {"PriorityLevel", "Duration", "MaxLoadPerPhase", "MaxConcurrent", "QualificationLevel"}
STRING_LIST_FIELDS = {"RequestedTaskIDs", "Skills", "RequiredSkills"}
NUMBER_LIST_FIELDS = {"AvailableSlots", "PreferredPhases"}
JSON_FIELDS = {"AttributesJSON"}
GROUPING_FIELDS = {"GroupTag", "WorkerGroup", "Category"}


def entity_kind_of(record: Dict[str, Any]) -> Optional[EntityKind]:
    """Guess the entity kind of a canonical record from its id field."""
    for kind, id_field in ID_FIELDS.items():
        if id_field in record:
            return kind
    return None


# --------- Validation Issues ---------

class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class ValidationIssue:
    id: str
    severity: Severity
    message: str
    entity_type: EntityKind
    entity_id: str
    field: Optional[str] = None
    suggestion: Optional[str] = None

    def __post_init__(self):
        # Plain strings ("task", "error") become the enum members
        object.__setattr__(self, "severity", Severity(self.severity))
        object.__setattr__(self, "entity_type", EntityKind.parse(self.entity_type))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "severity": self.severity.value,
            "message": self.message,
            "entity_type": self.entity_type.value,
            "entity_id": self.entity_id,
            "field": self.field,
            "suggestion": self.suggestion,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValidationIssue":
        return cls(
            id=str(data.get("id", "")),
            severity=Severity(data.get("severity", "error")),
            message=str(data.get("message", "")),
            entity_type=EntityKind.parse(data.get("entity_type", "")),
            entity_id=str(data.get("entity_id", "")),
            field=data.get("field"),
            suggestion=data.get("suggestion"),
        )


# --------- Business Rules ---------

class RuleType(str, Enum):
    CO_RUN = "coRun"
    LOAD_LIMIT = "loadLimit"
    PHASE_WINDOW = "phaseWindow"
    SLOT_RESTRICTION = "slotRestriction"
    PATTERN_MATCH = "patternMatch"
    PRECEDENCE = "precedence"
    CUSTOM = "custom"


@dataclass
class CoRunConfig:
    tasks: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"tasks": list(self.tasks)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CoRunConfig":
        return cls(tasks=[str(t) for t in data.get("tasks", [])])


@dataclass
class LoadLimitConfig:
    max_load: int
    group: str = "all"

    def to_dict(self) -> Dict[str, Any]:
        return {"maxLoad": self.max_load, "group": self.group}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoadLimitConfig":
        return cls(max_load=int(data.get("maxLoad", 1)), group=str(data.get("group", "all")))


@dataclass
class PhaseWindowConfig:
    phases: List[int]

    def to_dict(self) -> Dict[str, Any]:
        return {"phases": list(self.phases)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PhaseWindowConfig":
        return cls(phases=[int(p) for p in data.get("phases", [])])


@dataclass
class SlotRestrictionConfig:
    group: str
    min_common_slots: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {"group": self.group, "minCommonSlots": self.min_common_slots}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SlotRestrictionConfig":
        return cls(group=str(data.get("group", "all")), min_common_slots=int(data.get("minCommonSlots", 1)))


@dataclass
class PatternMatchConfig:
    regex: str
    template: str = ""
    parameters: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"regex": self.regex, "template": self.template, "parameters": dict(self.parameters)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatternMatchConfig":
        return cls(
            regex=str(data.get("regex", "")),
            template=str(data.get("template", "")),
            parameters=dict(data.get("parameters", {})),
        )


@dataclass
class PrecedenceConfig:
    rule_ids: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"ruleIds": list(self.rule_ids)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrecedenceConfig":
        return cls(rule_ids=[str(r) for r in data.get("ruleIds", [])])


@dataclass
class CustomConfig:
    raw_description: str

    def to_dict(self) -> Dict[str, Any]:
        return {"rawDescription": self.raw_description}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CustomConfig":
        return cls(raw_description=str(data.get("rawDescription", "")))


RULE_CONFIG_TYPES = {
    RuleType.CO_RUN: CoRunConfig,
    RuleType.LOAD_LIMIT: LoadLimitConfig,
    RuleType.PHASE_WINDOW: PhaseWindowConfig,
    RuleType.SLOT_RESTRICTION: SlotRestrictionConfig,
    RuleType.PATTERN_MATCH: PatternMatchConfig,
    RuleType.PRECEDENCE: PrecedenceConfig,
    RuleType.CUSTOM: CustomConfig,
}


def new_rule_id(rule_type: RuleType) -> str:
    return f"{rule_type.value}_{uuid.uuid4().hex[:8]}"


@dataclass
class BusinessRule:
    id: str
    type: RuleType
    name: str
    description: str
    config: Any
    enabled: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        self.type = RuleType(self.type)
        expected = RULE_CONFIG_TYPES[self.type]
        if not isinstance(self.config, expected):
            raise ValueError(
                f"{self.type.value} rule requires {expected.__name__}, got {type(self.config).__name__}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "name": self.name,
            "description": self.description,
            "config": self.config.to_dict(),
            "enabled": self.enabled,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BusinessRule":
        rule_type = RuleType(data["type"])
        created_at = data.get("createdAt")
        if isinstance(created_at, str):
            # JavaScript toISOString() ends in "Z", which fromisoformat rejects before 3.11
            if created_at.endswith("Z"):
                created_at = created_at[:-1] + "+00:00"
            created_at = datetime.fromisoformat(created_at)
        elif not isinstance(created_at, datetime):
            created_at = datetime.now(timezone.utc)
        return cls(
            id=str(data.get("id") or new_rule_id(rule_type)),
            type=rule_type,
            name=str(data.get("name", "")),
            description=str(data.get("description", "")),
            config=RULE_CONFIG_TYPES[rule_type].from_dict(data.get("config") or {}),
            enabled=bool(data.get("enabled", True)),
            created_at=created_at,
        )


# --------- Corrections & Recommendations ---------

@dataclass
class CorrectionSuggestion:
    entity_id: str
    field: str
    current_value: Any
    suggested_value: Any
    reason: str
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_id": self.entity_id,
            "field": self.field,
            "current_value": self.current_value,
            "suggested_value": self.suggested_value,
            "reason": self.reason,
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CorrectionSuggestion":
        return cls(
            entity_id=str(data["entity_id"]),
            field=str(data["field"]),
            current_value=data.get("current_value"),
            suggested_value=data.get("suggested_value"),
            reason=str(data.get("reason", "")),
            confidence=float(data.get("confidence", 0.0)),
        )


class RecommendationKind(str, Enum):
    CO_RUN = "coRun"
    LOAD_LIMIT = "loadLimit"
    SKILL_GAP = "skillGap"


@dataclass
class RuleRecommendation:
    kind: RecommendationKind
    title: str
    description: str
    config: Dict[str, Any]
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind.value,
            "title": self.title,
            "description": self.description,
            "config": dict(self.config),
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RuleRecommendation":
        return cls(
            kind=RecommendationKind(data["type"]),
            title=str(data.get("title", "")),
            description=str(data.get("description", "")),
            config=dict(data.get("config") or {}),
            confidence=float(data.get("confidence", 0.0)),
        )

    def to_rule(self) -> BusinessRule:
        """Turn an accepted recommendation into an enabled rule."""
        if self.kind == RecommendationKind.CO_RUN:
            rule_type, config = RuleType.CO_RUN, CoRunConfig.from_dict(self.config)
        elif self.kind == RecommendationKind.LOAD_LIMIT:
            rule_type, config = RuleType.LOAD_LIMIT, LoadLimitConfig.from_dict(self.config)
        else:
            rule_type, config = RuleType.CUSTOM, CustomConfig(raw_description=self.description)
        return BusinessRule(
            id=new_rule_id(rule_type),
            type=rule_type,
            name=self.title,
            description=self.description,
            config=config,
        )
