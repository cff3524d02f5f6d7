import copy
from datetime import datetime, timezone
from typing import Dict, Any

from .errors import UnknownPresetError
from .tables import load_table

DEFAULT_WEIGHTS = {
    "priorityLevel": 0.25,
    "requestFulfillment": 0.25,
    "fairDistribution": 0.2,
    "workloadBalance": 0.15,
    "skillMatch": 0.15,
}


def list_presets() -> Dict[str, Dict[str, Any]]:
    return copy.deepcopy(load_table("priority_presets"))


def get_preset(name: str) -> Dict[str, float]:
    presets = load_table("priority_presets")
    if name not in presets:
        raise UnknownPresetError(name)
    return dict(presets[name]["weights"])


def normalize_weights(weights: Dict[str, float]) -> Dict[str, float]:
    """
    Scale weights so they sum to 1. Missing criteria keep their default
    weight; all-zero weights are returned unchanged.
    """
    unknown = set(weights) - set(DEFAULT_WEIGHTS)
    if unknown:
        raise ValueError(f"Unknown priority criteria: {', '.join(sorted(unknown))}")

    merged = dict(DEFAULT_WEIGHTS)
    for key, value in weights.items():
        value = float(value)
        if value < 0:
            raise ValueError(f"Weight for {key} must not be negative")
        merged[key] = value

    total = sum(merged.values())
    if total > 0:
        return {k: v / total for k, v in merged.items()}
    return merged


def build_priorities_config(weights: Dict[str, float]) -> Dict[str, Any]:
    return {
        "weights": dict(weights),
        "metadata": {
            "exportedAt": datetime.now(timezone.utc).isoformat(),
            "version": "1.0",
        },
    }
