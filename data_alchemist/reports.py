from datetime import datetime, timezone
from typing import List, Dict, Any

import pandas as pd

from .models import ValidationIssue
from .validator import summarize


def build_validation_report(
    issues: List[ValidationIssue],
    clients: List[Dict[str, Any]],
    workers: List[Dict[str, Any]],
    tasks: List[Dict[str, Any]],
) -> Dict[str, Any]:
    summary = summarize(issues)
    return {
        "summary": {
            "totalIssues": summary["total"],
            "errors": summary["error"],
            "warnings": summary["warning"],
            "info": summary["info"],
        },
        "issues": [issue.to_dict() for issue in issues],
        "metadata": {
            "exportedAt": datetime.now(timezone.utc).isoformat(),
            "dataStats": {
                "clients": len(clients),
                "workers": len(workers),
                "tasks": len(tasks),
            },
        },
    }


def _flatten(value: Any) -> Any:
    if isinstance(value, (list, tuple, set)):
        return ",".join(str(v) for v in value)
    return value


def records_to_csv(records: List[Dict[str, Any]]) -> str:
    """CSV text for a record list; list fields become comma strings so the file re-imports cleanly."""
    rows = [{k: _flatten(v) for k, v in record.items()} for record in records]
    return pd.DataFrame(rows).to_csv(index=False)
