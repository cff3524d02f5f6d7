import os
import json
from functools import lru_cache
from typing import Any

DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")


@lru_cache(maxsize=None)
def load_table(name: str) -> Any:
    """Load one of the static lookup tables shipped in data_alchemist/data."""
    file = os.path.join(DATA_DIR, f"{name}.json")
    with open(file, encoding="utf-8") as f:
        return json.load(f)
