import os
import math
import logging
from typing import List, Dict, Any, Tuple, Optional

import pandas as pd

from .errors import UnsupportedInputError
from .normalizer import normalize, NormalizationResult

logger = logging.getLogger(__name__)

CSV_EXTENSIONS = {".csv"}
EXCEL_EXTENSIONS = {".xlsx", ".xls"}


def _clean_value(value: Any) -> Any:
    """Turn pandas NaN/inf cells into empty strings."""
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return ""
    if value is None or (not isinstance(value, (list, dict)) and pd.isna(value)):
        return ""
    return value


def _clean_data(df: pd.DataFrame) -> Tuple[List[Dict[str, Any]], List[str]]:
    df = df.rename(columns=lambda c: str(c).strip())
    headers = [h for h in df.columns if h and not h.startswith("Unnamed:")]
    rows = []
    for record in df.to_dict(orient="records"):
        rows.append({h: _clean_value(record.get(h)) for h in headers})
    return rows, headers


def read_table(source, filename: Optional[str] = None) -> Tuple[List[Dict[str, Any]], List[str]]:
    """
    Read a CSV or Excel sheet into (rows, headers) with every cell kept as text.

    source may be a path or a binary file object; filename decides the format
    when source is not a path.
    """
    name = filename or (source if isinstance(source, (str, os.PathLike)) else "")
    extension = os.path.splitext(str(name))[1].lower()

    if extension not in CSV_EXTENSIONS | EXCEL_EXTENSIONS:
        raise UnsupportedInputError(f"Unsupported file format: {name or 'unknown'}")

    try:
        if extension in CSV_EXTENSIONS:
            df = pd.read_csv(source, dtype=str, keep_default_na=False, skip_blank_lines=True)
        else:
            df = pd.read_excel(source, sheet_name=0, dtype=str)
    except pd.errors.EmptyDataError as e:
        raise UnsupportedInputError(f"Empty file: {name}") from e
    except (ValueError, OSError) as e:
        raise UnsupportedInputError(f"Could not read {name}: {e}") from e

    rows, headers = _clean_data(df)
    logger.info("Read %d rows with %d columns from %s", len(rows), len(headers), name)
    return rows, headers


def load_entity_file(source, entity_kind, filename: Optional[str] = None) -> NormalizationResult:
    rows, headers = read_table(source, filename)
    return normalize(rows, headers, entity_kind)
