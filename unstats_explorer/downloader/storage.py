"""Export helpers for result tables.

Encoding is delegated to pandas / pyarrow / openpyxl; this module only picks
the writer from the file extension and logs what was written.
"""

from __future__ import annotations

import logging
import math
import os
import pathlib
import re
from datetime import datetime
from typing import Mapping, Optional

import pandas as pd
import pyarrow as pa
import pyarrow.feather as feather

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO"))

SUPPORTED_EXTENSIONS = (".csv", ".json", ".arrow", ".xlsx")

# Excel sheet names: max 31 chars, none of []:*?/\
_SHEET_NAME_MAX = 31
_SHEET_INVALID = re.compile(r"[\[\]:*?/\\]")


class UnsupportedFormat(ValueError):
    """Export requested with an extension we have no writer for."""

    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(
            f"Unsupported file format: {extension or '(none)'}. "
            "Use .csv, .json, .arrow, or .xlsx"
        )


def _file_size_mb(path: pathlib.Path) -> float:
    return round(path.stat().st_size / (1024 * 1024), 2)


def _log_written(kind: str, rows: int, path: pathlib.Path) -> None:
    logger.info("Exported %d rows to %s (%.2f MB): %s", rows, kind, _file_size_mb(path), path)


def _is_missing(value: object) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _arrow_safe(df: pd.DataFrame) -> pd.DataFrame:
    """Stringify object columns that mix value types (e.g. "12.5" and 12.5)."""
    out = df.reset_index(drop=True).copy()
    for col in out.columns:
        if out[col].dtype != object:
            continue
        kinds = {type(v) for v in out[col] if not _is_missing(v)}
        if len(kinds) > 1:
            out[col] = out[col].map(lambda v: None if _is_missing(v) else str(v))
    return out


# ------------------------------------------------------------------
# Format-specific writers
# ------------------------------------------------------------------


def export_to_csv(df: pd.DataFrame, filepath: str | os.PathLike) -> pathlib.Path:
    path = pathlib.Path(filepath)
    logger.info("Exporting to CSV: %s", path)
    df.to_csv(path, index=False)
    _log_written("CSV", len(df), path)
    return path


def export_to_json(
    df: pd.DataFrame, filepath: str | os.PathLike, *, pretty: bool = False
) -> pathlib.Path:
    """Write *df* as a JSON array of row objects."""
    path = pathlib.Path(filepath)
    logger.info("Exporting to JSON: %s", path)
    df.to_json(path, orient="records", indent=2 if pretty else None, force_ascii=False)
    _log_written("JSON", len(df), path)
    return path


def export_to_arrow(df: pd.DataFrame, filepath: str | os.PathLike) -> pathlib.Path:
    """Write *df* as an Arrow IPC (Feather v2) file."""
    path = pathlib.Path(filepath)
    logger.info("Exporting to Arrow: %s", path)
    table = pa.Table.from_pandas(_arrow_safe(df), preserve_index=False)
    feather.write_feather(table, str(path))
    _log_written("Arrow", len(df), path)
    return path


def export_to_xlsx(
    df: pd.DataFrame, filepath: str | os.PathLike, *, sheet_name: str = "Data"
) -> pathlib.Path:
    path = pathlib.Path(filepath)
    logger.info("Exporting to Excel: %s", path)
    df.to_excel(path, sheet_name=_sheet_name(sheet_name), index=False, engine="openpyxl")
    _log_written("Excel", len(df), path)
    return path


def _sheet_name(name: str, taken: Optional[set] = None) -> str:
    cleaned = _SHEET_INVALID.sub("_", str(name)).strip() or "Sheet"
    cleaned = cleaned[:_SHEET_NAME_MAX]
    if taken is None:
        return cleaned
    candidate, n = cleaned, 2
    while candidate in taken:
        suffix = f"_{n}"
        candidate = cleaned[: _SHEET_NAME_MAX - len(suffix)] + suffix
        n += 1
    taken.add(candidate)
    return candidate


# ------------------------------------------------------------------
# Dispatch
# ------------------------------------------------------------------

_WRITERS = {
    ".csv": export_to_csv,
    ".json": export_to_json,
    ".arrow": export_to_arrow,
    ".xlsx": export_to_xlsx,
}


def export_data(df: pd.DataFrame, filepath: str | os.PathLike, **kwargs) -> pathlib.Path:
    """Export *df* choosing the writer by file extension.

    Raises
    ------
    UnsupportedFormat
        When the extension is not one of `SUPPORTED_EXTENSIONS`.
    """
    extension = pathlib.Path(filepath).suffix.lower()
    writer = _WRITERS.get(extension)
    if writer is None:
        logger.error("Unsupported file format: %s", extension)
        raise UnsupportedFormat(extension)
    return writer(df, filepath, **kwargs)


def auto_export(
    df: pd.DataFrame,
    base_name: str,
    *,
    fmt: str = "csv",
    output_dir: str | os.PathLike = "./output",
    now: Optional[datetime] = None,
) -> pathlib.Path:
    """Export with a timestamped file name under *output_dir*.

    ``auto_export(df, "goal_1", fmt="arrow")`` →
    ``output/goal_1_20240701_120000.arrow``
    """
    out_dir = pathlib.Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    timestamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return export_data(df, out_dir / f"{base_name}_{timestamp}.{fmt.lstrip('.')}")


def export_multi_sheet_xlsx(
    frames: Mapping[str, pd.DataFrame], filepath: str | os.PathLike
) -> pathlib.Path:
    """Write several tables into one workbook, one sheet per mapping entry."""
    path = pathlib.Path(filepath)
    logger.info("Exporting multi-sheet Excel file: %s", path)

    taken: set = set()
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for name, df in frames.items():
            df.to_excel(writer, sheet_name=_sheet_name(name, taken), index=False)

    logger.info("Exported %d sheets to Excel (%.2f MB): %s", len(frames), _file_size_mb(path), path)
    return path
