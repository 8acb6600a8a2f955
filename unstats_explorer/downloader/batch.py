# ruff: noqa: E402
from __future__ import annotations

"""YAML-driven batch exports.

Job files live under ``config/batch/*.yml`` by default; each job maps to a
`BaseJob` subclass through the ``kind`` registry below.
"""

import glob
import logging
import os
import pathlib
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import pandas as pd
import yaml

from ..explorer.input import parse_year_input
from ._base import BaseJob
from .client import RequestFailure
from .data import compare_trends, get_indicator_data, get_series_data
from .metadata import (
    get_geoareas,
    get_goals,
    get_indicators,
    get_series,
    get_targets,
    search_indicators,
)
from .storage import UnsupportedFormat, auto_export, export_data, export_multi_sheet_xlsx

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO"))

DEFAULT_JOB_DIR = "config/batch"
DEFAULT_OUTPUT_DIR = "sdg_exports"


def _as_list(value: Any) -> Optional[List[str]]:
    """YAML の `USA, GBR` / `[USA, GBR]` 両方の書き方を許容する。"""
    if value is None:
        return None
    if isinstance(value, str):
        items = [v.strip() for v in value.split(",") if v.strip()]
    else:
        items = [str(v).strip() for v in value if str(v).strip()]
    return items or None


def _as_years(value: Any) -> Optional[List[int]]:
    if value is None:
        return None
    if isinstance(value, int):
        return [value]
    if isinstance(value, str):
        years = parse_year_input(value)
        if years is None:
            raise ValueError(f"Invalid years: {value!r}")
        return years
    return [int(v) for v in value]


# -------------------------------------------------------------
# Job types
# -------------------------------------------------------------


class IndicatorJob(BaseJob):
    kind = "indicator"

    def __init__(
        self,
        indicator: Optional[str] = None,
        *,
        goal: Optional[str] = None,
        geoareas: Optional[Sequence[str]] = None,
        years: Optional[Sequence[int]] = None,
        output: Optional[str] = None,
    ):
        super().__init__(output)
        if indicator is None and goal is None:
            raise ValueError("indicator job needs 'indicator' or 'goal'")
        self.indicator = indicator
        self.goal = goal
        self.geoareas = geoareas
        self.years = years

    @property
    def name(self) -> str:
        if self.indicator is not None:
            return f"indicator_{self.indicator}"
        return f"goal_{self.goal}_data"

    def run(self, client) -> pd.DataFrame:  # noqa: D401
        return get_indicator_data(
            client,
            indicator=self.indicator,
            goal=self.goal,
            geoareas=self.geoareas,
            time_period=self.years,
        )


class SeriesJob(BaseJob):
    kind = "series"

    def __init__(
        self,
        series: str,
        *,
        geoareas: Optional[Sequence[str]] = None,
        years: Optional[Sequence[int]] = None,
        expand_dimensions: bool = False,
        output: Optional[str] = None,
    ):
        super().__init__(output)
        self.series = series
        self.geoareas = geoareas
        self.years = years
        self.expand_dimensions = expand_dimensions

    @property
    def name(self) -> str:
        return f"series_{self.series}"

    def run(self, client) -> pd.DataFrame:  # noqa: D401
        return get_series_data(
            client,
            series=self.series,
            geoareas=self.geoareas,
            time_period=self.years,
            expand_dimensions=self.expand_dimensions,
        )


class TrendJob(BaseJob):
    kind = "trends"

    def __init__(
        self,
        series: str,
        *,
        areas: Optional[Sequence[str]] = None,
        years: Optional[Sequence[int]] = None,
        output: Optional[str] = None,
    ):
        super().__init__(output)
        self.series = series
        self.areas = list(areas) if areas else ["001"]
        self.years = list(years or [])

    @property
    def name(self) -> str:
        return f"trends_{self.series}"

    def run(self, client) -> pd.DataFrame:  # noqa: D401
        return compare_trends(
            client, series_code=self.series, years=self.years, area_codes=self.areas
        )


class SearchJob(BaseJob):
    """Export the indicator list matching a keyword."""

    kind = "search"

    def __init__(self, keyword: str, *, goal: Optional[str] = None, output: Optional[str] = None):
        super().__init__(output)
        self.keyword = keyword
        self.goal = goal

    @property
    def name(self) -> str:
        return f"indicators_{self.keyword.replace(' ', '_')}"

    def run(self, client) -> pd.DataFrame:  # noqa: D401
        return search_indicators(client, self.keyword, goal=self.goal)


_METADATA_GETTERS: Dict[str, Callable[..., pd.DataFrame]] = {
    "goals": get_goals,
    "targets": get_targets,
    "indicators": get_indicators,
    "series": get_series,
    "geoareas": get_geoareas,
}


class MetadataJob(BaseJob):
    kind = "metadata"

    def __init__(self, collection: str, *, output: Optional[str] = None):
        super().__init__(output)
        if collection not in _METADATA_GETTERS:
            raise ValueError(
                f"Unknown metadata collection {collection!r}; "
                f"expected one of {sorted(_METADATA_GETTERS)}"
            )
        self.collection = collection

    @property
    def name(self) -> str:
        return f"sdg_{self.collection}"

    def run(self, client) -> pd.DataFrame:  # noqa: D401
        return _METADATA_GETTERS[self.collection](client)


# Registry mapping kind → factory
_JOB_FACTORIES: Dict[str, Callable[[Mapping[str, Any]], BaseJob]] = {
    "indicator": lambda d: IndicatorJob(
        None if d.get("indicator") is None else str(d["indicator"]),
        goal=None if d.get("goal") is None else str(d["goal"]),
        geoareas=_as_list(d.get("geoareas")),
        years=_as_years(d.get("years")),
        output=d.get("output"),
    ),
    "series": lambda d: SeriesJob(
        str(d["series"]),
        geoareas=_as_list(d.get("geoareas")),
        years=_as_years(d.get("years")),
        expand_dimensions=bool(d.get("expand_dimensions", False)),
        output=d.get("output"),
    ),
    "trends": lambda d: TrendJob(
        str(d["series"]),
        areas=_as_list(d.get("areas")),
        years=_as_years(d.get("years")),
        output=d.get("output"),
    ),
    "search": lambda d: SearchJob(
        str(d["keyword"]),
        goal=None if d.get("goal") is None else str(d["goal"]),
        output=d.get("output"),
    ),
    "metadata": lambda d: MetadataJob(str(d["collection"]), output=d.get("output")),
}


def build_job(spec: Mapping[str, Any]) -> Optional[BaseJob]:
    """Turn one YAML mapping into a job; ``None`` when it cannot be built."""
    kind = str(spec.get("kind", "indicator"))
    factory = _JOB_FACTORIES.get(kind)
    if not factory:
        logger.warning("Unknown job kind: %s", kind)
        return None
    try:
        return factory(spec)
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("Invalid %s job %s: %s", kind, dict(spec), exc)
        return None


def load_jobs(dirpath: str = DEFAULT_JOB_DIR) -> List[BaseJob]:
    """Load job definitions from YAML files under *dirpath*.

    Each YAML file should follow the schema::

        output_dir: sdg_exports   # optional, per-file
        jobs:
          - kind: indicator       # defaults to "indicator" if omitted
            indicator: "1.1.1"
            geoareas: [USA, GBR]
            years: 2015-2020
            output: poverty.csv

    Jobs inherit the file's ``output_dir``; relative ``output`` names are
    resolved against it.
    """
    jobs: List[BaseJob] = []
    pattern = os.path.join(dirpath, "*.yml")
    for path in sorted(glob.glob(pattern)):
        try:
            with open(path, "r", encoding="utf-8") as fp:
                doc = yaml.safe_load(fp) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Failed to parse YAML %s: %s", path, exc)
            continue
        out_dir = doc.get("output_dir")
        for spec in doc.get("jobs", []) or []:
            if not isinstance(spec, Mapping):
                logger.warning("Skipping non-mapping job entry in %s: %r", path, spec)
                continue
            job = build_job(spec)
            if job is None:
                continue
            if out_dir:
                job.output_dir = str(out_dir)
            jobs.append(job)
    logger.info("Loaded %d batch jobs from %s", len(jobs), dirpath)
    return jobs


def run_jobs(
    client, jobs: Sequence[BaseJob], output_dir: str = DEFAULT_OUTPUT_DIR
) -> List[pathlib.Path]:
    """Run *jobs* sequentially and export each non-empty result.

    A failing job is logged and skipped; the remaining jobs still run.
    """
    written: List[pathlib.Path] = []
    for job in jobs:
        logger.info("Running batch job %s", job.name)
        out_root = pathlib.Path(job.output_dir or output_dir)
        try:
            df = job.run(client)
        except RequestFailure as exc:
            logger.error("Batch job %s failed: %s", job.name, exc)
            continue

        if df.empty:
            logger.warning("Batch job %s returned no rows; nothing exported", job.name)
            continue

        try:
            if job.output:
                target = pathlib.Path(job.output)
                if not target.is_absolute():
                    target = out_root / target
                target.parent.mkdir(parents=True, exist_ok=True)
                written.append(export_data(df, target))
            else:
                written.append(auto_export(df, job.name, output_dir=out_root))
        except UnsupportedFormat as exc:
            logger.error("Batch job %s: %s", job.name, exc)
    return written


def export_metadata_workbook(client, filepath: str | os.PathLike) -> pathlib.Path:
    """Export goals, targets, indicators, series and areas as one workbook."""
    frames = {
        "Goals": get_goals(client),
        "Targets": get_targets(client),
        "Indicators": get_indicators(client),
        "Series": get_series(client),
        "Geographic Areas": get_geoareas(client),
    }
    path = pathlib.Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    return export_multi_sheet_xlsx(frames, path)
