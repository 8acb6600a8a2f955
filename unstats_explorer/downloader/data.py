"""Indicator / series / trend data retrieval.

Data rows are fetched fresh on every call (only metadata is cached). Each
getter maps API records onto a fixed column set; fields missing from a
record become ``None``.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from .pagination import fetch_all_pages, parse_page

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO"))

INDICATOR_DATA_ENDPOINT = "v1/sdg/Indicator/Data"
SERIES_DATA_ENDPOINT = "v1/sdg/Series/Data"
COMPARE_TRENDS_ENDPOINT = "v1/sdg/CompareTrends/DisaggregatedGlobalAndRegional"

INDICATOR_COLUMNS = (
    "goal",
    "target",
    "indicator",
    "series",
    "seriesDescription",
    "geoAreaCode",
    "geoAreaName",
    "timePeriod",
    "value",
    "units",
    "nature",
    "source",
)
SERIES_COLUMNS = (
    "series",
    "seriesDescription",
    "geoAreaCode",
    "geoAreaName",
    "timePeriod",
    "value",
    "units",
    "nature",
    "source",
)
TREND_COLUMNS = (
    "seriesCode",
    "geoAreaCode",
    "geoAreaName",
    "timePeriod",
    "value",
    "nature",
    "source",
)


def _as_code(value: Any) -> Optional[str]:
    if value is None:
        return None
    # API returns goal/target lists for some series ("goal": ["1"])
    if isinstance(value, list):
        return ",".join(str(v) for v in value)
    return str(value)


def records_to_frame(
    records: Iterable[Mapping[str, Any]],
    columns: Sequence[str],
    *,
    code_columns: Iterable[str] = (),
    defaults: Optional[Mapping[str, Any]] = None,
) -> pd.DataFrame:
    """Project *records* onto *columns*.

    *code_columns* are coerced to ``str``; *defaults* supplies per-column
    fallbacks (otherwise ``None``).
    """
    code_columns = set(code_columns)
    defaults = defaults or {}
    rows: List[Dict[str, Any]] = []
    for rec in records:
        if not isinstance(rec, Mapping):
            continue
        row: Dict[str, Any] = {}
        for col in columns:
            val = rec.get(col, defaults.get(col))
            row[col] = _as_code(val) if col in code_columns else val
        rows.append(row)
    return pd.DataFrame(rows, columns=list(columns))


def _join(values: Optional[Iterable[Any]]) -> Optional[str]:
    if values is None:
        return None
    return ",".join(str(v) for v in values)


def _filter_params(**filters: Optional[str]) -> Dict[str, str]:
    return {k: v for k, v in filters.items() if v is not None}


# ------------------------------------------------------------------
# Public API
# ------------------------------------------------------------------


def get_indicator_data(
    client,
    *,
    indicator: Optional[str] = None,
    goal: Optional[str] = None,
    geoareas: Optional[Sequence[str]] = None,
    time_period: Optional[Sequence[int]] = None,
    series: Optional[str] = None,
) -> pd.DataFrame:
    """Get indicator data with optional area / year filters.

    Parameters
    ----------
    indicator, goal, series
        Exact codes, e.g. ``indicator="1.1.1"``.
    geoareas
        Area codes (``["USA", "GBR"]`` or M49 codes such as ``"001"``).
    time_period
        Years to keep, e.g. ``[2019, 2020]``.
    """
    params = _filter_params(
        indicator=indicator,
        goal=goal,
        series=series,
        geoAreaCode=_join(geoareas),
        timePeriod=_join(time_period),
    )
    logger.info("Fetching indicator data: %s", params)

    data = fetch_all_pages(client, INDICATOR_DATA_ENDPOINT, params)
    if not data:
        logger.warning("No data returned for query %s", params)
        return pd.DataFrame(columns=list(INDICATOR_COLUMNS))

    df = records_to_frame(
        data,
        INDICATOR_COLUMNS,
        code_columns=("goal", "target", "indicator", "series", "geoAreaCode"),
    )
    logger.info("Retrieved %d data points", len(df))
    return df


def _expand_dimensions(df: pd.DataFrame, records: List[Mapping[str, Any]]) -> pd.DataFrame:
    """`dimensions` ([{dimensionId, dimensionItemName}, ...]) を列に展開する。"""
    expanded: List[Dict[str, Any]] = []
    for rec in records:
        dims = rec.get("dimensions") or []
        expanded.append(
            {
                str(d.get("dimensionId", "unknown")): d.get("dimensionItemName", "")
                for d in dims
                if isinstance(d, Mapping)
            }
        )
    dim_df = pd.DataFrame(expanded, index=df.index)
    # never shadow a base column
    dim_df = dim_df[[c for c in dim_df.columns if c not in df.columns]]
    return pd.concat([df, dim_df], axis=1)


def get_series_data(
    client,
    *,
    series: str,
    geoareas: Optional[Sequence[str]] = None,
    time_period: Optional[Sequence[int]] = None,
    expand_dimensions: bool = False,
) -> pd.DataFrame:
    """Get data points of a single series (more specific than indicator data)."""
    params = _filter_params(
        series=series,
        geoAreaCode=_join(geoareas),
        timePeriod=_join(time_period),
    )
    logger.info("Fetching series data for %s", series)

    data = fetch_all_pages(client, SERIES_DATA_ENDPOINT, params)
    if not data:
        logger.warning("No data returned for series %s", series)
        return pd.DataFrame(columns=list(SERIES_COLUMNS))

    records = [d for d in data if isinstance(d, Mapping)]
    df = records_to_frame(records, SERIES_COLUMNS, code_columns=("series", "geoAreaCode"))
    if expand_dimensions and any(r.get("dimensions") for r in records):
        df = _expand_dimensions(df, records)

    logger.info("Retrieved %d series data points", len(df))
    return df


def compare_trends(
    client,
    *,
    series_code: str,
    years: Sequence[int] = (),
    area_codes: Sequence[str] = ("001",),
    dimensions: Sequence[Mapping[str, Any]] = (),
) -> pd.DataFrame:
    """Compare a series across global, regional and country levels.

    Issues a single POST; the response is not paginated.
    """
    body = {
        "seriesCode": series_code,
        "years": list(years),
        "areaCodes": list(area_codes),
        "dimensions": [dict(d) for d in dimensions],
    }
    logger.info(
        "Comparing trends for %s (years=%s, areas=%s)", series_code, list(years), list(area_codes)
    )

    page = parse_page(client.post(COMPARE_TRENDS_ENDPOINT, body))
    if not page.items:
        logger.warning("No trend comparison data returned for %s", series_code)
        return pd.DataFrame(columns=list(TREND_COLUMNS))

    df = records_to_frame(page.items, TREND_COLUMNS, code_columns=("seriesCode", "geoAreaCode"))
    logger.info("Retrieved %d trend comparison data points", len(df))
    return df
