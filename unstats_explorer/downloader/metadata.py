"""Metadata retrieval with caching.

Goals, targets, indicators, series and geographic areas are reference sets
that change rarely. Each getter looks in ``client.cache`` first and only
hits the network on a miss (or when ``force_refresh=True``). A failed fetch
raises before the cache is touched, so entries are always complete.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

import pandas as pd

from .cache import cache_key
from .data import records_to_frame
from .pagination import parse_page

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO"))

GOAL_LIST_ENDPOINT = "v1/sdg/Goal/List"
TARGET_LIST_ENDPOINT = "v1/sdg/Target/List"
INDICATOR_LIST_ENDPOINT = "v1/sdg/Indicator/List"
SERIES_LIST_ENDPOINT = "v1/sdg/Series/List"
GEOAREA_LIST_ENDPOINT = "v1/sdg/GeoArea/List"

GOAL_COLUMNS = ("code", "title", "description")
TARGET_COLUMNS = ("code", "goal", "title", "description")
INDICATOR_LIST_COLUMNS = ("code", "goal", "target", "description")
SERIES_LIST_COLUMNS = ("code", "description", "indicator", "goal", "target")
GEOAREA_COLUMNS = ("geoAreaCode", "geoAreaName", "geoAreaType")

_DESCRIPTION_DEFAULT = {"description": ""}


def _cached_fetch(
    client,
    *,
    kind: str,
    filter_value: Optional[str],
    endpoint: str,
    params: Optional[Dict[str, str]],
    columns: Sequence[str],
    code_columns: Iterable[str],
    defaults: Optional[Mapping[str, Any]] = None,
    force_refresh: bool = False,
) -> pd.DataFrame:
    key = cache_key(kind, filter_value)

    if not force_refresh:
        cached = client.cache.get(key)
        if cached is not None:
            logger.info("Returning cached %s (%s)", kind, key)
            return cached

    logger.info("Fetching %s from API (filter=%s)", kind, filter_value)
    response = client.get(endpoint, params)
    frame = records_to_frame(
        parse_page(response).items, columns, code_columns=code_columns, defaults=defaults
    )

    client.cache.put(key, frame)
    logger.info("Cached %d %s", len(frame), kind)
    return frame


# ------------------------------------------------------------------
# Public API
# ------------------------------------------------------------------


def get_goals(client, *, force_refresh: bool = False) -> pd.DataFrame:
    """Get the list of all SDG goals (cached)."""
    return _cached_fetch(
        client,
        kind="goals",
        filter_value=None,
        endpoint=GOAL_LIST_ENDPOINT,
        params=None,
        columns=GOAL_COLUMNS,
        code_columns=("code",),
        defaults=_DESCRIPTION_DEFAULT,
        force_refresh=force_refresh,
    )


def get_targets(
    client, *, goal: Optional[str] = None, force_refresh: bool = False
) -> pd.DataFrame:
    """Get targets, optionally restricted to one *goal* (cached per goal)."""
    goal = None if goal is None else str(goal)
    return _cached_fetch(
        client,
        kind="targets",
        filter_value=goal,
        endpoint=TARGET_LIST_ENDPOINT,
        params=None if goal is None else {"goal": goal},
        columns=TARGET_COLUMNS,
        code_columns=("code", "goal"),
        defaults=_DESCRIPTION_DEFAULT,
        force_refresh=force_refresh,
    )


def get_indicators(
    client, *, goal: Optional[str] = None, force_refresh: bool = False
) -> pd.DataFrame:
    """Get indicators, optionally restricted to one *goal* (cached per goal)."""
    goal = None if goal is None else str(goal)
    return _cached_fetch(
        client,
        kind="indicators",
        filter_value=goal,
        endpoint=INDICATOR_LIST_ENDPOINT,
        params=None if goal is None else {"goal": goal},
        columns=INDICATOR_LIST_COLUMNS,
        code_columns=("code", "goal", "target"),
        defaults=_DESCRIPTION_DEFAULT,
        force_refresh=force_refresh,
    )


def get_series(
    client, *, indicator: Optional[str] = None, force_refresh: bool = False
) -> pd.DataFrame:
    """Get data series, optionally for a single *indicator* (cached)."""
    return _cached_fetch(
        client,
        kind="series",
        filter_value=indicator,
        endpoint=SERIES_LIST_ENDPOINT,
        params=None if indicator is None else {"indicator": indicator},
        columns=SERIES_LIST_COLUMNS,
        code_columns=("code", "indicator", "goal", "target"),
        defaults=_DESCRIPTION_DEFAULT,
        force_refresh=force_refresh,
    )


def get_geoareas(client, *, force_refresh: bool = False) -> pd.DataFrame:
    """Get the list of geographic areas (cached)."""
    return _cached_fetch(
        client,
        kind="geoareas",
        filter_value=None,
        endpoint=GEOAREA_LIST_ENDPOINT,
        params=None,
        columns=GEOAREA_COLUMNS,
        code_columns=("geoAreaCode",),
        force_refresh=force_refresh,
    )


def search_indicators(
    client, keyword: str, *, goal: Optional[str] = None
) -> pd.DataFrame:
    """Search indicators whose description contains *keyword* (case-insensitive)."""
    indicators = get_indicators(client, goal=goal)
    if indicators.empty:
        return indicators

    descriptions = indicators["description"].fillna("").astype(str).str.lower()
    mask = descriptions.str.contains(keyword.lower(), regex=False)
    results = indicators[mask].reset_index(drop=True)

    logger.info("Found %d indicators matching '%s'", len(results), keyword)
    return results
