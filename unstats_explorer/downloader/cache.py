# ruff: noqa: E402
from __future__ import annotations

"""In-memory store for metadata collections.

Entries live as long as the owning client. There is no expiry and no
eviction: goals, targets, indicators, series and geographic areas are small
reference sets, so the cache never grows beyond a few dozen frames.
"""

from typing import Dict, Iterator, Optional

import pandas as pd

# Collections that the API never filters; keyed by their bare name.
_UNFILTERED_KINDS = {"goals", "geoareas"}


def cache_key(kind: str, filter_value: Optional[str] = None) -> str:
    """Return the deterministic key for *kind* / *filter_value*.

    >>> cache_key("indicators", "3")
    'indicators_3'
    >>> cache_key("indicators")
    'indicators_all'
    >>> cache_key("goals")
    'goals'
    """
    if kind in _UNFILTERED_KINDS and filter_value is None:
        return kind
    return f"{kind}_{filter_value if filter_value is not None else 'all'}"


class MetadataCache:
    """Key → DataFrame mapping owned by a single `SDGClient`."""

    def __init__(self) -> None:
        self._store: Dict[str, pd.DataFrame] = {}

    def get(self, key: str) -> Optional[pd.DataFrame]:
        return self._store.get(key)

    def put(self, key: str, value: pd.DataFrame) -> None:
        # overwrite, never merge
        self._store[key] = value

    def keys(self) -> list[str]:
        return list(self._store)

    def clear(self) -> None:
        self._store.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)

    def __iter__(self) -> Iterator[str]:
        return iter(self._store)
