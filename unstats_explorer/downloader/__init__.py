"""Downloader subpackage.

UN SDG API へのアクセス層。リクエスト実行 (rate limit / retry)、ページ集約、
メタデータキャッシュ、データ取得、エクスポート、YAML バッチを提供する。

API 設定 (UNSTATS_BASE_URL, UNSTATS_TIMEOUT など) を `.env` に置いている環境
向けに、ここで一度だけ `load_dotenv()` を呼び出す。
"""

from __future__ import annotations

from dotenv import load_dotenv

# Search upwards from cwd; silently does nothing when no .env is present.
load_dotenv()

# Re-export sub-modules for convenience
from . import cache, client, data, metadata, pagination, storage  # noqa: F401,E402
from .client import RequestFailure, SDGClient  # noqa: E402
from .data import compare_trends, get_indicator_data, get_series_data  # noqa: E402
from .metadata import (  # noqa: E402
    get_geoareas,
    get_goals,
    get_indicators,
    get_series,
    get_targets,
    search_indicators,
)
from .storage import UnsupportedFormat, export_data  # noqa: E402

__all__ = [
    "RequestFailure",
    "SDGClient",
    "UnsupportedFormat",
    "compare_trends",
    "export_data",
    "get_geoareas",
    "get_goals",
    "get_indicator_data",
    "get_indicators",
    "get_series",
    "get_series_data",
    "get_targets",
    "search_indicators",
]
