"""UN Stats SDG data explorer.

Cached metadata lookup, filtered data retrieval, multi-format export and an
interactive terminal menu on top of the UN SDG REST API.
"""

from __future__ import annotations

from .config import SDGConfig
from .downloader.client import RequestFailure, SDGClient

__all__ = ["SDGClient", "SDGConfig", "RequestFailure"]

__version__ = "0.1.0"
