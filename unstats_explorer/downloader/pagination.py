"""Page aggregation for paginated SDG data endpoints.

The API answers either with a bare JSON list or with an envelope
``{"data": [...], "totalRecords": N, ...}``. The shape is resolved once in
`parse_page`; `fetch_all_pages` only ever sees a `Page`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from tqdm import tqdm

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO"))

Record = Dict[str, Any]


@dataclass(frozen=True)
class EnvelopedPage:
    """``{"data": [...], "totalRecords": N}`` style response."""

    items: List[Record] = field(default_factory=list)
    total_records: Optional[int] = None


@dataclass(frozen=True)
class BarePage:
    """Response that is the item list itself."""

    items: List[Record] = field(default_factory=list)

    @property
    def total_records(self) -> None:
        return None


Page = Union[EnvelopedPage, BarePage]


def parse_page(payload: Any) -> Page:
    """Resolve a decoded response body into a `Page`."""
    if isinstance(payload, list):
        return BarePage(list(payload))
    if isinstance(payload, dict):
        data = payload.get("data")
        items = list(data) if isinstance(data, list) else []
        total = payload.get("totalRecords")
        return EnvelopedPage(items, int(total) if total is not None else None)
    logger.warning("Unexpected response type %s; treating as empty page", type(payload))
    return BarePage([])


def fetch_all_pages(
    client, endpoint: str, params: Optional[Mapping[str, Any]] = None
) -> List[Record]:
    """Fetch every page of *endpoint* and return the concatenated records.

    Stops on the first empty page, once ``totalRecords`` has been reached,
    or (without ``totalRecords``) on the first page shorter than
    ``pageSize``. The caller's *params* are left untouched.
    """
    page_size = client.config.page_size
    query: Dict[str, Any] = dict(params or {})
    query["pageSize"] = str(page_size)

    records: List[Record] = []
    page_no = 1
    progress: Optional[tqdm] = None

    try:
        while True:
            query["page"] = str(page_no)
            page = parse_page(client.get(endpoint, dict(query)))

            if not page.items:
                break
            records.extend(page.items)

            total = page.total_records
            # Progress bar appears once the first page tells us the total
            if progress is None and total is not None and client.show_progress:
                progress = tqdm(total=total, desc="Fetching data", unit="rec")
            if progress is not None:
                progress.update(len(page.items))

            if total is not None:
                if len(records) >= total:
                    break
            elif len(page.items) < page_size:
                break

            page_no += 1
    finally:
        if progress is not None:
            progress.close()

    logger.info("Fetched %d total records from %s", len(records), endpoint)
    return records
