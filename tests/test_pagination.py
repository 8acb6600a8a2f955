from types import SimpleNamespace

import pytest

from unstats_explorer.downloader.pagination import (
    BarePage,
    EnvelopedPage,
    fetch_all_pages,
    parse_page,
)


class ScriptedClient:
    """Returns queued payloads from `get` and records the query of each call."""

    def __init__(self, payloads, page_size=3, show_progress=False):
        self.config = SimpleNamespace(page_size=page_size)
        self.show_progress = show_progress
        self._payloads = list(payloads)
        self.calls = []

    def get(self, endpoint, params=None):
        self.calls.append((endpoint, dict(params or {})))
        return self._payloads.pop(0)


def _records(n, start=0):
    return [{"value": i} for i in range(start, start + n)]


def test_parse_page_shapes():
    assert parse_page([{"a": 1}]) == BarePage([{"a": 1}])
    assert parse_page({"data": [{"a": 1}], "totalRecords": 7}) == EnvelopedPage([{"a": 1}], 7)
    assert parse_page({"totalRecords": 7}).items == []
    assert parse_page({"data": []}).total_records is None
    assert parse_page("garbage") == BarePage([])
    assert BarePage([]).total_records is None


def test_short_page_terminates_without_total():
    client = ScriptedClient([_records(3), _records(3, 3), _records(2, 6)], page_size=3)

    records = fetch_all_pages(client, "v1/sdg/Series/Data", {"series": "X"})

    assert [r["value"] for r in records] == list(range(8))
    assert [q["page"] for _, q in client.calls] == ["1", "2", "3"]
    assert all(q["pageSize"] == "3" and q["series"] == "X" for _, q in client.calls)


def test_total_records_stops_without_extra_request():
    pages = [
        {"data": _records(3), "totalRecords": 6},
        {"data": _records(3, 3), "totalRecords": 6},
    ]
    client = ScriptedClient(pages, page_size=3)

    records = fetch_all_pages(client, "v1/sdg/Indicator/Data")

    assert len(records) == 6
    assert len(client.calls) == 2


def test_empty_first_page():
    client = ScriptedClient([{"data": [], "totalRecords": 0}])
    assert fetch_all_pages(client, "v1/sdg/Indicator/Data") == []
    assert len(client.calls) == 1


def test_full_pages_continue_until_empty():
    client = ScriptedClient([_records(3), _records(3, 3), []], page_size=3)
    assert len(fetch_all_pages(client, "v1/sdg/Indicator/Data")) == 6
    assert len(client.calls) == 3


def test_caller_params_untouched():
    params = {"indicator": "1.1.1"}
    client = ScriptedClient([_records(1)], page_size=3)
    fetch_all_pages(client, "v1/sdg/Indicator/Data", params)
    assert params == {"indicator": "1.1.1"}


@pytest.mark.parametrize("show_progress", [True, False])
def test_progress_bar_does_not_change_result(show_progress):
    pages = [{"data": _records(3), "totalRecords": 5}, {"data": _records(2, 3), "totalRecords": 5}]
    client = ScriptedClient(pages, page_size=3, show_progress=show_progress)
    assert len(fetch_all_pages(client, "v1/sdg/Indicator/Data")) == 5
