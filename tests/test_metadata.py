import pytest
import responses

from unstats_explorer.downloader.cache import MetadataCache, cache_key
from unstats_explorer.downloader.client import RequestFailure
from unstats_explorer.downloader.metadata import (
    get_geoareas,
    get_goals,
    get_indicators,
    get_targets,
    search_indicators,
)

from conftest import BASE_URL

GOALS = [
    {"code": "1", "title": "No poverty", "description": "End poverty in all its forms"},
    {"code": "2", "title": "Zero hunger"},
]
INDICATORS = [
    {"code": "1.1.1", "goal": "1", "target": "1.1", "description": "Proportion of population below the international poverty line"},
    {"code": "1.2.1", "goal": "1", "target": "1.2", "description": "Proportion of population living below the national poverty line"},
    {"code": "1.4.1", "goal": "1", "target": "1.4", "description": "Access to basic services"},
]


def test_cache_key_shapes():
    assert cache_key("goals") == "goals"
    assert cache_key("geoareas") == "geoareas"
    assert cache_key("indicators") == "indicators_all"
    assert cache_key("indicators", "3") == "indicators_3"
    assert cache_key("targets", "1") == "targets_1"


def test_metadata_cache_overwrites():
    cache = MetadataCache()
    cache.put("goals", "a")
    cache.put("goals", "b")
    assert cache.get("goals") == "b"
    assert "goals" in cache and len(cache) == 1
    cache.clear()
    assert cache.get("goals") is None


@responses.activate
def test_goals_are_fetched_once(client):
    responses.add(responses.GET, f"{BASE_URL}/v1/sdg/Goal/List", json=GOALS, status=200)

    first = get_goals(client)
    second = get_goals(client)

    assert len(responses.calls) == 1
    assert second is first
    assert list(first.columns) == ["code", "title", "description"]
    # missing description defaults to ""
    assert first.loc[1, "description"] == ""


@responses.activate
def test_force_refresh_overwrites_entry(client):
    url = f"{BASE_URL}/v1/sdg/Goal/List"
    responses.add(responses.GET, url, json=GOALS[:1], status=200)
    responses.add(responses.GET, url, json=GOALS, status=200)

    assert len(get_goals(client)) == 1
    refreshed = get_goals(client, force_refresh=True)

    assert len(responses.calls) == 2
    assert len(refreshed) == 2
    assert client.cache.get("goals") is refreshed


@responses.activate
def test_filtered_collections_are_cached_per_filter(client):
    url = f"{BASE_URL}/v1/sdg/Indicator/List"
    responses.add(responses.GET, url, json=INDICATORS, status=200)
    responses.add(responses.GET, url, json=INDICATORS[:1], status=200)

    get_indicators(client)
    get_indicators(client, goal="1")

    assert set(client.cache.keys()) == {"indicators_all", "indicators_1"}
    assert responses.calls[1].request.url.endswith("?goal=1")


@responses.activate
def test_failed_fetch_leaves_cache_untouched(make_client):
    client = make_client(max_retries=1)
    responses.add(responses.GET, f"{BASE_URL}/v1/sdg/Target/List", status=500)

    with pytest.raises(RequestFailure):
        get_targets(client)
    assert len(client.cache) == 0


@responses.activate
def test_enveloped_list_response(client):
    responses.add(
        responses.GET,
        f"{BASE_URL}/v1/sdg/GeoArea/List",
        json={"data": [{"geoAreaCode": 840, "geoAreaName": "United States of America"}]},
        status=200,
    )

    areas = get_geoareas(client)
    assert areas.loc[0, "geoAreaCode"] == "840"
    assert areas["geoAreaType"].isna().all()


@responses.activate
def test_search_is_case_insensitive_substring(client):
    responses.add(responses.GET, f"{BASE_URL}/v1/sdg/Indicator/List", json=INDICATORS, status=200)

    results = search_indicators(client, "POVERTY")

    assert list(results["code"]) == ["1.1.1", "1.2.1"]
    assert list(results.index) == [0, 1]
    # second search is served from the cache
    search_indicators(client, "services")
    assert len(responses.calls) == 1
