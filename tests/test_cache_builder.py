import json

import httpx
import pytest

from conftest import API, BASE_URL
from services.md_preview.CacheBuilder import CacheBuilder
from services.md_preview.NameIndexCache import NameIndexCache


@pytest.fixture
def builder(helper_config, cache) -> CacheBuilder:
    return CacheBuilder(helper_config=helper_config, cache=cache)


LISTING = [
    {"uuid": "aaa", "name": "readme.md", "is_directory": False},
    {"uuid": "bbb", "name": "docs", "is_directory": True},
    {"uuid": "ccc", "name": "notes.txt"},
]


def test_cache_is_exact_and_last_write_wins():
    cache = NameIndexCache()
    cache.put("Readme.md", "1")
    cache.merge({"readme.md": "2"})
    cache.put("readme.md", "3")

    assert cache.get("Readme.md") == "1"
    assert cache.get("readme.md") == "3"
    assert cache.get("README.MD") is None
    assert len(cache) == 2
    assert "readme.md" in cache


@pytest.mark.parametrize("payload", [
    LISTING,
    {"items": LISTING},
    {"data": LISTING},
    {"children": LISTING},
    {"results": LISTING},
])
def test_listing_shapes_are_recognised(builder, cache, payload):
    merged = builder.observe_payload(f"{BASE_URL}{API}/root/contents", payload)

    assert merged == 2
    assert cache.snapshot() == {"readme.md": "aaa", "notes.txt": "ccc"}


def test_collections_without_ids_and_names_are_ignored(builder, cache):
    assert builder.observe_payload("/api/users", {"items": [{"id": 1, "name": "alice"}]}) == 0
    assert builder.observe_payload("/api/status", {"status": "ok"}) == 0
    assert builder.observe_payload("/api/list", []) == 0
    assert len(cache) == 0


def test_raw_exchanges_skip_downloads_and_non_json(builder, cache):
    body = json.dumps(LISTING)

    assert builder.observe_raw(f"{BASE_URL}{API}/aaa/download", "application/json", body) == 0
    assert builder.observe_raw(f"{BASE_URL}{API}/root/contents", "text/html", body) == 0
    assert builder.observe_raw(f"{BASE_URL}{API}/root/contents", "application/json", "{not json") == 0
    assert len(cache) == 0

    assert builder.observe_raw(f"{BASE_URL}{API}/root/contents", "application/json; charset=utf-8", body) == 2


async def test_observed_response_is_passed_through_unchanged(builder, cache):
    request = httpx.Request("GET", f"{BASE_URL}{API}/root/contents")
    response = httpx.Response(200, json={"items": LISTING}, request=request)

    await builder.on_network_exchange(request, response)

    assert cache.get("readme.md") == "aaa"
    assert response.json() == {"items": LISTING}
    assert response.status_code == 200


async def test_unparseable_json_never_raises(builder, cache):
    request = httpx.Request("GET", f"{BASE_URL}/api/broken")
    response = httpx.Response(200, content=b"{oops", headers={"content-type": "application/json"}, request=request)

    await builder.on_network_exchange(request, response)

    assert len(cache) == 0
    assert response.content == b"{oops"


async def test_response_hook_indexes_listings_fetched_by_the_storage_client(builder, cache, storage_client, host_api):
    host_api.add("GET", f"{API}/f00d/contents", json={"items": LISTING})
    storage_client.add_response_hook(builder.response_hook)

    listing = await storage_client.do_fetch_contents("f00d")

    assert len(listing.nodes) == 3
    assert cache.get("readme.md") == "aaa"
    assert cache.get("docs") is None
