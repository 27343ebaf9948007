"""Shared fixtures: environment, a scripted fake of the host storage API and a recording host."""

import logging
from typing import Any

import httpx
import pytest
import pytest_asyncio

from services.md_preview.HostEnvironmentInterface import HostEnvironmentInterface
from services.md_preview.MarkdownRenderer import MarkdownRenderer
from services.md_preview.NameIndexCache import NameIndexCache
from services.md_preview.PreviewSession import PreviewSession
from shared.clients.render.basic.RenderClientBasic import RenderClientBasic
from shared.clients.render.markdownit.RenderClientMarkdownit import RenderClientMarkdownit
from shared.clients.storage.acronis.StorageClientAcronis import StorageClientAcronis
from shared.helper.HelperConfig import HelperConfig

BASE_URL = "https://cloud.example.com"
API = "/fc/api/v1/sync_and_share_nodes"


class TrackingStream(httpx.AsyncByteStream):
    """Response body that remembers whether anyone read it."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.consumed = False

    async def __aiter__(self):
        self.consumed = True
        yield self.data

    async def aclose(self) -> None:
        pass


class FakeHostApi:
    """Scripted stand-in for the host REST API, served through httpx.MockTransport.

    Responses are queued per (method, path); the last queued response repeats.
    Every request is recorded.
    """

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], list[dict[str, Any]]] = {}
        self.calls: list[httpx.Request] = []

    def add(self, method: str, path: str, status_code: int = 200, **kwargs: Any) -> "FakeHostApi":
        self._routes.setdefault((method.upper(), path), []).append({"status_code": status_code, **kwargs})
        return self

    def fail(self, method: str, path: str) -> "FakeHostApi":
        self._routes.setdefault((method.upper(), path), []).append({"raise": True})
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"error": "not found"})
        scripted = dict(queue.pop(0) if len(queue) > 1 else queue[0])
        if scripted.pop("raise", False):
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(scripted.pop("status_code"), **scripted)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls_to(self, method: str, path: str) -> list[httpx.Request]:
        return [c for c in self.calls if c.method == method.upper() and c.url.path == path]


class RecordingHost(HostEnvironmentInterface):
    def __init__(self) -> None:
        super().__init__()
        self.navigations: list[str] = []
        self.presented: list[PreviewSession] = []

    async def navigate(self, url: str) -> None:
        self.navigations.append(url)

    async def _present(self, session: PreviewSession) -> None:
        self.presented.append(session)


@pytest.fixture(autouse=True)
def storage_env(monkeypatch):
    monkeypatch.setenv("STORAGE_ACRONIS_BASE_URL", BASE_URL)
    monkeypatch.setenv("API_SERVER_API_KEY", "test-key")
    monkeypatch.delenv("STORAGE_ENGINE", raising=False)
    monkeypatch.delenv("RENDER_ENGINE", raising=False)
    monkeypatch.delenv("STORAGE_ACRONIS_API_PATH", raising=False)


@pytest.fixture
def helper_config() -> HelperConfig:
    return HelperConfig(logger=logging.getLogger("md_preview_bridge.tests"))


@pytest.fixture
def host_api() -> FakeHostApi:
    return FakeHostApi()


@pytest.fixture
def cache() -> NameIndexCache:
    return NameIndexCache()


@pytest_asyncio.fixture
async def storage_client(helper_config, host_api):
    client = StorageClientAcronis(helper_config=helper_config)
    await client.boot(transport=host_api.transport())
    yield client
    await client.close()


@pytest.fixture
def renderer(helper_config) -> MarkdownRenderer:
    return MarkdownRenderer(
        helper_config=helper_config,
        render_client=RenderClientMarkdownit(helper_config=helper_config),
        fallback_client=RenderClientBasic(helper_config=helper_config),
    )


@pytest.fixture
def host() -> RecordingHost:
    return RecordingHost()
