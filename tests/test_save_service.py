import pytest

from conftest import API
from services.md_preview import SaveService as save_module
from services.md_preview.SaveService import SaveService

UPLOAD = f"{API}/p1/upload"


@pytest.fixture
def sleeps(monkeypatch) -> list[float]:
    recorded: list[float] = []

    async def fake_sleep(delay):
        recorded.append(delay)

    monkeypatch.setattr(save_module.asyncio, "sleep", fake_sleep)
    return recorded


@pytest.fixture
def save_service(helper_config, storage_client) -> SaveService:
    return SaveService(helper_config=helper_config, storage_client=storage_client)


async def test_successful_save_uploads_once(save_service, host_api, sleeps):
    host_api.add("POST", UPLOAD, json={"uuid": "abc"})

    outcome = await save_service.save("p1", "readme.md", "# New")

    assert outcome.success
    assert outcome.status_code == 200
    assert len(host_api.calls) == 1
    assert host_api.calls[0].content == b"# New"
    assert sleeps == []


async def test_server_fault_is_retried_once_after_delay(save_service, host_api, sleeps):
    host_api.add("POST", UPLOAD, status_code=500, json={"message": "busy"})
    host_api.add("POST", UPLOAD, status_code=201, json={"uuid": "abc"})

    outcome = await save_service.save("p1", "readme.md", "# New")

    assert outcome.success
    assert outcome.status_code == 201
    assert len(host_api.calls) == 2
    assert sleeps == [1.5]


async def test_retried_result_is_surfaced_without_further_retries(save_service, host_api, sleeps):
    host_api.add("POST", UPLOAD, status_code=500, json={"message": "busy"})
    host_api.add("POST", UPLOAD, status_code=503, json={"message": "still down"})
    host_api.add("POST", UPLOAD, status_code=200, json={})

    outcome = await save_service.save("p1", "readme.md", "# New")

    assert not outcome.success
    assert outcome.status_code == 503
    assert outcome.message == "Save failed: still down"
    assert len(host_api.calls) == 2


async def test_client_error_is_not_retried(save_service, host_api, sleeps):
    host_api.add("POST", UPLOAD, status_code=401, json={"error": "unauthorized"})

    outcome = await save_service.save("p1", "readme.md", "# New")

    assert not outcome.success
    assert outcome.status_code == 401
    assert outcome.message == "Save failed: unauthorized"
    assert len(host_api.calls) == 1
    assert sleeps == []


async def test_non_json_error_body_gets_plain_message(save_service, host_api, sleeps):
    host_api.add("POST", UPLOAD, status_code=413, text="<html>too large</html>")

    outcome = await save_service.save("p1", "readme.md", "# New")

    assert outcome.message == "Save failed"


async def test_transport_failure_is_reported_not_raised(save_service, host_api, sleeps):
    host_api.fail("POST", UPLOAD)

    outcome = await save_service.save("p1", "readme.md", "# New")

    assert not outcome.success
    assert outcome.status_code is None
    assert outcome.message.startswith("Error: ")


async def test_retry_delay_is_configurable(helper_config, storage_client, host_api, sleeps, monkeypatch):
    monkeypatch.setenv("SAVE_RETRY_DELAY", "0.25")
    service = SaveService(helper_config=helper_config, storage_client=storage_client)
    host_api.add("POST", UPLOAD, status_code=502)
    host_api.add("POST", UPLOAD, status_code=200, json={})

    await service.save("p1", "readme.md", "x")

    assert sleeps == [0.25]
