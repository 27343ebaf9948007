import pytest

from conftest import API, BASE_URL, TrackingStream
from services.md_preview.PreviewService import PipelineState, PreviewService
from services.md_preview.PreviewSession import ViewMode
from services.md_preview.ResolutionChain import ResolutionChain
from services.md_preview.SaveService import SaveService
from shared.models.document import Provenance
from shared.models.page import ActivatedElement, PageContext, SessionCredentials

FOLDER_HASH = "#/nodes/f00d"
DOWNLOAD = f"{API}/abc/download"


@pytest.fixture
def save_service(helper_config, storage_client) -> SaveService:
    return SaveService(helper_config=helper_config, storage_client=storage_client)


@pytest.fixture
def service(helper_config, storage_client, cache, save_service, renderer, host) -> PreviewService:
    chain = ResolutionChain(helper_config=helper_config, storage_client=storage_client, cache=cache)
    return PreviewService(
        helper_config=helper_config,
        storage_client=storage_client,
        resolution_chain=chain,
        save_service=save_service,
        renderer=renderer,
        host=host,
    )


def folder_page() -> PageContext:
    return PageContext(
        location_hash=FOLDER_HASH,
        session=SessionCredentials.from_cookie_header("rest_access_token=tok"),
    )


async def test_markdown_link_in_folder_view_opens_rendered_preview(service, host, host_api):
    host_api.add("GET", f"{API}/f00d/contents", json=[{"uuid": "abc", "name": "readme.md", "is_directory": False}])
    host_api.add("GET", DOWNLOAD, text="# Hi", headers={"content-type": "text/plain"})

    result = await service.run(ActivatedElement(text="readme.md", href="#"), folder_page())

    assert result.handled
    assert result.state == PipelineState.PREVIEWING
    assert result.history == [
        PipelineState.IDLE,
        PipelineState.INTERCEPTED,
        PipelineState.RESOLVING,
        PipelineState.FETCHING,
        PipelineState.CLASSIFYING,
        PipelineState.PREVIEWING,
    ]
    session = result.session
    assert host.presented == [session]
    assert host.navigations == []
    assert session.mode == ViewMode.PREVIEW
    assert session.content == "# Hi"
    assert "<h1>Hi</h1>" in session.rendered_html
    assert session.can_edit
    assert session.reference.parent_container_id == "f00d"
    assert result.verdict.provenance == Provenance.FILENAME
    assert host_api.calls_to("GET", DOWNLOAD)[0].headers["cookie"] == "rest_access_token=tok"


async def test_binary_download_falls_back_without_reading_the_body(service, host, host_api):
    stream = TrackingStream(b"\xff\xd8\xff")
    host_api.add("GET", f"{API}/be7a/download", stream=stream, headers={"content-type": "image/jpeg"})

    result = await service.run(ActivatedElement(text="photo.jpg", href=f"{API}/be7a/download"), folder_page())

    assert result.handled
    assert result.state == PipelineState.NATIVE_FALLBACK
    assert host.navigations == [f"{BASE_URL}{API}/be7a/download"]
    assert host.presented == []
    assert not stream.consumed


async def test_unrelated_links_are_not_intercepted(service, host, host_api):
    element = ActivatedElement(text="notes.txt", href="/files/notes.txt")

    assert not service.should_intercept(element)
    assert not await service.on_user_activation(element, folder_page())
    assert host_api.calls == []
    assert host.navigations == []


async def test_unresolved_markdown_link_is_left_to_the_browser(service, host, host_api):
    result = await service.run(ActivatedElement(text="readme.md", href="#"), PageContext())

    assert not result.handled
    assert result.state == PipelineState.NATIVE_FALLBACK
    assert host.navigations == []
    assert host.presented == []


@pytest.mark.parametrize("failure", ["status", "transport"])
async def test_failed_download_falls_back_to_native(service, cache, host, host_api, failure):
    cache.put("readme.md", "abc")
    if failure == "status":
        host_api.add("GET", DOWNLOAD, status_code=404, json={"error": "gone"})
    else:
        host_api.fail("GET", DOWNLOAD)

    handled = await service.on_user_activation(ActivatedElement(text="readme.md"), folder_page())

    assert handled
    assert host.navigations == [f"{BASE_URL}{DOWNLOAD}"]
    assert host.presented == []


async def test_download_link_with_plain_text_opens_in_raw_mode(service, host, host_api):
    host_api.add("GET", DOWNLOAD, text="just some words here", headers={"content-type": "text/plain"})

    result = await service.run(ActivatedElement(text="Download", href=DOWNLOAD), folder_page())

    assert result.state == PipelineState.PREVIEWING
    assert result.session.mode == ViewMode.RAW
    assert result.session.filename == "Download"
    # the link label is not the name the file is stored under
    assert result.session.reference.storage_name is None
    assert not result.session.can_edit


async def test_disposition_filename_rescues_octet_stream(service, host, host_api):
    host_api.add("GET", DOWNLOAD, content=b"# Notes\n\n- a\n- b", headers={
        "content-type": "application/octet-stream",
        "content-disposition": 'attachment; filename="notes.md"',
    })

    result = await service.run(ActivatedElement(href=DOWNLOAD), folder_page())

    assert result.state == PipelineState.PREVIEWING
    assert result.session.filename == "notes.md"
    assert result.session.mode == ViewMode.PREVIEW


async def test_download_link_saves_under_the_disposition_filename(service, host, host_api):
    host_api.add("GET", DOWNLOAD, text="# Notes", headers={
        "content-type": "text/plain",
        "content-disposition": 'attachment; filename="notes.md"',
    })
    host_api.add("POST", f"{API}/f00d/upload", json={"uuid": "abc"})

    session = (await service.run(ActivatedElement(text="Download", href=DOWNLOAD), folder_page())).session
    session.update_draft("# Notes v2")
    outcome = await session.save()

    assert session.filename == "Download"
    assert outcome.success
    assert host_api.calls_to("POST", f"{API}/f00d/upload")[0].url.params["filename"] == "notes.md"


async def test_missing_parent_disables_editing_only(service, cache, host, host_api):
    cache.put("readme.md", "abc")
    host_api.add("GET", f"{API}/abc", status_code=500, text="oops")
    host_api.add("GET", DOWNLOAD, text="# Hi", headers={"content-type": "text/markdown"})

    result = await service.run(ActivatedElement(text="readme.md"), PageContext())
    session = result.session

    assert result.state == PipelineState.PREVIEWING
    assert not session.can_edit
    assert ViewMode.EDIT not in session.get_available_modes()
    with pytest.raises(ValueError):
        session.set_mode(ViewMode.EDIT)
    outcome = await session.save()
    assert not outcome.success
    assert host_api.calls_to("POST", f"{API}/None/upload") == []


async def test_new_preview_supersedes_the_open_one(service, cache, host, host_api):
    cache.merge({"a.md": "abc", "b.md": "def"})
    host_api.add("GET", DOWNLOAD, text="# A", headers={"content-type": "text/plain"})
    host_api.add("GET", f"{API}/def/download", text="# B", headers={"content-type": "text/plain"})

    first = await service.run(ActivatedElement(text="a.md"), folder_page())
    second = await service.run(ActivatedElement(text="b.md"), folder_page())

    assert first.session.closed
    assert not second.session.closed
    assert host.get_current_session() is second.session
    with pytest.raises(ValueError):
        first.session.set_mode(ViewMode.RAW)


async def test_save_updates_shown_content_and_cancel_restores_it(service, cache, host, host_api):
    cache.put("readme.md", "abc")
    host_api.add("GET", DOWNLOAD, text="# Old", headers={"content-type": "text/plain"})
    host_api.add("POST", f"{API}/f00d/upload", json={"uuid": "abc"})

    session = (await service.run(ActivatedElement(text="readme.md"), folder_page())).session
    session.set_mode(ViewMode.EDIT)
    session.update_draft("# New")
    outcome = await session.save()

    assert outcome.success
    assert session.content == "# New"
    assert "<h1>New</h1>" in session.rendered_html
    assert session.status_message == "Saved"
    upload = host_api.calls_to("POST", f"{API}/f00d/upload")[0]
    assert upload.url.params["filename"] == "readme.md"
    assert upload.headers["x-csrf-token"] == "tok"

    session.update_draft("# Discarded")
    session.cancel_edit()
    assert session.draft == "# New"
    assert session.mode == ViewMode.PREVIEW


async def test_failed_save_keeps_preview_open_with_message(service, cache, host, host_api):
    cache.put("readme.md", "abc")
    host_api.add("GET", DOWNLOAD, text="# Old", headers={"content-type": "text/plain"})
    host_api.add("POST", f"{API}/f00d/upload", status_code=403, json={"message": "read only"})

    session = (await service.run(ActivatedElement(text="readme.md"), folder_page())).session
    session.update_draft("# New")
    outcome = await session.save()

    assert not outcome.success
    assert session.status_message == "Save failed: read only"
    assert session.content == "# Old"
    assert not session.closed


async def test_run_requires_a_host(helper_config, storage_client, cache, save_service, renderer):
    chain = ResolutionChain(helper_config=helper_config, storage_client=storage_client, cache=cache)
    service = PreviewService(helper_config, storage_client, chain, save_service, renderer)

    with pytest.raises(ValueError):
        await service.run(ActivatedElement(text="readme.md"), PageContext())
