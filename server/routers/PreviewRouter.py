from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse

from server.core.RequestHost import RequestHost
from server.dependencies.auth import verify_api_key
from server.models.requests import ActivationRequest, ModeRequest, ObserveRequest, SaveRequest
from server.models.responses import ActivationResponse, ObserveResponse, PreviewResponse, SaveResponse
from services.md_preview.CacheBuilder import CacheBuilder
from services.md_preview.PreviewSession import PreviewSession
from shared.models.page import PageContext, SessionCredentials

router = APIRouter(prefix="/preview", tags=["preview"])


def _get_session(request: Request, session_id: str) -> PreviewSession:
    session = request.app.state.session_registry.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Preview session '{session_id}' not found")
    return session


@router.post("/activate")
async def activate(
    request: Request,
    body: ActivationRequest,
    _: None = Depends(verify_api_key),
) -> Response:
    """Run the preview pipeline for a link the user activated in the host UI.

    Args:
        request (Request): FastAPI request (provides app.state.preview_service).
        body (ActivationRequest): The link attributes and the page state.
        _ (None): Auth dependency result (unused).

    Returns:
        Response: 200 with an ActivationResponse (show the preview, or navigate
        to the native download), or 204 if the click should proceed untouched.
    """
    state = request.app.state
    context = PageContext(
        location_hash=body.location_hash,
        embedded_index=body.embedded_index,
        session=SessionCredentials.from_cookie_header(body.session_cookie),
    )
    host = RequestHost(registry=state.session_registry)
    cache = state.page_caches.get_or_create(body.page_id)
    result = await state.preview_service.run(body.element, context, host=host, cache=cache)

    if result.session is not None:
        answer = ActivationResponse(action="preview", preview=PreviewResponse.from_session(result.session))
        return JSONResponse(answer.model_dump())
    if result.handled and host.navigated_to:
        return JSONResponse(ActivationResponse(action="navigate", url=host.navigated_to).model_dump())
    return Response(status_code=204)


@router.post("/observe", status_code=202)
async def observe(
    request: Request,
    body: ObserveRequest,
    _: None = Depends(verify_api_key),
) -> ObserveResponse:
    """Feed a host API response seen by the browser shim into the name index of its page."""
    state = request.app.state
    cache = state.page_caches.get_or_create(body.page_id)
    merged = CacheBuilder(helper_config=state.helper_config, cache=cache).observe_raw(body.url, body.content_type, body.body)
    return ObserveResponse(merged=merged, cache_size=len(cache))


@router.get("/cache")
async def cache_status(
    request: Request,
    page_id: str = Query(min_length=1),
    _: None = Depends(verify_api_key),
) -> dict:
    cache = request.app.state.page_caches.get(page_id)
    return {"cache_size": len(cache) if cache is not None else 0}


@router.get("/sessions/{session_id}")
async def get_session(request: Request, session_id: str, _: None = Depends(verify_api_key)) -> PreviewResponse:
    return PreviewResponse.from_session(_get_session(request, session_id))


@router.post("/sessions/{session_id}/mode")
async def set_mode(
    request: Request,
    session_id: str,
    body: ModeRequest,
    _: None = Depends(verify_api_key),
) -> PreviewResponse:
    """Switch the view mode of an open preview (preview, raw, edit)."""
    session = _get_session(request, session_id)
    try:
        session.set_mode(body.mode)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return PreviewResponse.from_session(session)


@router.post("/sessions/{session_id}/save")
async def save(
    request: Request,
    session_id: str,
    body: SaveRequest,
    _: None = Depends(verify_api_key),
) -> SaveResponse:
    """Save edited content of an open preview back to the host storage.

    Failures are reported in the body with success=false; they never close the preview.
    """
    session = _get_session(request, session_id)
    session.update_draft(body.content)
    outcome = await session.save()
    return SaveResponse(
        success=outcome.success,
        status_code=outcome.status_code,
        message=outcome.message,
        preview=PreviewResponse.from_session(session),
    )


@router.post("/sessions/{session_id}/cancel")
async def cancel_edit(request: Request, session_id: str, _: None = Depends(verify_api_key)) -> PreviewResponse:
    session = _get_session(request, session_id)
    session.cancel_edit()
    return PreviewResponse.from_session(session)


@router.delete("/sessions/{session_id}", status_code=204)
async def close_session(request: Request, session_id: str, _: None = Depends(verify_api_key)) -> Response:
    session = _get_session(request, session_id)
    session.close()
    request.app.state.session_registry.remove(session_id)
    return Response(status_code=204)
