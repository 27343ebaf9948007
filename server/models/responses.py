from typing import Literal

from pydantic import BaseModel

from services.md_preview.PreviewSession import PreviewSession


class PreviewResponse(BaseModel):
    session_id: str
    filename: str
    storage_id: str | None
    parent_id: str | None
    mode: str
    available_modes: list[str]
    can_edit: bool
    verdict: str
    provenance: str
    content: str
    rendered_html: str
    status_message: str

    @classmethod
    def from_session(cls, session: PreviewSession) -> "PreviewResponse":
        return cls(
            session_id=session.session_id,
            filename=session.filename,
            storage_id=session.reference.storage_id,
            parent_id=session.reference.parent_container_id,
            mode=session.mode.value,
            available_modes=[mode.value for mode in session.get_available_modes()],
            can_edit=session.can_edit,
            verdict=session.verdict.verdict.value,
            provenance=session.verdict.provenance.value,
            content=session.content,
            rendered_html=session.rendered_html,
            status_message=session.status_message,
        )


class SaveResponse(BaseModel):
    success: bool
    status_code: int | None
    message: str
    preview: PreviewResponse


class ObserveResponse(BaseModel):
    merged: int
    cache_size: int


class ActivationResponse(BaseModel):
    """What the browser shim does with the click: show the preview, or navigate to url."""
    action: Literal["preview", "navigate"]
    url: str | None = None
    preview: PreviewResponse | None = None
