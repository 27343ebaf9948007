from pydantic import BaseModel, Field

from services.md_preview.PreviewSession import ViewMode
from shared.models.page import ActivatedElement


class ActivationRequest(BaseModel):
    # id the browser shim gives the page load; scopes the name index
    page_id: str = Field(min_length=1)
    element: ActivatedElement
    location_hash: str = ""
    embedded_index: str | None = None
    session_cookie: str | None = None


class ObserveRequest(BaseModel):
    page_id: str = Field(min_length=1)
    url: str
    content_type: str = ""
    body: str = ""


class ModeRequest(BaseModel):
    mode: ViewMode


class SaveRequest(BaseModel):
    content: str
