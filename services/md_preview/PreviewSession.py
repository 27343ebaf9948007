"""In-memory model of the preview overlay raised for one intercepted click."""

import uuid
from enum import Enum

from services.md_preview.MarkdownRenderer import MarkdownRenderer
from services.md_preview.SaveService import SaveService
from shared.models.document import ClassificationVerdict, DocumentReference, SaveOutcome
from shared.models.page import SessionCredentials

SAVING_MESSAGE = "Saving..."
EDIT_UNAVAILABLE_MESSAGE = "Editing is not available for this document"


class ViewMode(str, Enum):
    PREVIEW = "preview"
    RAW = "raw"
    EDIT = "edit"


class PreviewSession:
    """
    State of one open preview: the document text, its rendering, the active view
    mode and the edit buffer.

    Edit mode and saving are only offered when the folder of the document is
    known. Closing is final; a host closes its open session before presenting a
    new one.
    """

    def __init__(
        self,
        content: str,
        reference: DocumentReference,
        verdict: ClassificationVerdict,
        renderer: MarkdownRenderer,
        save_service: SaveService,
        credentials: SessionCredentials | None = None,
    ) -> None:
        self.session_id = uuid.uuid4().hex
        self.reference = reference
        self.verdict = verdict
        self._renderer = renderer
        self._save_service = save_service
        self._credentials = credentials

        self.content = content
        self.draft = content
        self.rendered_html = renderer.render(content)
        self.mode = ViewMode.PREVIEW if verdict.is_positive() else ViewMode.RAW
        self.status_message = ""
        self.closed = False

    ################ GETTER ##################
    @property
    def filename(self) -> str:
        return self.reference.display_name

    @property
    def can_edit(self) -> bool:
        return self.reference.can_edit()

    def get_available_modes(self) -> list[ViewMode]:
        modes = [ViewMode.PREVIEW, ViewMode.RAW]
        if self.can_edit:
            modes.append(ViewMode.EDIT)
        return modes

    ################ VIEW ##################
    def set_mode(self, mode: ViewMode) -> None:
        """Switches the visible view.

        Raises:
            ValueError: If the session is closed or the mode is not available.
        """
        if self.closed:
            raise ValueError("Preview session is closed.")
        if mode not in self.get_available_modes():
            raise ValueError(f"View mode '{mode.value}' is not available for '{self.filename}'.")
        self.mode = mode

    def update_draft(self, text: str) -> None:
        self.draft = text

    def cancel_edit(self) -> None:
        """Discards the edit buffer and returns to the rendered view."""
        self.draft = self.content
        self.mode = ViewMode.PREVIEW

    def close(self) -> None:
        self.closed = True

    ################ SAVE ##################
    async def save(self) -> SaveOutcome:
        """Saves the edit buffer. On success the shown text and rendering follow the saved value."""
        if not self.can_edit:
            outcome = SaveOutcome(success=False, message=EDIT_UNAVAILABLE_MESSAGE)
            self.status_message = outcome.message
            return outcome

        self.status_message = SAVING_MESSAGE
        draft = self.draft
        outcome = await self._save_service.save(
            self.reference.parent_container_id,
            self.reference.storage_name,
            draft,
            session=self._credentials,
        )
        if outcome.success:
            self.content = draft
            self.rendered_html = self._renderer.render(draft)
        self.status_message = outcome.message
        return outcome
