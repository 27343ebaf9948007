"""Pydantic models for the documents the preview pipeline works on.

Hierarchy:
  DocumentReference     : identifiers resolved for one clicked item.
  ClassificationVerdict : tri-state outcome of one classification signal.
  FetchHeaders          : content headers of a single download response.
  SaveOutcome           : result of one edit/save round-trip.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Verdict(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    UNKNOWN = "unknown"


class Provenance(str, Enum):
    """Which signal produced a verdict."""
    FILENAME = "filename"
    HEADER = "header"
    CONTENT = "content"
    CONTENT_TYPE = "content_type"
    COMBINED = "combined"


class ClassificationVerdict(BaseModel):
    """
    Outcome of a single classification signal, tagged with the signal that produced it.
    """
    model_config = ConfigDict(frozen=True)

    verdict: Verdict = Verdict.UNKNOWN
    provenance: Provenance

    def is_positive(self) -> bool:
        return self.verdict == Verdict.POSITIVE

    def is_negative(self) -> bool:
        return self.verdict == Verdict.NEGATIVE


class DocumentReference(BaseModel):
    """
    Identifiers of the item behind one user interaction.

    Built once by the resolution chain and never mutated afterwards. Only a
    reference carrying a download_url is handed to the fetch stage.
    """
    model_config = ConfigDict(frozen=True)

    display_name: str
    storage_id: str | None = None
    parent_container_id: str | None = None
    download_url: str | None = None
    # name the host stores the file under; None when only a link label is known
    storage_name: str | None = None

    def is_fetchable(self) -> bool:
        return bool(self.download_url)

    def can_edit(self) -> bool:
        return bool(self.parent_container_id and self.storage_name)


class FetchHeaders(BaseModel):
    """
    Content headers of one download response. Only used for classification.
    """
    content_type: str = ""
    content_disposition: str = ""


class SaveOutcome(BaseModel):
    """
    Result of an edit/save round-trip as shown to the user.
    """
    success: bool
    status_code: int | None = None
    message: str = ""
