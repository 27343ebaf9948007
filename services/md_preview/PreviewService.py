"""Content fetch & fallback orchestrator.

Runs one pipeline per activated link:

    IDLE → INTERCEPTED → RESOLVING → FETCHING → CLASSIFYING → PREVIEWING | NATIVE_FALLBACK

Every failure branch ends in the native download, so the user can always
obtain the file. Pipelines for different clicks share nothing but the
NameIndexCache behind the resolution chain.
"""

from enum import Enum

import httpx
from pydantic import BaseModel, ConfigDict

from services.md_preview.Classifier import (
    classify_by_content_type,
    classify_by_name,
    classify_response,
    extract_disposition_filename,
    CONTENT_MAX_CHARS,
)
from services.md_preview.HostEnvironmentInterface import HostEnvironmentInterface
from services.md_preview.MarkdownRenderer import MarkdownRenderer
from services.md_preview.NameIndexCache import NameIndexCache
from services.md_preview.PreviewSession import PreviewSession
from services.md_preview.ResolutionChain import ResolutionChain
from services.md_preview.SaveService import SaveService
from shared.clients.storage.StorageClientInterface import StorageClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import ClassificationVerdict, DocumentReference, FetchHeaders
from shared.models.page import ActivatedElement, PageContext

DEFAULT_DISPLAY_NAME = "document.md"


class PipelineState(str, Enum):
    IDLE = "idle"
    INTERCEPTED = "intercepted"
    RESOLVING = "resolving"
    FETCHING = "fetching"
    CLASSIFYING = "classifying"
    PREVIEWING = "previewing"
    NATIVE_FALLBACK = "native_fallback"


class PipelineResult(BaseModel):
    """
    Terminal outcome of one pipeline run.

    Attributes:
        state (PipelineState): The terminal state.
        handled (bool): True if the default action was suppressed and replaced.
        history (list[PipelineState]): Every state visited, in order.
        reference (DocumentReference | None): The resolved reference, if any.
        verdict (ClassificationVerdict | None): The combined verdict, if the body was classified.
        session (PreviewSession | None): The preview raised, if any.
        fallback_url (str | None): The URL handed to native navigation, if any.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    state: PipelineState
    handled: bool
    history: list[PipelineState] = []
    reference: DocumentReference | None = None
    verdict: ClassificationVerdict | None = None
    session: PreviewSession | None = None
    fallback_url: str | None = None


class _FetchFallback(Exception):
    """Raised inside the fetch stage to divert the pipeline to the native download."""


class PreviewService:
    """Intercepts link activations and replaces Markdown downloads with a preview."""

    def __init__(
        self,
        helper_config: HelperConfig,
        storage_client: StorageClientInterface,
        resolution_chain: ResolutionChain,
        save_service: SaveService,
        renderer: MarkdownRenderer,
        host: HostEnvironmentInterface | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._storage_client = storage_client
        self._resolution_chain = resolution_chain
        self._save_service = save_service
        self._renderer = renderer
        self._host = host
        self.max_content_chars = int(helper_config.get_number_val("CONTENT_SNIFF_MAX_CHARS", default=CONTENT_MAX_CHARS))

    ##########################################
    ############### OBSERVERS ################
    ##########################################

    async def on_user_activation(
        self,
        element: ActivatedElement,
        context: PageContext,
        host: HostEnvironmentInterface | None = None,
        cache: NameIndexCache | None = None,
    ) -> bool:
        """Handles a link activation. Returns True if the default action was replaced."""
        result = await self.run(element, context, host=host, cache=cache)
        return result.handled

    ##########################################
    ################ PIPELINE ################
    ##########################################

    def should_intercept(self, element: ActivatedElement) -> bool:
        """A link is intercepted if its own name looks like Markdown or it points at a download endpoint."""
        if classify_by_name(element.get_filename()).is_positive():
            return True
        return self._storage_client.extract_download_node_id(element.get_href()) is not None

    async def run(
        self,
        element: ActivatedElement,
        context: PageContext,
        host: HostEnvironmentInterface | None = None,
        cache: NameIndexCache | None = None,
    ) -> PipelineResult:
        """Runs the pipeline for one activated link up to a terminal state.

        Args:
            element (ActivatedElement): The activated link.
            context (PageContext): State of the host page.
            host (HostEnvironmentInterface | None): Overrides the host given at construction.
            cache (NameIndexCache | None): Name index of the page the click happened on.

        Returns:
            PipelineResult: The terminal outcome.

        Raises:
            ValueError: If no host is available.
        """
        host = host or self._host
        if host is None:
            raise ValueError("PreviewService needs a host environment to run.")

        history = [PipelineState.IDLE]
        if not self.should_intercept(element):
            return PipelineResult(state=PipelineState.IDLE, handled=False, history=history)

        name = element.get_filename()
        history.append(PipelineState.INTERCEPTED)
        self.logging.debug("Intercepted activation of '%s' (%s).", name, element.get_href())

        history.append(PipelineState.RESOLVING)
        reference = await self._resolution_chain.resolve(name, element, context, cache=cache)
        if reference is None or not reference.is_fetchable():
            # nothing was suppressed, the browser follows the link on its own
            self.logging.info("Could not resolve '%s', leaving the click to the host.", name)
            history.append(PipelineState.NATIVE_FALLBACK)
            return PipelineResult(
                state=PipelineState.NATIVE_FALLBACK,
                handled=False,
                history=history,
                reference=reference,
                fallback_url=element.get_href() or None,
            )

        history.append(PipelineState.FETCHING)
        try:
            text, headers = await self._fetch(name, reference, context)
        except _FetchFallback as reason:
            self.logging.info("Native download for '%s': %s", name, reason)
            return await self._fallback(host, reference, history)
        except Exception as exc:
            self.logging.warning("Fetching '%s' failed, falling back to native download: %s", name, exc)
            return await self._fallback(host, reference, history)

        history.append(PipelineState.CLASSIFYING)
        header_filename = extract_disposition_filename(headers.content_disposition)
        verdict = classify_response(name, headers, text, max_chars=self.max_content_chars)
        # guard only: _fetch already diverts binary content types without a Markdown name
        if verdict.is_negative():
            self.logging.info("'%s' classified as binary, falling back to native download.", name)
            return await self._fallback(host, reference, history)

        display_name = name or header_filename or DEFAULT_DISPLAY_NAME
        # the host's own filename is the save target whenever the response names one
        storage_name = header_filename or reference.storage_name
        if display_name != reference.display_name or storage_name != reference.storage_name:
            reference = reference.model_copy(update={"display_name": display_name, "storage_name": storage_name})

        session = PreviewSession(
            content=text,
            reference=reference,
            verdict=verdict,
            renderer=self._renderer,
            save_service=self._save_service,
            credentials=context.session,
        )
        history.append(PipelineState.PREVIEWING)
        await host.show_preview(session)
        self.logging.info(
            "Showing preview of '%s' (%s, %s mode, editing %s).",
            display_name, verdict.provenance.value, session.mode.value,
            "enabled" if session.can_edit else "disabled",
        )
        return PipelineResult(
            state=PipelineState.PREVIEWING,
            handled=True,
            history=history,
            reference=reference,
            verdict=verdict,
            session=session,
        )

    async def _fetch(self, name: str, reference: DocumentReference, context: PageContext) -> tuple[str, FetchHeaders]:
        """Downloads the document body as text.

        Raises:
            _FetchFallback: On a non-2xx status, or a binary content type without a Markdown filename.
        """
        response: httpx.Response = await self._storage_client.do_open_download(reference.download_url, session=context.session)
        try:
            if not response.is_success:
                raise _FetchFallback(f"status {response.status_code}")

            headers = FetchHeaders(
                content_type=response.headers.get("content-type", ""),
                content_disposition=response.headers.get("content-disposition", ""),
            )
            header_filename = extract_disposition_filename(headers.content_disposition)
            named_markdown = classify_by_name(name).is_positive() or classify_by_name(header_filename).is_positive()
            if classify_by_content_type(headers.content_type).is_negative() and not named_markdown:
                # body is never read
                raise _FetchFallback(f"binary content type '{headers.content_type}'")

            await response.aread()
            return response.text, headers
        finally:
            await response.aclose()

    async def _fallback(
        self,
        host: HostEnvironmentInterface,
        reference: DocumentReference,
        history: list[PipelineState],
    ) -> PipelineResult:
        history.append(PipelineState.NATIVE_FALLBACK)
        await host.navigate(reference.download_url)
        return PipelineResult(
            state=PipelineState.NATIVE_FALLBACK,
            handled=True,
            history=history,
            reference=reference,
            fallback_url=reference.download_url,
        )
