from abc import ABC, abstractmethod

from services.md_preview.PreviewSession import PreviewSession


class HostEnvironmentInterface(ABC):
    """
    Capabilities the embedding environment provides to the preview pipeline.

    The pipeline runs before the environment's default action for a click and
    ends in exactly one of two calls: navigate() to perform the native download,
    or show_preview() to raise the overlay.
    """

    def __init__(self) -> None:
        self._current_session: PreviewSession | None = None

    def get_current_session(self) -> PreviewSession | None:
        return self._current_session

    @abstractmethod
    async def navigate(self, url: str) -> None:
        """
        Performs the native action for a URL, exactly as if no interception had occurred.
        """
        pass

    async def show_preview(self, session: PreviewSession) -> None:
        """Presents a preview session, superseding the one currently open."""
        if self._current_session is not None and not self._current_session.closed:
            self._current_session.close()
        self._current_session = session
        await self._present(session)

    @abstractmethod
    async def _present(self, session: PreviewSession) -> None:
        """
        Makes the session visible to the user.
        """
        pass
