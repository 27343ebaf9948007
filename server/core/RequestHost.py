from collections import OrderedDict

from services.md_preview.HostEnvironmentInterface import HostEnvironmentInterface
from services.md_preview.PreviewSession import PreviewSession

MAX_OPEN_SESSIONS = 200


class SessionRegistry:
    """Keeps the most recently opened preview sessions so later save/close calls can find them."""

    def __init__(self, max_sessions: int = MAX_OPEN_SESSIONS) -> None:
        self._sessions: OrderedDict[str, PreviewSession] = OrderedDict()
        self._max_sessions = max_sessions

    def add(self, session: PreviewSession) -> None:
        self._sessions[session.session_id] = session
        while len(self._sessions) > self._max_sessions:
            _, oldest = self._sessions.popitem(last=False)
            oldest.close()

    def get(self, session_id: str) -> PreviewSession | None:
        session = self._sessions.get(session_id)
        if session is None or session.closed:
            return None
        return session

    def remove(self, session_id: str) -> PreviewSession | None:
        return self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)


class RequestHost(HostEnvironmentInterface):
    """
    Host environment for one API request.

    The browser shim performs the actual navigation or overlay, so this host
    only records which of the two the pipeline chose.
    """

    def __init__(self, registry: SessionRegistry) -> None:
        super().__init__()
        self._registry = registry
        self.navigated_to: str | None = None

    async def navigate(self, url: str) -> None:
        self.navigated_to = url

    async def _present(self, session: PreviewSession) -> None:
        self._registry.add(session)
