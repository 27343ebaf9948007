class NameIndexCache:
    """Process-scoped name→storage id index.

    Filled opportunistically by the CacheBuilder from listing responses it
    observes and read by the ResolutionChain. Keys are exact, case-sensitive
    display names; a later write for the same name replaces the earlier one.
    Entries are never expired or invalidated, so a hit is only a hint.

    All access happens on one event loop, hence no locking. A write landing
    after a concurrent read only makes that resolution fall through to the
    network listing.
    """

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}

    def get(self, name: str) -> str | None:
        return self._entries.get(name)

    def put(self, name: str, storage_id: str) -> None:
        self._entries[name] = storage_id

    def merge(self, entries: dict[str, str]) -> int:
        """Merges several entries, overwriting existing names. Returns the number merged."""
        self._entries.update(entries)
        return len(entries)

    def snapshot(self) -> dict[str, str]:
        return dict(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries
