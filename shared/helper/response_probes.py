"""Shape probes for JSON returned by the host storage API.

The host API is not versioned and its payloads are only partially known, so
collections and parent ids are located by trying an ordered list of plausible
field paths and stopping at the first structural match. This is a
compatibility shim for that external API, nothing in the pipeline relies on
a particular shape beyond what these probes return.
"""

from typing import Any

# field paths tried in order when looking for the item collection of a listing
COLLECTION_PROBES: list[tuple[str, ...]] = [
    (),
    ("items",),
    ("data",),
    ("children",),
    ("results",),
]

# field paths tried in order when looking for the parent id in node metadata
PARENT_ID_PROBES: list[tuple[str, ...]] = [
    ("parent_uuid",),
    ("parent", "uuid"),
    ("parent_id",),
    ("parent", "id"),
]


def _follow(payload: Any, path: tuple[str, ...]) -> Any:
    current = payload
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def extract_collection(payload: Any) -> list[dict] | None:
    """Return the item collection of a listing payload, or None if no probe matches.

    Args:
        payload (Any): Parsed JSON of a listing response.

    Returns:
        list[dict] | None: The dict entries of the first list found.
    """
    for path in COLLECTION_PROBES:
        candidate = _follow(payload, path)
        if isinstance(candidate, list):
            return [item for item in candidate if isinstance(item, dict)]
    return None


def extract_parent_id(payload: Any) -> str | None:
    """Return the parent id declared in a node metadata payload, or None."""
    for path in PARENT_ID_PROBES:
        candidate = _follow(payload, path)
        if candidate:
            return str(candidate)
    return None
