"""Pydantic models describing the host page a click happened on."""

import json
import re

from pydantic import BaseModel

CONTAINER_HASH_PATTERN = re.compile(r"/nodes/([a-f0-9-]+)", re.IGNORECASE)
CSRF_COOKIE_NAME = "rest_access_token"


class SessionCredentials(BaseModel):
    """
    Session credentials forwarded with every request to the host API.

    Attributes:
        cookie (str): The raw Cookie header of the user's session.
        csrf_token (str): Anti-forgery token sent on write requests. Empty if unavailable.
    """
    cookie: str = ""
    csrf_token: str = ""

    @classmethod
    def from_cookie_header(cls, raw_cookie: str | None) -> "SessionCredentials":
        """Build credentials from a Cookie header, reading the anti-forgery token from it."""
        raw_cookie = (raw_cookie or "").strip()
        match = re.search(rf"{CSRF_COOKIE_NAME}=([^;]+)", raw_cookie)
        return cls(cookie=raw_cookie, csrf_token=match.group(1).strip() if match else "")

    def get_headers(self) -> dict:
        return {"Cookie": self.cookie} if self.cookie else {}


class ActivatedElement(BaseModel):
    """
    The anchor the user activated, reduced to its own attributes.
    """
    href: str = ""
    text: str = ""
    title: str | None = None
    aria_label: str | None = None
    data_filename: str | None = None
    data_name: str | None = None

    def get_href(self) -> str:
        return (self.href or "").strip()

    def get_filename(self) -> str:
        """
        Returns the filename shown by the anchor itself.

        Ancestor elements are never consulted: a row label inherited from a
        parent could belong to a sibling file with the same stem (hello.txt next
        to hello.md).
        """
        return (
            (self.text or "").strip()
            or self.title
            or self.aria_label
            or self.data_filename
            or self.data_name
            or ""
        )


class PageContext(BaseModel):
    """
    State of the host page at the time of the click.

    Attributes:
        location_hash (str): Fragment of the current navigation location, e.g. "#/nodes/<id>".
        embedded_index (str | None): JSON-encoded name→id map embedded in the page, if any.
        session (SessionCredentials): Credentials of the user's session.
    """
    location_hash: str = ""
    embedded_index: str | None = None
    session: SessionCredentials = SessionCredentials()

    def get_container_id(self) -> str | None:
        """Returns the id of the folder currently open in the host UI, if the location names one."""
        match = CONTAINER_HASH_PATTERN.search(self.location_hash or "")
        return match.group(1) if match else None

    def get_embedded_index(self) -> dict[str, str]:
        """Returns the page-embedded name→id map; invalid or missing data yields an empty map."""
        if not self.embedded_index:
            return {}
        try:
            data = json.loads(self.embedded_index)
        except ValueError:
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(name): str(node_id) for name, node_id in data.items() if node_id}
