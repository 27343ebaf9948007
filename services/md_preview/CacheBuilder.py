"""Passive cache builder.

Watches listing responses flowing through an httpx client (or forwarded by a
browser shim) and records name→id pairs of files into the NameIndexCache.
Observation never changes a response and never raises into the caller.
"""

import json

import httpx

from services.md_preview.NameIndexCache import NameIndexCache
from shared.helper.HelperConfig import HelperConfig
from shared.helper.response_probes import extract_collection

DOWNLOAD_MARKER = "download"


class CacheBuilder:
    def __init__(self, helper_config: HelperConfig, cache: NameIndexCache) -> None:
        self.logging = helper_config.get_logger()
        self._cache = cache

    ##########################################
    ############### OBSERVERS ################
    ##########################################

    async def on_network_exchange(self, request: httpx.Request, response: httpx.Response) -> None:
        """Inspects one request/response pair and merges any file listing it carries.

        Download responses and non-JSON responses are skipped before their body
        is touched. The body of a JSON response is read (httpx keeps it for the
        original consumer).
        """
        url = str(request.url)
        if DOWNLOAD_MARKER in url:
            return
        if "json" not in response.headers.get("content-type", "").lower():
            return
        try:
            await response.aread()
            payload = response.json()
        except Exception as exc:
            self.logging.debug("Ignoring unreadable listing response from %s: %s", url, exc)
            return
        self.observe_payload(url, payload)

    async def response_hook(self, response: httpx.Response) -> None:
        """httpx ``event_hooks["response"]`` adapter."""
        await self.on_network_exchange(response.request, response)

    def observe_raw(self, url: str, content_type: str, body: str) -> int:
        """Same checks as on_network_exchange, for exchanges forwarded as plain data."""
        if DOWNLOAD_MARKER in url or "json" not in (content_type or "").lower():
            return 0
        try:
            payload = json.loads(body)
        except ValueError:
            return 0
        return self.observe_payload(url, payload)

    ##########################################
    ################# MERGE ##################
    ##########################################

    def observe_payload(self, url: str, payload: object) -> int:
        """Merges the file entries of a parsed listing payload.

        Only collections whose entries carry both a uuid and a name count as a
        listing; folders are skipped.

        Returns:
            int: Number of entries merged.
        """
        items = extract_collection(payload)
        if not items or not any(item.get("uuid") and item.get("name") for item in items):
            return 0
        entries = {
            str(item["name"]): str(item["uuid"])
            for item in items
            if item.get("uuid") and item.get("name") and not item.get("is_directory")
        }
        merged = self._cache.merge(entries)
        if merged:
            self.logging.debug("Indexed %d file name(s) from %s (cache size %d).", merged, url, len(self._cache))
        return merged
