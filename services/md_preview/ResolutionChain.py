"""Identifier resolution chain.

Turns the display name of a clicked item into a DocumentReference by trying
strategies in order, each only if the previous one found no storage id:

1. the link itself points at a node's download endpoint
2. the NameIndexCache, then the index embedded in the page
3. the contents listing of the folder open in the host UI

Unresolved is a normal outcome (None), not an error. Every network strategy is
a best-effort read: failures count as "nothing found".
"""

from services.md_preview.Classifier import classify_by_name
from services.md_preview.NameIndexCache import NameIndexCache
from shared.clients.storage.StorageClientInterface import StorageClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import DocumentReference
from shared.models.page import ActivatedElement, PageContext


class ResolutionChain:
    def __init__(
        self,
        helper_config: HelperConfig,
        storage_client: StorageClientInterface,
        cache: NameIndexCache,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._storage_client = storage_client
        self._cache = cache

    ##########################################
    ################ RESOLVE #################
    ##########################################

    async def resolve(
        self,
        display_name: str,
        element: ActivatedElement,
        context: PageContext,
        cache: NameIndexCache | None = None,
    ) -> DocumentReference | None:
        """Resolves the storage id, parent folder id and download URL of a clicked item.

        Args:
            display_name (str): Name shown by the clicked link.
            element (ActivatedElement): The clicked link.
            context (PageContext): State of the host page.
            cache (NameIndexCache | None): Index of the page the click happened on. Defaults to the chain's own.

        Returns:
            DocumentReference | None: The reference, or None if no strategy found a storage id.
        """
        href = element.get_href()
        storage_id = self._storage_client.extract_download_node_id(href)
        parent_id: str | None = None
        download_url: str | None = None
        strategy = "link"

        if storage_id:
            download_url = self._storage_client.build_url(href)
        else:
            storage_id = self._resolve_from_index(display_name, context, cache if cache is not None else self._cache)
            strategy = "cache"

        if not storage_id:
            storage_id, parent_id = await self._resolve_from_listing(display_name, context)
            strategy = "listing"

        if not storage_id:
            self.logging.debug("Could not resolve a storage id for '%s'.", display_name)
            return None

        if not download_url:
            download_url = self._storage_client.get_download_url(storage_id)
        if not parent_id:
            parent_id = await self.resolve_parent(storage_id, context)

        # a download link may carry a label such as "Download" instead of the file name
        storage_name = display_name if strategy != "link" or classify_by_name(display_name).is_positive() else None

        self.logging.debug(
            "Resolved '%s' via %s: id=%s parent=%s", display_name, strategy, storage_id, parent_id,
        )
        return DocumentReference(
            display_name=display_name,
            storage_id=storage_id,
            parent_container_id=parent_id,
            download_url=download_url,
            storage_name=storage_name or None,
        )

    ##########################################
    ############### STRATEGIES ###############
    ##########################################

    def _resolve_from_index(self, display_name: str, context: PageContext, cache: NameIndexCache) -> str | None:
        if not display_name:
            return None
        return cache.get(display_name) or context.get_embedded_index().get(display_name)

    async def _resolve_from_listing(self, display_name: str, context: PageContext) -> tuple[str | None, str | None]:
        """Looks the name up in the listing of the folder open in the host UI.

        Returns:
            tuple[str | None, str | None]: (storage id, folder id) of the match, or (None, None).
        """
        container_id = context.get_container_id()
        if not display_name or not container_id:
            return None, None
        try:
            listing = await self._storage_client.do_fetch_contents(container_id, session=context.session)
        except Exception as exc:
            self.logging.warning("Contents listing of folder %s failed: %s", container_id, exc)
            return None, None
        node = listing.find_file(display_name)
        if node is None:
            return None, None
        return node.id, container_id

    async def resolve_parent(self, storage_id: str, context: PageContext) -> str | None:
        """Resolves the folder a node lives in, needed to save edits.

        Prefers the folder named by the current location, then the node's own
        metadata. None disables editing but never blocks the preview.
        """
        container_id = context.get_container_id()
        if container_id:
            return container_id
        try:
            node = await self._storage_client.do_fetch_node_details(storage_id, session=context.session)
        except Exception as exc:
            self.logging.warning("Parent lookup of node %s failed, editing disabled: %s", storage_id, exc)
            return None
        return node.parent_id
