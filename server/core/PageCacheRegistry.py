from collections import OrderedDict

from services.md_preview.NameIndexCache import NameIndexCache

MAX_TRACKED_PAGES = 500


class PageCacheRegistry:
    """
    One NameIndexCache per host page the browser shim reports from.

    A page only ever sees names observed on that page, so listings of one
    user's folders never resolve clicks of another. The least recently used
    page is dropped once more than max_pages are tracked.
    """

    def __init__(self, max_pages: int = MAX_TRACKED_PAGES) -> None:
        self._caches: OrderedDict[str, NameIndexCache] = OrderedDict()
        self._max_pages = max_pages

    def get_or_create(self, page_id: str) -> NameIndexCache:
        cache = self._caches.get(page_id)
        if cache is None:
            cache = NameIndexCache()
            self._caches[page_id] = cache
            while len(self._caches) > self._max_pages:
                self._caches.popitem(last=False)
        else:
            self._caches.move_to_end(page_id)
        return cache

    def get(self, page_id: str) -> NameIndexCache | None:
        return self._caches.get(page_id)

    def __len__(self) -> int:
        return len(self._caches)
