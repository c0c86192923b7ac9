"""In-process cache for rendered sitemap XML.

Sitemaps are rendered from CMS content on the first request and served from
this cache until the CMS webhook revalidates the path or the TTL expires.
Bounded via TTLCache so a long-running container never holds stale XML
longer than one day even if the webhook never fires.

Each path carries a generation number that ``revalidate_path`` bumps. A
render captures the generation before reading the CMS and hands it back to
``set``; if a revalidation landed in between, the now-stale XML is dropped
instead of cached.
"""

from __future__ import annotations

import logging

from cachetools import TTLCache

logger = logging.getLogger(__name__)

_SITEMAP_CACHE_MAXSIZE = 16
_DEFAULT_TTL_SECONDS = 86400  # 24 hours


class SitemapCache:
    """Path-keyed cache of rendered sitemap documents.

    Args:
        ttl_seconds: Lifetime of a cached document in seconds.
    """

    def __init__(self, ttl_seconds: int = _DEFAULT_TTL_SECONDS) -> None:
        self._entries: TTLCache[str, str] = TTLCache(
            maxsize=_SITEMAP_CACHE_MAXSIZE, ttl=ttl_seconds
        )
        self._generations: dict[str, int] = {}

    def get(self, path: str) -> str | None:
        return self._entries.get(path)

    def generation(self, path: str) -> int:
        """Current revalidation count for ``path``."""
        return self._generations.get(path, 0)

    def set(self, path: str, xml: str, generation: int | None = None) -> bool:
        """Store rendered XML for ``path``.

        Args:
            generation: Value of :meth:`generation` captured before the CMS
                read. When given and no longer current, nothing is stored.

        Returns:
            ``True`` if the document was cached.
        """
        if generation is not None and generation != self.generation(path):
            logger.info("Discarded render of path=%s revalidated mid-render", path)
            return False
        self._entries[path] = xml
        return True

    def revalidate_path(self, path: str) -> bool:
        """Drop the cached document for ``path`` so the next request rebuilds it.

        Also invalidates any render of ``path`` already in flight.

        Returns:
            ``True`` if a cached document was evicted, ``False`` if the path
            was not cached (still a successful revalidation).
        """
        self._generations[path] = self.generation(path) + 1
        evicted = self._entries.pop(path, None) is not None
        logger.info("Revalidated path=%s evicted=%s", path, evicted)
        return evicted

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, path: str) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)
