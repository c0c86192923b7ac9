"""MetaWin platform API client using raw HTTP via httpx.

Reads game listings from the public collection endpoint used by metawin.com.
The endpoint rejects requests that do not look like they come from the site,
so browser-like ``Origin``/``Referer`` headers are sent with every call.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

METAWIN_API_BASE = "https://api.prod.platform.mwapp.io"

_BROWSER_HEADERS = {
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "en-US,en;q=0.9",
    "Origin": "https://metawin.com",
    "Referer": "https://metawin.com/",
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
}


class MetaWinClient:
    """Async client for the MetaWin game collection API.

    Args:
        base_url: Override for testing; defaults to the production API.
        http_client: Override for testing.
    """

    def __init__(
        self,
        *,
        base_url: str = METAWIN_API_BASE,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=_BROWSER_HEADERS,
            timeout=httpx.Timeout(timeout),
        )
        self._owns_client = http_client is None

    async def close(self) -> None:
        """Close the underlying HTTP client if we own it."""
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    async def fetch_collection(
        self, collection: str, take: int, skip: int = 0
    ) -> tuple[list[dict[str, Any]], int]:
        """Fetch one page of games from a collection.

        The API wraps each game as ``{collectionId, gameId, game}``; only the
        ``game`` objects are returned.

        Args:
            collection: Collection slug (e.g. ``popular``, ``all-slots``).
            take: Page size.
            skip: Offset into the collection.

        Returns:
            A ``(games, total)`` tuple where ``total`` is the collection size,
            or 0 when the API omits ``totalCount``.

        Raises:
            httpx.HTTPStatusError: On non-2xx responses.
        """
        response = await self._client.get(
            f"/game/collection/{collection}",
            params={"skip": skip, "take": take},
        )
        response.raise_for_status()
        data: dict[str, Any] = response.json()
        games = [item["game"] for item in data.get("items") or [] if item.get("game")]
        total = data.get("totalCount") or 0
        logger.debug(
            "Fetched collection=%s skip=%d take=%d got=%d total=%d",
            collection,
            skip,
            take,
            len(games),
            total,
        )
        return games, total
