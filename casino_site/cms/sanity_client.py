"""Sanity CMS client using raw HTTP via httpx.

Runs GROQ queries and document mutations against the Sanity HTTP data API.

No Sanity SDK dependency -- uses httpx.AsyncClient for direct API calls.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# GROQ queries
# ---------------------------------------------------------------------------

SITEMAP_PAGES_QUERY = """
*[_type == "page" && defined(slug.current)] {
  "slug": slug.current,
  "isHomepage": coalesce(isHomepage, false),
  _updatedAt
}
"""

SITEMAP_GAMES_QUERY = """
*[_type == "game" && defined(slug.current)] {
  title,
  "slug": slug.current,
  "categorySlug": categories[0]->slug.current,
  "thumbnail": thumbnail.asset->url,
  externalThumbnailUrl,
  "screenshots": screenshots[].asset->url,
  _updatedAt
}
"""

SITEMAP_CATEGORIES_QUERY = """
*[_type == "category" && defined(slug.current)] {
  "slug": slug.current,
  _updatedAt
}
"""

SITEMAP_PROMOTIONS_QUERY = """
*[_type == "promotion" && defined(slug.current)] {
  title,
  "slug": slug.current,
  "heroImage": heroImage.asset->url,
  "thumbnail": thumbnail.asset->url,
  _updatedAt
}
"""

SITEMAP_AUTHORS_QUERY = """
*[_type == "author" && defined(slug.current)] {
  name,
  "slug": slug.current,
  "image": image.asset->url,
  _updatedAt
}
"""

SITEMAP_QUERIES: dict[str, str] = {
    "pages": SITEMAP_PAGES_QUERY,
    "games": SITEMAP_GAMES_QUERY,
    "categories": SITEMAP_CATEGORIES_QUERY,
    "promotions": SITEMAP_PROMOTIONS_QUERY,
    "authors": SITEMAP_AUTHORS_QUERY,
}


class SanityClient:
    """Async client for the Sanity v1 HTTP data API.

    Args:
        project_id: Sanity project ID.
        dataset: Dataset name (e.g. ``production``).
        api_version: Dated API version, e.g. ``2024-01-01``.
        token: Optional bearer token. Required for mutations and private datasets.
        http_client: Override for testing.
    """

    def __init__(
        self,
        project_id: str,
        dataset: str,
        *,
        api_version: str = "2024-01-01",
        token: str = "",
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._dataset = dataset
        self._base_url = f"https://{project_id}.api.sanity.io/v{api_version}"
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = http_client or httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout),
        )
        self._owns_client = http_client is None

    async def close(self) -> None:
        """Close the underlying HTTP client if we own it."""
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    # -- Public API ----------------------------------------------------------

    async def query(self, groq: str, params: dict[str, Any] | None = None) -> Any:
        """Run a GROQ query and return its ``result``.

        Query parameters are JSON-encoded and passed as ``$name`` URL params,
        as the data API expects.

        Raises:
            httpx.HTTPStatusError: On non-2xx responses from Sanity.
        """
        url_params: dict[str, str] = {"query": groq}
        for name, value in (params or {}).items():
            url_params[f"${name}"] = json.dumps(value)

        response = await self._client.get(f"/data/query/{self._dataset}", params=url_params)
        response.raise_for_status()
        return response.json().get("result")

    async def mutate(self, mutations: list[dict[str, Any]]) -> dict[str, Any]:
        """Submit a list of mutations as one transaction.

        Raises:
            httpx.HTTPStatusError: On non-2xx responses from Sanity.
        """
        response = await self._client.post(
            f"/data/mutate/{self._dataset}",
            params={"returnIds": "true", "visibility": "sync"},
            json={"mutations": mutations},
        )
        response.raise_for_status()
        data: dict[str, Any] = response.json()
        logger.info(
            "Sanity mutation committed: transaction=%s mutations=%d",
            data.get("transactionId", "unknown"),
            len(mutations),
        )
        return data

    async def create_if_not_exists(self, documents: list[dict[str, Any]]) -> dict[str, Any]:
        """Create documents keyed by their ``_id`` unless they already exist.

        Every document must carry an ``_id``; re-submitting the same batch is
        a no-op on the server.
        """
        for doc in documents:
            if not doc.get("_id"):
                raise ValueError("create_if_not_exists requires documents with an _id")
        return await self.mutate([{"createIfNotExists": doc} for doc in documents])

    async def delete(self, document_ids: list[str]) -> dict[str, Any]:
        """Delete documents by ``_id`` in one transaction."""
        return await self.mutate([{"delete": {"id": doc_id}} for doc_id in document_ids])

    async def fetch_sitemap_content(self) -> dict[str, list[dict[str, Any]]]:
        """Fetch every content list the sitemap builders need.

        Returns:
            A dict keyed by ``pages``, ``games``, ``categories``,
            ``promotions`` and ``authors``.
        """
        content: dict[str, list[dict[str, Any]]] = {}
        for key, groq in SITEMAP_QUERIES.items():
            content[key] = await self.query(groq) or []
        logger.info(
            "Fetched sitemap content: %s",
            ", ".join(f"{k}={len(v)}" for k, v in content.items()),
        )
        return content
