"""Sanity webhook handler that revalidates cached sitemaps.

Sanity calls this webhook when a document that appears in a sitemap is
published. The request is authenticated with a shared secret header; the
body is optional and only used for logging. Every valid call revalidates
the configured sitemap paths so they are rebuilt on the next request.
"""

from __future__ import annotations

import hmac
import json
import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, Protocol

logger = logging.getLogger(__name__)

SECRET_HEADER = "x-sanity-webhook-secret"
DEFAULT_REVALIDATE_PATHS: tuple[str, ...] = ("/sitemap.xml", "/sitemap-images.xml")

CONFIG_ERROR_BODY = {"error": "Server configuration error"}
UNAUTHORIZED_BODY = {"error": "Unauthorized"}
REVALIDATION_FAILED_BODY = {"error": "Revalidation failed"}


class PathCache(Protocol):
    """Anything that can drop a cached path (see ``SitemapCache``)."""

    def revalidate_path(self, path: str) -> Any: ...


def secrets_match(provided: str | None, expected: str) -> bool:
    """Exact string equality, compared in constant time."""
    if provided is None:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def parse_payload(raw_body: bytes) -> dict[str, Any]:
    """Parse the optional webhook body.

    Returns an empty dict for an empty, non-JSON or non-object body.
    """
    if not raw_body:
        return {}
    try:
        body = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return body if isinstance(body, dict) else {}


def _string_field(payload: dict[str, Any], key: str) -> str | None:
    """Return ``payload[key]`` if it is a non-empty string."""
    value = payload.get(key)
    return value if isinstance(value, str) and value else None


class SitemapRevalidator:
    """Authenticate a Sanity webhook call and revalidate sitemap paths.

    Args:
        secret: Expected shared secret. Empty means the server is misconfigured.
        cache: Cache whose paths are revalidated.
        paths: Paths to revalidate on every successful call.
    """

    def __init__(
        self,
        secret: str,
        cache: PathCache,
        paths: Iterable[str] = DEFAULT_REVALIDATE_PATHS,
    ) -> None:
        self._secret = secret
        self._cache = cache
        self.paths: tuple[str, ...] = tuple(paths)

    def handle(
        self, provided_secret: str | None, raw_body: bytes
    ) -> tuple[int, dict[str, Any]]:
        """Process one webhook call.

        Args:
            provided_secret: Value of the ``x-sanity-webhook-secret`` header.
            raw_body: Raw request body bytes.

        Returns:
            A ``(status_code, body)`` tuple::

                500, {"error": "Server configuration error"}
                401, {"error": "Unauthorized"}
                200, {"revalidated": True, "timestamp": "...", "contentType": "..."}
                500, {"error": "Revalidation failed"}
        """
        if not self._secret:
            logger.error("SANITY_WEBHOOK_SECRET not configured")
            return 500, dict(CONFIG_ERROR_BODY)

        if not secrets_match(provided_secret, self._secret):
            logger.warning("Invalid webhook secret received")
            return 401, dict(UNAUTHORIZED_BODY)

        try:
            payload = parse_payload(raw_body)
            content_type = _string_field(payload, "_type") or "unknown"
            document_id = _string_field(payload, "_id") or "no id"
            logger.info(
                "Sitemap revalidation triggered for: %s (%s)", content_type, document_id
            )

            for path in self.paths:
                self._cache.revalidate_path(path)

            return 200, {
                "revalidated": True,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "contentType": content_type,
            }
        except Exception:
            logger.exception("Sitemap revalidation error")
            return 500, dict(REVALIDATION_FAILED_BODY)
