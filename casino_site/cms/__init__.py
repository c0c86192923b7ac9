"""Sanity CMS integration: HTTP data API client and the sitemap revalidation webhook."""

from .sanity_client import SITEMAP_QUERIES, SanityClient
from .webhook import SECRET_HEADER, SitemapRevalidator

__all__ = [
    "SanityClient",
    "SitemapRevalidator",
    "SECRET_HEADER",
    "SITEMAP_QUERIES",
]
