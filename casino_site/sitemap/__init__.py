"""Sitemap rendering and the path-keyed cache the CMS webhook revalidates."""

from .builder import build_image_sitemap, build_sitemap
from .cache import SitemapCache

SITEMAP_PATH = "/sitemap.xml"
IMAGE_SITEMAP_PATH = "/sitemap-images.xml"

__all__ = [
    "IMAGE_SITEMAP_PATH",
    "SITEMAP_PATH",
    "SitemapCache",
    "build_image_sitemap",
    "build_sitemap",
]
