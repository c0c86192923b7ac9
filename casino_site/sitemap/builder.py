"""Sitemap XML rendering from CMS content.

Two documents are produced:

- ``/sitemap.xml``: every public URL with lastmod, changefreq and priority.
- ``/sitemap-images.xml``: image sitemap for games, promotions and authors.

Both take the dict returned by
:meth:`casino_site.cms.sanity_client.SanityClient.fetch_sitemap_content`,
keyed by ``pages``, ``games``, ``categories``, ``promotions`` and ``authors``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from xml.sax.saxutils import escape

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
IMAGE_NS = "http://www.google.com/schemas/sitemap-image/1.1"

# (changefreq, priority) per content type
SITEMAP_CONFIG: dict[str, tuple[str, str]] = {
    "homepage": ("daily", "1.0"),
    "games_index": ("daily", "0.9"),
    "promotions_index": ("daily", "0.8"),
    "authors_index": ("monthly", "0.5"),
    "page": ("weekly", "0.6"),
    "category": ("weekly", "0.8"),
    "game": ("monthly", "0.6"),
    "promotion": ("weekly", "0.7"),
    "author": ("monthly", "0.5"),
}

_QUOTE_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def escape_xml(value: str) -> str:
    return escape(value, _QUOTE_ENTITIES)


def format_date(value: str) -> str:
    """Reduce an ISO-8601 timestamp to its UTC ``YYYY-MM-DD`` date."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date().isoformat()


def _latest_update(items: list[dict[str, Any]]) -> str:
    timestamps = [item["_updatedAt"] for item in items if item.get("_updatedAt")]
    if not timestamps:
        return datetime.now(timezone.utc).isoformat()
    # ISO-8601 strings in the same zone sort chronologically
    return max(timestamps)


def _url_entry(loc: str, updated_at: str, kind: str) -> str:
    changefreq, priority = SITEMAP_CONFIG[kind]
    return (
        "\n  <url>"
        f"\n    <loc>{loc}</loc>"
        f"\n    <lastmod>{format_date(updated_at)}</lastmod>"
        f"\n    <changefreq>{changefreq}</changefreq>"
        f"\n    <priority>{priority}</priority>"
        "\n  </url>"
    )


def _image_entry(loc: str, title: str) -> str:
    return (
        "\n    <image:image>"
        f"\n      <image:loc>{escape_xml(loc)}</image:loc>"
        f"\n      <image:title>{escape_xml(title)}</image:title>"
        "\n    </image:image>"
    )


def build_sitemap(content: dict[str, list[dict[str, Any]]], site_url: str) -> str:
    """Render ``/sitemap.xml``.

    Args:
        content: CMS content lists keyed by type.
        site_url: Public origin without trailing slash.

    Returns:
        The complete XML document.
    """
    base = f"{site_url}/casino"
    pages = content.get("pages", [])
    games = content.get("games", [])
    categories = content.get("categories", [])
    promotions = content.get("promotions", [])
    authors = content.get("authors", [])

    urls: list[str] = []

    for page in pages:
        if page.get("isHomepage"):
            urls.append(_url_entry(f"{base}/", page["_updatedAt"], "homepage"))
        elif page.get("slug"):
            urls.append(
                _url_entry(f"{base}/{escape_xml(page['slug'])}/", page["_updatedAt"], "page")
            )

    urls.append(_url_entry(f"{base}/games/", _latest_update(games), "games_index"))

    for category in categories:
        if category.get("slug"):
            urls.append(
                _url_entry(
                    f"{base}/games/{escape_xml(category['slug'])}/",
                    category["_updatedAt"],
                    "category",
                )
            )

    for game in games:
        if game.get("slug") and game.get("categorySlug"):
            urls.append(
                _url_entry(
                    f"{base}/games/{escape_xml(game['categorySlug'])}/{escape_xml(game['slug'])}/",
                    game["_updatedAt"],
                    "game",
                )
            )

    urls.append(
        _url_entry(f"{base}/promotions/", _latest_update(promotions), "promotions_index")
    )

    for promo in promotions:
        if promo.get("slug"):
            urls.append(
                _url_entry(
                    f"{base}/promotions/{escape_xml(promo['slug'])}/",
                    promo["_updatedAt"],
                    "promotion",
                )
            )

    urls.append(_url_entry(f"{base}/authors/", _latest_update(authors), "authors_index"))

    for author in authors:
        if author.get("slug"):
            urls.append(
                _url_entry(
                    f"{base}/authors/{escape_xml(author['slug'])}/",
                    author["_updatedAt"],
                    "author",
                )
            )

    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<urlset xmlns="{SITEMAP_NS}">{"".join(urls)}\n</urlset>'
    )


def build_image_sitemap(content: dict[str, list[dict[str, Any]]], site_url: str) -> str:
    """Render ``/sitemap-images.xml``.

    URLs without any image are omitted entirely.
    """
    base = f"{site_url}/casino"
    urls: list[str] = []

    for game in content.get("games", []):
        if not game.get("slug") or not game.get("categorySlug"):
            continue
        title = game.get("title") or game["slug"]
        images: list[str] = []

        thumbnail = game.get("thumbnail") or game.get("externalThumbnailUrl")
        if thumbnail:
            images.append(_image_entry(thumbnail, f"{title} - Thumbnail"))

        for i, screenshot in enumerate(game.get("screenshots") or [], 1):
            if screenshot:
                images.append(_image_entry(screenshot, f"{title} - Screenshot {i}"))

        if images:
            loc = f"{base}/games/{escape_xml(game['categorySlug'])}/{escape_xml(game['slug'])}/"
            urls.append(f"\n  <url>\n    <loc>{loc}</loc>{''.join(images)}\n  </url>")

    for promo in content.get("promotions", []):
        if not promo.get("slug"):
            continue
        title = promo.get("title") or promo["slug"]
        hero = promo.get("heroImage")
        thumbnail = promo.get("thumbnail")
        images = []

        if hero:
            images.append(_image_entry(hero, f"{title} - Hero"))
        if thumbnail and thumbnail != hero:
            images.append(_image_entry(thumbnail, f"{title} - Thumbnail"))

        if images:
            loc = f"{base}/promotions/{escape_xml(promo['slug'])}/"
            urls.append(f"\n  <url>\n    <loc>{loc}</loc>{''.join(images)}\n  </url>")

    for author in content.get("authors", []):
        if not author.get("slug") or not author.get("image"):
            continue
        name = author.get("name") or author["slug"]
        loc = f"{base}/authors/{escape_xml(author['slug'])}/"
        image = _image_entry(author["image"], f"{name} - Profile Photo")
        urls.append(f"\n  <url>\n    <loc>{loc}</loc>{image}\n  </url>")

    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<urlset xmlns="{SITEMAP_NS}"\n        xmlns:image="{IMAGE_NS}">'
        f'{"".join(urls)}\n</urlset>'
    )
