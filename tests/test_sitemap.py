"""Tests for sitemap rendering and caching (casino_site/sitemap/)."""

from xml.etree import ElementTree

import pytest
from cachetools import TTLCache

from casino_site.sitemap import SitemapCache, build_image_sitemap, build_sitemap
from casino_site.sitemap.builder import IMAGE_NS, SITEMAP_NS, escape_xml, format_date

SITE = "https://metawin.com"
NS = {"sm": SITEMAP_NS, "image": IMAGE_NS}


def _urls(xml: str) -> dict[str, ElementTree.Element]:
    root = ElementTree.fromstring(xml)
    return {url.find("sm:loc", NS).text: url for url in root.findall("sm:url", NS)}


# ============================================================================
# SitemapCache
# ============================================================================


class TestSitemapCache:
    def test_get_missing_returns_none(self):
        assert SitemapCache().get("/sitemap.xml") is None

    def test_set_then_get(self):
        cache = SitemapCache()
        cache.set("/sitemap.xml", "<urlset/>")
        assert cache.get("/sitemap.xml") == "<urlset/>"
        assert "/sitemap.xml" in cache

    def test_revalidate_evicts(self):
        cache = SitemapCache()
        cache.set("/sitemap.xml", "<urlset/>")
        assert cache.revalidate_path("/sitemap.xml") is True
        assert cache.get("/sitemap.xml") is None

    def test_revalidate_missing_path_is_noop(self):
        cache = SitemapCache()
        assert cache.revalidate_path("/sitemap.xml") is False
        assert len(cache) == 0

    def test_revalidate_leaves_other_paths(self):
        cache = SitemapCache()
        cache.set("/sitemap.xml", "a")
        cache.set("/sitemap-images.xml", "b")
        cache.revalidate_path("/sitemap.xml")
        assert cache.get("/sitemap-images.xml") == "b"

    def test_entries_expire_after_ttl(self):
        clock = [1000.0]
        cache = SitemapCache(ttl_seconds=1)
        cache._entries = TTLCache(maxsize=16, ttl=1, timer=lambda: clock[0])
        cache.set("/sitemap.xml", "a")
        assert cache.get("/sitemap.xml") == "a"
        clock[0] += 2
        assert cache.get("/sitemap.xml") is None

    def test_revalidate_bumps_generation(self):
        cache = SitemapCache()
        assert cache.generation("/sitemap.xml") == 0
        cache.revalidate_path("/sitemap.xml")
        cache.revalidate_path("/sitemap.xml")
        assert cache.generation("/sitemap.xml") == 2
        assert cache.generation("/sitemap-images.xml") == 0

    def test_set_with_current_generation_stores(self):
        cache = SitemapCache()
        generation = cache.generation("/sitemap.xml")
        assert cache.set("/sitemap.xml", "fresh", generation=generation) is True
        assert cache.get("/sitemap.xml") == "fresh"

    def test_set_after_revalidation_is_discarded(self):
        """A render started before a revalidation must not be cached."""
        cache = SitemapCache()
        generation = cache.generation("/sitemap.xml")
        cache.revalidate_path("/sitemap.xml")
        assert cache.set("/sitemap.xml", "stale", generation=generation) is False
        assert "/sitemap.xml" not in cache

    def test_clear(self):
        cache = SitemapCache()
        cache.set("/sitemap.xml", "a")
        cache.clear()
        assert len(cache) == 0


# ============================================================================
# Helpers
# ============================================================================


class TestHelpers:
    def test_escape_xml_all_entities(self):
        assert escape_xml("""a&b<c>d"e'f""") == "a&amp;b&lt;c&gt;d&quot;e&apos;f"

    def test_format_date_zulu(self):
        assert format_date("2025-03-10T12:00:00Z") == "2025-03-10"

    def test_format_date_converts_to_utc(self):
        assert format_date("2025-03-10T23:30:00-05:00") == "2025-03-11"

    def test_format_date_fractional_seconds(self):
        assert format_date("2025-03-10T12:00:00.123Z") == "2025-03-10"


# ============================================================================
# /sitemap.xml
# ============================================================================


class TestBuildSitemap:
    def test_well_formed_with_namespace(self, sitemap_content):
        xml = build_sitemap(sitemap_content, SITE)
        assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        root = ElementTree.fromstring(xml)
        assert root.tag == f"{{{SITEMAP_NS}}}urlset"

    def test_homepage_entry(self, sitemap_content):
        urls = _urls(build_sitemap(sitemap_content, SITE))
        home = urls[f"{SITE}/casino/"]
        assert home.find("sm:lastmod", NS).text == "2025-03-01"
        assert home.find("sm:changefreq", NS).text == "daily"
        assert home.find("sm:priority", NS).text == "1.0"

    def test_regular_page_entry(self, sitemap_content):
        urls = _urls(build_sitemap(sitemap_content, SITE))
        page = urls[f"{SITE}/casino/about-us/"]
        assert page.find("sm:changefreq", NS).text == "weekly"
        assert page.find("sm:priority", NS).text == "0.6"

    def test_games_index_uses_latest_game_update(self, sitemap_content):
        urls = _urls(build_sitemap(sitemap_content, SITE))
        index = urls[f"{SITE}/casino/games/"]
        assert index.find("sm:lastmod", NS).text == "2025-03-12"
        assert index.find("sm:priority", NS).text == "0.9"

    def test_game_requires_category_slug(self, sitemap_content):
        urls = _urls(build_sitemap(sitemap_content, SITE))
        assert f"{SITE}/casino/games/slots/gates-of-olympus/" in urls
        assert not any("orphan-game" in loc for loc in urls)

    def test_category_entry(self, sitemap_content):
        urls = _urls(build_sitemap(sitemap_content, SITE))
        category = urls[f"{SITE}/casino/games/slots/"]
        assert category.find("sm:priority", NS).text == "0.8"

    def test_promotions_and_authors(self, sitemap_content):
        urls = _urls(build_sitemap(sitemap_content, SITE))
        assert urls[f"{SITE}/casino/promotions/weekly-race/"].find("sm:priority", NS).text == "0.7"
        assert urls[f"{SITE}/casino/promotions/"].find("sm:lastmod", NS).text == "2025-03-05"
        assert urls[f"{SITE}/casino/authors/"].find("sm:changefreq", NS).text == "monthly"
        assert f"{SITE}/casino/authors/sam-rivers/" in urls

    def test_empty_content_still_has_indexes(self):
        urls = _urls(build_sitemap({}, SITE))
        assert set(urls) == {
            f"{SITE}/casino/games/",
            f"{SITE}/casino/promotions/",
            f"{SITE}/casino/authors/",
        }

    def test_slugs_are_escaped(self):
        content = {"pages": [{"slug": "a&b", "_updatedAt": "2025-01-01T00:00:00Z"}]}
        xml = build_sitemap(content, SITE)
        assert "/casino/a&amp;b/" in xml
        assert f"{SITE}/casino/a&b/" in _urls(xml)


# ============================================================================
# /sitemap-images.xml
# ============================================================================


class TestBuildImageSitemap:
    def test_declares_image_namespace(self, sitemap_content):
        xml = build_image_sitemap(sitemap_content, SITE)
        assert f'xmlns:image="{IMAGE_NS}"' in xml
        ElementTree.fromstring(xml)

    def test_game_thumbnail_and_screenshots(self, sitemap_content):
        urls = _urls(build_image_sitemap(sitemap_content, SITE))
        game = urls[f"{SITE}/casino/games/slots/gates-of-olympus/"]
        titles = [img.find("image:title", NS).text for img in game.findall("image:image", NS)]
        assert titles == ["Gates of Olympus - Thumbnail", "Gates of Olympus - Screenshot 1"]
        first = game.find("image:image/image:loc", NS).text
        assert first == "https://cdn.example.com/gates.png"

    def test_sanity_thumbnail_preferred_over_external(self):
        content = {
            "games": [
                {
                    "title": "G",
                    "slug": "g",
                    "categorySlug": "slots",
                    "thumbnail": "https://cdn.sanity.io/g.png",
                    "externalThumbnailUrl": "https://cdn.example.com/g.png",
                }
            ]
        }
        xml = build_image_sitemap(content, SITE)
        assert "https://cdn.sanity.io/g.png" in xml
        assert "https://cdn.example.com/g.png" not in xml

    def test_game_without_category_skipped(self, sitemap_content):
        xml = build_image_sitemap(sitemap_content, SITE)
        assert "orphan" not in xml

    def test_promo_thumbnail_deduplicated_against_hero(self, sitemap_content):
        urls = _urls(build_image_sitemap(sitemap_content, SITE))
        promo = urls[f"{SITE}/casino/promotions/weekly-race/"]
        titles = [img.find("image:title", NS).text for img in promo.findall("image:image", NS)]
        assert titles == ["Weekly Race - Hero"]

    def test_author_photo(self, sitemap_content):
        urls = _urls(build_image_sitemap(sitemap_content, SITE))
        author = urls[f"{SITE}/casino/authors/sam-rivers/"]
        assert author.find("image:image/image:title", NS).text == "Sam Rivers - Profile Photo"
        assert f"{SITE}/casino/authors/no-photo/" not in urls

    def test_entries_without_images_omitted(self):
        content = {"games": [{"title": "Bare", "slug": "bare", "categorySlug": "slots"}]}
        assert _urls(build_image_sitemap(content, SITE)) == {}

    @pytest.mark.parametrize("title", ["Tom & Jerry", "<Wild>", "Dragon's \"Fire\""])
    def test_titles_escaped(self, title):
        content = {
            "games": [
                {
                    "title": title,
                    "slug": "x",
                    "categorySlug": "slots",
                    "externalThumbnailUrl": "https://cdn.example.com/x.png?a=1&b=2",
                }
            ]
        }
        urls = _urls(build_image_sitemap(content, SITE))
        game = urls[f"{SITE}/casino/games/slots/x/"]
        assert game.find("image:image/image:title", NS).text == f"{title} - Thumbnail"
        assert game.find("image:image/image:loc", NS).text == "https://cdn.example.com/x.png?a=1&b=2"
