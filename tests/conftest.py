"""Shared test fixtures for casino site tests."""

import pytest


@pytest.fixture(autouse=True)
def _isolate_settings_env(monkeypatch):
    """Keep developer shell secrets out of tests.

    Tests that need a secret set it explicitly with ``monkeypatch.setenv``.
    """
    for name in ("SANITY_WEBHOOK_SECRET", "SANITY_WRITE_TOKEN", "SANITY_READ_TOKEN"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _clear_singleton_caches():
    """Reset @lru_cache singletons between tests.

    Prevents cached Settings from leaking across tests that patch the
    environment.
    """
    yield
    from casino_site.config import get_settings

    get_settings.cache_clear()

    try:
        from casino_site.api.middleware import _access_logger

        # Remove all handlers to prevent handler accumulation across tests
        _access_logger.handlers.clear()
    except (ImportError, AttributeError):
        pass


@pytest.fixture
def sitemap_content():
    """Small CMS dataset in the shape returned by ``fetch_sitemap_content``."""
    return {
        "pages": [
            {"slug": "home", "isHomepage": True, "_updatedAt": "2025-03-01T10:00:00Z"},
            {"slug": "about-us", "isHomepage": False, "_updatedAt": "2025-02-15T08:30:00Z"},
        ],
        "games": [
            {
                "title": "Gates of Olympus",
                "slug": "gates-of-olympus",
                "categorySlug": "slots",
                "thumbnail": None,
                "externalThumbnailUrl": "https://cdn.example.com/gates.png",
                "screenshots": ["https://cdn.example.com/gates-1.png", None],
                "_updatedAt": "2025-03-10T12:00:00Z",
            },
            {
                "title": "Orphan Game",
                "slug": "orphan-game",
                "categorySlug": None,
                "thumbnail": "https://cdn.sanity.io/orphan.png",
                "externalThumbnailUrl": None,
                "screenshots": None,
                "_updatedAt": "2025-03-12T12:00:00Z",
            },
        ],
        "categories": [
            {"slug": "slots", "_updatedAt": "2025-01-20T00:00:00Z"},
        ],
        "promotions": [
            {
                "title": "Weekly Race",
                "slug": "weekly-race",
                "heroImage": "https://cdn.sanity.io/race-hero.png",
                "thumbnail": "https://cdn.sanity.io/race-hero.png",
                "_updatedAt": "2025-03-05T09:00:00Z",
            },
        ],
        "authors": [
            {
                "name": "Sam Rivers",
                "slug": "sam-rivers",
                "image": "https://cdn.sanity.io/sam.png",
                "_updatedAt": "2024-12-01T00:00:00Z",
            },
            {
                "name": "No Photo",
                "slug": "no-photo",
                "image": None,
                "_updatedAt": "2024-11-01T00:00:00Z",
            },
        ],
    }
