"""Tests for centralized configuration (casino_site/config.py)."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError


class TestSettings:
    def test_default_settings_load(self):
        """Settings load with defaults when no env vars are set."""
        from casino_site.config import Settings

        s = Settings()
        assert s.SANITY_PROJECT_ID == "e5ats5ga"
        assert s.SANITY_DATASET == "production"
        assert s.SANITY_API_VERSION == "2024-01-01"
        assert s.SITEMAP_CACHE_TTL_SECONDS == 86400
        assert s.METAWIN_API_BASE == "https://api.prod.platform.mwapp.io"

    def test_default_revalidate_paths(self):
        """The two sitemap paths are revalidated by default."""
        from casino_site.config import Settings

        s = Settings()
        assert s.REVALIDATE_PATHS == ["/sitemap.xml", "/sitemap-images.xml"]

    def test_secrets_default_empty(self):
        from casino_site.config import Settings

        s = Settings()
        assert s.SANITY_WEBHOOK_SECRET.get_secret_value() == ""
        assert s.SANITY_WRITE_TOKEN.get_secret_value() == ""

    def test_webhook_secret_from_env(self):
        from casino_site.config import Settings

        with patch.dict(os.environ, {"SANITY_WEBHOOK_SECRET": "s3cret"}):
            s = Settings()
            assert s.SANITY_WEBHOOK_SECRET.get_secret_value() == "s3cret"

    def test_secret_not_in_repr(self):
        """SecretStr keeps the webhook secret out of reprs and logs."""
        from casino_site.config import Settings

        with patch.dict(os.environ, {"SANITY_WEBHOOK_SECRET": "s3cret"}):
            s = Settings()
            assert "s3cret" not in repr(s)

    def test_revalidate_paths_from_env(self):
        from casino_site.config import Settings

        with patch.dict(os.environ, {"REVALIDATE_PATHS": '["/sitemap.xml"]'}):
            s = Settings()
            assert s.REVALIDATE_PATHS == ["/sitemap.xml"]

    def test_relative_revalidate_path_rejected(self):
        from casino_site.config import Settings

        with patch.dict(os.environ, {"REVALIDATE_PATHS": '["sitemap.xml"]'}):
            with pytest.raises(ValidationError):
                Settings()

    def test_site_url_trailing_slash_stripped(self):
        from casino_site.config import Settings

        with patch.dict(os.environ, {"SITE_URL": "https://example.com/"}):
            s = Settings()
            assert s.SITE_URL == "https://example.com"

    def test_get_settings_is_cached(self):
        from casino_site.config import get_settings

        assert get_settings() is get_settings()
