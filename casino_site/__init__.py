"""MetaWin casino content site: sitemap service, Sanity webhook and game importer."""
