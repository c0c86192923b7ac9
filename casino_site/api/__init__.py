"""HTTP API: sitemaps, the Sanity revalidation webhook and health."""
