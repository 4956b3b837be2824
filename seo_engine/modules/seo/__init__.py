"""URL registry, redirects, sitemaps and robots."""
