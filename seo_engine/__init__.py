"""SEO URL resolution and sitemap/robots generation engine for dealer portals."""

__version__ = "1.0.0"
