"""Operational commands, run as ``python -m seo_engine.scripts.<name>``."""
