"""Core module - foundational components."""

from seo_engine.core.database import get_db
from seo_engine.core.exceptions import AppException
from seo_engine.core.logging import get_logger

__all__ = ["get_db", "AppException", "get_logger"]
