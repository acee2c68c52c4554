"""Utility modules: logging configuration and input sanitization."""

from .logging import get_logger, setup_logging
from .sanitizer import check_text, sanitize_text

__all__ = ["check_text", "get_logger", "sanitize_text", "setup_logging"]
