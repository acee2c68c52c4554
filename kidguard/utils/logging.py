"""Logging setup for KidGuard: console, rotating service log and filter audit log."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from ..core.config import settings
from ..core.correlation import RequestContextFilter

# Modules whose records are filter decisions (violation counts, verdicts)
AUDIT_MODULES = frozenset({"content_filter", "filter_gate"})

DETAILED_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] "
    "%(funcName)s:%(lineno)d - %(message)s"
)
SIMPLE_FORMAT = "%(levelname)s - %(name)s - [%(request_id)s] %(message)s"


class AuditRecordFilter(logging.Filter):
    """Pass only records emitted by the filtering decision modules."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.name.rsplit(".", 1)[-1] in AUDIT_MODULES


def audit_log_path() -> Path:
    stem = settings.LOG_FILE.removesuffix(".log")
    return settings.LOG_DIR / f"{stem}_audit.log"


def _rotating_handler(path: Path, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    handler.addFilter(RequestContextFilter())
    return handler


def setup_logging(
    name: str | None = None, log_level: str | None = None
) -> logging.Logger:
    """
    Configure the package logger once.

    Console output always; outside tests, a rotating service log plus an
    audit log holding only filter decisions. Audit records never carry
    message text, only categories and counts.

    Args:
        name: Logger name (defaults to the ``kidguard`` package logger)
        log_level: Log level (defaults to settings.LOG_LEVEL)
    """
    logger = logging.getLogger(name or "kidguard")
    if logger.handlers:
        return logger

    level = log_level or settings.LOG_LEVEL
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    detailed = logging.Formatter(fmt=DETAILED_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        logging.Formatter(fmt=SIMPLE_FORMAT)
        if settings.ENVIRONMENT == "production"
        else detailed
    )
    console_handler.setLevel(logging.INFO)
    console_handler.addFilter(RequestContextFilter())
    logger.addHandler(console_handler)

    # Access lines duplicate RequestTimingMiddleware output
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    if settings.ENVIRONMENT == "test":
        return logger

    try:
        settings.LOG_DIR.mkdir(parents=True, exist_ok=True)
        logger.addHandler(_rotating_handler(settings.LOG_DIR / settings.LOG_FILE, detailed))

        audit_handler = _rotating_handler(audit_log_path(), detailed)
        audit_handler.setLevel(logging.DEBUG)
        audit_handler.addFilter(AuditRecordFilter())
        logger.addHandler(audit_handler)
    except OSError as e:
        logger.warning(f"Could not create log file handlers: {e}")

    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
