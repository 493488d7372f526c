"""
Logging setup for the progression client.

One stderr handler on the root logger: JSON lines in production, a compact
text line otherwise. The identity being served is kept in a context var in
masked form and stamped on every record by ``IdentityFilter``; raw phone
numbers never reach a log line.

Usage:
    from pelekan.logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("Answer recorded", extra={"test_no": 1, "index": 3})
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from pelekan.config import Settings

# Masked identity of the user currently being served
identity_var: ContextVar[Optional[str]] = ContextVar("identity", default=None)

# Attributes every LogRecord carries; anything else came in through extra=
_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "identity",
}

_NOISY_LOGGERS = ("httpx", "httpcore")


def mask_identity(identity: Optional[str]) -> str:
    """Keep the last four characters, star out the rest."""
    if not identity:
        return "-"
    hidden = max(len(identity) - 4, 0)
    return "*" * hidden + identity[hidden:]


def bind_identity(identity: Optional[str]) -> None:
    identity_var.set(mask_identity(identity) if identity else None)


def get_identity() -> Optional[str]:
    return identity_var.get()


class IdentityFilter(logging.Filter):
    """Stamp the bound (masked) identity on each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.identity = get_identity() or "-"  # type: ignore[attr-defined]
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line; extra= fields are carried as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        identity = getattr(record, "identity", "-")
        if identity != "-":
            entry["identity"] = identity
        for key, value in vars(record).items():
            if key in _RESERVED or value is None:
                continue
            try:
                json.dumps(value)
            except (TypeError, ValueError):
                value = repr(value)
            entry[key] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def _text_formatter() -> logging.Formatter:
    return logging.Formatter(
        "%(asctime)s %(levelname)-5s %(name)s [%(identity)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def configure_logging(
    *,
    log_level: str = "INFO",
    environment: str = "development",
    debug: bool = False,
) -> None:
    """
    Install the root handler. Safe to call again; the previous handlers are
    replaced.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        environment: 'production' switches to JSON output
        debug: forces DEBUG regardless of log_level
    """
    level = logging.DEBUG if debug else logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.addFilter(IdentityFilter())
    handler.setFormatter(JsonFormatter() if environment == "production" else _text_formatter())

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_from_settings(settings: Optional["Settings"] = None) -> None:
    """configure_logging() driven by Settings."""
    if settings is None:
        from pelekan.config import get_settings

        settings = get_settings()
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
