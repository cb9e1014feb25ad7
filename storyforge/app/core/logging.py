"""Logging setup for StoryForge.

Configured once through ``logging.config.dictConfig``. ``LOG_FORMAT``
selects the output: ``text``, ``structured`` (text followed by the request,
user and endpoint fields) or ``json`` (one object per line).

Every record carries the id of the HTTP request it was emitted under, so
an outline retry or a rate-limit rejection can be traced back to one call.
"""

import json
import logging
import logging.config
import sys
import traceback
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from storyforge.app.core.config import settings

_request_id: ContextVar[Optional[str]] = ContextVar("storyforge_request_id", default=None)

# Fields the formatters know about; always present after ContextFilter
CONTEXT_FIELDS = (
    "request_id",
    "user_id",       # Supabase user id or anonymous session id
    "endpoint",      # generate-story, generate-outline, ...
    "provider",      # gemini | mock
    "path",
    "method",
    "status_code",
    "duration_ms",
)

# Attributes every LogRecord has; anything else arrived through ``extra``
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}

FORMATS = {
    "text": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    "structured": (
        "%(asctime)s %(levelname)-8s %(name)s: %(message)s "
        "[request_id=%(request_id)s user_id=%(user_id)s endpoint=%(endpoint)s]"
    ),
}


def bind_request_id(request_id: Optional[str]) -> Token:
    """Attach ``request_id`` to records logged from the current context."""
    return _request_id.set(request_id)


def reset_request_id(token: Token) -> None:
    _request_id.reset(token)


def current_request_id() -> Optional[str]:
    return _request_id.get()


class ContextFilter(logging.Filter):
    """Give every record the context fields the formatters reference.

    ``request_id`` falls back to the id bound for the current request; the
    other fields default to None.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = _request_id.get()
        for field in CONTEXT_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, None)
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record.

    Context fields that are set appear at the top level; other ``extra``
    keys are grouped under ``"extra"``.
    """

    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        extra: Dict[str, Any] = {}
        for key, value in record.__dict__.items():
            if key in CONTEXT_FIELDS:
                if value is not None:
                    data[key] = value
            elif key not in _RECORD_ATTRIBUTES:
                extra[key] = value
        if extra:
            data["extra"] = extra

        if record.exc_info and record.exc_info[0] is not None:
            data["exception"] = traceback.format_exception(*record.exc_info)

        return json.dumps(data, default=str, ensure_ascii=False)


def get_logging_config(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
) -> Dict[str, Any]:
    """Build the dictConfig for the given level and format.

    Both default to the ``LOG_LEVEL`` / ``LOG_FORMAT`` settings.
    """
    level = (log_level or settings.log_level).upper()
    output = (log_format or settings.log_format).lower()

    if output == "json":
        formatter: Dict[str, Any] = {"()": JSONFormatter}
    else:
        formatter = {"format": FORMATS.get(output, FORMATS["text"])}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"context": {"()": ContextFilter}},
        "formatters": {"default": formatter},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
                "level": level,
                "formatter": "default",
                "filters": ["context"],
            },
        },
        "loggers": {
            "storyforge": {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn": {"level": level, "handlers": ["console"], "propagate": False},
            # Third-party chatter
            "uvicorn.access": {"level": "WARNING"},
            "sqlalchemy.engine": {"level": "WARNING"},
            "httpx": {"level": "WARNING"},
        },
        "root": {"level": level, "handlers": ["console"]},
    }


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    logging.config.dictConfig(get_logging_config(log_level, log_format))


def get_logger(name: str = "storyforge") -> logging.Logger:
    return logging.getLogger(name)


def get_log_context(
    request_id: Optional[str] = None,
    user_id: Optional[str] = None,
    endpoint: Optional[str] = None,
    provider: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Build an ``extra`` mapping, dropping unset values.

    Example:
        >>> logger.info(
        ...     "Outline accepted",
        ...     extra=get_log_context(user_id="u-1", endpoint="generate-outline")
        ... )
    """
    context = {
        "request_id": request_id,
        "user_id": user_id,
        "endpoint": endpoint,
        "provider": provider,
        **extra,
    }
    return {k: v for k, v in context.items() if v is not None}
