"""
JSON logging for the review service.

Every record is rendered as one JSON object per line. Review identifiers
(pull request number, repository, delivery id, chunk) are lifted to the top
level so log queries can filter on them; anything else passed through
``extra`` lands under ``context``.
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, MutableMapping, Optional, Tuple

# Lifted to the top level of every JSON line
CONTEXT_FIELDS = ("pr_number", "repository", "delivery_id", "chunk")

# Third-party loggers that are only interesting when something goes wrong
QUIET_LOGGERS = ("openai", "httpx", "httpcore", "uvicorn.access")

_STANDARD_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """
    Render log records as single-line JSON.

    Keys: ``timestamp``, ``level``, ``logger``, ``message``, the review
    identifiers present on the record, ``context`` for remaining extras,
    ``error`` when exception info is attached and ``source``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": _utc_now(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _STANDARD_RECORD_ATTRS
        }
        for field in CONTEXT_FIELDS:
            if field in extras:
                entry[field] = extras.pop(field)
        if extras:
            entry["context"] = extras

        if record.exc_info:
            entry["error"] = self._error_block(record.exc_info)

        entry["source"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
        }
        return json.dumps(entry, default=str)

    @staticmethod
    def _error_block(exc_info) -> Dict[str, Optional[str]]:
        exc_type, exc_value, _ = exc_info
        return {
            "type": exc_type.__name__ if exc_type else None,
            "message": str(exc_value) if exc_value else None,
            "stack_trace": "".join(traceback.format_exception(*exc_info)),
        }


class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    Adapter carrying review identifiers into every record it emits.

    Per-call ``extra`` values override the adapter's own on conflict.
    """

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, dict(extra or {}))

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs

    def with_context(self, **context: Any) -> "ContextLoggerAdapter":
        """Return a child adapter with ``context`` layered over this one's."""
        return ContextLoggerAdapter(self.logger, {**self.extra, **context})


def setup_logging(log_level: str = "INFO", stream=None) -> None:
    """
    Install the JSON handler on the root logger.

    Args:
        log_level: Level name for the root logger and its handler
        stream: Output stream, stdout when omitted
    """
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.setLevel(log_level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, **context: Any) -> ContextLoggerAdapter:
    """
    Module logger, optionally pre-bound to review identifiers.

    Example:
        logger = get_logger(__name__, pr_number=42, repository="octo/repo")
    """
    return ContextLoggerAdapter(logging.getLogger(name), context)


def log_pr_event(logger: logging.LoggerAdapter, pr_number: int, repository: str, action: str) -> None:
    """Record that a pull request event reached the dispatcher."""
    logger.info(
        f"Pull request event received: {action}",
        extra={"pr_number": pr_number, "repository": repository, "action": action},
    )


def log_api_call(
    logger: logging.LoggerAdapter,
    service: str,
    endpoint: str,
    method: str,
    status_code: Optional[int] = None,
    duration_ms: Optional[float] = None,
    error: Optional[str] = None,
) -> None:
    """
    Record one outbound call to GitHub or the reviewer.

    Failed calls (``error`` set) are logged at ERROR, the rest at INFO.
    Optional fields are only included when known.
    """
    details: Dict[str, Any] = {"service": service, "endpoint": endpoint, "method": method}
    optional = {
        "status_code": status_code,
        "duration_ms": round(duration_ms, 2) if duration_ms is not None else None,
        "error": error,
    }
    details.update({key: value for key, value in optional.items() if value is not None})

    if error:
        logger.error(f"API call failed: {method} {endpoint}", extra=details)
    else:
        logger.info(f"API call: {method} {endpoint}", extra=details)


def log_error_with_context(
    logger: logging.LoggerAdapter,
    message: str,
    error: BaseException,
    **context: Any,
) -> None:
    """Log ``error`` with its traceback and the given context fields."""
    context.setdefault("error_type", type(error).__name__)
    logger.error(message, extra=context, exc_info=error)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
