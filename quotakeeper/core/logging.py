"""Logging setup.

Every module logs through ``logger`` (or a ``ContextualLogger`` derived from it
via ``with_context``). Context fields are attached to each record and rendered
either as ``key=value`` suffixes (local/test) or as JSON keys (deployed envs).

Usage:
    from quotakeeper.core.logging import logger

    log = logger.with_context(account_id=str(account_id))
    log.info("Usage reset")
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, MutableMapping, Optional

_LOGGER_NAME = "quotakeeper"

_STANDARD_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


class ContextualLogger(logging.LoggerAdapter):
    """LoggerAdapter that carries a dict of context fields.

    ``with_context`` returns a new adapter with the merged fields, so a
    request- or account-scoped logger can be passed down without mutating
    the shared one.
    """

    def __init__(self, logger: logging.Logger, extra: Optional[dict[str, Any]] = None) -> None:
        super().__init__(logger, dict(extra or {}))

    def with_context(self, **kwargs: Any) -> "ContextualLogger":
        """Return a logger with the given fields added to the context."""
        merged = dict(self.extra or {})
        merged.update({k: v for k, v in kwargs.items() if v is not None})
        return ContextualLogger(self.logger, merged)

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs


def _context_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _STANDARD_RECORD_ATTRS}


class _JSONFormatter(logging.Formatter):
    """One JSON object per line, context fields flattened into the object."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_context_fields(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class _ReadableFormatter(logging.Formatter):
    """Plain text with ``key=value`` context appended."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-7s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _context_fields(record)
        if fields:
            line += " " + " ".join(f"{k}={v}" for k, v in sorted(fields.items()))
        return line


class LoggerConfigurator:
    """Configures the root quotakeeper logger once at startup."""

    _configured = False

    @classmethod
    def configure(cls, level: str = "INFO", json_format: bool = False) -> None:
        """Install a single stdout handler on the quotakeeper logger.

        Args:
            level: Log level name.
            json_format: Emit JSON lines instead of readable text.
        """
        base = logging.getLogger(_LOGGER_NAME)
        for handler in list(base.handlers):
            base.removeHandler(handler)

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(_JSONFormatter() if json_format else _ReadableFormatter())
        base.addHandler(handler)
        base.setLevel(level.upper())
        base.propagate = False
        cls._configured = True


logger = ContextualLogger(logging.getLogger(_LOGGER_NAME))
