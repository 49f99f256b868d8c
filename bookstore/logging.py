"""Logging for the bookstore back office.

Services attach structured fields (error codes, entity ids) to their records
through ``extra={"extra": {...}}``. :class:`JsonFormatter` flattens those
fields into the emitted line; the standard formatter appends them as
``key=value`` pairs.
"""

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, MutableMapping

NOISY_LOGGERS = ("confluent_kafka", "faker")

STANDARD_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def _fields(record: logging.LogRecord) -> dict[str, Any]:
    return dict(getattr(record, "extra", None) or {})


class StandardFormatter(logging.Formatter):
    """Plain text lines with structured fields appended."""

    def __init__(self) -> None:
        super().__init__(fmt=STANDARD_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _fields(record)
        if fields:
            line += " | " + " ".join(f"{key}={value}" for key, value in fields.items())
        return line


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        payload.update(_fields(record))
        return json.dumps(payload, ensure_ascii=False, default=str)


class ContextAdapter(logging.LoggerAdapter):
    """Logger adapter that merges bound fields into every record's ``extra``.

    >>> log = get_logger("bookstore.services.loans", entity="loan", entity_id="loan-1")
    >>> log.info("returned", extra={"extra": {"fee": "2000.00"}})
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        fields = dict(self.extra or {})
        fields.update((kwargs.get("extra") or {}).get("extra", {}))
        kwargs["extra"] = {"extra": fields}
        return msg, kwargs


def setup_logging(level: str = "INFO", format_type: str = "standard") -> None:
    """Configure the root logger for scripts.

    Parameters
    ----------
    level : str
        Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    format_type : str
        "standard" or "json".
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    formatter = "json" if format_type == "json" else "standard"
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {"()": StandardFormatter},
                "json": {"()": JsonFormatter},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": formatter,
                    "level": log_level,
                },
            },
            "root": {"level": log_level, "handlers": ["console"]},
            "loggers": {
                "bookstore": {"level": log_level},
                **{name: {"level": logging.WARNING} for name in NOISY_LOGGERS},
            },
        }
    )


def get_logger(name: str, **context: Any) -> logging.Logger | ContextAdapter:
    """Return the named logger, wrapped in a :class:`ContextAdapter` when
    ``context`` fields are given."""
    logger = logging.getLogger(name)
    if context:
        return ContextAdapter(logger, context)
    return logger
