"""JSON logging for the API process and the jobs CLI."""

import logging
import sys
from typing import Any

from pythonjsonlogger import jsonlogger

from mockexam.core.config import settings

LOG_FORMAT = "%(timestamp)s %(level)s %(logger)s %(message)s"

# Third-party loggers and the level they are held at
LIBRARY_LEVELS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
}


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """One JSON object per line: timestamp, level, logger, message, env, plus any `extra`."""

    def add_fields(self, log_record: dict[str, Any], record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["env"] = settings.ENV
        if record.levelno >= logging.WARNING:
            log_record["location"] = f"{record.module}.{record.funcName}:{record.lineno}"
        log_record.pop("asctime", None)


def setup_logging(level: str | None = None) -> None:
    """Replace root handlers with a single JSON stdout handler.

    `level` overrides LOG_LEVEL (the jobs CLI passes --log-level through here).
    """
    name = (level or settings.LOG_LEVEL).upper()
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, name, logging.INFO))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
    root_logger.addHandler(handler)

    for logger_name, logger_level in LIBRARY_LEVELS.items():
        logging.getLogger(logger_name).setLevel(logger_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
