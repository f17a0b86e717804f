"""Logging setup shared by the HTTP service and the serverless handlers.

Every record is one JSON object per line. Structured context is passed as
``extra={"extra": {...}}`` and merged into that object.
"""

import json
import logging
import os
from logging.config import dictConfig

# set by the function host; absent under uvicorn
FUNCTION_NAME_ENV = "AWS_LAMBDA_FUNCTION_NAME"

QUIET_LOGGERS = ("botocore", "boto3", "s3transfer", "urllib3")


def setup_logging(level: str = "INFO") -> None:
    loggers: dict[str, dict] = {name: {"level": "WARNING"} for name in QUIET_LOGGERS}
    loggers["filerelay.startup"] = {
        "handlers": ["startup_console"],
        "level": "INFO",
        "propagate": False,
    }
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": JsonFormatter,
                    "function_name": os.environ.get(FUNCTION_NAME_ENV),
                },
                "plain": {"format": "%(levelname)s %(name)s: %(message)s"},
            },
            "handlers": {
                "console": {"class": "logging.StreamHandler", "formatter": "json"},
                "startup_console": {
                    "class": "logging.StreamHandler",
                    "formatter": "plain",
                },
            },
            "root": {"level": level, "handlers": ["console"]},
            "loggers": loggers,
        }
    )


class JsonFormatter(logging.Formatter):
    def __init__(self, function_name: str | None = None) -> None:
        super().__init__()
        self._function_name = function_name

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self._function_name:
            payload["function"] = self._function_name
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)
