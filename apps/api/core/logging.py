"""
Logging for the challenge API.

Records go to stdout, one JSON object per line in production and plain
text elsewhere. `extra={"extra_fields": {...}}` on a record merges those
keys into the JSON object (the request middleware uses it for timings).
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from core.config import Settings, settings

# Loggers this service writes to; they follow LOG_LEVEL.
APP_LOGGERS = ("main", "routers", "services.challenge")

# Third-party loggers kept at WARNING so request traffic stays readable.
QUIET_LOGGERS = ("httpx", "httpcore", "google_genai", "uvicorn.access")

TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            entry.update(extra_fields)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def build_formatter(config: Settings) -> logging.Formatter:
    if config.log_format == "json":
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT)


def setup_logging(config: Settings = settings) -> logging.Logger:
    level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(config))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in APP_LOGGERS:
        logging.getLogger(name).setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # DB_ECHO turns on SQL statement logging through the same handler
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if config.DB_ECHO else logging.WARNING)

    return root
