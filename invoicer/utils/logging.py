import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Optional

_STANDARD_ATTRS = {
    "args", "asctime", "created", "exc_info", "exc_text", "filename", "id", "levelno",
    "lineno", "message", "module", "msecs", "funcName", "msg", "name", "pathname",
    "process", "processName", "relativeCreated", "stack_info", "thread", "threadName",
    "levelname", "taskName",
}


class JsonFormatter(logging.Formatter):
    def formatTime(self, record, datefmt=None):
        return datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()

    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "message": record.getMessage(),
        }
        # extra=... attributes
        for attr, value in record.__dict__.items():
            if attr not in _STANDARD_ATTRS:
                log_record[attr] = value
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record, default=str)


def setup_logger(name: str = "invoicer", level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level.upper())
    if logger.handlers:
        return logger

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(JsonFormatter())
    logger.addHandler(stream_handler)

    if log_file:
        rotating_handler = RotatingFileHandler(log_file, maxBytes=2 * 1024 * 1024, backupCount=10)
        rotating_handler.setFormatter(JsonFormatter())
        logger.addHandler(rotating_handler)

    return logger
