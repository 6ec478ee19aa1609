# src/driftwatch/util/log.py: Structured JSON logger.
# This module provides a centralized logging setup that outputs structured
# JSON logs. It uses contextvars to inject the pattern currently being checked
# (as "namespace/name") into every record, so that the scheduler's output for
# many repository pairs can be told apart in a log management system.

import logging
import json
import contextvars

pattern_context = contextvars.ContextVar('pattern_context', default=None)

class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pattern": pattern_context.get(),
        }
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record)

def get_logger(name):
    logger = logging.getLogger(name)
    if not logger.handlers and not logging.getLogger("driftwatch").handlers:
        logger.setLevel(logging.INFO)
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
    return logger

def setup_logging(level: str = "INFO", json_format: bool = True):
    """Configure the package logger; module loggers propagate into it."""
    root = logging.getLogger("driftwatch")
    root.setLevel(level.upper())
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        )
    root.addHandler(handler)

    # Drop the per-module handlers installed by get_logger before setup ran.
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith("driftwatch.") and isinstance(logger, logging.Logger):
            for h in list(logger.handlers):
                logger.removeHandler(h)
            logger.setLevel(logging.NOTSET)
