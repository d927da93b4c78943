"""Structured logging configuration."""
import logging
import sys

from pythonjsonlogger.json import JsonFormatter

LOG_FORMAT = "%(timestamp)s %(levelname)s %(name)s %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """One JSON line per record on stdout; ``extra=`` fields (pod, analyzer, ...) become keys."""
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter(
        LOG_FORMAT,
        timestamp=True,
        rename_fields={"levelname": "level", "name": "logger"},
    ))
    root.addHandler(handler)
    # The kubernetes client logs every request at DEBUG through urllib3
    logging.getLogger("urllib3").setLevel(logging.WARNING)
