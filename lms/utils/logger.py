"""
Logging for the lms package: a rotating log file plus stderr, every line tagged
with the id of the HTTP request that produced it.
"""

import logging
import sys
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterator, Optional, Union

from lms.config import settings

ROOT_LOGGER = "lms"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s rid=%(request_id)s %(message)s"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3

REQUEST_ID: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIdFilter(logging.Filter):
    """Copies the current request id onto each record for the formatter."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = REQUEST_ID.get()
        return True


def configure_logging(
    log_dir: Union[str, Path, None] = None,
    log_file: str = "lms.log",
    level: Optional[str] = None,
) -> logging.Logger:
    """Attach file and console handlers to the "lms" logger once; later calls return it unchanged."""
    root = logging.getLogger(ROOT_LOGGER)
    if root.handlers:
        return root

    root.setLevel((level or settings.LOG_LEVEL).upper())
    root.propagate = False

    path = Path(log_dir or settings.LOG_DIR)
    path.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT)
    rid_filter = RequestIdFilter()
    handlers = [
        RotatingFileHandler(path / log_file, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"),
        logging.StreamHandler(sys.stderr),
    ]
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(rid_filter)
        root.addHandler(handler)
    return root


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def set_request_id(request_id: Optional[str] = None) -> str:
    rid = request_id or uuid.uuid4().hex
    REQUEST_ID.set(rid)
    return rid


def clear_request_id() -> None:
    REQUEST_ID.set("-")


@contextmanager
def log_request(logger: logging.Logger, name: str) -> Iterator[None]:
    """Log how long the wrapped block took, as a warning if it raised."""
    started = time.perf_counter()
    try:
        yield
    except Exception as e:
        logger.warning("%s failed after %.1fms: %s", name, (time.perf_counter() - started) * 1000, e)
        raise
    logger.info("%s done in %.1fms", name, (time.perf_counter() - started) * 1000)
