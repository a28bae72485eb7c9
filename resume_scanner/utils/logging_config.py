"""
Logging setup for the Resume Scanner
"""
import functools
import logging
import logging.config
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

ROOT_LOGGER = "resume_scanner"
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"

# third-party loggers that are noisy below ERROR
QUIET_LOGGERS = ("pdfminer", "urllib3")


def setup_logging(level: str = "INFO", log_dir: Optional[str] = None) -> None:
    """
    Configure the ``resume_scanner`` logger tree.

    Console output is always on. A rotating file handler is added when
    ``log_dir`` is given; the folder is created on demand.
    """
    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "console",
            "stream": "ext://sys.stdout",
        }
    }
    log_file = None
    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        log_file = Path(log_dir) / f"resume_scanner_{datetime.now():%Y%m%d}.log"
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "file",
            "filename": str(log_file),
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "encoding": "utf8",
        }

    loggers: Dict[str, Any] = {
        ROOT_LOGGER: {"level": level, "handlers": list(handlers), "propagate": False},
    }
    for name in QUIET_LOGGERS:
        loggers[name] = {"level": "ERROR"}

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": CONSOLE_FORMAT, "datefmt": "%H:%M:%S"},
            "file": {"format": FILE_FORMAT},
        },
        "handlers": handlers,
        "loggers": loggers,
    })
    get_logger("logging").info(f"Logging configured - level {level}, log file {log_file or 'disabled'}")


def configure_for_environment() -> None:
    """
    ``ENVIRONMENT=testing`` logs warnings to the console only. Otherwise
    ``LOG_LEVEL`` (default INFO) applies and files go to ``LOG_DIR``
    (default ``logs``; set it empty to disable file logging).
    """
    if os.getenv("ENVIRONMENT", "development").lower() == "testing":
        setup_logging(level="WARNING")
        return
    setup_logging(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_dir=os.getenv("LOG_DIR", "logs") or None,
    )


def get_logger(name: str) -> logging.Logger:
    """Loggers always live under ``resume_scanner`` so one config covers them."""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def log_api_call(operation: str):
    """Log how long an endpoint took and whether it raised."""
    def decorator(func):
        logger = get_logger(f"api.{operation}")

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            started = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.warning(f"{operation} failed after {time.perf_counter() - started:.3f}s: {e!r}")
                raise
            logger.info(f"{operation} finished in {time.perf_counter() - started:.3f}s")
            return result

        return wrapper
    return decorator


class PerformanceMonitor:
    """
    Times a batch and reports how many items it handled.

    Call ``record(ok)`` once per finished item. On exit a single summary line
    is logged: info normally, warning when the batch was slow or aborted.
    """

    def __init__(self, operation_name: str, logger: logging.Logger = None, threshold_ms: float = 1000):
        self.operation_name = operation_name
        self.logger = logger or get_logger("performance")
        self.threshold_ms = threshold_ms
        self.total = 0
        self.failed = 0
        self.elapsed_ms = None
        self._started = None

    def record(self, ok: bool) -> None:
        self.total += 1
        if not ok:
            self.failed += 1

    def summary(self) -> str:
        return f"{self.operation_name}: {self.total} item(s), {self.failed} failed, {self.elapsed_ms:.0f}ms"

    def __enter__(self):
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self._started) * 1000
        if exc_type is not None:
            self.logger.warning(f"{self.summary()} - aborted: {exc_val!r}")
        elif self.elapsed_ms > self.threshold_ms:
            self.logger.warning(f"{self.summary()} - slower than {self.threshold_ms:.0f}ms")
        else:
            self.logger.info(self.summary())
        return False
