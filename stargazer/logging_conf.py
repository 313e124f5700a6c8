"""Logging configuration built around structlog JSON logging.

Handlers sit behind a bounded queue drained by a single listener thread, so
worker threads only pay for an enqueue (or block while the queue is full).
"""

from __future__ import annotations

import atexit
import logging
import logging.config
import logging.handlers
import os
import queue
from pathlib import Path
from typing import Iterable

import structlog

LOG_QUEUE_CAPACITY = 1024
VERBOSE_HANDLERS = ("console", "run_file")

_LOGGING_INITIALISED = False
_LISTENER: logging.handlers.QueueListener | None = None


class BlockingQueueHandler(logging.handlers.QueueHandler):
    """Queue handler that waits for room instead of dropping records."""

    def enqueue(self, record: logging.LogRecord) -> None:
        self.queue.put(record)

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        # structlog already rendered the event dict; keep it for the JSON formatter.
        return record


def default_log_dir() -> Path:
    env_root = os.environ.get("STARGAZER_HOME")
    root = Path(env_root).expanduser() if env_root else Path.cwd()
    return root.resolve() / "logs"


def _attach_queue(logger: logging.Logger, capacity: int) -> logging.handlers.QueueListener:
    handlers = list(logger.handlers)
    for handler in handlers:
        logger.removeHandler(handler)
    log_queue: queue.Queue = queue.Queue(maxsize=capacity)
    logger.addHandler(BlockingQueueHandler(log_queue))
    listener = logging.handlers.QueueListener(log_queue, *handlers, respect_handler_level=True)
    listener.start()
    return listener


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Configure structlog + stdlib handlers and return application logger."""

    global _LOGGING_INITIALISED, _LISTENER
    if not _LOGGING_INITIALISED:
        log_dir = default_log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        level = "DEBUG" if verbose else "INFO"
        logging.config.dictConfig(
            {
                "version": 1,
                "disable_existing_loggers": False,
                "formatters": {
                    "plain": {
                        "()": "pythonjsonlogger.json.JsonFormatter",
                        "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
                    }
                },
                "handlers": {
                    "console": {
                        "class": "logging.StreamHandler",
                        "level": level,
                        "formatter": "plain",
                    },
                    "run_file": {
                        "class": "logging.FileHandler",
                        "level": "DEBUG" if verbose else "INFO",
                        "filename": str(log_dir / "stargazer.log"),
                        "formatter": "plain",
                        "encoding": "utf-8",
                    },
                    "error_file": {
                        "class": "logging.FileHandler",
                        "level": "ERROR",
                        "filename": str(log_dir / "error.log"),
                        "formatter": "plain",
                        "encoding": "utf-8",
                    },
                },
                "loggers": {
                    "stargazer": {
                        "handlers": ["console", "run_file", "error_file"],
                        "level": level,
                        "propagate": False,
                    },
                },
            }
        )
        _LISTENER = _attach_queue(logging.getLogger("stargazer"), LOG_QUEUE_CAPACITY)

        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_INITIALISED = True
    elif verbose:
        _set_verbose_levels()
    return structlog.get_logger("stargazer")


def _set_verbose_levels() -> None:
    logging.getLogger("stargazer").setLevel(logging.DEBUG)
    if _LISTENER is None:
        return
    for handler in _LISTENER.handlers:
        # error_file keeps its ERROR threshold.
        if handler.get_name() in VERBOSE_HANDLERS:
            handler.setLevel(logging.DEBUG)


def shutdown_logging() -> None:
    """Drain queued records and stop the listener thread."""

    global _LISTENER
    if _LISTENER is not None:
        _LISTENER.stop()
        _LISTENER = None


atexit.register(shutdown_logging)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    """Return the last N lines from a log file."""

    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        lines = stream.readlines()
    return lines[-line_count:]


def available_logs() -> Iterable[Path]:
    log_dir = default_log_dir()
    if not log_dir.exists():
        return []
    return sorted(log_dir.glob("*.log"))


__all__ = [
    "BlockingQueueHandler",
    "available_logs",
    "configure_logging",
    "default_log_dir",
    "shutdown_logging",
    "tail_log",
]
