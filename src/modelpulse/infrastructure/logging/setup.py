"""structlog on top of stdlib logging, emitted off the event loop.

Every record (structlog events and foreign records from httpx/asyncio) is
pushed onto a queue and rendered by a ``QueueListener`` thread, so the
dashboard's asyncio loop never blocks on log I/O. Output goes to stderr or to
``logging.file``; stdout is left to the dashboard and ``--fiable``.
"""

from __future__ import annotations

import atexit
import copy
import logging
import queue
import sys
from datetime import datetime, timezone
from logging.handlers import QueueHandler, QueueListener
from typing import Any, Optional

import structlog

from modelpulse.infrastructure.config.schema import AppConfig

log = structlog.get_logger(__name__)

# Third-party loggers that chat at INFO on every request.
_NOISY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore")

_listener: Optional[QueueListener] = None


def _stamp_foreign_record(
    _: Any, __: Any, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Use ``LogRecord.created`` as the timestamp of foreign records.

    The listener thread renders later than the record was made.
    """
    record = event_dict.get("_record")
    if isinstance(record, logging.LogRecord) and "timestamp" not in event_dict:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        event_dict["timestamp"] = created.isoformat().replace("+00:00", "Z")
    return event_dict


class _EventDictQueueHandler(QueueHandler):
    # The stock prepare() flattens record.msg to a string; ProcessorFormatter
    # needs the structlog event dict.
    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        return copy.copy(record)


def _renderer(config: AppConfig) -> structlog.typing.Processor:
    if config.log_format == "json":
        return structlog.processors.JSONRenderer()
    # Colours would end up as escape codes in a log file.
    return structlog.dev.ConsoleRenderer(colors=config.log_file is None)


def build_formatter(config: AppConfig) -> structlog.stdlib.ProcessorFormatter:
    """Formatter shared by structlog events and foreign records."""
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.contextvars.merge_contextvars,
            _stamp_foreign_record,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(config),
        ],
    )


def build_handler(config: AppConfig) -> logging.Handler:
    """stderr by default; a file when ``logging.file`` is set."""
    handler: logging.Handler
    if config.log_file is None:
        handler = logging.StreamHandler(stream=sys.stderr)
    else:
        handler = logging.FileHandler(config.log_file, encoding="utf-8")
    handler.setFormatter(build_formatter(config))
    return handler


def shutdown_logging() -> None:
    """Stop the listener thread, flushing queued records."""
    global _listener
    if _listener is None:
        return
    try:
        _listener.stop()
        for handler in _listener.handlers:
            handler.close()
    finally:
        _listener = None


def _install_queue(config: AppConfig) -> None:
    global _listener

    shutdown_logging()

    records: queue.Queue[logging.LogRecord] = queue.Queue()

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_EventDictQueueHandler(records))
    root.setLevel(config.log_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root.level))

    _listener = QueueListener(records, build_handler(config), respect_handler_level=True)
    _listener.start()
    atexit.register(shutdown_logging)


def configure_logging(config: AppConfig) -> None:
    """Configure structlog and route stdlib logging through the queue."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _install_queue(config)

    log.info(
        "logging_configured",
        log_format=config.log_format,
        log_level=config.log_level,
        log_file=str(config.log_file) if config.log_file else None,
    )
