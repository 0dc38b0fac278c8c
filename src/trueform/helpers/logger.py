import logging
import os
import sys
from typing import Optional

import structlog

LOG_DESTINATIONS = ("stderr", "file", "both")
LOG_FORMATS = ("console", "json")


def setup_logging(
    log_dir: Optional[str] = None,
    log_filename: Optional[str] = None,
    log_level: Optional[str] = None,
    log_destination: Optional[str] = None,
    log_format: Optional[str] = None,
):
    """
    Set up structured logging for the plugin using structlog.

    Standard output is reserved for the documents exchanged with the
    orchestration host, so console logs always go to stderr.

    :param log_dir: Directory where the log file will be stored.
    :param log_filename: Name of the log file.
    :param log_level: Logging level (e.g., DEBUG, INFO, WARNING, ERROR, CRITICAL).
    :param log_destination: Where to send logs ("file", "stderr", or "both").
    :param log_format: "console" for key=value text or "json" for one JSON object per entry.
    :return: Configured structlog logger instance.
    """
    log_level = log_level or os.environ.get("TRUEFORM_LOG_LEVEL", "INFO")
    log_destination = log_destination or os.environ.get("TRUEFORM_LOG_DESTINATION", "stderr")
    if log_destination not in LOG_DESTINATIONS:
        raise ValueError(f"Unsupported log destination: {log_destination}")
    log_format = log_format or os.environ.get("TRUEFORM_LOG_FORMAT", "console")
    if log_format not in LOG_FORMATS:
        raise ValueError(f"Unsupported log format: {log_format}")

    shared_processors = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    handlers: list[logging.Handler] = []
    if log_destination in ("file", "both"):
        log_dir = log_dir or os.environ.get("TRUEFORM_LOG_DIR", "./logs")
        log_filename = log_filename or "trueform.log"
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(log_dir, log_filename)))

    if log_destination in ("stderr", "both"):
        handlers.append(logging.StreamHandler(sys.stderr))

    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        handlers=handlers,
        force=True,
    )

    structlog.configure(
        processors=[structlog.stdlib.filter_by_level]
        + shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger("trueform")


def get_logger(name: str):
    """Return a structlog logger for the given component name."""
    return structlog.get_logger(name)
