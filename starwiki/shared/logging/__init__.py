"""Logging: structlog processors rendered through stdlib handlers.

Pipeline modules log with ``logging.getLogger(__name__)``; the use case and
entry points use ``structlog.get_logger()``. Both end up in the same
handlers with the same renderer, and both carry the run and page ids bound
by :func:`bind_page`.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog

QUIET_LOGGERS = ("httpx", "httpcore", "ollama")

_PRE_CHAIN = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def _formatter(pretty: bool) -> structlog.stdlib.ProcessorFormatter:
    renderer = structlog.dev.ConsoleRenderer() if pretty else structlog.processors.JSONRenderer()
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_PRE_CHAIN,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )


def _rotating_file(path: Path, max_mb: int, backups: int) -> logging.Handler | None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path, maxBytes=max_mb * 1024 * 1024, backupCount=backups, encoding="utf-8"
        )
    except OSError as e:
        sys.stderr.write(f"file logging off, cannot open {path}: {e}\n")
        return None


def setup_logging(
    level: str = "INFO",
    file_path: str = "",
    rotation_max_mb: int = 5,
    rotation_backups: int = 3,
) -> None:
    """(Re)configure the root logger.

    DEBUG renders for the console; any other level writes JSON lines. A
    non-empty file_path adds a rotating file handler next to stdout.
    """
    level = level.upper()
    numeric = logging.getLevelName(level)
    if not isinstance(numeric, int):
        numeric = logging.INFO

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_PRE_CHAIN,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if file_path.strip():
        file_handler = _rotating_file(
            Path(file_path.strip()).resolve(), rotation_max_mb, rotation_backups
        )
        if file_handler is not None:
            handlers.append(file_handler)

    formatter = _formatter(pretty=level == "DEBUG")
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(numeric)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(numeric)
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric, logging.WARNING))


def bind_page(run_id: str, page_id: str) -> None:
    structlog.contextvars.bind_contextvars(run_id=run_id, page_id=page_id)


def clear_page() -> None:
    structlog.contextvars.unbind_contextvars("run_id", "page_id")
