"""Structured logging configuration for DialogForge.

Console output goes through rich on stderr and is controlled by ``-v``.
With ``--log`` every event is also appended, as one JSON object per line,
to ``{project}/logs/debug.jsonl``. Events logged while a CLI command runs
carry the project name (see bind_project).
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import TYPE_CHECKING, Any

import structlog
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger, Processor

LOG_DIR_NAME = "logs"
LOG_FILE_NAME = "debug.jsonl"

# -v count -> console level
_CONSOLE_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)

_configured = False
_log_file: JsonLinesHandler | None = None
_log_dir: Path | None = None


def _record_entry(record: logging.LogRecord) -> dict[str, Any]:
    """Flatten a log record into a JSON-ready dict.

    Records coming from structlog carry the event dict as ``record.msg``;
    its keys land at the top level next to the standard fields.
    """
    entry: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "level": record.levelname,
        "logger": record.name,
    }
    if not isinstance(record.msg, dict):
        entry["message"] = record.getMessage()
        return entry

    fields = {k: v for k, v in record.msg.items() if k not in ("level", "timestamp")}
    entry["message"] = fields.pop("event", "")
    entry.update(fields)
    return entry


class JsonLinesHandler(logging.FileHandler):
    """Append each record to a file as one JSON object per line."""

    def __init__(self, path: Path) -> None:
        super().__init__(str(path), mode="a", encoding="utf-8")
        self.setLevel(logging.DEBUG)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = json.dumps(_record_entry(record), default=str)
            if self.stream is None:
                self.stream = self._open()
            self.stream.write(line + "\n")
            self.stream.flush()
        except Exception:
            self.handleError(record)


def _console_handler(verbosity: int, processors: list[Processor]) -> RichHandler:
    handler = RichHandler(
        console=Console(stderr=True),
        level=_CONSOLE_LEVELS[min(verbosity, len(_CONSOLE_LEVELS) - 1)],
        show_time=verbosity > 0,
        show_path=verbosity > 1,
        rich_tracebacks=True,
        tracebacks_show_locals=verbosity > 1,
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.dev.ConsoleRenderer(colors=False),
            ],
        )
    )
    return handler


def configure_logging(
    verbosity: int = 0,
    log_to_file: bool = False,
    project_path: Path | None = None,
) -> None:
    """Configure console (and optionally file) logging.

    Can be called again; a previously opened log file is closed first.

    Args:
        verbosity: 0 shows warnings, 1 adds info, 2 or more adds debug.
        log_to_file: Also write every event to ``{project_path}/logs/debug.jsonl``.
        project_path: Project directory. Required if log_to_file=True.

    Raises:
        ValueError: If log_to_file=True but project_path is not provided.
    """
    global _configured, _log_file, _log_dir

    if log_to_file and project_path is None:
        raise ValueError("project_path is required when log_to_file=True")

    close_file_logging()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    handlers: list[logging.Handler] = [_console_handler(verbosity, processors)]

    if log_to_file and project_path is not None:
        _log_dir = project_path / LOG_DIR_NAME
        _log_dir.mkdir(parents=True, exist_ok=True)
        _log_file = JsonLinesHandler(_log_dir / LOG_FILE_NAME)
        handlers.append(_log_file)

    # Handlers filter per destination; the root lets through what any of them wants
    root_level = logging.DEBUG if verbosity > 0 or log_to_file else logging.WARNING
    logging.basicConfig(level=root_level, format="%(message)s", handlers=handlers, force=True)

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        cache_logger_on_first_use=False,
    )
    _configured = True


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Return a structlog logger, configuring defaults on first use."""
    if not _configured:
        configure_logging()
    logger: FilteringBoundLogger = structlog.get_logger(name)
    return logger


def bind_project(name: str) -> None:
    """Tag every following event in this context with ``project=name``."""
    structlog.contextvars.bind_contextvars(project=name)


def get_logs_dir() -> Path | None:
    """Directory of the JSONL log, or None when file logging is off."""
    return _log_dir


def close_file_logging() -> None:
    """Close the JSONL log file, if one is open."""
    global _log_file, _log_dir
    if _log_file is not None:
        _log_file.close()
        _log_file = None
        _log_dir = None
