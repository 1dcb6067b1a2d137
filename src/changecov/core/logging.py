"""Structured logging for the CLI and the coverage daemon.

Everything goes through stdlib ``logging`` handlers rendered by structlog's
``ProcessorFormatter``, so uvicorn and starlette records share the same
outputs and formats as our own events. Each configured output has its own
destination, format and level.

Upload handlers bind a request id (and any other per-upload fields) with
:func:`bind_request`; every event logged while handling that upload carries
them.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from changecov.config.models import LoggingConfig, LogOutputConfig

_LEVELS = logging.getLevelNamesMapping()


def bind_request(request_id: str | None = None, **context: Any) -> str:
    """Bind a correlation id for the current upload, generating one if needed."""
    rid = request_id or uuid4().hex[:12]
    structlog.contextvars.bind_contextvars(request_id=rid, **context)
    return rid


def current_request_id() -> str | None:
    rid = structlog.contextvars.get_contextvars().get("request_id")
    return str(rid) if rid is not None else None


def unbind_request() -> None:
    structlog.contextvars.clear_contextvars()


def _level(name: str | None, fallback: int) -> int:
    if name is None:
        return fallback
    return _LEVELS.get(name.upper(), fallback)


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Install handlers for every configured output.

    Without ``config`` a single stderr output is used, formatted as JSON
    when ``json_format`` is set. Calling this again replaces the previous
    handlers.
    """
    from changecov.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,  # type: ignore[arg-type]
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )

    root_level = _level(config.level, logging.INFO)
    shared: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
    ]

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # existing loggers follow reconfiguration
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(root_level)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    for output in config.outputs:
        handler = _handler(output.destination)
        handler.setLevel(_level(output.level, root_level))
        handler.setFormatter(_formatter(output, shared))
        root.addHandler(handler)


def _handler(destination: str) -> logging.Handler:
    if destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a")


def _formatter(
    output: LogOutputConfig, shared: list[structlog.types.Processor]
) -> logging.Formatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        stream = sys.stdout if output.destination == "stdout" else sys.stderr
        renderer = structlog.dev.ConsoleRenderer(
            colors=output.destination in ("stderr", "stdout") and stream.isatty(),
            pad_event_to=0,
            pad_level=False,
        )
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared)

