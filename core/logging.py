from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog
from structlog.types import Processor

from core.contracts import Level


def _build_processors(json: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        # ConsoleRenderer formats exc_info itself
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    return processors


def _stdlib_level(level: str) -> int:
    # DEBUG..FATAL line up with the stdlib constants; structlog knows no others
    parsed = int(Level.from_name(level))
    return min(max(parsed, logging.DEBUG), logging.CRITICAL)


def setup_diagnostics(
    level: str = "WARNING", *, json: bool = False, stream: TextIO | None = None
) -> structlog.typing.FilteringBoundLogger:
    """Route sink diagnostics (I/O faults, rejected writes) to ``stream``.

    Defaults to stderr so diagnostics never land in the log file being written.
    """

    structlog.configure(
        processors=_build_processors(json),
        wrapper_class=structlog.make_filtering_bound_logger(_stdlib_level(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=False,
    )

    return structlog.get_logger("logsink")
