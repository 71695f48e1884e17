"""Logger front end: level filter, printer and outputs.

The logger owns no global state. Build one at startup with
:func:`create_logger`, hand it to whatever needs to log, and ``await
logger.close()`` at shutdown so the file sink drains.
"""

from __future__ import annotations

import asyncio
import traceback
from collections.abc import Awaitable
from typing import Any

from core.config import Config
from core.contracts import Level, LogRecord, OutputEvent
from logsink.outputs import ConsoleOutput, FileOutput, LogOutput, MultiOutput
from logsink.sink import RotatingFileSink


class LevelFilter:
    def __init__(self, level: Level = Level.INFO) -> None:
        self.level = level

    def should_log(self, record: LogRecord) -> bool:
        return self.level != Level.OFF and record.level >= self.level


class PlainPrinter:
    """Renders a record as ``[LEVEL] message`` plus error and traceback lines."""

    def __init__(self, *, stack_lines: int = 15) -> None:
        self.stack_lines = stack_lines

    def log(self, record: LogRecord) -> list[str]:
        lines = [f"[{record.level.name}] {line}" for line in record.message.splitlines() or [""]]
        if record.error is not None:
            lines.append(f"error: {record.error!r}")

        trace = self._trace(record)
        if trace:
            lines.extend(trace[: self.stack_lines])
        return lines

    @staticmethod
    def _trace(record: LogRecord) -> list[str]:
        if record.stack_trace:
            return record.stack_trace.splitlines()
        error = record.error
        if error is not None and error.__traceback__ is not None:
            text = "".join(traceback.format_tb(error.__traceback__))
            return text.splitlines()
        return []


class Logger:
    def __init__(
        self,
        output: LogOutput,
        *,
        level: Level = Level.INFO,
        printer: PlainPrinter | None = None,
        log_filter: LevelFilter | None = None,
    ) -> None:
        self.output = output
        self.printer = printer or PlainPrinter()
        self.filter = log_filter or LevelFilter(level)
        self._closed: Awaitable[Any] | None = None

    def log(
        self,
        level: Level,
        message: object,
        *,
        error: BaseException | None = None,
        stack_trace: str | None = None,
    ) -> Awaitable[Any]:
        """Print and emit a record; the result resolves once every output is done."""
        if level in (Level.ALL, Level.OFF):
            raise ValueError(f"{level.name} is a filter threshold, not a loggable level")

        record = LogRecord(level, str(message), error=error, stack_trace=stack_trace)
        if self._closed is not None or not self.filter.should_log(record):
            done: asyncio.Future[None] = asyncio.get_running_loop().create_future()
            done.set_result(None)
            return done
        return self.output.output(OutputEvent(record, tuple(self.printer.log(record))))

    def trace(self, message: object, **kwargs: Any) -> Awaitable[Any]:
        return self.log(Level.TRACE, message, **kwargs)

    def debug(self, message: object, **kwargs: Any) -> Awaitable[Any]:
        return self.log(Level.DEBUG, message, **kwargs)

    def info(self, message: object, **kwargs: Any) -> Awaitable[Any]:
        return self.log(Level.INFO, message, **kwargs)

    def warning(self, message: object, **kwargs: Any) -> Awaitable[Any]:
        return self.log(Level.WARNING, message, **kwargs)

    def error(self, message: object, **kwargs: Any) -> Awaitable[Any]:
        return self.log(Level.ERROR, message, **kwargs)

    def fatal(self, message: object, **kwargs: Any) -> Awaitable[Any]:
        return self.log(Level.FATAL, message, **kwargs)

    def close(self) -> Awaitable[Any]:
        if self._closed is None:
            self._closed = self.output.destroy()
        return self._closed


def create_logger(config: Config, *, log: Any | None = None) -> Logger:
    """Build the console + rotating file logger described by ``config``."""
    outputs: list[LogOutput] = []
    if config.logging.console:
        outputs.append(ConsoleOutput(log=log))
    outputs.append(FileOutput(RotatingFileSink(config.sink, log=log)))
    return Logger(MultiOutput(outputs), level=Level.from_name(config.logging.level))
