from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Sequence
from typing import Any, Protocol, TextIO

import structlog

from core.contracts import OutputEvent
from logsink.sink import RotatingFileSink


class LogOutput(Protocol):
    """Destination for printed log records.

    ``output`` is a plain call so the order of events is fixed when it is
    made; the returned awaitable only reports completion.
    """

    def output(self, event: OutputEvent) -> Awaitable[Any]: ...

    def destroy(self) -> Awaitable[Any]: ...


def _completed() -> asyncio.Future[None]:
    done: asyncio.Future[None] = asyncio.get_running_loop().create_future()
    done.set_result(None)
    return done


class FileOutput:
    def __init__(self, sink: RotatingFileSink) -> None:
        self.sink = sink

    def output(self, event: OutputEvent) -> Awaitable[Any]:
        return self.sink.write(event.to_log_event())

    def destroy(self) -> Awaitable[Any]:
        return self.sink.shutdown()


class ConsoleOutput:
    """Prints lines to ``stream`` (stdout unless given)."""

    def __init__(self, stream: TextIO | None = None, *, log: Any | None = None) -> None:
        self._stream = stream
        self._log = log or structlog.get_logger("logsink")

    def output(self, event: OutputEvent) -> Awaitable[Any]:
        stream = self._stream or sys.stdout
        try:
            for line in event.lines:
                print(line, file=stream)
        except (OSError, ValueError):
            self._log.warning("console.write_failed", exc_info=True)
        return _completed()

    def destroy(self) -> Awaitable[Any]:
        stream = self._stream or sys.stdout
        try:
            stream.flush()
        except (OSError, ValueError):
            self._log.warning("console.flush_failed", exc_info=True)
        return _completed()


class MultiOutput:
    """Fans each event out to every output in order."""

    def __init__(self, outputs: Sequence[LogOutput]) -> None:
        self.outputs = list(outputs)

    def output(self, event: OutputEvent) -> Awaitable[Any]:
        return asyncio.gather(*(out.output(event) for out in self.outputs))

    def destroy(self) -> Awaitable[Any]:
        return asyncio.gather(*(out.destroy() for out in self.outputs))
