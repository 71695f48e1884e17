"""Single-consumer write queue in front of the log file.

Producers enqueue from the event loop (or from threads via
``submit_threadsafe``); one worker task drains the queue strictly in
submission order. The blocking file work of each unit runs in a worker thread
so the loop keeps accepting submissions while a write or rotation is in
progress.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
from dataclasses import dataclass
from typing import Any

import structlog

from core.contracts import LogEvent
from logsink.handle import FileHandleManager, TimestampFn, iso_timestamp
from logsink.rotation import BackupRotator


@dataclass
class WriteTask:
    """One queued event and the future its producer may await."""

    event: LogEvent
    done: asyncio.Future[None]


class WriteQueue:
    """Applies events to the file one at a time, in submission order.

    I/O failures are reported on ``log`` and never reach producers; a failed
    unit does not stop the units queued behind it.
    """

    def __init__(
        self,
        handles: FileHandleManager,
        rotator: BackupRotator,
        *,
        timestamp_fn: TimestampFn = iso_timestamp,
        log: Any | None = None,
    ) -> None:
        self._handles = handles
        self._rotator = rotator
        self._timestamp_fn = timestamp_fn
        self._log = log or structlog.get_logger("logsink")
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[WriteTask | None] | None = None
        self._worker: asyncio.Task[None] | None = None
        self._shutdown: asyncio.Future[None] | None = None
        self._closing = False

    def start(self) -> None:
        """Bind to the running loop and start the worker (idempotent)."""
        loop = asyncio.get_running_loop()
        if self._loop is not None:
            if loop is not self._loop:
                raise RuntimeError("write queue is bound to another event loop")
            return
        self._loop = loop
        self._queue = asyncio.Queue()
        self._worker = loop.create_task(self._run(), name=f"logsink-writer:{self._handles.path}")

    def submit(self, event: LogEvent) -> asyncio.Future[None]:
        """Enqueue ``event``; the future resolves once it is flushed or reported."""
        if self._closing:
            done: asyncio.Future[None] = asyncio.get_running_loop().create_future()
            self._log.warning(
                "sink.write_rejected", path=str(self._handles.path), reason="shutdown"
            )
            done.set_result(None)
            return done

        self.start()
        assert self._loop is not None and self._queue is not None
        done = self._loop.create_future()
        self._queue.put_nowait(WriteTask(event, done))
        return done

    def submit_threadsafe(self, event: LogEvent) -> concurrent.futures.Future[None]:
        """Enqueue from a thread other than the loop's."""
        if self._loop is None:
            raise RuntimeError("write queue has not been started on an event loop")
        return asyncio.run_coroutine_threadsafe(self._submit_and_wait(event), self._loop)

    def shutdown(self) -> asyncio.Future[None]:
        """Stop accepting work, drain the queue, then release the file handle.

        Repeated calls return the same future.
        """
        if self._shutdown is None:
            self._closing = True
            self._shutdown = asyncio.ensure_future(self._drain_and_close())
        return self._shutdown

    async def _submit_and_wait(self, event: LogEvent) -> None:
        await self.submit(event)

    async def _run(self) -> None:
        assert self._queue is not None
        while True:
            task = await self._queue.get()
            if task is None:
                return
            try:
                await asyncio.to_thread(self._apply, task.event)
            except Exception:
                self._log.error("sink.unit_failed", path=str(self._handles.path), exc_info=True)
            finally:
                # The producer may have cancelled its await; the write still happened
                if not task.done.done():
                    task.done.set_result(None)

    async def _drain_and_close(self) -> None:
        if self._worker is not None and self._queue is not None:
            self._queue.put_nowait(None)
            await asyncio.wait({self._worker})
        try:
            await asyncio.to_thread(self._handles.close)
        except (OSError, ValueError):
            self._log.error("sink.close_failed", path=str(self._handles.path), exc_info=True)

    def _apply(self, event: LogEvent) -> None:
        """Write, flush, then rotate if due. Runs in a worker thread."""
        try:
            self._handles.append_lines(event.lines, self._timestamp_fn)
            self._handles.flush()
        except (OSError, ValueError):
            self._log.error(
                "sink.write_failed",
                path=str(self._handles.path),
                lines=len(event.lines),
                exc_info=True,
            )
            self._drop_handle()
            return

        try:
            if self._rotator.should_rotate(self._handles.current_size()):
                self._rotate()
        except OSError:
            self._log.error("sink.rotate_failed", path=str(self._handles.path), exc_info=True)

    def _rotate(self) -> None:
        self._handles.close()
        backups = self._rotator.rotate()
        self._log.debug(
            "sink.rotated", path=str(self._handles.path), backups=[str(p) for p in backups]
        )
        self._handles.ensure_open()

    def _drop_handle(self) -> None:
        try:
            self._handles.close()
        except (OSError, ValueError):
            self._log.warning("sink.close_failed", path=str(self._handles.path), exc_info=True)
