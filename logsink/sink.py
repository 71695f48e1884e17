from __future__ import annotations

import asyncio
import concurrent.futures
from collections.abc import Sequence
from pathlib import Path
from types import TracebackType
from typing import Any

from core.config import SinkConfig
from core.contracts import LogEvent
from logsink.handle import FileHandleManager, TimestampFn, iso_timestamp
from logsink.queue import WriteQueue
from logsink.rotation import BackupRotator


class RotatingFileSink:
    """Append-only log file with size-based rotation.

    Writes are serialized through a single queue; each returns a future that
    callers may await for durability or ignore. ``shutdown()`` must run before
    the loop exits so queued events reach the file.

    Example:
        async with RotatingFileSink.from_path("logs/app.log", max_file_size=1024) as sink:
            sink.write("started")
            await sink.write(["multi", "line"])
    """

    def __init__(
        self,
        config: SinkConfig,
        *,
        timestamp_fn: TimestampFn = iso_timestamp,
        log: Any | None = None,
    ) -> None:
        self.config = config
        self._handles = FileHandleManager(
            config.path,
            persistent=config.persistent_handle,
            encoding=config.encoding,
            fsync=config.fsync,
        )
        self._rotator = BackupRotator(config.path, config.max_file_size, config.backup_count)
        self._queue = WriteQueue(
            self._handles, self._rotator, timestamp_fn=timestamp_fn, log=log
        )

    @classmethod
    def from_path(
        cls,
        path: str | Path,
        *,
        timestamp_fn: TimestampFn = iso_timestamp,
        log: Any | None = None,
        **options: Any,
    ) -> RotatingFileSink:
        return cls(SinkConfig(path=Path(path), **options), timestamp_fn=timestamp_fn, log=log)

    @property
    def path(self) -> Path:
        return self.config.path

    def write(self, event: LogEvent | str | Sequence[str]) -> asyncio.Future[None]:
        return self._queue.submit(LogEvent.of(event))

    def write_threadsafe(
        self, event: LogEvent | str | Sequence[str]
    ) -> concurrent.futures.Future[None]:
        return self._queue.submit_threadsafe(LogEvent.of(event))

    def shutdown(self) -> asyncio.Future[None]:
        return self._queue.shutdown()

    async def __aenter__(self) -> RotatingFileSink:
        self._queue.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.shutdown()
