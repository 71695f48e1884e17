from __future__ import annotations

import contextlib
import os
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import TextIO

TimestampFn = Callable[[], str]


def iso_timestamp() -> str:
    """Current UTC time in ISO-8601, e.g. ``2025-09-30T12:00:00.123456+00:00``."""
    return datetime.now(UTC).isoformat()


class FileHandleManager:
    """Append handle for the live log file.

    In persistent mode one handle is kept open across writes and reopened
    whenever it is found closed or no longer backing ``path``. In per-write
    mode every ``append_lines`` call opens, writes, flushes and closes, so no
    handle survives between calls.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        persistent: bool = True,
        encoding: str = "utf-8",
        fsync: bool = False,
    ) -> None:
        self._path = Path(path)
        self._persistent = persistent
        self._encoding = encoding
        self._fsync = fsync
        self._file: TextIO | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def persistent(self) -> bool:
        return self._persistent

    @property
    def is_open(self) -> bool:
        return self._file is not None and not self._file.closed

    def ensure_open(self) -> None:
        if not self._persistent:
            return
        if self.is_open and not self._replaced_on_disk():
            return
        # A handle whose descriptor was closed underneath it fails to close again
        with contextlib.suppress(OSError, ValueError):
            self.close()
        self._file = self._open()

    def append_lines(self, lines: Iterable[str], timestamp_fn: TimestampFn = iso_timestamp) -> None:
        if not self._persistent:
            with self._open() as handle:
                self._write(handle, lines, timestamp_fn)
                self._flush(handle)
            return

        self.ensure_open()
        assert self._file is not None
        self._write(self._file, lines, timestamp_fn)

    def flush(self) -> None:
        if self._file is not None and not self._file.closed:
            self._flush(self._file)

    def close(self) -> None:
        """Flush and release the persistent handle; safe to call repeatedly."""
        handle, self._file = self._file, None
        if handle is None or handle.closed:
            return
        try:
            handle.flush()
        finally:
            handle.close()

    def current_size(self) -> int:
        try:
            return self._path.stat().st_size
        except FileNotFoundError:
            return 0

    def _open(self) -> TextIO:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        return self._path.open("a", encoding=self._encoding)

    def _replaced_on_disk(self) -> bool:
        """True when ``path`` was deleted or swapped out under the open handle."""
        assert self._file is not None
        try:
            on_disk = self._path.stat()
        except FileNotFoundError:
            return True
        try:
            opened = os.fstat(self._file.fileno())
        except OSError:
            return True
        return (on_disk.st_dev, on_disk.st_ino) != (opened.st_dev, opened.st_ino)

    def _flush(self, handle: TextIO) -> None:
        handle.flush()
        if self._fsync:
            os.fsync(handle.fileno())

    @staticmethod
    def _write(handle: TextIO, lines: Iterable[str], timestamp_fn: TimestampFn) -> None:
        # Each line is stamped as it is written, not when the event was queued
        for line in lines:
            text = line.rstrip("\n")
            handle.write(f"{timestamp_fn()} {text}\n")
