"""Rotating, single-writer log file sink."""

from logsink.handle import FileHandleManager, iso_timestamp
from logsink.logger import LevelFilter, Logger, PlainPrinter, create_logger
from logsink.outputs import ConsoleOutput, FileOutput, LogOutput, MultiOutput
from logsink.queue import WriteQueue, WriteTask
from logsink.rotation import BackupRotator, BackupShift, plan_backup_shift, should_rotate
from logsink.sink import RotatingFileSink

__all__ = [
    "BackupRotator",
    "BackupShift",
    "ConsoleOutput",
    "FileHandleManager",
    "FileOutput",
    "LevelFilter",
    "LogOutput",
    "Logger",
    "MultiOutput",
    "PlainPrinter",
    "RotatingFileSink",
    "WriteQueue",
    "WriteTask",
    "create_logger",
    "iso_timestamp",
    "plan_backup_shift",
    "should_rotate",
]
