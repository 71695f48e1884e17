from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import IntEnum


class Level(IntEnum):
    """Severity levels understood by the logger front end."""

    ALL = 0
    TRACE = 5
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    FATAL = 50
    OFF = 100

    @classmethod
    def from_name(cls, name: str) -> Level:
        """Parse a level name case-insensitively (``"warn"`` is accepted)."""
        key = name.strip().upper()
        if key == "WARN":
            key = "WARNING"
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown log level: {name!r}") from None


@dataclass(frozen=True)
class LogEvent:
    """Ordered lines handed to the sink as one unit.

    The event carries no timestamp; each line is stamped when it is written.
    """

    lines: tuple[str, ...]

    def __post_init__(self) -> None:
        lines = tuple(self.lines)
        for line in lines:
            if not isinstance(line, str):
                raise TypeError(f"log lines must be str, got {type(line).__name__}")
        object.__setattr__(self, "lines", lines)

    @classmethod
    def from_text(cls, text: str) -> LogEvent:
        return cls(tuple(text.splitlines()) or ("",))

    @classmethod
    def of(cls, event: LogEvent | str | Sequence[str]) -> LogEvent:
        if isinstance(event, LogEvent):
            return event
        if isinstance(event, str):
            return cls.from_text(event)
        return cls(tuple(event))


@dataclass(frozen=True)
class LogRecord:
    level: Level
    message: str
    error: BaseException | None = None
    stack_trace: str | None = None
    time: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class OutputEvent:
    """A record together with the lines its printer produced."""

    record: LogRecord
    lines: tuple[str, ...]

    def to_log_event(self) -> LogEvent:
        return LogEvent(self.lines)
