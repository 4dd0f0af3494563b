"""Core data models for time tracking."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import IntEnum
from typing import Any, Optional

from time_tracking.core.timeparse import DateFormat

logger = logging.getLogger(__name__)


class TaskStatus(IntEnum):
    """Lifecycle state of a task, persisted as an integer."""

    IN_PROGRESS = 0
    PAUSED = 1
    FINISHED = 2

    @property
    def label(self) -> str:
        """Human-readable status for tables."""
        return {
            TaskStatus.IN_PROGRESS: "In Progress",
            TaskStatus.PAUSED: "Paused",
            TaskStatus.FINISHED: "Finished",
        }[self]

    @property
    def verb(self) -> str:
        """Past participle used in stop messages."""
        return "completed" if self is TaskStatus.FINISHED else "paused"


def _parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into local naive time."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


@dataclass
class Interval:
    """One continuous period of work.

    Attributes:
        start: When the period started
        stop: When the period ended (None while it is open)
    """

    start: datetime
    stop: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        """Check if this interval has not been stopped yet."""
        return self.stop is None

    def duration(self, now: Optional[datetime] = None) -> timedelta:
        """Elapsed time of the interval. Open intervals run until ``now``."""
        end = self.stop if self.stop is not None else (now or datetime.now())
        return end - self.start

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {"start": self.start.isoformat()}
        if self.stop is not None:
            data["stop"] = self.stop.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Interval":
        """Create Interval from dictionary (JSON deserialization)."""
        stop = data.get("stop")
        return cls(
            start=_parse_timestamp(data["start"]),
            stop=_parse_timestamp(stop) if stop else None,
        )


@dataclass
class Task:
    """A named unit of tracked work.

    Use :meth:`new` for a task that has never been tracked and
    :meth:`from_dict` for one loaded from the store.

    Attributes:
        name: Unique task name
        description: Latest description given on start
        status: Current lifecycle state
        log: Ordered start/stop intervals
    """

    name: str
    description: str = ""
    status: TaskStatus = TaskStatus.IN_PROGRESS
    log: list[Interval] = field(default_factory=list)

    @classmethod
    def new(cls, name: str) -> "Task":
        """Create a fresh task with an empty log."""
        return cls(name=name)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Create Task from a persisted record."""
        return cls(
            name=data["name"],
            description=data.get("description") or "",
            status=TaskStatus(int(data.get("status", TaskStatus.IN_PROGRESS))),
            log=[Interval.from_dict(item) for item in data.get("log", [])],
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "description": self.description,
            "status": int(self.status),
            "log": [interval.to_dict() for interval in self.log],
        }

    @property
    def last_interval(self) -> Optional[Interval]:
        """The most recent interval, if any."""
        return self.log[-1] if self.log else None

    @property
    def is_running(self) -> bool:
        """Check if the last interval is still open."""
        last = self.last_interval
        return last is not None and last.is_open

    def start(self, description: Optional[str] = None) -> bool:
        """Open a new interval now.

        Args:
            description: New description. Clears the description when empty.

        Returns:
            True if started, False if the task is already running
        """
        if self.is_running:
            logger.info("Task %s has already been started", self.name)
            return False

        self.log.append(Interval(start=datetime.now()))
        self.description = description or ""
        self.status = TaskStatus.IN_PROGRESS
        return True

    def stop(self, status: TaskStatus, timestamp: Optional[datetime] = None) -> bool:
        """Close the open interval and move to ``status``.

        Args:
            status: Target status (PAUSED or FINISHED)
            timestamp: Stop time for the open interval. Defaults to now.

        Returns:
            True if the status changed, False if it already was ``status``
        """
        if self.status == status:
            logger.info("Task %s has already been %s", self.name, status.verb)
            return False

        if self.is_running:
            self.log[-1].stop = timestamp or datetime.now()
        self.status = status
        return True

    def add(self, date: str, date_format: DateFormat, hours: int, minutes: int) -> bool:
        """Record a closed interval of ``hours``/``minutes`` starting at ``date``.

        Manual entries are inserted at the head of the log.

        Raises:
            InvalidDate: If ``date`` does not match ``date_format``
        """
        start = date_format.parse_datetime(date)
        stop = start + timedelta(hours=hours, minutes=minutes)
        self.log.insert(0, Interval(start=start, stop=stop))
        return True

    def intervals_on(self, day: date) -> list[Interval]:
        """Intervals that started on ``day``."""
        return [interval for interval in self.log if interval.start.date() == day]

    def duration_on(self, day: date, now: Optional[datetime] = None) -> timedelta:
        """Total time of the intervals that started on ``day``."""
        return sum(
            (interval.duration(now) for interval in self.intervals_on(day)),
            timedelta(),
        )
