"""Core time tracking engine."""

import logging
from datetime import datetime
from typing import Optional

from rich.console import Console  # type: ignore[import-not-found]
from rich.markup import escape  # type: ignore[import-not-found]

from time_tracking.analysis.reports import DailySummary, ReportGenerator
from time_tracking.core.config import TrackerConfig
from time_tracking.core.models import Task, TaskStatus
from time_tracking.core.storage import StoreTaskRepository, TaskRepository
from time_tracking.core.timeparse import parse_clock_time, parse_time_spent
from time_tracking.exceptions import (
    InvalidDate,
    InvalidTimeFormat,
    TaskNotFound,
    TimeTrackingError,
)

logger = logging.getLogger(__name__)

NO_TASKS = "There are no tasks added yet."
SAVE_FAILED = "An error occurred while saving tasks."
INVALID_DATE = "Date is not in a valid format."
INVALID_TIME = "Time is not in a valid format."
INVALID_TIME_SPENT = "Time spent is not in a valid format."
STOP_BEFORE_START = "The time entered must be later than the start time of the task."


class TimeTracker:
    """Task lifecycle operations over a task repository.

    Every operation loads a fresh snapshot of the tasks, mutates it, and
    saves the full list once on success. Expected failures are reported on
    the console and leave the stored tasks untouched.
    """

    def __init__(
        self,
        repository: Optional[TaskRepository] = None,
        console: Optional[Console] = None,
    ):
        """Initialize time tracker.

        Args:
            repository: Task repository. Creates a store-backed one if None.
            console: Rich console for messages. Creates default if None.
        """
        self.repository = repository or StoreTaskRepository()
        self.console = console or Console()
        self.tasks: list[Task] = []

    @property
    def config(self) -> TrackerConfig:
        return self.repository.load_config()

    # Messages

    def _info(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def _fail(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}")

    # Snapshot helpers

    def _load(self) -> list[Task]:
        self.tasks = self.repository.load()
        return self.tasks

    def _index(self, name: str) -> int:
        for i, task in enumerate(self.tasks):
            if task.name == name:
                return i
        return -1

    def _get_task(self, name: str) -> Task:
        """Return a copy of the named task, or a new one."""
        idx = self._index(name)
        if idx == -1:
            return Task.new(name)
        return Task.from_dict(self.tasks[idx].to_dict())

    def _upsert(self, task: Task) -> bool:
        """Replace the task in the snapshot, or append it. Returns True if new."""
        idx = self._index(task.name)
        if idx == -1:
            self.tasks.append(task)
            return True
        self.tasks[idx] = task
        return False

    def _persist(self) -> bool:
        if self.repository.save(self.tasks):
            return True
        self._fail(SAVE_FAILED)
        return False

    # Operations

    def start(
        self,
        task_name: str,
        description: Optional[str] = None,
        pause_others: Optional[bool] = None,
    ) -> bool:
        """Start (or resume) a task.

        Args:
            task_name: Name of the task
            description: New description for the task
            pause_others: Pause every other running task first. Defaults
                to the ``pause_others_on_start`` setting.

        Returns:
            True if the task was started and saved
        """
        if pause_others is None:
            pause_others = self.config.pause_others_on_start

        self._load()
        if pause_others:
            for other in list(self.tasks):
                if other.name != task_name and other.status == TaskStatus.IN_PROGRESS:
                    paused = self._get_task(other.name)
                    if paused.stop(TaskStatus.PAUSED):
                        self._upsert(paused)
                        logger.info("Paused task %s", other.name)

        task = self._get_task(task_name)
        if not task.start(description):
            self._fail(f"Task {escape(task_name)} has already been started.")
            return False

        self._upsert(task)
        if not self._persist():
            return False
        self._info(f"Task {escape(task_name)} started.")
        return True

    def stop(
        self,
        task_name: Optional[str] = None,
        status: TaskStatus = TaskStatus.FINISHED,
        timestamp: Optional[str] = None,
    ) -> bool:
        """Pause or finish a task, or every running task.

        Args:
            task_name: Task to stop. Stops every running task when empty.
            status: ``TaskStatus.PAUSED`` or ``TaskStatus.FINISHED``
            timestamp: Stop time as ``H:MM`` (today) or a full date. Defaults to now.

        Returns:
            True if the change was saved
        """
        self._load()
        if not self.tasks:
            self._fail(NO_TASKS)
            return False

        if not task_name:
            return self._stop_all_in_progress(status)

        try:
            idx = self._index(task_name)
            if idx == -1:
                raise TaskNotFound(task_name)
            stop_time = self.resolve_stop_time(timestamp)
        except TaskNotFound as e:
            self._fail(escape(str(e)))
            return False
        except TimeTrackingError as e:
            logger.debug("Rejected stop time %r: %s", timestamp, e)
            self._fail(INVALID_TIME)
            return False

        task = self._get_task(task_name)
        last = task.last_interval
        if last is not None and last.is_open and last.start > stop_time:
            self._fail(STOP_BEFORE_START)
            return False

        if not task.stop(status, stop_time):
            self._fail(f"Task {escape(task_name)} has already been {status.verb}.")
            return False

        self.tasks[idx] = task
        if not self._persist():
            return False
        self._info(f"Task {escape(task_name)} has been {status.verb}.")
        return True

    def _stop_all_in_progress(self, status: TaskStatus) -> bool:
        for idx, current in enumerate(self.tasks):
            if current.status == TaskStatus.IN_PROGRESS:
                task = self._get_task(current.name)
                if task.stop(status):
                    self.tasks[idx] = task
                    logger.info("Stopped task %s as %s", task.name, status.name)

        if not self._persist():
            return False
        self._info(f"All tasks in progress have been {status.verb}.")
        return True

    def resolve_stop_time(self, timestamp: Optional[str] = None) -> datetime:
        """Turn a user-supplied stop time into a datetime.

        A value containing ``/`` is a full date in the configured format,
        anything else must be an ``H:MM`` clock time for today.

        Raises:
            InvalidDate: If a full date does not match the date format
            InvalidTimeFormat: If a clock time is malformed
        """
        if not timestamp:
            return datetime.now()
        if "/" in timestamp:
            return self.config.dates.parse_datetime(timestamp)
        return parse_clock_time(timestamp).on(datetime.now().date())

    def list(self, date: Optional[str] = None) -> Optional[DailySummary]:
        """Show time spent per task on a day.

        Args:
            date: Day in the configured date format. Defaults to today.

        Returns:
            The displayed summary, or None if nothing could be listed
        """
        self._load()
        if not self.tasks:
            self._fail(NO_TASKS)
            return None

        dates = self.config.dates
        try:
            day = dates.parse_date(date) if date is not None else datetime.now().date()
        except InvalidDate:
            self._fail(INVALID_DATE)
            return None

        label = date if date is not None else dates.format_date(day)
        summary = DailySummary.build(self.tasks, day, label)
        ReportGenerator(self.console).daily_report(summary)
        return summary

    def add(self, task_name: str, time_spent: str, date: Optional[str] = None) -> bool:
        """Record time spent on a task manually.

        Args:
            task_name: Name of the task (created as finished if new)
            time_spent: ``H:MM``, ``Nh`` or ``Nm``
            date: Start of the entry as ``<date> [h:mm]``. Defaults to now.

        Returns:
            True if the entry was saved
        """
        dates = self.config.dates
        if date is None:
            date = dates.format_datetime(datetime.now())
        else:
            try:
                dates.parse_datetime(date)
            except InvalidDate:
                self._fail(INVALID_DATE)
                return False

        try:
            spent = parse_time_spent(time_spent)
        except InvalidTimeFormat:
            self._fail(INVALID_TIME_SPENT)
            return False

        self._load()
        task = self._get_task(task_name)
        task.add(date, dates, spent.hours, spent.minutes)
        is_new = self._index(task_name) == -1
        if is_new:
            task.status = TaskStatus.FINISHED
        self._upsert(task)

        if not self._persist():
            return False
        if is_new:
            self._info(f"Task {escape(task_name)} added.")
        else:
            self._info(f"The entered time was added to task {escape(task_name)}.")
        return True

    def clear(self) -> bool:
        """Remove every task."""
        self.tasks = []
        if not self._persist():
            return False
        self._info("All tasks have been removed.")
        return True
