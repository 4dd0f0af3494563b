"""Core functionality for time tracking."""

from time_tracking.core.models import Interval, Task, TaskStatus

__all__ = ["Interval", "Task", "TaskStatus"]
