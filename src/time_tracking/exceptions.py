"""Exceptions raised by time tracking components."""


class TimeTrackingError(Exception):
    """Base class for expected, user-facing failures."""

    pass


class InvalidTimeFormat(TimeTrackingError):
    """A clock time or time-spent value does not match the time grammar."""

    pass


class InvalidDate(TimeTrackingError):
    """A date string does not match the configured date format."""

    pass


class TaskNotFound(TimeTrackingError):
    """No task with the requested name exists."""

    def __init__(self, name: str):
        super().__init__(f"Task {name} not found.")
        self.name = name


class StoreError(TimeTrackingError):
    """The backing store could not be read, validated or written."""

    pass
