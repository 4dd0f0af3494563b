"""Tracker configuration stored alongside the tasks."""

import copy
from dataclasses import dataclass
from typing import Any

from time_tracking.core.timeparse import DEFAULT_DATE_FORMAT, DateFormat

DEFAULT_CONFIG: dict[str, Any] = {
    "date_format": DEFAULT_DATE_FORMAT,
    "pause_others_on_start": True,
}

DEFAULT_STORE: dict[str, Any] = {
    "config": DEFAULT_CONFIG,
    "tasks": [],
}

INTERVAL_SCHEMA = {
    "type": "object",
    "properties": {
        "start": {"type": "string"},
        "stop": {"type": "string"},
    },
    "required": ["start"],
}

TASK_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "description": {"type": ["string", "null"]},
        "status": {"type": "integer", "enum": [0, 1, 2]},
        "log": {"type": "array", "items": INTERVAL_SCHEMA},
    },
    "required": ["name", "status", "log"],
}

STORE_SCHEMA = {
    "type": "object",
    "properties": {
        "config": {
            "type": "object",
            "properties": {
                "date_format": {"type": "string", "minLength": 1},
                "pause_others_on_start": {"type": "boolean"},
            },
        },
        "tasks": {"type": "array", "items": TASK_SCHEMA},
    },
    "required": ["config", "tasks"],
}


@dataclass(frozen=True)
class TrackerConfig:
    """User preferences read from the store's ``config`` record.

    Attributes:
        date_format: Date pattern such as ``MM/DD/YYYY``
        pause_others_on_start: Pause running tasks when another one starts
    """

    date_format: str = DEFAULT_DATE_FORMAT
    pause_others_on_start: bool = True

    @property
    def dates(self) -> DateFormat:
        """Parser/formatter for the configured date format."""
        return DateFormat(self.date_format)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrackerConfig":
        merged = copy.deepcopy(DEFAULT_CONFIG)
        merged.update({k: v for k, v in (data or {}).items() if v is not None})
        return cls(
            date_format=merged["date_format"] or DEFAULT_DATE_FORMAT,
            pause_others_on_start=bool(merged["pause_others_on_start"]),
        )
