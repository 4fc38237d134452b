"""Severity definitions for lint findings."""

from __future__ import annotations

from enum import IntEnum


class Severity(IntEnum):
    """Enumerate the supported severity levels for findings."""

    INFO = 0
    WARNING = 1
    ERROR = 2

    @property
    def label(self) -> str:
        """Return the lower-case label used in console output."""

        return self.name.lower()

    @classmethod
    def parse(cls, value: object) -> "Severity":
        """Accept either the numeric level or the label."""

        if isinstance(value, Severity):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid severity: {value!r}")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return cls(int(text))
            try:
                return cls[text.upper()]
            except KeyError:
                pass
        raise ValueError(f"Invalid severity: {value!r}")
