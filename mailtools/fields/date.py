"""The Date field."""

from __future__ import annotations

import email.utils
from datetime import datetime
from typing import Any

from ..errors import FieldError
from .base import BaseField


class DateField(BaseField):
    """A Date field, kept as text, as a datetime, or both.

    The text is parsed lazily the first time :attr:`time` is read; a field
    created from a datetime renders it as an RFC 2822 date.
    """

    def __init__(self, tag: str = "Date") -> None:
        super().__init__(tag)
        self._time: datetime | None = None
        self._time_str: str | None = None

    def set(self, **options: Any) -> DateField:
        self._time = options.pop("time", None)
        self._time_str = options.pop("time_str", None)
        if options:
            raise FieldError(f"Unknown options {', '.join(sorted(options))}")
        return self

    def parse(self, text: str) -> DateField:
        self._time = None
        self._time_str = text
        return self

    @property
    def time(self) -> datetime | None:
        """The date as a datetime, or ``None`` when the text is not a date."""
        if self._time is None and self._time_str:
            try:
                self._time = email.utils.parsedate_to_datetime(self._time_str)
            except (TypeError, ValueError):
                return None
        return self._time

    @time.setter
    def time(self, value: datetime) -> None:
        self._time_str = None
        self._time = value

    def stringify(self) -> str:
        if not self._time_str and self._time is not None:
            self._time_str = email.utils.format_datetime(self._time)
        return self._time_str or ""

    def reformat(self) -> str:
        """Re-render the text from the parsed date."""
        self.time = self.time
        return self.stringify()
