"""Free-text fields such as Subject or X-Mailer."""

from __future__ import annotations

from typing import Any

from ..errors import FieldError
from .base import BaseField


class GenericField(BaseField):
    """A field whose value is an uninterpreted string."""

    def __init__(self, tag: str) -> None:
        super().__init__(tag)
        self._text = ""

    def parse(self, text: str | None) -> GenericField:
        self._text = text or ""
        return self

    def set(self, **options: Any) -> GenericField:
        text = options.pop("text", None)
        if options:
            raise FieldError(f"Unknown options {', '.join(sorted(options))}")
        self._text = text or ""
        return self

    def stringify(self) -> str:
        return self._text
