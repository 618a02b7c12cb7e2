"""Abstract base class for header field objects."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ..tags import tag_case


class BaseField(ABC):
    """A typed view on the value of one header field.

    A field is built either from the raw text of a header line
    (:meth:`parse`) or from named options (:meth:`create`).
    """

    def __init__(self, tag: str) -> None:
        self._tag = tag_case(tag)

    @property
    def tag(self) -> str:
        """The canonical tag of this field."""
        return self._tag

    @abstractmethod
    def parse(self, text: str) -> BaseField:
        """Replace the content with the parsed ``text``; returns ``self``."""

    @abstractmethod
    def set(self, **options: Any) -> BaseField:
        """Replace the content from named options; returns ``self``."""

    @abstractmethod
    def stringify(self) -> str:
        """Render the field value as it would appear after the tag."""

    def create(self, **options: Any) -> BaseField:
        return self.set(**options)

    @property
    def text(self) -> str:
        return self.stringify()

    @text.setter
    def text(self, value: str) -> None:
        self.parse(value)

    def __str__(self) -> str:
        return self.stringify()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(tag={self._tag!r}, text={self.stringify()!r})"
