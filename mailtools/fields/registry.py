"""Field registry: maps header tags to field classes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from ..tags import tag_case
from .addrlist import ADDRESS_TAGS, AddrListField
from .base import BaseField
from .date import DateField
from .generic import GenericField

if TYPE_CHECKING:
    from ..header import MailHeader

logger = structlog.get_logger()


class FieldRegistry:
    """Registry of field classes, keyed by canonical tag.

    Tags without a registered class are handled by :class:`GenericField`.
    """

    def __init__(self, default: type[BaseField] = GenericField) -> None:
        self._fields: dict[str, type[BaseField]] = {}
        self._default = default

    def register(self, tag: str, field_cls: type[BaseField]) -> None:
        """Register ``field_cls`` for ``tag``, replacing any earlier class."""
        key = tag_case(tag)
        self._fields[key] = field_cls
        logger.debug("field_registered", tag=key, field=field_cls.__name__)

    def get(self, tag: str) -> type[BaseField]:
        return self._fields.get(tag_case(tag), self._default)

    @property
    def supported_tags(self) -> list[str]:
        """Tags with a registered field class."""
        return list(self._fields.keys())

    def new(self, tag: str, text: str | None = None, **options: Any) -> BaseField:
        """Build a field for ``tag``.

        A single ``text`` argument is parsed; otherwise the field is created
        from ``options``.
        """
        field = self.get(tag)(tag)
        if text is not None and not options:
            return field.parse(text)
        return field.create(**options)

    def extract(self, tag: str, header: MailHeader, index: int = 0) -> BaseField | None:
        """Build a field from the ``index``-th ``tag`` line of ``header``."""
        text = header.get(tag, index)
        if not text:
            return None
        return self.new(tag, text.rstrip("\n"))

    def extract_all(self, tag: str, header: MailHeader) -> list[BaseField]:
        """Build a field from every ``tag`` line of ``header``."""
        return [self.new(tag, text.rstrip("\n")) for text in header.get_all(tag)]


def default_registry() -> FieldRegistry:
    """Return a registry holding the built-in field classes."""
    registry = FieldRegistry()
    for tag in ADDRESS_TAGS:
        registry.register(tag, AddrListField)
    registry.register("Date", DateField)
    return registry
