"""Run messages through a chain of filter callables."""

from __future__ import annotations

from collections.abc import Callable, Iterable

import structlog

from .message import MailMessage

logger = structlog.get_logger()

Filter = Callable[["MailFilter", MailMessage], MailMessage | None]


class MailFilter:
    """Pass a message through each filter in turn.

    Every filter is called as ``filter(mail_filter, message)`` and returns
    the message handed to the next filter, or ``None`` to stop the chain.
    A filter may also be the name of a method of this object.
    """

    def __init__(self, *filters: Filter | str) -> None:
        self._filters: list[Filter | str] = list(filters)
        self.folder: Iterable[MailMessage] | None = None
        self.msgnum: int | None = None

    def add(self, *filters: Filter | str) -> None:
        """Append ``filters`` to the chain."""
        self._filters.extend(filters)

    def _run(self, message: MailMessage) -> MailMessage | None:
        result: MailMessage | None = message
        for entry in self._filters:
            if isinstance(entry, str):
                result = getattr(self, entry)(result)
            else:
                result = entry(self, result)
            if result is None:
                logger.debug("filter_chain_stopped", filter=str(entry))
                break
        return result

    def filter(
        self, target: MailMessage | Iterable[MailMessage]
    ) -> MailMessage | list[MailMessage | None]:
        """Filter one message, or every message of a folder.

        While a folder is processed, :attr:`folder` and :attr:`msgnum` tell
        the filters where they are.
        """
        if isinstance(target, MailMessage):
            return self._run(target)

        self.folder = target
        results: list[MailMessage | None] = []
        try:
            for msgnum, message in enumerate(target):
                self.msgnum = msgnum
                results.append(self._run(message))
        finally:
            self.folder = None
            self.msgnum = None
        return results
