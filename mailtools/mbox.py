"""Reading classic (binmail) mbox folders."""

from __future__ import annotations

import re
from pathlib import Path

import structlog

logger = structlog.get_logger()

_SEPARATOR_RE = re.compile(r"^From .*\d{4}")


def read_mbox(path: str | Path) -> list[list[str]]:
    """Split the mbox file at ``path`` into one list of lines per message.

    A message starts at a ``From `` line carrying a four digit year that
    follows a blank line (or starts the file).  Body lines that happen to
    look like a separator are not unquoted, so lines escaped as ``>From``
    stay escaped.
    """
    messages: list[list[str]] = []
    current: list[str] = []
    blank = True

    with open(path, encoding="utf-8", errors="surrogateescape", newline="") as mbox:
        for line in mbox:
            if blank and _SEPARATOR_RE.match(line):
                if current:
                    messages.append(current)
                current = [line]
                blank = False
            else:
                blank = line in ("\n", "\r\n")
                current.append(line)

    if current:
        messages.append(current)
    logger.debug("mbox_read", path=str(path), messages=len(messages))
    return messages
