"""A whole message: header collection plus plain body lines.

The body is a list of newline terminated lines and is never interpreted as
MIME.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

from .address import Address, parse_addresses
from .config import MailFromPolicy, MessageSettings
from .header import MailHeader

_SIGNATURE_RE = re.compile(r"^--[ ]?[\r\n]")
_BLANK_RE = re.compile(r"^\s*$")
_ESCAPE_FROM_RE = re.compile(r"\A(>*From) ")
_UNESCAPE_FROM_RE = re.compile(r"\A>(>*From) ")
_INDENT_CODE_RE = re.compile(r"%(.)")


class MailMessage:
    """Header and body of one message.

    ``source`` may be a list of lines (header, blank line, body) or a text
    stream.  An explicit ``header`` or ``body`` takes the place of the part
    that would otherwise be read from ``source``.
    """

    def __init__(
        self,
        source: list[str] | TextIO | None = None,
        *,
        header: MailHeader | None = None,
        body: list[str] | None = None,
        fold_length: int | None = None,
        mail_from: MailFromPolicy | str | None = None,
        modify: bool | None = None,
        settings: MessageSettings | None = None,
    ) -> None:
        self.settings = settings or MessageSettings()
        self._head = header
        self._body = body

        head = self.head
        head.fold_length = fold_length or self.settings.fold_length
        head.set_mail_from(mail_from or self.settings.mail_from)
        head.modify = self.settings.modify if modify is None else modify

        if source is None:
            pass
        elif isinstance(source, list):
            lines = list(source)
            if header is None:
                self.header(lines)
            if body is None:
                self.body = lines
        elif hasattr(source, "readline"):
            if header is None:
                self.read_header(source)
            if body is None:
                self.read_body(source)
        else:
            raise TypeError(f"couldn't understand {type(source).__name__} as a message")

    # ------------------------------------------------------------------
    # Parts
    # ------------------------------------------------------------------

    @property
    def head(self) -> MailHeader:
        if self._head is None:
            self._head = MailHeader(settings=self.settings.header_settings())
        return self._head

    @property
    def body(self) -> list[str]:
        """The body lines; the list is shared, not copied."""
        if self._body is None:
            self._body = []
        return self._body

    @body.setter
    def body(self, lines: list[str]) -> None:
        self._body = lines

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def read(self, stream: TextIO) -> MailMessage:
        self.read_header(stream)
        self.read_body(stream)
        return self

    def read_header(self, stream: TextIO) -> MailHeader:
        return self.head.read(stream)

    def read_body(self, stream: TextIO) -> list[str]:
        self.body = stream.readlines()
        return self.body

    def extract(self, lines: list[str]) -> MailMessage:
        """Take header and body from ``lines``; the header part is consumed."""
        self.head.extract(lines)
        self.body = lines
        return self

    def dup(self) -> MailMessage:
        """Return a copy with its own header and body."""
        return type(self)(
            header=self._head.dup() if self._head is not None else None,
            body=list(self.body),
            fold_length=self.head.fold_length,
            mail_from=self.head.mail_from,
            modify=self.head.modify,
            settings=self.settings,
        )

    # ------------------------------------------------------------------
    # Whole message
    # ------------------------------------------------------------------

    def as_string(self) -> str:
        return self.head.as_string() + "\n" + "".join(self.body)

    def as_mbox_string(self, escaped: bool = False) -> str:
        """Render for appending to an mbox folder.

        ``From `` lines in the body are escaped unless ``escaped`` says this
        was already done; Content-Length is dropped.
        """
        dup = self.dup()
        dup.head.delete("Content-Length")
        if not escaped:
            dup.escape_from()
        return dup.as_string() + "\n"

    def write(self, stream: TextIO) -> None:
        self.head.write(stream)
        stream.write("\n")
        stream.writelines(self.body)

    # ------------------------------------------------------------------
    # Header delegation
    # ------------------------------------------------------------------

    def header(self, lines: list[str] | None = None) -> list[str]:
        return self.head.header(lines)

    def fold(self, length: int | None = None) -> MailHeader:
        return self.head.fold(length)

    def combine(self, tag: str, with_: str = " ") -> str | None:
        return self.head.combine(tag, with_)

    def add(self, tag: str, line: str) -> str | None:
        """Append a header line; returns the stored value or ``None``."""
        return self.head.add(tag, line, -1)

    def replace(self, tag: str, line: str) -> str | None:
        """Replace the first ``tag`` line, adding it when missing."""
        return self.head.replace(tag, line, 0)

    def get(self, *tags: str) -> str | None:
        """Value of the first of ``tags`` present in the header."""
        for tag in tags:
            value = self.head.get(tag)
            if value is not None:
                return value
        return None

    def get_all(self, *tags: str) -> list[str]:
        return [value for tag in tags for value in self.head.get_all(tag)]

    def delete(self, *tags: str) -> list[str]:
        return [value for tag in tags for value in self.head.delete(tag)]

    # ------------------------------------------------------------------
    # Body processing
    # ------------------------------------------------------------------

    def remove_sig(self, nlines: int = 10) -> None:
        """Remove a ``-- `` signature found within the last ``nlines`` lines."""
        body = self.body
        for distance in range(1, min(nlines, len(body)) + 1):
            start = len(body) - distance
            if _SIGNATURE_RE.match(body[start]):
                del body[start:]
                break

    def sign(
        self,
        signature: str | list[str] | None = None,
        path: str | Path | None = None,
    ) -> MailMessage:
        """Replace any signature with the one given, or read from ``path``."""
        lines: list[str] = []
        if path is not None:
            with open(path, encoding="utf-8") as sig:
                content = sig.readlines()
            # skip a leading separator and blank lines
            while content and re.match(r"^(--)?\s*$", content[0]):
                content.pop(0)
            if content:
                lines = [*content, "\n"]
        elif signature is not None:
            lines = list(signature) if isinstance(signature, list) else signature.splitlines()

        if lines:
            self.remove_sig()
            self.body.append("-- \n")
            self.body.extend(line.rstrip("\r\n") + "\n" for line in lines)
        return self

    def tidy_body(self) -> list[str]:
        """Strip blank lines from the start and end of the body."""
        body = self.body
        while body and _BLANK_RE.match(body[0]):
            body.pop(0)
        while body and _BLANK_RE.match(body[-1]):
            body.pop()
        return body

    def escape_from(self) -> int:
        """Prefix ``>`` to body lines starting with (``>``-quoted) ``From ``."""
        return self._substitute_body(_ESCAPE_FROM_RE, r">\1 ")

    def unescape_from(self) -> int:
        """Undo :meth:`escape_from`."""
        return self._substitute_body(_UNESCAPE_FROM_RE, r"\1 ")

    def _substitute_body(self, pattern: re.Pattern[str], replacement: str) -> int:
        changed = 0
        for idx, line in enumerate(self.body):
            new, count = pattern.subn(replacement, line, count=1)
            if count:
                self.body[idx] = new
                changed += 1
        return changed

    # ------------------------------------------------------------------
    # Replies
    # ------------------------------------------------------------------

    def _value(self, *tags: str) -> str | None:
        value = self.get(*tags)
        return value.rstrip("\n") if value is not None else None

    @staticmethod
    def _expand_indent(indent: str, name: str | None) -> str:
        words = [word for word in re.split(r"\s+", name) if word] if name else []
        words = words or [""]
        first = words[0]
        last = words[-1] if len(words) > 1 else ""
        codes = {
            "%": "%",
            "f": first,
            "F": first[:1] if len(words) > 1 else first,
            "l": last,
            "L": last[:1],
            "n": name or "",
            "I": "".join(word[:1] for word in words),
        }
        return _INDENT_CODE_RE.sub(lambda m: codes.get(m.group(1), m.group(1)), indent)

    def _reply_template(self) -> list[str]:
        path = self.settings.reply_template
        if path is None or not path.is_file():
            return []
        with open(path, encoding="utf-8") as template:
            return template.readlines()

    def reply(
        self,
        indent: str | None = None,
        reply_all: bool = False,
        keep: Iterable[str] = (),
        exclude: Iterable[str] = (),
    ) -> MailMessage:
        """Build a reply to this message.

        The reply is addressed to Reply-To, From or Return-Path; with
        ``reply_all`` the other To and Cc recipients are copied, except the
        sender, the Bcc addresses and the own addresses from the settings.
        The body quotes this message's body behind ``indent``, in which
        ``%f %F %l %L %n %I`` expand to parts of the sender's name.
        ``keep`` lists tags copied from this message, ``exclude`` tags
        removed from the reply.
        """
        reply = type(self)(self._reply_template(), settings=self.settings)

        subject = self._value("Subject") or ""
        if re.search(r"\S+", subject) and not re.search(r"Re:", subject, re.IGNORECASE):
            subject = "Re: " + subject
        reply.replace("Subject", subject)

        to = self._value("Reply-To", "From", "Return-Path") or ""
        senders = parse_addresses(to)
        sender = senders[0] if senders else Address()

        name = sender.name()
        if name is None:
            from_ = parse_addresses(self._value("From"))
            if from_:
                name = from_[0].name()

        indent = self._expand_indent(indent or self.settings.reply_indent, name)

        recipient = sender.address
        reply.replace("To", recipient)

        no_cc = {recipient.lower()}
        no_cc.update(
            address.address.lower()
            for address in parse_addresses(reply._value("Bcc"), *self.settings.mail_addresses)
        )

        if reply_all:
            cc: dict[str, str] = {}
            for address in parse_addresses(self._value("To"), self._value("Cc")):
                key = address.address.lower()
                if key not in no_cc:
                    cc[key] = address.format()
            reply.replace("Cc", ", ".join(cc.values()))

        references = self._value("References") or ""
        message_id = self._value("Message-ID")
        if message_id is not None:
            references = f"{references} {message_id}"
        reply.replace("References", references)

        date = self._value("Date")
        in_reply_to = ""
        if message_id is not None:
            in_reply_to = message_id
            if name is not None:
                in_reply_to += f" from {name}"
            if date is not None:
                in_reply_to += f" on {date}"
        elif name is not None:
            in_reply_to = f"{name}'s message"
            if date is not None:
                in_reply_to += f" of {date}"
        reply.replace("In-Reply-To", in_reply_to)

        reply.body = list(self.body)
        reply.remove_sig()
        reply.tidy_body()
        reply.body = [indent + line for line in reply.body]
        reply.body.insert(0, f"{name + ' ' if name is not None else ''}<{recipient}> writes:\n")

        for tag in keep:
            value = self._value(tag)
            if value is not None:
                reply.replace(tag, value)
        if exclude:
            reply.delete(*exclude)

        reply.head.cleanup()
        return reply
