"""An ordered collection of header lines with a per-tag index.

Lines are kept in an arena of records.  ``_order`` lists record ids in
header order and ``_index`` maps each canonical tag to the ids of its lines,
also in header order.  Deleting a line blanks its record; :meth:`_tidy`
then drops blanked records from both structures before the mutating call
returns.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TextIO

import structlog

from .config import HeaderSettings, MailFromPolicy
from .errors import ConfigError, FieldNameError
from .folding import FoldLengthTable, clamp_fold_length, fold_line, unfold_line
from .tags import FIELD_NAME, LINE_TAG_RE, LINE_TAG_RE_I, tag_case

logger = structlog.get_logger()

_VALID_TAG_RE = re.compile(rf"{FIELD_NAME}|From ", re.IGNORECASE)
_CONTINUATION_RE = re.compile(r"^[ \t]+")
_BLANK_LINE_RE = re.compile(r"^\s*$")
_HAS_CONTENT_RE = re.compile(r"^\S+\s+\S", re.DOTALL)


@dataclass
class _HeaderLine:
    tag: str
    text: str | None  # None once deleted


class MailHeader:
    """Read, write, create and manipulate the header of a message.

    ``source`` may be a list of lines (copied, then parsed) or a text
    stream read up to the end of the header.  Keyword options override the
    matching :class:`~mailtools.config.HeaderSettings` values.
    """

    def __init__(
        self,
        source: list[str] | TextIO | None = None,
        *,
        modify: bool | None = None,
        mail_from: MailFromPolicy | str | None = None,
        fold_length: int | None = None,
        settings: HeaderSettings | None = None,
        defaults: FoldLengthTable | None = None,
    ) -> None:
        settings = settings or HeaderSettings()
        self._modify = settings.modify if modify is None else bool(modify)
        self._mail_from = settings.mail_from
        if mail_from is not None:
            self.set_mail_from(mail_from)
        self._fold_length = (
            settings.fold_length if fold_length is None else clamp_fold_length(fold_length)
        )
        self._lengths = FoldLengthTable(settings.fold_lengths)
        self._defaults = defaults

        self._records: dict[int, _HeaderLine] = {}
        self._order: list[int] = []
        self._index: dict[str, list[int]] = {}
        self._next_id = 0

        if source is None:
            pass
        elif isinstance(source, list):
            self.extract(list(source))
        elif hasattr(source, "readline"):
            self.read(source)
        else:
            raise TypeError(f"cannot build a header from {type(source).__name__}")

    # ------------------------------------------------------------------
    # Internal bookkeeping
    # ------------------------------------------------------------------

    def _live(self) -> list[_HeaderLine]:
        return [
            record
            for record in (self._records[rid] for rid in self._order)
            if record.text is not None
        ]

    def _reindex(self, tag: str) -> None:
        ids = [rid for rid in self._order if self._records[rid].tag == tag]
        if ids:
            self._index[tag] = ids
        else:
            self._index.pop(tag, None)

    def _insert(self, tag: str, line: str, where: int) -> None:
        size = len(self._order)
        if where < 0:
            where = max(size + where + 1, 0)
        elif where > size:
            where = size

        rid = self._next_id
        self._next_id += 1
        self._records[rid] = _HeaderLine(tag, line)
        self._order.insert(where, rid)
        self._reindex(tag)

    def _tidy(self) -> None:
        dead = {rid for rid in self._order if self._records[rid].text is None}
        if not dead:
            return
        self._order = [rid for rid in self._order if rid not in dead]
        for rid in dead:
            del self._records[rid]
        for tag in list(self._index):
            ids = [rid for rid in self._index[tag] if rid not in dead]
            if ids:
                self._index[tag] = ids
            else:
                del self._index[tag]

    def _max_length(self, tag: str) -> int:
        return (
            self._lengths.get(tag)
            or (self._defaults.get(tag) if self._defaults is not None else None)
            or self._fold_length
        )

    def _format_line(
        self, tag: str | None, line: str, modify: bool = False
    ) -> tuple[str, str] | None:
        """Make ``line`` a complete header line for ``tag``.

        Returns ``(canonical_tag, line)``, or ``None`` when the mail-from
        policy drops the line.  Raises :class:`FieldNameError` for a tag
        that is not a valid field name.
        """
        modify = modify or self._modify

        if tag is None:
            match = LINE_TAG_RE_I.match(line)
            tag = match.group(1) if match else None

        if tag is not None and tag[:5].lower() == "from " and self._mail_from is not MailFromPolicy.KEEP:
            if self._mail_from is MailFromPolicy.COERCE:
                line = re.sub(r"^From ", "Mail-From: ", line)
                tag = "Mail-From:"
            elif self._mail_from is MailFromPolicy.IGNORE:
                return None
            else:
                logger.error("unadorned_from_ignored", line=line)
                return None

        if tag is None:
            raise FieldNameError(tag)

        raw_tag = tag
        tag = tag_case(raw_tag)
        ctag = tag if modify else raw_tag
        if not ctag.endswith((" ", ":")):
            ctag += ":"
        if not _VALID_TAG_RE.fullmatch(ctag):
            raise FieldNameError(raw_tag)

        if modify or not line.lower().startswith(ctag.lower()):
            xtag = ctag.rstrip()
            line = re.sub(
                rf"^(?:{re.escape(ctag)})?\s*",
                lambda _: xtag + " ",
                line,
                count=1,
                flags=re.IGNORECASE,
            )

        if modify:
            line = fold_line(line, self._max_length(tag))

        return tag, line.rstrip("\n") + "\n"

    @staticmethod
    def _strip_tag(tag: str, text: str) -> str:
        offset = len(tag) if tag.endswith(" ") else len(tag) + 1
        return text[offset:].lstrip()

    # ------------------------------------------------------------------
    # Construction from text
    # ------------------------------------------------------------------

    def empty(self) -> MailHeader:
        """Remove all lines."""
        self._records = {}
        self._order = []
        self._index = {}
        return self

    def extract(self, lines: list[str]) -> MailHeader:
        """Replace the content with the header at the front of ``lines``.

        The consumed header lines, and the blank line ending the header,
        are removed from ``lines``.
        """
        self.empty()
        while lines:
            match = LINE_TAG_RE.match(lines[0])
            if not match:
                break
            line = lines.pop(0)
            while lines and _CONTINUATION_RE.match(lines[0]):
                line += lines.pop(0)
            formatted = self._format_line(match.group(1), line)
            if formatted is not None:
                self._insert(*formatted, -1)

        if lines and _BLANK_LINE_RE.match(lines[0]):
            lines.pop(0)
        return self

    def read(self, stream: TextIO) -> MailHeader:
        """Replace the content with the header read from ``stream``.

        Reading stops after the first line that is neither a header line nor
        a continuation; that line is consumed.
        """
        self.empty()
        tag: str | None = None
        line: str | None = None

        while True:
            text = stream.readline()
            if text and line is not None and _CONTINUATION_RE.match(text):
                line += text
                continue
            if line is not None:
                formatted = self._format_line(tag, line)
                if formatted is not None:
                    self._insert(*formatted, -1)
                line = None
            match = LINE_TAG_RE.match(text) if text else None
            if not match:
                break
            tag, line = match.group(1), text
        return self

    def dup(self) -> MailHeader:
        """Return an independent copy of this header."""
        dup = type(self)(
            modify=self._modify,
            mail_from=self._mail_from,
            fold_length=self._fold_length,
            defaults=self._defaults,
        )
        dup._lengths = self._lengths.copy()
        for record in self._live():
            dup._insert(record.tag, record.text, -1)
        return dup

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @property
    def modify(self) -> bool:
        """Whether lines are reformatted (re-cased and folded) when stored."""
        return self._modify

    @modify.setter
    def modify(self, value: bool) -> None:
        self._modify = bool(value)

    @property
    def mail_from(self) -> MailFromPolicy:
        return self._mail_from

    def set_mail_from(self, choice: MailFromPolicy | str) -> MailHeader:
        """Set the treatment of ``From `` lines: KEEP, COERCE, IGNORE or ERROR."""
        if isinstance(choice, MailFromPolicy):
            self._mail_from = choice
            return self
        try:
            self._mail_from = MailFromPolicy(str(choice).upper())
        except ValueError:
            raise ConfigError(f"bad Mail-From choice: {choice!r}") from None
        return self

    @property
    def fold_length(self) -> int:
        """Default fold length; setting it refolds when modifying."""
        return self._fold_length

    @fold_length.setter
    def fold_length(self, length: int) -> None:
        self._fold_length = clamp_fold_length(length)
        if self._modify:
            self.fold()

    def set_fold_length(self, length: int, tag: str | None = None) -> int | None:
        """Set the default fold length, or the one for ``tag``.

        Returns the previous value.
        """
        if tag is not None:
            return self._lengths.set(tag, length)
        old = self._fold_length
        self.fold_length = length
        return old

    # ------------------------------------------------------------------
    # Folding
    # ------------------------------------------------------------------

    def fold(self, length: int | None = None) -> MailHeader:
        """Fold every line.

        Without ``length`` the limit for a tag is, in order: this header's
        per-tag length, the shared default table, the default fold length.
        """
        for tag, ids in self._index.items():
            max_length = length or self._max_length(tag)
            for rid in ids:
                record = self._records[rid]
                if record.text is not None:
                    record.text = fold_line(record.text, max_length)
        return self

    def unfold(self, tag: str | None = None) -> MailHeader:
        """Unfold all lines, or only the lines of ``tag``."""
        tags = [tag_case(tag)] if tag is not None else list(self._index)
        for name in tags:
            for rid in self._index.get(name, []):
                record = self._records[rid]
                if record.text is not None:
                    record.text = unfold_line(record.text)
        return self

    # ------------------------------------------------------------------
    # Line manipulation
    # ------------------------------------------------------------------

    def add(self, tag: str | None, text: str, where: int = -1) -> str | None:
        """Insert a line; ``where`` is a position, negative counts from the end.

        Returns the stored value, or ``None`` when the line was rejected.
        """
        try:
            formatted = self._format_line(tag, text)
        except FieldNameError as exc:
            logger.warning("bad_field_name", tag=exc.tag)
            return None
        if formatted is None:
            return None

        tag, line = formatted
        self._insert(tag, line, where)
        match = re.match(r"^\S+\s(.*)", line, re.DOTALL)
        return match.group(1) if match else ""

    def replace(self, tag: str | None, text: str, index: int = 0) -> str | None:
        """Replace the ``index``-th line of ``tag``, or append when absent.

        Returns the stored value, or ``None`` when the line was rejected.
        """
        try:
            formatted = self._format_line(tag, text)
        except FieldNameError as exc:
            logger.warning("bad_field_name", tag=exc.tag)
            return None
        if formatted is None:
            return None

        tag, line = formatted
        ids = self._index.get(tag, [])
        if -len(ids) <= index < len(ids):
            self._records[ids[index]].text = line
        else:
            self._insert(tag, line, -1)
        match = re.match(r"^\S+\s*(.*)", line, re.DOTALL)
        return match.group(1) if match else ""

    def combine(self, tag: str, with_: str = " ") -> str | None:
        """Merge all lines of ``tag`` into the position of the first one."""
        tag = tag_case(tag)
        if tag.lower().startswith("from ") and self._mail_from is not MailFromPolicy.KEEP:
            logger.error("unadorned_from_ignored", tag=tag)
            return None

        ids = self._index.get(tag)
        if not ids:
            return None
        if len(ids) == 1:
            return self._records[ids[0]].text

        values = [value.rstrip("\n") for value in self.get_all(tag)]
        formatted = self._format_line(tag, with_.join(values), modify=True)
        if formatted is None:
            return None
        line = formatted[1]

        first, *rest = ids
        self._records[first].text = line
        for rid in rest:
            self._records[rid].text = None
        self._tidy()
        return line

    def get(self, tag: str, index: int = 0) -> str | None:
        """Return the value of the ``index``-th line of ``tag``.

        The tag and the blanks after it are removed; the value is returned
        as stored, so still folded and newline terminated.
        """
        tag = tag_case(tag)
        ids = self._index.get(tag, [])
        if not -len(ids) <= index < len(ids):
            return None
        text = self._records[ids[index]].text
        return None if text is None else self._strip_tag(tag, text)

    def get_all(self, tag: str) -> list[str]:
        """Return the values of all lines of ``tag``, in header order."""
        tag = tag_case(tag)
        return [
            self._strip_tag(tag, self._records[rid].text)
            for rid in self._index.get(tag, [])
            if self._records[rid].text is not None
        ]

    def count(self, tag: str) -> int:
        return len(self._index.get(tag_case(tag), []))

    def delete(self, tag: str, index: int | None = None) -> list[str]:
        """Delete the ``index``-th line of ``tag``, or all of them.

        Returns the values of the deleted lines.
        """
        tag = tag_case(tag)
        ids = self._index.get(tag)
        if not ids:
            return []

        offset = len(tag) if tag.endswith(" ") else len(tag) + 2
        if index is None:
            targets = list(ids)
        elif -len(ids) <= index < len(ids):
            targets = [ids[index]]
        else:
            targets = []

        values: list[str] = []
        for rid in targets:
            record = self._records[rid]
            values.append(record.text[offset:])
            record.text = None
        self._tidy()
        return values

    def cleanup(self, *tags: str) -> MailHeader:
        """Remove lines that hold nothing but blanks after the tag."""
        names = [tag_case(tag) for tag in tags] if tags else list(self._index)
        deleted = False
        for name in names:
            for rid in self._index.get(name, []):
                record = self._records[rid]
                if record.text is None or _HAS_CONTENT_RE.match(record.text):
                    continue
                record.text = None
                deleted = True
        if deleted:
            self._tidy()
        return self

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def tags(self) -> list[str]:
        """Canonical tags present in the header, each listed once."""
        return list(self._index)

    def header(self, lines: list[str] | None = None) -> list[str]:
        """Optionally extract ``lines``, fold if modifying, return all lines."""
        if lines is not None:
            self.extract(lines)
        if self._modify:
            self.fold()
        return [record.text for record in self._live()]

    def header_hashref(
        self, fields: Mapping[str, str | list[str]] | None = None
    ) -> dict[str, list[str]]:
        """Optionally add ``fields``, then return all values keyed by tag.

        A list value adds one line per item.
        """
        for tag, value in (fields or {}).items():
            for item in value if isinstance(value, (list, tuple)) else [value]:
                self.add(tag, item)
        if self._modify:
            self.fold()
        return {tag: self.get_all(tag) for tag in self._index}

    def as_string(self) -> str:
        return "".join(record.text for record in self._live())

    def write(self, stream: TextIO) -> None:
        for record in self._live():
            stream.write(record.text)

    def __str__(self) -> str:
        return self.as_string()

    def __len__(self) -> int:
        return len(self._order)
