"""Folding and unfolding of header lines.

A header line is folded by breaking it into several physical lines, each
continuation line starting with white space.  Structured fields are broken
preferably after a ``,`` or ``;``, other fields at white space.  Folding never
splits a word: a single word longer than the limit stays on an over-length
line.
"""

from __future__ import annotations

import re

from .tags import STRUCTURED_FIELDS, tag_case

MIN_FOLD_LENGTH = 20
DEFAULT_FOLD_LENGTH = 79

_LINE_BREAKS_RE = re.compile(r"[\r\n]+")
_ENVELOPE_RE = re.compile(r"^From\s", re.IGNORECASE)
_LEADING_WORD_RE = re.compile(r"^([-\w]+)")
_TRIM_RE = re.compile(r"(\A\s+|[\t ]+\Z)")
_BLANKS_BEFORE_NEWLINE_RE = re.compile(r"\s+\n")
_TAG_ALONE_RE = re.compile(r"\A(\S+)\n\s*(?=\S)")
_CONTINUATION_RE = re.compile(r"\r?\n\s+")
_BLANK_RE = re.compile(r"[ \t]")
# a word that fits no chunk: up to and including the next , or ;
_UNBREAKABLE_RE = re.compile(r"\s*([^\s,;]*[,;]|[^\s,;]+)")


def clamp_fold_length(length: int) -> int:
    return length if length > MIN_FOLD_LENGTH else MIN_FOLD_LENGTH


def _structured_chunk_re(low: int, high: int) -> re.Pattern[str]:
    # first choice: a run of low..high characters ending in , or ;
    # then: the longest run of up to high characters ending at , ; or a blank
    # else: a run containing quoted strings, ending at a blank
    return re.compile(
        rf'\s*([^"]{{{low},{high}}}[,;]'
        rf'|[^"]{{1,{high}}}[,;\s]'
        rf'|[^\s"]*(?:"[^"]*"[ \t]?[^\s"]*)+\s)'
    )


def _fold_structured(line: str, low: int, high: int) -> str:
    chunk_re = _structured_chunk_re(low, high)
    folded = ""
    while line.strip():
        chunk = chunk_re.match(line) or _UNBREAKABLE_RE.match(line)
        folded += chunk.group(1) + "\n "
        line = line[chunk.end():]
    line = _TRIM_RE.sub("", folded + line)
    return _BLANKS_BEFORE_NEWLINE_RE.sub("\n", line)


def _fold_unstructured(line: str, high: int) -> str:
    text = line.rstrip()
    lines: list[str] = []
    # the first line holds at most high characters, continuations one more
    # for their leading blank
    limit = high
    while len(text) > limit:
        start = len(text) - len(text.lstrip()) + 1
        cut = max(text.rfind(" ", start, limit + 1), text.rfind("\t", start, limit + 1))
        if cut < 0:
            blank = _BLANK_RE.search(text, max(start, limit + 1))
            if blank is None:
                break
            cut = blank.start()
        lines.append(text[:cut].rstrip())
        text = text[cut:]
        limit = high + 1
    lines.append(text)
    return "\n".join(lines) + "\n"


def _join_lonely_tag(line: str, max_length: int) -> str:
    """Pull the first continuation up behind a tag left on a line of its own.

    Only done when the joined line fits, or when the continuation is a single
    word that is over-long anyway.
    """
    match = _TAG_ALONE_RE.match(line)
    if not match:
        return line
    first, newline, rest = line[match.end():].partition("\n")
    joined = f"{match.group(1)} {first}"
    if len(joined) <= max_length or len(first.split()) == 1:
        return joined + newline + rest
    return line


def fold_line(line: str, max_length: int) -> str:
    """Fold a complete header line (tag included) to ``max_length``.

    The result always ends with a single newline.  Lines starting with the
    mbox ``From `` envelope are only newline-normalised.  No physical line
    is longer than ``max_length`` unless it holds a single word that is.
    """
    max_length = clamp_fold_length(max_length)
    high = int(max_length - 5)  # 4 for leading blanks + 1 for [,;]
    low = int(max_length * 4 / 5) - 4

    line = _LINE_BREAKS_RE.sub("", line)
    line = line.rstrip() + "\n"

    if _ENVELOPE_RE.match(line):
        return line

    if len(line) > max_length:
        match = _LEADING_WORD_RE.match(line)
        if match and match.group(1).lower() in STRUCTURED_FIELDS:
            line = _fold_structured(line, low, high)
        else:
            line = _fold_unstructured(line, high)

    return _join_lonely_tag(line, max_length)


def unfold_line(line: str) -> str:
    """Join continuation lines into one logical line.

    All white space at the start of a continuation line is replaced by a
    single blank, not just the blank that folding inserted.  Header
    collections have always unfolded this way.
    """
    return _CONTINUATION_RE.sub(" ", line)


class FoldLengthTable:
    """Per-tag fold lengths, keyed by canonical tag.

    One instance can be shared between header collections to act as the
    process-wide default; each collection also owns a private table whose
    entries take precedence.
    """

    def __init__(self, lengths: dict[str, int] | None = None) -> None:
        self._lengths: dict[str, int] = {}
        for tag, length in (lengths or {}).items():
            self.set(tag, length)

    def set(self, tag: str, length: int) -> int | None:
        """Set the fold length for ``tag``; returns the previous value."""
        key = tag_case(tag)
        old = self._lengths.get(key)
        self._lengths[key] = clamp_fold_length(length)
        return old

    def get(self, tag: str) -> int | None:
        return self._lengths.get(tag_case(tag))

    def __contains__(self, tag: str) -> bool:
        return tag_case(tag) in self._lengths

    def __len__(self) -> int:
        return len(self._lengths)

    def copy(self) -> FoldLengthTable:
        dup = FoldLengthTable()
        dup._lengths = dict(self._lengths)
        return dup
