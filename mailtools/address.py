"""Parse and format mail addresses as found in To, Cc and Bcc lines.

Handles the common shapes of an address::

    PHRASE <ADDRESS> (COMMENT)
    ADDRESS (COMMENT)

Address groups (``name: a@b, c@d;``) and deeply nested comments are not
supported; a ``;`` simply separates addresses like a ``,``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import structlog

from .tokenizer import Token, TokenKind, tokenize

logger = structlog.get_logger()

_SEPARATORS = ",;"
_ADDRESS_PUNCTUATION = ".@:;"

# Characters allowed in an unquoted phrase.
_ATEXT = r"[\-\w !#$%&'*+/=?^`{|}~]"
_PLAIN_PHRASE_RE = re.compile(rf"^(?:\s*{_ATEXT}\s*)+$")
_UNESCAPED_QUOTE_RE = re.compile(r'(?<!\\)"')

# Name inference
_ENCODED_WORD_RE = re.compile(r"=\?.*?\?=")
_NUMERIC_RE = re.compile(r"^[\d ]+$")
_OUTER_PARENS_RE = re.compile(r"^\((.*)\)$")
_OUTER_QUOTES_RE = re.compile(r'^"(.*)"$')
_EMBEDDED_COMMENT_RE = re.compile(r"\(.*?\)")
_LAST_FIRST_RE = re.compile(r"^([^\s]+) ?, ?(.*)$")
_WORD_RE = re.compile(r"\b(\w+)")
_MC_RE = re.compile(r"\bMc(\w)", re.IGNORECASE)
_O_APOSTROPHE_RE = re.compile(r"\bo'(\w)", re.IGNORECASE)
_ROMAN_RE = re.compile(r"\b(x*(ix)?v*(iv)?i*)\b", re.IGNORECASE)
_BRACKETED_RE = re.compile(r"\[[^\]]*\]")
_EDGE_JUNK_RE = re.compile(r"(^[\s'\"]+|[\s'\"]+$)")
_DOTTED_LOCAL_PART_RE = re.compile(r"([^%.@_]+([._][^%.@_]+)+)[@%]")
_X400_GIVEN_RE = re.compile(r"g=([^/]*)", re.IGNORECASE)
_X400_SURNAME_RE = re.compile(r"s=([^/]*)", re.IGNORECASE)


def _extract_name(text: str | None) -> str:
    """Guess a person's name from a phrase or comment."""
    if not text:
        return ""
    # Encoded words are too hard to handle here.
    if _ENCODED_WORD_RE.search(text):
        return ""

    text = re.sub(r"\s+", " ", text.strip(), count=1)

    # Numeric names (e.g. 123456.1234@compuserve.com)
    if _NUMERIC_RE.match(text):
        return ""

    text = _OUTER_PARENS_RE.sub(r"\1", text)
    text = _OUTER_QUOTES_RE.sub(r"\1", text)
    text = _EMBEDDED_COMMENT_RE.sub("", text)
    text = text.replace("\\", "")
    text = _OUTER_QUOTES_RE.sub(r"\1", text)
    text = _LAST_FIRST_RE.sub(r"\2 \1", text)
    text = re.sub(r",.*", "", text)

    # Only touch the casing of all-upper or all-lower names.
    if not (re.search(r"[A-Z]", text) and re.search(r"[a-z]", text)):
        text = _WORD_RE.sub(lambda m: m.group(1).capitalize(), text)
        text = _MC_RE.sub(lambda m: "Mc" + m.group(1).upper(), text)
        text = _O_APOSTROPHE_RE.sub(lambda m: "O'" + m.group(1).upper(), text)
        text = _ROMAN_RE.sub(lambda m: m.group(1).upper(), text)

    text = _BRACKETED_RE.sub("", text)
    text = _EDGE_JUNK_RE.sub("", text)
    return re.sub(r"\s{2,}", " ", text)


def _is_parenthesized(text: str) -> bool:
    """True when ``text`` is exactly one balanced ``( ... )`` group."""
    if not (text.startswith("(") and text.endswith(")")):
        return False
    depth = 0
    pos = 0
    while pos < len(text):
        char = text[pos]
        if char == "\\":
            pos += 2
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return pos == len(text) - 1
        pos += 1
    return False


@dataclass
class Address:
    """One address: display phrase, address-spec and comment.

    All three parts are plain strings and may be changed after
    construction; an empty string means the part is absent.
    """

    phrase: str = ""
    address: str = ""
    comment: str = ""

    def set_phrase(self, phrase: str) -> str:
        old, self.phrase = self.phrase, phrase
        return old

    def set_address(self, address: str) -> str:
        old, self.address = self.address, address
        return old

    def set_comment(self, comment: str) -> str:
        old, self.comment = self.comment, comment
        return old

    def __bool__(self) -> bool:
        return bool(self.phrase or self.address or self.comment)

    def format(self) -> str:
        """Render this address for use in a To, Cc or Bcc line."""
        parts: list[str] = []
        phrase, email, comment = self.phrase, self.address, self.comment

        if phrase:
            if _PLAIN_PHRASE_RE.match(phrase) or _UNESCAPED_QUOTE_RE.search(phrase):
                parts.append(phrase)
            else:
                parts.append(f'"{phrase}"')
            if email:
                parts.append(f"<{email}>")
        elif email:
            parts.append(email)

        if comment and comment.strip():
            comment = comment.strip()
            if not _is_parenthesized(comment):
                comment = f"({comment})"
            parts.append(comment)

        return " ".join(parts)

    def name(self) -> str | None:
        """Make a best guess at the name of the person behind this address.

        The phrase is preferred, then the comment.  Failing both, a name is
        derived from ``first.last@domain`` style addresses or from the
        ``g=``/``s=`` attributes of an X.400 address.
        """
        name = _extract_name(self.phrase or self.comment)

        if not name:
            match = _DOTTED_LOCAL_PART_RE.search(self.address)
            if match:
                name = _extract_name(re.sub(r"[._]+", " ", match.group(1)))

        if not name and re.search(r"/g=", self.address, re.IGNORECASE):
            given = _X400_GIVEN_RE.search(self.address)
            surname = _X400_SURNAME_RE.search(self.address)
            name = _extract_name(
                f"{given.group(1) if given else ''} {surname.group(1) if surname else ''}"
            )

        return name or None

    def host(self) -> str | None:
        """The mail domain, or ``None`` when the address has no ``@``."""
        at = self.address.rfind("@")
        return self.address[at + 1:] if at >= 0 else None

    def user(self) -> str:
        """The local part, or the whole address when it has no ``@``."""
        at = self.address.find("@")
        return self.address[:at] if at >= 0 else self.address


def format_addresses(addresses: list[Address]) -> str:
    """Join formatted addresses with ``", "``, skipping empty ones."""
    return ", ".join(text for text in (a.format() for a in addresses) if text)


def _phrase_text(token: Token) -> str:
    if token.kind is TokenKind.QUOTED_STRING:
        return token.text[1:-1]
    return token.text


def _comment_text(token: Token) -> str:
    # a comment that is itself one parenthesized group keeps its outer pair
    inner = token.text[1:-1]
    return token.text if _is_parenthesized(inner) else inner


def _find_next(tokens: list[Token], start: int) -> str:
    """Return the next ``,``, ``;`` or ``<`` at or after ``start``."""
    for token in tokens[start:]:
        if token.is_special(",;<"):
            return token.text
    return ""


class _Accumulator:
    """Tokens collected for the address currently being parsed."""

    def __init__(self) -> None:
        self.phrase: list[Token] = []
        self.address: list[Token] = []
        self.comment: list[Token] = []

    def complete(self) -> Address | None:
        if not (self.phrase or self.address or self.comment):
            return None
        address = Address(
            phrase=" ".join(_phrase_text(t) for t in self.phrase),
            address="".join(t.text for t in self.address),
            comment=" ".join(_comment_text(t) for t in self.comment),
        )
        self.phrase, self.address, self.comment = [], [], []
        return address


def parse_addresses(*fragments: str | None) -> list[Address]:
    """Parse one or more address header values into :class:`Address` objects.

    Fragments are treated as if joined by commas; ``None`` fragments are
    ignored.  Unmatched angle brackets are logged and parsing carries on.
    """
    lines = [f for f in fragments if f is not None]
    line = "".join(lines)
    tokens = tokenize(*lines)

    found: list[Address] = []
    acc = _Accumulator()
    depth = 0
    pending = _find_next(tokens, 0)

    def finish() -> None:
        address = acc.complete()
        if address is not None:
            found.append(address)

    for idx, token in enumerate(tokens):
        if token.kind is TokenKind.COMMENT:
            acc.comment.append(token)
        elif token.is_special("<"):
            depth += 1
        elif token.is_special(">"):
            if depth:
                depth -= 1
        elif token.is_special(_SEPARATORS):
            if depth:
                logger.warning("unmatched_angle_brackets", line=line)
            finish()
            depth = 0
            pending = _find_next(tokens, idx + 1)
        elif depth:
            acc.address.append(token)
        elif pending == "<":
            acc.phrase.append(token)
        elif (
            token.is_special(_ADDRESS_PUNCTUATION)
            or not acc.address
            or acc.address[-1].is_special(_ADDRESS_PUNCTUATION)
        ):
            acc.address.append(token)
        else:
            # a second bare word: it starts a new address
            finish()
            acc.address.append(token)

    return found
