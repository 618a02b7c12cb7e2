"""Lexical analysis of address header values.

A header value is split into comments, quoted strings, domain literals,
atoms and single special characters.  Tokens keep their source text,
delimiters included, so they can be written back unchanged.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from .errors import TokenizeError

SPECIALS = '()<>@,;:\\".[]'

_LINE_BREAKS_RE = re.compile(r"[\r\n]+")
_BLANKS_RE = re.compile(r"\s*")
_QUOTED_RE = re.compile(r'("(?:[^"\\]+|\\.)*")\s*')
_LITERAL_RE = re.compile(r"(\[(?:[^\]\\]+|\\.)*\])\s*")
_ATOM_RE = re.compile(r'([^\s()<>@,;:\\".\[\]]+)\s*')
_SPECIAL_RE = re.compile(r'([()<>@,;:\\".\[\]])\s*')


class TokenKind(str, Enum):
    """Lexical class of a token."""

    COMMENT = "comment"
    QUOTED_STRING = "quoted_string"
    DOMAIN_LITERAL = "domain_literal"
    ATOM = "atom"
    SPECIAL = "special"


@dataclass(frozen=True)
class Token:
    """One lexical unit with its exact source text."""

    kind: TokenKind
    text: str

    def is_special(self, chars: str) -> bool:
        """True when this is a single special character out of ``chars``."""
        return self.kind is TokenKind.SPECIAL and self.text in chars

    def __str__(self) -> str:
        return self.text


_MATCHERS = (
    (_QUOTED_RE, TokenKind.QUOTED_STRING),
    (_LITERAL_RE, TokenKind.DOMAIN_LITERAL),
    (_ATOM_RE, TokenKind.ATOM),
    (_SPECIAL_RE, TokenKind.SPECIAL),
)

# Appended to every token list so the end of input closes the last address.
END_TOKEN = Token(TokenKind.SPECIAL, ",")


def _comment_end(text: str, start: int) -> int:
    """Return the index just past the comment opening at ``start``."""
    depth = 0
    pos = start
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
                return pos + 1
        pos += 1
    raise TokenizeError(f"unmatched parentheses in {text[start:]!r}")


def tokenize(*fragments: str) -> list[Token]:
    """Split header value fragments into tokens.

    Fragments are joined with ``,``; line breaks become blanks.  The result
    always ends with :data:`END_TOKEN`.

    Raises :class:`~mailtools.errors.TokenizeError` when a comment is not
    closed or when the input contains something that is not a token.
    """
    text = _LINE_BREAKS_RE.sub(" ", ",".join(fragments)).lstrip()
    tokens: list[Token] = []
    pos = 0

    while pos < len(text):
        if text[pos] == "(":
            end = _comment_end(text, pos)
            tokens.append(Token(TokenKind.COMMENT, text[pos:end]))
            pos = _BLANKS_RE.match(text, end).end()
            continue

        for pattern, kind in _MATCHERS:
            match = pattern.match(text, pos)
            if match:
                tokens.append(Token(kind, match.group(1)))
                pos = match.end()
                break
        else:
            raise TokenizeError(f"unrecognized input: {text[pos:]!r}")

    tokens.append(END_TOKEN)
    return tokens
