"""Header tag names: validation pattern, canonical casing, structured set."""

from __future__ import annotations

import re

# RFC 822 field-name: 1*<any CHAR, excluding CTLs, SPACE, and ":">.
# The trailing colon is part of the pattern.
FIELD_NAME = r"[^\x00-\x1f\x7f-\xff :]+:"

FIELD_NAME_RE = re.compile(FIELD_NAME)

# A header line starts either with a field name or with the mbox envelope.
LINE_TAG_RE = re.compile(rf"^({FIELD_NAME}|From )")
LINE_TAG_RE_I = re.compile(rf"^({FIELD_NAME}|From )", re.IGNORECASE)

# Fields holding comma/semicolon separated lists; folded at those separators.
STRUCTURED_FIELDS = frozenset(
    tag.lower()
    for tag in (
        "To", "Cc", "Bcc", "From", "Date", "Reply-To", "Sender",
        "Resent-Date", "Resent-From", "Resent-Sender", "Resent-To",
        "Return-Path", "list-help", "list-post", "list-unsubscribe",
        "Mailing-List", "Received", "References", "Message-ID",
        "In-Reply-To", "Content-Length", "Content-Type",
        "Content-Disposition", "Delivered-To", "Lines", "MIME-Version",
        "Precedence", "Status",
    )
)

_ACRONYM_RE = re.compile(r"^[b-df-hj-np-tv-z]+$|^(?:MIME|SWE|SOAP|LDAP|ID)$", re.IGNORECASE)


def tag_case(tag: str) -> str:
    """Return the preferred display casing of a header tag.

    Tags compare case-insensitively, but each ``-`` separated word is
    written with a capital first letter, and words without a vowel (or a
    few known acronyms) are written in upper case::

        >>> tag_case("x-mailer:")
        'X-Mailer'
        >>> tag_case("mime-version")
        'MIME-Version'
        >>> tag_case("message-id")
        'Message-ID'
    """
    if tag.endswith(":"):
        tag = tag[:-1]
    return "-".join(
        word.upper() if _ACRONYM_RE.match(word) else word[:1].upper() + word[1:].lower()
        for word in tag.split("-")
    )


def is_structured(tag: str) -> bool:
    return tag_case(tag).lower() in STRUCTURED_FIELDS
