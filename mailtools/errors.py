"""Exception hierarchy for mailtools."""

from __future__ import annotations


class MailToolsError(Exception):
    """Base class for all mailtools errors."""


class TokenizeError(MailToolsError, ValueError):
    """A header value could not be split into tokens.

    Raised for input the tokenizer does not recognise and for comments
    whose parentheses never balance.  No partial token list is returned.
    """


class FieldNameError(MailToolsError, ValueError):
    """A header tag contains control characters, blanks or a colon."""

    def __init__(self, tag: str | None) -> None:
        self.tag = tag
        super().__init__(f"Bad RFC822 field name {tag!r}")


class ConfigError(MailToolsError, ValueError):
    """An invalid configuration value was supplied."""


class FieldError(MailToolsError):
    """A field object was given options it does not understand."""
