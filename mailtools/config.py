"""Configuration loaded from keyword arguments or environment variables.

Uses pydantic-settings so every field can be overridden via env vars
(``MAILTOOLS_HEADER_FOLD_LENGTH=72`` and so on).
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from .folding import DEFAULT_FOLD_LENGTH, clamp_fold_length
from .tags import tag_case


class MailFromPolicy(str, Enum):
    """What a header collection does with an unadorned ``From `` line."""

    KEEP = "KEEP"
    COERCE = "COERCE"
    IGNORE = "IGNORE"
    ERROR = "ERROR"


def _upper(value: object) -> object:
    return value.upper() if isinstance(value, str) else value


class HeaderSettings(BaseSettings):
    """Defaults for a :class:`~mailtools.header.MailHeader`."""

    model_config = {"env_prefix": "MAILTOOLS_HEADER_"}

    modify: bool = Field(
        default=False,
        description="Reformat (re-case tags, fold) lines when they are added",
    )
    mail_from: MailFromPolicy = Field(
        default=MailFromPolicy.KEEP,
        description="Treatment of unadorned 'From ' envelope lines",
    )
    fold_length: int = Field(
        default=DEFAULT_FOLD_LENGTH,
        description="Default maximum line length when folding (minimum 20)",
    )
    fold_lengths: dict[str, int] = Field(
        default_factory=dict,
        description="Per-tag fold lengths, overriding fold_length",
    )

    @field_validator("mail_from", mode="before")
    @classmethod
    def _mail_from_any_case(cls, value: object) -> object:
        return _upper(value)

    @field_validator("fold_length")
    @classmethod
    def _clamp_fold_length(cls, value: int) -> int:
        return clamp_fold_length(value)

    @field_validator("fold_lengths")
    @classmethod
    def _canonical_fold_lengths(cls, value: dict[str, int]) -> dict[str, int]:
        return {tag_case(tag): clamp_fold_length(length) for tag, length in value.items()}


class MessageSettings(BaseSettings):
    """Defaults for a :class:`~mailtools.message.MailMessage`."""

    model_config = {"env_prefix": "MAILTOOLS_MESSAGE_"}

    modify: bool = Field(default=True, description="Reformat header lines")
    mail_from: MailFromPolicy = Field(
        default=MailFromPolicy.KEEP,
        description="Treatment of unadorned 'From ' envelope lines",
    )
    fold_length: int = Field(
        default=DEFAULT_FOLD_LENGTH,
        description="Default maximum header line length (minimum 20)",
    )
    reply_indent: str = Field(
        default=">",
        description="Prefix for quoted lines in replies; supports %f %F %l %L %n %I",
    )
    reply_template: Path | None = Field(
        default=None,
        description="File with header lines every reply starts from",
    )
    mail_addresses: list[str] = Field(
        default_factory=list,
        description="Own addresses, never copied into the Cc of a reply",
    )

    @field_validator("mail_from", mode="before")
    @classmethod
    def _mail_from_any_case(cls, value: object) -> object:
        return _upper(value)

    @field_validator("fold_length")
    @classmethod
    def _clamp_fold_length(cls, value: int) -> int:
        return clamp_fold_length(value)

    def header_settings(self) -> HeaderSettings:
        return HeaderSettings(
            modify=self.modify,
            mail_from=self.mail_from,
            fold_length=self.fold_length,
        )
