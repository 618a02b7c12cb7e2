"""mailtools: parse, fold and rewrite Internet mail headers.

Public API re-exported here for convenience::

    from mailtools import MailHeader, parse_addresses, format_addresses
"""

from .address import Address, format_addresses, parse_addresses
from .config import HeaderSettings, MailFromPolicy, MessageSettings
from .errors import ConfigError, FieldError, FieldNameError, MailToolsError, TokenizeError
from .fields import (
    AddrListField,
    BaseField,
    DateField,
    FieldRegistry,
    GenericField,
    default_registry,
)
from .filter import MailFilter
from .folding import FoldLengthTable, fold_line, unfold_line
from .header import MailHeader
from .logging import setup_logging
from .mbox import read_mbox
from .message import MailMessage
from .tags import STRUCTURED_FIELDS, is_structured, tag_case
from .tokenizer import Token, TokenKind, tokenize

__all__ = [
    "AddrListField",
    "Address",
    "BaseField",
    "ConfigError",
    "DateField",
    "FieldError",
    "FieldNameError",
    "FieldRegistry",
    "FoldLengthTable",
    "GenericField",
    "HeaderSettings",
    "MailFilter",
    "MailFromPolicy",
    "MailHeader",
    "MailMessage",
    "MailToolsError",
    "MessageSettings",
    "STRUCTURED_FIELDS",
    "Token",
    "TokenKind",
    "default_registry",
    "fold_line",
    "format_addresses",
    "is_structured",
    "parse_addresses",
    "read_mbox",
    "setup_logging",
    "tag_case",
    "tokenize",
    "unfold_line",
]
