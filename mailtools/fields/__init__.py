"""Typed header field objects and the registry that maps tags to them."""

from .addrlist import AddrListField
from .base import BaseField
from .date import DateField
from .generic import GenericField
from .registry import FieldRegistry, default_registry

__all__ = [
    "AddrListField",
    "BaseField",
    "DateField",
    "FieldRegistry",
    "GenericField",
    "default_registry",
]
