"""Address list fields: To, From, Cc, Reply-To and Sender."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..address import Address, format_addresses, parse_addresses
from ..errors import FieldError
from .base import BaseField

ADDRESS_TAGS = ("To", "From", "Cc", "Reply-To", "Sender")


class AddrListField(BaseField):
    """Addresses of a field, keyed by e-mail address.

    Adding an address that is already present replaces the earlier entry
    in place.
    """

    def __init__(self, tag: str) -> None:
        super().__init__(tag)
        self._addresses: dict[str, Address] = {}

    def set(self, **options: Any) -> AddrListField:
        addresses: Mapping[str, str] = options.pop("addresses", None) or {}
        if options:
            raise FieldError(f"Unknown options {', '.join(sorted(options))}")
        self._addresses = {
            email: Address(phrase=name or "", address=email)
            for email, name in addresses.items()
        }
        return self

    def parse(self, text: str) -> AddrListField:
        for address in parse_addresses(text):
            self._addresses[address.address] = address
        return self

    def stringify(self) -> str:
        return format_addresses(list(self._addresses.values()))

    def addresses(self) -> list[str]:
        """The e-mail addresses in the field."""
        return list(self._addresses)

    def addr_list(self) -> list[Address]:
        return list(self._addresses.values())

    def names(self) -> list[str | None]:
        """A display name for each address, see :meth:`Address.name`."""
        return [address.name() for address in self._addresses.values()]

    def set_address(self, email: str, name: str | None = None) -> AddrListField:
        """Add or replace ``email`` with display name ``name``."""
        self._addresses[email] = Address(phrase=name or "", address=email)
        return self
