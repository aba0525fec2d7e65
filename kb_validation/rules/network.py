"""IPv4 address and CIDR block rules."""

from typing import Any

from ..validity import Validity
from .base import BaseRule


class Ipv4AddrRule(BaseRule):
    def validate_one(self, field: str, value: Any) -> None:
        Validity.ipv4_addr(value)


class Ipv4CidrRule(BaseRule):
    def validate_one(self, field: str, value: Any) -> None:
        Validity.ipv4_cidr(value)


class Ipv4AddrOrCidrRule(BaseRule):
    """An address, or a CIDR block when the value contains a '/'."""

    def validate_one(self, field: str, value: Any) -> None:
        Validity.ipv4_addr_or_cidr(value)
