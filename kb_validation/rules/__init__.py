"""
Built-in validation rules.

Every rule is registered in the default catalog (config/rules.yaml) under
the name returned by its get_name().
"""

from .base import BaseRule, split_ruleset
from .callback import CallbackRule
from .choice import AllInArrayRule, InArrayRule
from .dates import DateRangeRule, MysqlDateRule, MysqlDateTimeRule, MysqlTimeRule
from .group import AllMatchRule, AllUniqueRule, OneRequiredRule
from .network import Ipv4AddrOrCidrRule, Ipv4AddrRule, Ipv4CidrRule
from .numeric import BinaryRule, NumericRule, PositiveIntRule, RangeRule
from .required import RequiredRule
from .text import EmailRule, LengthRule, PasswordRule, PhoneRule, ProseTextRule, RegexRule

__all__ = [
    "BaseRule",
    "split_ruleset",
    "AllInArrayRule",
    "AllMatchRule",
    "AllUniqueRule",
    "BinaryRule",
    "CallbackRule",
    "DateRangeRule",
    "EmailRule",
    "InArrayRule",
    "Ipv4AddrOrCidrRule",
    "Ipv4AddrRule",
    "Ipv4CidrRule",
    "LengthRule",
    "MysqlDateRule",
    "MysqlDateTimeRule",
    "MysqlTimeRule",
    "NumericRule",
    "OneRequiredRule",
    "PasswordRule",
    "PhoneRule",
    "PositiveIntRule",
    "ProseTextRule",
    "RangeRule",
    "RegexRule",
    "RequiredRule",
]
