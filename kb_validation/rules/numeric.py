"""Number rules: positive integers, numeric strings, binary flags and ranges."""

from typing import Any

from ..errors import RuleConfigError
from ..validity import Validity
from ..values import is_numeric, to_number
from .base import BaseRule


class PositiveIntRule(BaseRule):
    def validate_one(self, field: str, value: Any) -> None:
        Validity.positive_int(value)


class NumericRule(BaseRule):
    def validate_one(self, field: str, value: Any) -> None:
        Validity.numeric(value)


class BinaryRule(BaseRule):
    def validate_one(self, field: str, value: Any) -> None:
        Validity.binary(value)


class RangeRule(BaseRule):
    """
    Numeric value within an inclusive range.

        {"range": ["cost", {"between": [0, 5000]}]}
    """

    def __init__(self):
        super().__init__()
        self.min = None
        self.max = None

    def parse(self, ruleset: Any) -> None:
        super().parse(ruleset)

        default = None
        if self.min is not None and self.max is not None:
            default = [self.min, self.max]

        between = self.require_option("between", default)
        if not isinstance(between, (list, tuple)) or len(between) != 2:
            raise RuleConfigError("Invalid rule, 'between' needs exactly two values")
        if not all(is_numeric(bound) for bound in between):
            raise RuleConfigError("Invalid rule, 'between' values must be numbers")

        self.min, self.max = (to_number(bound) for bound in between)

    def validate_one(self, field: str, value: Any) -> None:
        Validity.range(value, self.min, self.max)
