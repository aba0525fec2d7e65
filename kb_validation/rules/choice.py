"""Rules restricting values to a set of allowed options."""

from typing import Any

from ..validity import Validity
from .base import BaseRule


class InArrayRule(BaseRule):
    """
    Value must be one of `allowed`.

        {"inArray": ["vowel", {"allowed": ["a", "e", "i", "o", "u"]}]}
    """

    def __init__(self):
        super().__init__()
        self.allowed = []

    def parse(self, ruleset: Any) -> None:
        super().parse(ruleset)
        self.allowed = list(self.require_option("allowed", self.allowed))

    def validate_one(self, field: str, value: Any) -> None:
        if not self.allowed:
            return
        Validity.in_array(value, self.allowed)


class AllInArrayRule(InArrayRule):
    """Value must be a list, every item one of `allowed`."""

    def validate_one(self, field: str, value: Any) -> None:
        if not self.allowed:
            return
        Validity.all_in_array(value, self.allowed)
