"""
Multi-field rules.

These check the fields of a rule together and raise a single message, which
the engine attributes to every field of the rule.
"""

from typing import Any

from ..errors import ValidationError
from ..validity import Validity
from .base import BaseRule


class AllMatchRule(BaseRule):
    """All provided values are identical, e.g. a password and its confirmation."""

    def validate(self, data: Any) -> None:
        Validity.all_match(self.get_field_values(data))


class AllUniqueRule(BaseRule):
    """No two provided values are the same."""

    def validate(self, data: Any) -> None:
        Validity.all_unique(self.get_field_values(data))


class OneRequiredRule(BaseRule):
    """
    At least one of the fields has a value.

        {"oneRequired": ["email", "phone", {"group": "email or phone"}]}
    """

    def __init__(self):
        super().__init__()
        self.group = None

    def parse(self, ruleset: Any) -> None:
        super().parse(ruleset)
        self.group = self.options.get("group", self.group)

    def validate(self, data: Any) -> None:
        if self.get_field_values(data):
            return

        if self.group:
            raise ValidationError(f"At least one of {self.group} must be provided")
        raise ValidationError("At least one of these must be provided")
