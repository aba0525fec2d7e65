"""The required rule."""

from typing import Any

from ..errors import REQUIRED_MESSAGE, RequiredFieldError
from .base import BaseRule


class RequiredRule(BaseRule):
    """
    Fields must not be empty.

    RulesClassValidator runs this rule through its own required() step;
    validate() here serves standalone use.
    """

    def validate(self, data: Any) -> None:
        if not self.fields:
            return

        missing = {
            field: {"required": REQUIRED_MESSAGE}
            for field in self.fields
            if self.is_empty(data, field)
        }

        if missing:
            raise RequiredFieldError(errors=missing)
