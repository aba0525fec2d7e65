"""String rules: length, email, password, phone, prose text and regex."""

import re
from typing import Any, Optional

from ..errors import RuleConfigError, ValidationError
from ..validity import Validity, password_problems
from ..values import is_numeric, to_number
from .base import BaseRule


class LengthRule(BaseRule):
    """
    String length within [min, max].

        {"length": ["name", {"min": 1, "max": 100}]}
    """

    def __init__(self):
        super().__init__()
        self.min = 0
        self.max: Optional[int] = None

    def parse(self, ruleset: Any) -> None:
        super().parse(ruleset)

        minimum = self.options.get("min", self.min)
        maximum = self.options.get("max", self.max)

        if not is_numeric(minimum):
            raise RuleConfigError(f"Invalid rule, 'min' must be a number: {minimum!r}")
        if maximum is not None and not is_numeric(maximum):
            raise RuleConfigError(f"Invalid rule, 'max' must be a number: {maximum!r}")

        self.min = to_number(minimum)
        self.max = to_number(maximum) if maximum is not None else None

    def validate_one(self, field: str, value: Any) -> None:
        Validity.length(value, self.min, self.max)


class EmailRule(BaseRule):
    """Something@domain.tld, without doubled '@' or '.'."""

    def validate_one(self, field: str, value: Any) -> None:
        Validity.email(value)


class PasswordRule(BaseRule):
    """
    Minimum length plus a lowercase letter, an uppercase letter and a digit.

    Each unmet requirement is reported as its own message.
    """

    def __init__(self):
        super().__init__()
        self.length = 8

    def parse(self, ruleset: Any) -> None:
        super().parse(ruleset)
        if self.options.get("length"):
            self.length = int(self.options["length"])

    def validate_one(self, field: str, value: Any) -> None:
        problems = password_problems(value, self.length)
        if problems:
            raise ValidationError(errors={field: problems})


class PhoneRule(BaseRule):
    """Phone numbers with between `digits` (default 8) and 15 digits."""

    def __init__(self):
        super().__init__()
        self.digits = 8

    def parse(self, ruleset: Any) -> None:
        super().parse(ruleset)
        if self.options.get("digits"):
            self.digits = int(self.options["digits"])

    def validate_one(self, field: str, value: Any) -> None:
        Validity.phone(value, self.digits)


class ProseTextRule(BaseRule):
    def validate_one(self, field: str, value: Any) -> None:
        Validity.prose_text(value)


class RegexRule(BaseRule):
    """
    Value must match `pattern`, a string or compiled pattern.

    Matching uses search semantics, anchor the pattern with ^ and $ to
    match the whole value.
    """

    def __init__(self):
        super().__init__()
        self.pattern = None

    def parse(self, ruleset: Any) -> None:
        super().parse(ruleset)
        pattern = self.require_option("pattern", self.pattern)
        try:
            self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern
        except re.error as e:
            raise RuleConfigError(f"Invalid rule, bad 'pattern': {e}") from e

    def validate_one(self, field: str, value: Any) -> None:
        if self.pattern is None:
            return
        Validity.regex(value, self.pattern)
