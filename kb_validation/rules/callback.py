"""
Wraps a plain function as a rule.

The function receives the value (or, with multi, the list of field values)
followed by `args`, and raises ValidationError when the value is bad:

    {"callback": ["postcode", {"func": check_postcode, "args": ["AU"]}]}
    [{"func": check_postcode, "args": ["AU"], "fields": ["postcode"]}]
"""

from typing import Any, Callable, Optional

from ..errors import RuleConfigError
from .base import BaseRule


class CallbackRule(BaseRule):
    def __init__(self):
        super().__init__()
        self.callable: Optional[Callable] = None
        self.args = []
        self.multi = False

    def parse(self, ruleset: Any) -> None:
        super().parse(ruleset)

        func = self.options.get("func")
        if not callable(func):
            raise RuleConfigError(f"Invalid rule, 'func' is not callable: {func!r}")

        args = self.options.get("args") or []
        if not isinstance(args, (list, tuple)):
            args = [args]

        self.callable = func
        self.args = list(args)
        self.multi = bool(self.options.get("multi", False))

    def validate(self, data: Any) -> None:
        if self.callable is None or not self.fields:
            return

        if self.multi:
            self.callable(self.get_field_values(data), *self.args)
        else:
            super().validate(data)

    def validate_one(self, field: str, value: Any) -> None:
        if self.callable is None:
            return
        self.callable(value, *self.args)
