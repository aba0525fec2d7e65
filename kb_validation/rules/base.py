"""
Base class for validation rules.

A rule owns a list of fields and some parsed options. Rules live in two
states:

- template: registered once in a RuleRegistry and never mutated
- bound: a copy of a template made by bind(ruleset), parsed for one use

Single-value rules override validate_one(), which the default validate()
calls for every non-empty field. Multi-field rules (matching, uniqueness,
one-of, date ranges) override validate() and report one message for the
whole group.

A ruleset is the list of fields, optionally with keyed options:

    ["name", "title", {"min": 1, "max": 100}]
    {0: "name", 1: "title", "min": 1, "max": 100}
    {"fields": ["name", "title"], "min": 1, "max": 100}
"""

import copy
from abc import ABC
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Tuple

from ..errors import RuleConfigError, ValidationError
from ..values import field_is_empty, get_value


def split_ruleset(ruleset: Any) -> Tuple[List[Any], Dict[str, Any]]:
    """
    Separate a ruleset into positional entries and keyed options.

    Returns:
        Tuple of (positional entries, options dict)

    Raises:
        RuleConfigError: If the ruleset is not a list, tuple or dict
    """
    positional: List[Any] = []
    options: Dict[str, Any] = {}

    if isinstance(ruleset, (list, tuple)):
        for item in ruleset:
            if isinstance(item, Mapping):
                options.update(item)
            else:
                positional.append(item)

    elif isinstance(ruleset, Mapping):
        for key, item in ruleset.items():
            if isinstance(key, int) and not isinstance(key, bool):
                positional.append(item)
            else:
                options[key] = item

    else:
        raise RuleConfigError(f"Invalid ruleset, expected a list or dict: {ruleset!r}")

    extra = options.pop("fields", None)
    if isinstance(extra, str):
        positional.append(extra)
    elif isinstance(extra, (list, tuple)):
        positional.extend(extra)

    return positional, options


class BaseRule(ABC):
    """
    Base class for all validation rules.

    Subclasses that take options override parse(), call the base
    implementation first and then read self.options.
    """

    # Registry name override; derived from the class name when None.
    name: Optional[str] = None

    def __init__(self):
        self.fields: List[str] = []
        self.options: Dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.get_name()} fields={self.fields!r}>"

    @classmethod
    def get_name(cls) -> str:
        """
        The shorthand name for this rule.

        'OneRequiredRule' becomes 'oneRequired', unless the class sets name.
        """
        if cls.name:
            return cls.name

        name = cls.__name__
        if name.endswith("Rule") and len(name) > 4:
            name = name[:-4]
        return name[:1].lower() + name[1:]

    def parse(self, ruleset: Any) -> None:
        """
        Parse a ruleset into fields and options.

        Raises:
            RuleConfigError: If the ruleset names no fields
        """
        positional, options = split_ruleset(ruleset)

        self.fields = [item for item in positional if isinstance(item, str)]
        self.options = options

        if not self.fields:
            raise RuleConfigError(
                f"Invalid rule specification: {self.get_name()}, missing fields"
            )

    def bind(self, ruleset: Any) -> "BaseRule":
        """Copy this template and parse the copy, leaving the template untouched."""
        rule = copy.copy(self)
        rule.fields = []
        rule.options = {}
        rule.parse(ruleset)
        return rule

    def require_option(self, key: str, default: Any = None) -> Any:
        """
        Read a mandatory option, falling back to default (usually the
        template's own attribute) when the ruleset leaves it out.

        Raises:
            RuleConfigError: If the option is missing or empty
        """
        value = self.options.get(key, default)
        if value is None or value == "" or value == [] or value == ():
            raise RuleConfigError(f"Invalid rule, missing '{key}' key")
        return value

    def validate(self, data: Any) -> None:
        """
        Validate data against this rule.

        Empty fields are skipped. Errors for each field are gathered into one
        ValidationError keyed by field.

        Raises:
            ValidationError: If any field fails
        """
        if not self.fields:
            return

        error = ValidationError()

        for field in self.fields:
            if field_is_empty(data, field):
                continue

            try:
                self.validate_one(field, get_value(data, field))
            except ValidationError as exc:
                if field in exc.errors:
                    error.add_errors({field: exc.errors[field]})
                else:
                    error.add_errors({field: [exc.message]})

        if error.errors:
            raise error

    def validate_one(self, field: str, value: Any) -> None:
        """Validate a single non-empty value. Multi-field rules skip this."""

    def get_field_values(self, data: Any) -> List[Any]:
        """Non-empty values of this rule's fields, in field order."""
        return [
            get_value(data, field)
            for field in self.fields
            if not field_is_empty(data, field)
        ]

    is_empty = staticmethod(field_is_empty)
