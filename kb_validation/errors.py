"""
Error types for kb-validation.

Two families of errors exist:

- RuleConfigError: the ruleset or validator catalog is malformed. These are
  programmer errors, raised while rules are being resolved and before any
  data is looked at.
- ValidationError: a value failed a check. These are expected and are always
  caught by the validators and turned into the field-keyed error map.

A ValidationError reaches the engine in one of two shapes, exposed through
to_result():

- PerFieldErrors: the error carries its own field -> messages map
- BroadcastMessage: only a flat message, which applies to every field
  owned by the rule that raised it
"""

from dataclasses import dataclass, field
from collections.abc import Iterable
from typing import Any, Dict, Union

REQUIRED_MESSAGE = "This field is required"


class RuleConfigError(ValueError):
    """Invalid ruleset, rule options or validator catalog."""


class ValidationError(Exception):
    """
    A failed validation.

    Attributes:
        message: Flat message describing the failure
        errors: Field-keyed messages; a list of strings per field, or a
            {"required": message} dict for required-field failures
    """

    def __init__(self, message: str = "", errors: Dict[str, Any] = None):
        super().__init__(message)
        self.message = message
        self.errors: Dict[str, Any] = {}
        if errors:
            self.add_errors(errors)

    def __str__(self) -> str:
        return self.message

    def add_errors(self, errors: Dict[str, Any]) -> "ValidationError":
        """
        Merge field errors without clobbering messages under duplicate keys.

        Args:
            errors: Mapping of field -> message, list of messages, or
                required-marker dict

        Returns:
            self, for chaining
        """
        for name, messages in errors.items():
            self.errors[name] = merge_messages(self.errors.get(name), messages)

        names = ", ".join(f"'{name}'" for name in self.errors)
        self.message = f"Validation failed for {names}"
        self.args = (self.message,)
        return self

    def to_result(self) -> Union["PerFieldErrors", "BroadcastMessage"]:
        """Classify this error for the engine."""
        if self.errors:
            return PerFieldErrors(dict(self.errors))
        return BroadcastMessage(self.message)


class RequiredFieldError(ValidationError):
    """A required field is empty."""


@dataclass(frozen=True)
class PerFieldErrors:
    """Messages already attributed to specific fields."""

    errors: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BroadcastMessage:
    """A single message shared by every field of the failing rule."""

    message: str


def merge_messages(current: Any, messages: Any) -> Any:
    """
    Append messages onto a field's existing entry.

    Required markers (dicts) replace list entries and absorb later
    messages, so an empty required field reports only that it is required.
    """
    if isinstance(messages, dict):
        if isinstance(current, dict):
            return {**current, **messages}
        return dict(messages)

    if isinstance(current, dict):
        return current

    merged = list(current or [])
    if isinstance(messages, str):
        merged.append(messages)
    elif isinstance(messages, Iterable):
        merged.extend(messages)
    else:
        merged.append(str(messages))
    return merged
