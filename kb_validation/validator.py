"""
Rules Validator - validates a data record against a ruleset

Resolves a ruleset into bound rules through a RuleRegistry, runs them in
order and collects a field-keyed error map.

## Ruleset shapes

```python
{
    # rule name -> fields and options
    "required": ["name", "email"],
    "length": ["name", {"min": 1, "max": 100}],
    "range": {0: "guests", "between": [1, 8]},

    # same rule, several field groups
    "inArray": [
        ["colour", {"allowed": ["red", "blue"]}],
        ["size", {"allowed": ["S", "M", "L"]}],
    ],

    # custom rule classes as keys
    PostcodeRule: ["postcode"],

    # namespace for the function names used below
    "validity": MyValidity,

    # positional: [field, function or function name, *args]
    0: ["username", "length", 3, 20],
    1: ["coupon", check_coupon],
    2: {"func": check_pair, "args": [], "multi": True, "fields": ["a", "b"]},
    3: {"email": ["backup_email"], "phone": ["mobile"]},
}
```

A list of entries is read the same way as the positional keys above.

## Errors

Configuration problems raise RuleConfigError from set_rules(), before any
data is looked at. Validation failures never raise from validate(); they
are collected in `errors`:

    {"email": {"required": "This field is required"},
     "name": ["Longer than maximum allowed length of 100"]}
"""

import logging
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .errors import (
    REQUIRED_MESSAGE,
    BroadcastMessage,
    PerFieldErrors,
    RuleConfigError,
    ValidationError,
    merge_messages,
)
from .registry import RuleRegistry, get_default_registry
from .rules.base import BaseRule
from .rules.callback import CallbackRule
from .rules.required import RequiredRule
from .validity import Validity, resolve_callable
from .values import field_is_empty, humanize, set_value, value_kind

logger = logging.getLogger(__name__)


def _is_positional(key: Any) -> bool:
    return isinstance(key, int) and not isinstance(key, bool)


def _is_rule_key(key: Any) -> bool:
    return isinstance(key, str) or isinstance(key, type)


def _is_callback_spec(value: Any) -> bool:
    return isinstance(value, Mapping) and callable(value.get("func"))


class RulesClassValidator:
    """Resolves a ruleset against a registry and validates one record."""

    def __init__(
        self,
        data: Any,
        registry: Optional[RuleRegistry] = None,
        labels: Optional[Dict[str, str]] = None,
    ):
        """
        Args:
            data: Mapping or object to validate
            registry: Rule registry; a copy of the default catalog when None
            labels: Display names for fields, used by errors_as_dict()
        """
        self.data = data
        self.registry = registry if registry is not None else get_default_registry()
        self.labels: Dict[str, str] = dict(labels or {})
        self.validity: Any = Validity
        self.rules: Any = None
        self.errors: Dict[str, Any] = {}
        self._rules: List[BaseRule] = []

    def set_data(self, data: Any) -> None:
        self.data = data

    def set_field_value(self, field: str, value: Any) -> None:
        set_value(self.data, field, value)

    def set_labels(self, labels: Dict[str, str]) -> None:
        self.labels = dict(labels)

    def set_validators(self, validators: Any) -> None:
        """Replace the registry's catalog and re-resolve the current ruleset."""
        self.registry.set_validators(validators)
        self.refresh_rules()

    def add_validator(self, validator: Any, name: Optional[str] = None) -> BaseRule:
        """Register a validator and re-resolve the current ruleset."""
        rule = self.registry.add_validator(validator, name)
        self.refresh_rules()
        return rule

    def get_rules(self) -> List[BaseRule]:
        """The resolved rules, in evaluation order."""
        return list(self._rules)

    def refresh_rules(self) -> None:
        """Resolve the stored ruleset again, e.g. after the catalog changed."""
        if self.rules is not None:
            self.set_rules(self.rules)

    def set_rules(self, rules: Any) -> None:
        """
        Store a ruleset and resolve it into bound rules.

        Nothing changes unless the whole ruleset resolves.

        Raises:
            RuleConfigError: If any entry is malformed or names an unknown rule
        """
        entries = self._entries(rules)

        validity = self.validity
        for key, value in entries:
            if key == "validity":
                if value is None:
                    raise RuleConfigError("Invalid ruleset: validity null")
                validity = value

        resolved: List[BaseRule] = []
        for key, value in entries:
            resolved.extend(self._resolve_entry(key, value, validity))

        self.rules = rules
        self.validity = validity
        self._rules = resolved

        logger.debug(f"Resolved {len(resolved)} rules: {[r.get_name() for r in resolved]}")

    def validate(self) -> bool:
        """
        Run every resolved rule against the data.

        Returns:
            True if no errors were found
        """
        self.errors = {}

        with self.registry.guard():
            for rule in self._rules:
                if isinstance(rule, RequiredRule):
                    self.required(rule.fields)
                    continue

                try:
                    rule.validate(self.data)
                except ValidationError as e:
                    result = e.to_result()
                    if isinstance(result, PerFieldErrors):
                        for field, messages in result.errors.items():
                            self.add_field_error(field, messages)
                    elif isinstance(result, BroadcastMessage):
                        self.add_multiple_field_error(rule.fields, result.message)

        if self.errors:
            logger.debug(f"Validation failed for {list(self.errors)}")

        return not self.errors

    def required(self, fields: Iterable[str]) -> bool:
        """
        Mark each empty field as required.

        Returns:
            True if all fields have values
        """
        ok = True
        for field in fields:
            if field_is_empty(self.data, field):
                self.add_field_error(field, {"required": REQUIRED_MESSAGE})
                ok = False
        return ok

    def add_field_error(self, field: str, messages: Any) -> None:
        self.errors[field] = merge_messages(self.errors.get(field), messages)

    def add_multiple_field_error(self, fields: Iterable[str], message: str) -> None:
        for field in fields:
            self.add_field_error(field, message)

    def get_errors(self) -> Dict[str, Any]:
        return self.errors

    def has_errors(self) -> bool:
        return bool(self.errors)

    def errors_as_dict(self) -> Dict[str, str]:
        """
        Errors keyed by display label, each field's messages joined into one.

            {"Email address": "This field is required",
             "first name": "Shorter than minimum allowed length of 2"}
        """
        out = {}
        for field, messages in self.errors.items():
            label = self.labels.get(field) or humanize(field)
            if isinstance(messages, dict):
                messages = list(messages.values())
            out[label] = ". ".join(messages)
        return out

    def from_validation_error(self, error: ValidationError) -> None:
        """Copy a ValidationError's field errors into this validator."""
        for field, messages in error.errors.items():
            self.add_field_error(field, messages)

    def _entries(self, rules: Any) -> List[Tuple[Any, Any]]:
        if isinstance(rules, Mapping):
            return list(rules.items())
        if isinstance(rules, (list, tuple)):
            return list(enumerate(rules))
        raise RuleConfigError(f"Invalid ruleset, expected a list or dict: {value_kind(rules)}")

    def _resolve_entry(self, key: Any, value: Any, validity: Any) -> List[BaseRule]:
        if isinstance(value, BaseRule):
            return [value]

        if key == "validity":
            return []

        if _is_positional(key):
            if _is_callback_spec(value):
                rule = CallbackRule()
                rule.parse(value)
                return [rule]

            if isinstance(value, (list, tuple)) and value and isinstance(value[0], str):
                return [self._parse_legacy(value, validity)]

        elif _is_rule_key(key):
            if isinstance(value, (list, tuple)):
                return self._parse_named(key, value)
            if isinstance(value, Mapping):
                return [self.registry.parse_rule(key, value)]

        if _is_positional(key) and isinstance(value, Mapping):
            rules = []
            for name, ruleset in value.items():
                if not _is_rule_key(name) or not isinstance(ruleset, (list, tuple, Mapping)):
                    raise RuleConfigError(f"Invalid ruleset: {key}.{name} {value_kind(ruleset)}")
                if isinstance(ruleset, Mapping):
                    rules.append(self.registry.parse_rule(name, ruleset))
                else:
                    rules.extend(self._parse_named(name, ruleset))
            return rules

        raise RuleConfigError(f"Invalid ruleset: {key} {value_kind(value)}")

    def _parse_named(self, name: Any, ruleset: Any) -> List[BaseRule]:
        """One rule for a flat ruleset, or one per entry of a nested one."""
        nested = [isinstance(item, (list, tuple)) for item in ruleset]

        if ruleset and all(nested):
            return [self.registry.parse_rule(name, item) for item in ruleset]

        if any(nested):
            raise RuleConfigError(
                f"Invalid ruleset: {name}, mixes field names and nested rulesets"
            )

        return [self.registry.parse_rule(name, ruleset)]

    def _parse_legacy(self, entry: Any, validity: Any) -> BaseRule:
        """
        Resolve a positional [field, rule, *args] entry.

        The rule may be 'required', a callable, a rule class, a function
        name in the validity namespace, or a registered rule name.
        """
        if len(entry) < 2:
            raise RuleConfigError(f"Invalid rule, expected [field, rule, ...]: {entry!r}")

        field, rule, args = entry[0], entry[1], list(entry[2:])

        if rule == "required":
            return self.registry.parse_rule("required", [field])

        if isinstance(rule, type):
            return self.registry.parse_rule(rule, [field, *args])

        if callable(rule):
            return self._callback(field, rule, args)

        if not isinstance(rule, str):
            raise RuleConfigError(f"Invalid rule: {rule!r}")

        # Rule options for a registered rule, e.g. ["amount", "range", {"between": [1, 5]}]
        if args and all(isinstance(arg, Mapping) for arg in args) and rule in self.registry:
            return self.registry.parse_rule(rule, [field, *args])

        func = resolve_callable(validity, rule)
        if func is not None:
            return self._callback(field, func, args)

        if not args and rule in self.registry:
            return self.registry.parse_rule(rule, [field])

        raise RuleConfigError(f"Invalid rule: {rule}")

    def _callback(self, field: str, func: Any, args: List[Any]) -> BaseRule:
        rule = CallbackRule()
        rule.parse([field, {"func": func, "args": args}])
        return rule


class RulesValidatorMixin:
    """
    Adds validation to classes that define rules().

    ```python
    class Signup(RulesValidatorMixin):
        def rules(self):
            return {"required": ["email"], "email": ["email"]}
    ```

    Set `validator_registry` on the class to resolve against a custom registry.
    """

    validator_registry: Optional[RuleRegistry] = None
    validator_labels: Optional[Dict[str, str]] = None

    def rules(self) -> Any:
        raise NotImplementedError(f"{type(self).__name__} must define rules()")

    def valid(self):
        """
        Returns:
            True if valid, otherwise the error map
        """
        validator = RulesClassValidator(self, self.validator_registry, self.validator_labels)
        validator.set_rules(self.rules())
        if validator.validate():
            return True
        return validator.get_errors()

    def validate(self) -> None:
        """
        Raises:
            ValidationError: Carrying the error map, if invalid
            RuleConfigError: If rules() is malformed
        """
        errors = self.valid()
        if errors is not True:
            raise ValidationError(errors=errors)
