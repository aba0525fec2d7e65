"""
Rule Registry - name to rule template mapping

The registry holds one template per rule name. Templates are created once,
when the catalog is loaded or a custom validator is added, and are never
mutated: resolving a ruleset entry binds a copy of the template to the
entry's fields and options.

## Resolution order

When a ruleset entry names a rule, parse_rule() tries, in order:

1. The name is a BaseRule subclass: a fresh instance is created and parsed
2. The name is registered: the template is bound to the ruleset
3. The ruleset carries a 'func' callable: it is wrapped in a CallbackRule
4. RuleConfigError, with a distinct message when the name is a class that
   isn't a rule

## Default catalog

The built-in rules are listed in the bundled config/rules.yaml as dotted
class paths. get_default_registry() loads it once per process and hands out
registries sharing the same read-only templates:

```python
registry = get_default_registry()
registry.add_validator(PostcodeRule)          # registered as 'postcode'
registry.add_validator("myapp.rules.AbnRule", "abn")
registry.add_validator({"class": PasswordRule, "length": 12}, "strongPassword")
```

Attributes set through a config dict are the template's defaults. Options
given in a ruleset override them for that use only.

## Concurrency

Validators hold the registry's guard() for the length of a validation run.
Changing validators while a run is active raises RuntimeError.
"""

import importlib
import logging
import threading
from collections.abc import Mapping
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Type

from .config_loader import ConfigLoader
from .errors import RuleConfigError
from .rules.base import BaseRule
from .rules.callback import CallbackRule
from .rules.required import RequiredRule

logger = logging.getLogger(__name__)


class RuleRegistry:
    """Maps rule names to rule templates."""

    def __init__(self, validators: Any = None):
        """
        Initialize the registry.

        Args:
            validators: Mapping of name -> validator spec, or a list of specs
                registered under their own names. See add_validator().
        """
        self._validators: Dict[str, BaseRule] = {}
        self._class_cache: Dict[str, Type[BaseRule]] = {}
        self._lock = threading.Lock()
        self._active = 0
        self.set_validators(validators or {})

    @classmethod
    def default(cls) -> "RuleRegistry":
        """A registry holding the built-in catalog."""
        return get_default_registry()

    def __contains__(self, name: Any) -> bool:
        return name in self._validators

    def __len__(self) -> int:
        return len(self._validators)

    def names(self) -> List[str]:
        """Registered rule names, in registration order."""
        return list(self._validators)

    def get(self, name: str) -> Optional[BaseRule]:
        """The template registered under name, if any."""
        return self._validators.get(name)

    def validators(self) -> Dict[str, BaseRule]:
        """A copy of the name -> template mapping."""
        return dict(self._validators)

    def copy(self) -> "RuleRegistry":
        """A new registry sharing this registry's templates."""
        return RuleRegistry(self._validators)

    def set_validators(self, validators: Any) -> None:
        """
        Replace the catalog.

        A RequiredRule is always present under 'required', whatever the
        given catalog holds. The catalog is left unchanged unless every
        spec builds.

        Raises:
            RuleConfigError: If any validator spec is invalid
            RuntimeError: If a validation run is in progress
        """
        self._check_idle()

        if isinstance(validators, Mapping):
            items = list(validators.items())
        else:
            items = [(None, validator) for validator in validators]

        catalog: Dict[str, BaseRule] = {}
        for name, validator in items:
            rule = self._build(validator)
            catalog[name if isinstance(name, str) and name else rule.get_name()] = rule

        if not isinstance(catalog.get("required"), RequiredRule):
            catalog["required"] = RequiredRule()

        self._validators = catalog
        logger.debug(f"Registry has {len(self._validators)} validators")

    def add_validator(self, validator: Any, name: Optional[str] = None) -> BaseRule:
        """
        Register one validator, replacing any of the same name.

        Args:
            validator: A BaseRule instance, a BaseRule subclass, a dotted
                class path, or a dict with a 'class' key (class or dotted
                path) and attributes to set on the new template
            name: Registry name; the rule's own get_name() when None

        Returns:
            The registered template

        Raises:
            RuleConfigError: If the spec doesn't describe a rule
            RuntimeError: If a validation run is in progress
        """
        self._check_idle()

        rule = self._build(validator)
        name = name or rule.get_name()

        if name in self._validators:
            logger.warning(f"Replacing validator '{name}' with {type(rule).__name__}")

        self._validators[name] = rule
        return rule

    def parse_rule(self, name: Any, ruleset: Any) -> BaseRule:
        """
        Resolve one ruleset entry to a bound rule.

        Args:
            name: Rule name or BaseRule subclass
            ruleset: Fields and options for the rule

        Returns:
            A new, parsed rule instance

        Raises:
            RuleConfigError: If the name can't be resolved or the ruleset is invalid
        """
        # Custom rule class.
        if isinstance(name, type) and issubclass(name, BaseRule):
            rule = name()
            rule.parse(ruleset)
            return rule

        # Registered template.
        if isinstance(name, str) and name in self._validators:
            return self._validators[name].bind(ruleset)

        # Legacy inline callback.
        if isinstance(ruleset, Mapping) and "func" in ruleset:
            rule = CallbackRule()
            rule.parse(ruleset)
            return rule

        if isinstance(name, type):
            raise RuleConfigError(f"Invalid rule, not a rule class: {name.__qualname__}")

        raise RuleConfigError(f"Invalid rule: {name}")

    @contextmanager
    def guard(self) -> Iterator["RuleRegistry"]:
        """Mark a validation run as active for the duration of the block."""
        with self._lock:
            self._active += 1
        try:
            yield self
        finally:
            with self._lock:
                self._active -= 1

    def _check_idle(self) -> None:
        with self._lock:
            if self._active:
                raise RuntimeError("Cannot change validators while a validation is running")

    def _build(self, validator: Any) -> BaseRule:
        """Create a template from a validator spec."""
        if isinstance(validator, BaseRule):
            return validator

        if isinstance(validator, str):
            return self._load_class(validator)()

        if isinstance(validator, type):
            return self._rule_class(validator)()

        if isinstance(validator, Mapping):
            config = dict(validator)
            rule_class = config.pop("class", None)
            if rule_class is None:
                raise RuleConfigError(f"Invalid validator, missing 'class': {validator!r}")

            if isinstance(rule_class, str):
                rule = self._load_class(rule_class)()
            else:
                rule = self._rule_class(rule_class)()

            for key, value in config.items():
                if key.startswith("_") or not hasattr(rule, key):
                    raise RuleConfigError(
                        f"Invalid validator option '{key}' for {type(rule).__name__}"
                    )
                setattr(rule, key, value)
            return rule

        raise RuleConfigError(f"Invalid validator: {validator!r}")

    def _rule_class(self, candidate: Any) -> Type[BaseRule]:
        if isinstance(candidate, type) and issubclass(candidate, BaseRule):
            return candidate
        raise RuleConfigError(f"Invalid validator, not a rule class: {candidate!r}")

    def _load_class(self, class_path: str) -> Type[BaseRule]:
        """
        Load a rule class from a dotted path, e.g. 'kb_validation.rules.text.EmailRule'.

        Raises:
            RuleConfigError: If the module or class can't be found, or isn't a rule
        """
        if class_path in self._class_cache:
            return self._class_cache[class_path]

        module_name, _, class_name = class_path.rpartition(".")
        if not module_name:
            raise RuleConfigError(f"Invalid validator class path: {class_path}")

        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            raise RuleConfigError(f"Failed to import validator {class_path}: {e}") from e

        if not hasattr(module, class_name):
            raise RuleConfigError(f"Validator class '{class_name}' not found in {module_name}")

        rule_class = self._rule_class(getattr(module, class_name))
        self._class_cache[class_path] = rule_class
        return rule_class


_default_validators: Optional[Dict[str, BaseRule]] = None


def get_default_registry() -> RuleRegistry:
    """
    A new registry holding the built-in catalog.

    The catalog is loaded once per process; each registry returned shares
    the same templates but can be changed independently.
    """
    global _default_validators
    if _default_validators is None:
        catalog = ConfigLoader().load_validators()
        _default_validators = RuleRegistry(catalog).validators()
    return RuleRegistry(_default_validators)


def reset_default_registry() -> None:
    """Forget the loaded default catalog (for testing)."""
    global _default_validators
    _default_validators = None
