"""
kb-validation: Rules-based validation for mappings and objects

This library provides:
- A catalog of named rules (length, email, range, dateRange, ...)
- Rulesets resolved against a registry of rule templates
- Field-keyed error maps with required-field short-circuiting
- Custom rules as classes, dotted paths or plain functions
- Attribute-driven validation from typing.Annotated rule tags
- YAML catalogs, rulesets and rule tags

Example:
    from kb_validation import RulesClassValidator

    validator = RulesClassValidator({"name": "abcd"})
    validator.set_rules({"required": ["name"], "length": ["name", {"max": 3}]})
    validator.validate()      # False
    validator.get_errors()    # {"name": ["Longer than maximum allowed length of 3"]}
"""

from .attributes import (
    AttributeValidatorMixin,
    AttributesValidator,
    RuleTag,
    Scenario,
    collect_rule_tags,
)
from .config_loader import ConfigLoader
from .errors import (
    REQUIRED_MESSAGE,
    BroadcastMessage,
    PerFieldErrors,
    RequiredFieldError,
    RuleConfigError,
    ValidationError,
)
from .registry import RuleRegistry, get_default_registry, reset_default_registry
from .rules import BaseRule
from .validator import RulesClassValidator, RulesValidatorMixin
from .validity import Validity

__version__ = "0.1.0"
__all__ = [
    "AttributeValidatorMixin",
    "AttributesValidator",
    "BaseRule",
    "BroadcastMessage",
    "ConfigLoader",
    "PerFieldErrors",
    "REQUIRED_MESSAGE",
    "RequiredFieldError",
    "RuleConfigError",
    "RuleRegistry",
    "RuleTag",
    "RulesClassValidator",
    "RulesValidatorMixin",
    "Scenario",
    "ValidationError",
    "Validity",
    "collect_rule_tags",
    "get_default_registry",
    "reset_default_registry",
]
