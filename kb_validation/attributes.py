"""
Attribute-driven validation.

Instead of a ruleset, rules are declared on the class being validated, as
typing.Annotated metadata on its field annotations:

```python
class Booking(AttributeValidatorMixin):
    email: Annotated[str, RuleTag("required"), RuleTag("email")]
    guests: Annotated[int, RuleTag("range", 1, 8)]
    promo: Annotated[str, RuleTag("regex", r"^[A-Z]{4}$"), Scenario("checkout")]

booking.valid()             # True, or {field: [messages]}
booking.validate("checkout")  # raises ValidationError
```

Each tag names a method on the target itself or a function in the validity
namespace, called as func(value, *args). Empty values are skipped, except by
'required'.

Fields without a Scenario marker are checked in the default scenario only.
Tags can also come from a YAML document through
ConfigLoader.load_rule_tags(), or be passed as (field, name, args) tuples.
"""

import json
import logging
import re
import typing
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from .errors import REQUIRED_MESSAGE, RuleConfigError, ValidationError, merge_messages
from .validity import Validity, resolve_callable
from .values import get_value, is_empty

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"\s*([A-Za-z_]\w*)\s*(.*?)\s*", re.DOTALL)

# The scenarios of a tag that applies whatever the active scenario is.
ANY_SCENARIO = None


class RuleTag:
    """A rule declared on a field: a rule name plus call arguments."""

    def __init__(self, name: str, *args: Any):
        if not isinstance(name, str) or not name:
            raise RuleConfigError(f"Invalid rule tag name: {name!r}")
        self.name = name
        self.args = args

    @classmethod
    def from_doc(cls, doc: str) -> "RuleTag":
        """
        Parse a tag from its text form.

        The name comes first; anything after it is read as the items of a
        JSON array:

            RuleTag.from_doc('range 10, 20')           # RuleTag('range', 10, 20)
            RuleTag.from_doc('inArray ["a", "b"]')     # RuleTag('inArray', ['a', 'b'])

        Raises:
            RuleConfigError: If the text can't be parsed
        """
        match = _TAG_RE.fullmatch(doc or "")
        if not match:
            raise RuleConfigError(f"Invalid rule tag: {doc!r}")

        name, rest = match.groups()
        if not rest:
            return cls(name)

        try:
            args = json.loads(f"[{rest}]")
        except json.JSONDecodeError as e:
            raise RuleConfigError(f"Invalid rule tag arguments: {doc!r}: {e.msg}") from e

        return cls(name, *args)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, RuleTag):
            return NotImplemented
        return self.name == other.name and self.args == other.args

    def __hash__(self) -> int:
        return hash((self.name, repr(self.args)))

    def __repr__(self) -> str:
        args = "".join(f", {arg!r}" for arg in self.args)
        return f"RuleTag({self.name!r}{args})"


@dataclass(frozen=True)
class Scenario:
    """Marks a field's tags as active in a scenario; None is the default scenario."""

    name: Optional[str] = None


TagEntry = Tuple[str, RuleTag, Optional[FrozenSet[Optional[str]]]]


def collect_rule_tags(target: Any) -> List[TagEntry]:
    """
    Read the rule tags declared on a class (or an instance's class).

    Annotations are read base class first, in declaration order.

    Returns:
        List of (field, RuleTag, scenarios)
    """
    cls = target if isinstance(target, type) else type(target)
    hints = typing.get_type_hints(cls, include_extras=True)

    tags = []
    for field, hint in hints.items():
        if typing.get_origin(hint) is not typing.Annotated:
            continue

        metadata = hint.__metadata__
        scenarios = frozenset(m.name for m in metadata if isinstance(m, Scenario))

        for item in metadata:
            if isinstance(item, RuleTag):
                tags.append((field, item, scenarios or frozenset([None])))

    return tags


def _normalize_tags(tags: Iterable[Any]) -> List[TagEntry]:
    normalized = []
    for entry in tags:
        if not isinstance(entry, (list, tuple)) or len(entry) < 2:
            raise RuleConfigError(f"Invalid rule tag entry: {entry!r}")

        field, tag = entry[0], entry[1]

        if isinstance(tag, RuleTag):
            scenarios = entry[2] if len(entry) > 2 else ANY_SCENARIO
            if scenarios is not None:
                scenarios = frozenset(scenarios)
            normalized.append((field, tag, scenarios))
        else:
            args = entry[2] if len(entry) > 2 else ()
            if not isinstance(args, (list, tuple)):
                args = (args,)
            normalized.append((field, RuleTag(tag, *args), ANY_SCENARIO))

    return normalized


class AttributesValidator:
    """Validates an object against its declared rule tags."""

    def __init__(
        self,
        target: Any,
        scenario: Optional[str] = None,
        tags: Optional[Iterable[Any]] = None,
        validity: Any = Validity,
    ):
        """
        Args:
            target: Object to validate
            scenario: Active scenario; None for the default
            tags: Tag entries to use instead of the target's annotations,
                as (field, RuleTag, scenarios) or (field, name, args)
            validity: Namespace of fallback validation functions
        """
        self.target = target
        self.scenario = scenario
        self.validity = validity
        self.errors: Dict[str, Any] = {}

        if tags is None:
            self.tags = collect_rule_tags(target)
        else:
            self.tags = _normalize_tags(tags)

    def set_validity(self, validity: Any) -> None:
        self.validity = validity

    def validate(self) -> bool:
        """
        Check every tag active in the current scenario.

        Returns:
            True if no errors were found

        Raises:
            RuleConfigError: If a tag names no known function
        """
        self.errors = {}

        for field, tag, scenarios in self.tags:
            if scenarios is not None and self.scenario not in scenarios:
                continue
            self._process(field, tag)

        if self.errors:
            logger.debug(f"{type(self.target).__name__} failed for {list(self.errors)}")

        return not self.errors

    def has_errors(self) -> bool:
        return bool(self.errors)

    def get_errors(self) -> Dict[str, Any]:
        return self.errors

    def _process(self, field: str, tag: RuleTag) -> None:
        value = get_value(self.target, field)

        if tag.name == "required":
            if is_empty(value):
                self._add_error(field, {"required": REQUIRED_MESSAGE})
            return

        if is_empty(value):
            return

        func = self._resolve(tag.name)
        try:
            func(value, *tag.args)
        except ValidationError as e:
            self._add_error(field, e.errors.get(field) or [e.message])

    def _resolve(self, name: str):
        func = resolve_callable(self.target, name)
        if func is None:
            func = resolve_callable(self.validity, name)
        if func is None:
            raise RuleConfigError(
                f"Invalid rule: {name}, not a method of {type(self.target).__name__} "
                f"or the validity namespace"
            )
        return func

    def _add_error(self, field: str, messages: Any) -> None:
        self.errors[field] = merge_messages(self.errors.get(field), messages)


class AttributeValidatorMixin:
    """
    Adds valid() and validate() to classes declaring rule tags.

    Set `rule_tags` on the class to use loaded tags instead of annotations.
    """

    rule_tags: Optional[List[Any]] = None

    def valid(self, scenario: Optional[str] = None):
        """
        Returns:
            True if valid, otherwise the error map
        """
        validator = AttributesValidator(self, scenario, self.rule_tags)
        if validator.validate():
            return True
        return validator.get_errors()

    def validate(self, scenario: Optional[str] = None) -> None:
        """
        Raises:
            ValidationError: Carrying the error map, if invalid
        """
        errors = self.valid(scenario)
        if errors is not True:
            raise ValidationError(errors=errors)
