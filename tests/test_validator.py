"""
Tests for RulesClassValidator

Covers ruleset shapes, error aggregation, required-field handling and
re-resolution when the catalog changes.
"""
from types import SimpleNamespace

import pytest

from kb_validation import (
    REQUIRED_MESSAGE,
    RuleConfigError,
    RulesClassValidator,
    RulesValidatorMixin,
    ValidationError,
)
from kb_validation.registry import get_default_registry
from kb_validation.rules import BaseRule, EmailRule, LengthRule

REQUIRED = {"required": REQUIRED_MESSAGE}


class PostcodeRule(BaseRule):
    def validate_one(self, field, value):
        if len(str(value)) != 4:
            raise ValidationError("Invalid postcode")


class RejectAllRule(BaseRule):
    def validate_one(self, field, value):
        raise ValidationError("Rejected")


class CustomValidity:
    @staticmethod
    def postcode(val):
        if len(str(val)) != 4:
            raise ValidationError("Invalid postcode")


def no_admin(value):
    if value == "admin":
        raise ValidationError("Reserved name")


def check(data, rules, **kwargs):
    """Validate data against rules, returning the validator."""
    validator = RulesClassValidator(data, **kwargs)
    validator.set_rules(rules)
    validator.validate()
    return validator


class TestScenarios:
    """Test the basic end-to-end behaviour."""

    def test_required_missing(self):
        """Test that a missing required field reports only that it is required."""
        validator = check({}, {"required": ["email"], "email": ["email"]})
        assert validator.has_errors()
        assert validator.get_errors() == {"email": {"required": "This field is required"}}

    def test_length_max(self):
        validator = check({"name": "abcd"}, {"length": ["name", {"min": 1, "max": 3}]})
        assert validator.get_errors() == {"name": ["Longer than maximum allowed length of 3"]}

    def test_one_required_passes(self):
        validator = check({"email": "", "phone": "123"}, {"oneRequired": ["email", "phone"]})
        assert not validator.has_errors()

    def test_unknown_rule_fails_at_set_rules(self):
        validator = RulesClassValidator({})
        with pytest.raises(RuleConfigError, match="Invalid rule: bogusRule"):
            validator.set_rules({"bogusRule": ["name"]})
        assert validator.get_rules() == []

    def test_validate_returns_bool(self):
        validator = RulesClassValidator({"email": "a@b.co"})
        validator.set_rules({"required": ["email"], "email": ["email"]})
        assert validator.validate() is True

        validator.set_data({"email": "nope"})
        assert validator.validate() is False
        assert validator.get_errors() == {"email": ["Invalid email address"]}

    def test_errors_reset_between_runs(self):
        validator = check({"email": "nope"}, {"email": ["email"]})
        assert validator.has_errors()

        validator.set_field_value("email", "a@b.co")
        assert validator.validate()
        assert validator.get_errors() == {}


class TestZeroValues:
    """Test that numeric zero is a real value."""

    @pytest.mark.parametrize("value", [0, 0.0, "0", " 0"])
    def test_required_accepts_zero(self, value):
        assert not check({"qty": value}, {"required": ["qty"]}).has_errors()

    @pytest.mark.parametrize("value", [None, "", [], False])
    def test_required_rejects_empty(self, value):
        assert check({"qty": value}, {"required": ["qty"]}).get_errors() == {"qty": REQUIRED}

    @pytest.mark.parametrize("value,ok", [
        (0, True),
        (5000, True),
        (5001, False),
        (-1, False),
    ])
    def test_range_bounds(self, value, ok):
        validator = check({"cost": value}, {"range": ["cost", {"between": [0, 5000]}]})
        assert validator.has_errors() is not ok


class TestAggregation:
    """Test how errors from several rules combine."""

    def test_broadcast_to_every_field(self):
        validator = check(
            {"password": "a", "confirm": "b"},
            {"allMatch": ["password", "confirm"]},
        )
        assert validator.get_errors() == {
            "password": ["Provided values do not match"],
            "confirm": ["Provided values do not match"],
        }

    def test_date_range_ordering(self):
        validator = check(
            {"start": "2024-02-01", "end": "2024-01-01"},
            {"dateRange": ["start", "end"]},
        )
        message = "The start date, 2024-02-01, cannot be later than the end date 2024-01-01"
        assert validator.get_errors() == {"start": [message], "end": [message]}

    def test_date_range_bad_date_on_one_field(self):
        validator = check(
            {"start": "2024-01-01", "end": "2024-02-30x"},
            {"dateRange": ["start", "end"]},
        )
        assert validator.get_errors() == {"end": ["Invalid date format"]}

    def test_messages_appended_in_rule_order(self):
        validator = check(
            {"email": "bad"},
            {"email": ["email"], "length": ["email", {"min": 10}]},
        )
        assert validator.get_errors() == {
            "email": ["Invalid email address", "Shorter than minimum allowed length of 10"],
        }

    def test_password_messages_per_field(self):
        validator = check({"pw": "abc"}, {"password": ["pw"]})
        assert validator.get_errors() == {"pw": [
            "Must be at least 8 characters long",
            "Must contain an uppercase letter",
            "Must contain a number",
        ]}

    def test_required_absorbs_later_messages(self):
        validator = check({}, {"required": ["email"], "oneRequired": ["email", "phone"]})
        assert validator.get_errors() == {
            "email": REQUIRED,
            "phone": ["At least one of these must be provided"],
        }

    def test_required_replaces_earlier_messages(self):
        validator = check({}, {"oneRequired": ["email", "phone"], "required": ["email"]})
        assert validator.get_errors() == {
            "email": REQUIRED,
            "phone": ["At least one of these must be provided"],
        }


class TestRulesetShapes:
    """Test each accepted ruleset shape."""

    def test_int_keyed_options(self):
        validator = check({"cost": 6000}, {"range": {0: "cost", "between": [0, 5000]}})
        assert validator.get_errors() == {
            "cost": ["Value must be no less than 0 and no greater than 5000"],
        }

    def test_fields_key(self):
        validator = check({"a": "x"}, {"email": {"fields": ["a"]}})
        assert validator.get_errors() == {"a": ["Invalid email address"]}

    def test_nested_per_field(self):
        rules = {"length": [["name", {"max": 3}], ["title", {"max": 5}]]}
        validator = check({"name": "abcd", "title": "abcd"}, rules)

        assert len(validator.get_rules()) == 2
        assert validator.get_errors() == {"name": ["Longer than maximum allowed length of 3"]}

    def test_nested_mixed_with_fields(self):
        with pytest.raises(RuleConfigError, match="mixes field names"):
            RulesClassValidator({}).set_rules({"length": ["name", ["title", {"max": 5}]]})

    def test_rule_class_key(self):
        validator = check({"postcode": "123"}, {PostcodeRule: ["postcode"]})
        assert validator.get_errors() == {"postcode": ["Invalid postcode"]}

    def test_rule_instance(self):
        rule = LengthRule()
        rule.parse(["name", {"max": 2}])

        validator = check({"name": "abc"}, [rule])
        assert validator.get_rules() == [rule]
        assert validator.get_errors() == {"name": ["Longer than maximum allowed length of 2"]}

    def test_legacy_validity_function(self):
        validator = check({"username": "ab"}, [["username", "length", 3, 20]])
        assert validator.get_errors() == {"username": ["Shorter than minimum allowed length of 3"]}

    def test_legacy_callable(self):
        validator = check({"username": "admin"}, {0: ["username", no_admin]})
        assert validator.get_errors() == {"username": ["Reserved name"]}

    def test_legacy_required(self):
        validator = check({}, [["email", "required"]])
        assert validator.get_errors() == {"email": REQUIRED}

    def test_legacy_registered_rule_with_options(self):
        validator = check({"amount": 6}, [["amount", "range", {"between": [1, 5]}]])
        assert validator.get_errors() == {
            "amount": ["Value must be no less than 1 and no greater than 5"],
        }

    def test_legacy_registered_rule(self):
        validator = RulesClassValidator({"postcode": "123"})
        validator.add_validator(PostcodeRule)
        validator.set_rules([["postcode", "postcode"]])

        assert isinstance(validator.get_rules()[0], PostcodeRule)
        assert not validator.validate()

    def test_legacy_unknown(self):
        with pytest.raises(RuleConfigError, match="Invalid rule: nope"):
            RulesClassValidator({}).set_rules([["a", "nope"]])

    def test_legacy_validity_namespace(self):
        rules = {"validity": CustomValidity, 0: ["postcode", "postcode"]}
        validator = check({"postcode": "123"}, rules)
        assert validator.get_errors() == {"postcode": ["Invalid postcode"]}

    def test_validity_needed_for_custom_names(self):
        with pytest.raises(RuleConfigError, match="Invalid rule: postcode"):
            RulesClassValidator({}).set_rules({0: ["postcode", "postcode"]})

    def test_callback_spec(self):
        def same(values):
            if len(set(values)) > 1:
                raise ValidationError("Pair mismatch")

        rules = [{"func": same, "multi": True, "fields": ["a", "b"]}]
        validator = check({"a": "x", "b": "y"}, rules)
        assert validator.get_errors() == {"a": ["Pair mismatch"], "b": ["Pair mismatch"]}

    def test_nested_by_rule_name(self):
        rules = [{"email": ["email"], "length": ["name", {"max": 3}]}]
        validator = check({"email": "bad", "name": "abcd"}, rules)
        assert validator.get_errors() == {
            "email": ["Invalid email address"],
            "name": ["Longer than maximum allowed length of 3"],
        }

    @pytest.mark.parametrize("rules,message", [
        ({"email": "email"}, "Invalid ruleset: email scalar"),
        ({"length": None}, "Invalid ruleset: length null"),
        ([None], "Invalid ruleset: 0 null"),
        ([42], "Invalid ruleset: 0 scalar"),
        ([{"email": "email"}], "Invalid ruleset: 0.email scalar"),
    ])
    def test_invalid_shapes(self, rules, message):
        with pytest.raises(RuleConfigError, match=message):
            RulesClassValidator({}).set_rules(rules)

    def test_ruleset_must_be_collection(self):
        with pytest.raises(RuleConfigError, match="expected a list or dict"):
            RulesClassValidator({}).set_rules("email")


class TestResolution:
    """Test resolution state and re-resolution."""

    def test_failed_set_rules_keeps_previous(self):
        validator = RulesClassValidator({"email": "bad"})
        validator.set_rules({"email": ["email"]})

        with pytest.raises(RuleConfigError):
            validator.set_rules({"email": ["email"], "bogus": ["x"]})

        assert validator.rules == {"email": ["email"]}
        assert len(validator.get_rules()) == 1
        assert not validator.validate()

    def test_refresh_is_idempotent(self):
        validator = RulesClassValidator({"email": "bad"})
        validator.set_rules({"required": ["email"], "email": ["email"]})
        before = [type(rule) for rule in validator.get_rules()]

        validator.refresh_rules()
        validator.refresh_rules()

        assert [type(rule) for rule in validator.get_rules()] == before
        validator.validate()
        assert validator.get_errors() == {"email": ["Invalid email address"]}

    def test_set_validators_re_resolves(self):
        validator = RulesClassValidator({"email": "a@b.co"})
        validator.set_rules({"email": ["email"]})
        assert validator.validate()

        validator.set_validators({"email": RejectAllRule})
        assert not validator.validate()
        assert validator.get_errors() == {"email": ["Rejected"]}

    def test_failed_set_validators_keeps_catalog(self):
        validator = RulesClassValidator({"email": "bad"})
        validator.set_rules({"required": ["email", "name"], "email": ["email"]})

        with pytest.raises(RuleConfigError):
            validator.set_validators({"email": EmailRule, "bad": "no_such_module_here.Rule"})

        assert "length" in validator.registry
        assert not validator.validate()
        assert validator.get_errors() == {
            "email": ["Invalid email address"],
            "name": REQUIRED,
        }

    def test_bad_length_bound_fails_at_set_rules(self):
        validator = RulesClassValidator({"name": "abc"})
        with pytest.raises(RuleConfigError, match="'min' must be a number"):
            validator.set_rules({"length": ["name", {"min": None, "max": 3}]})

    def test_set_validators_leaves_other_validators(self):
        first = RulesClassValidator({"email": "a@b.co"})
        second = RulesClassValidator({"email": "a@b.co"})
        second.set_rules({"email": ["email"]})

        first.set_validators({"email": RejectAllRule})
        assert second.validate()

    def test_add_validator(self):
        validator = RulesClassValidator({"postcode": "12345"})
        validator.add_validator(PostcodeRule)
        validator.set_rules({"postcode": ["postcode"]})
        assert validator.get_errors() == {}
        assert not validator.validate()

    def test_bound_rules_not_shared(self):
        first = RulesClassValidator({})
        second = RulesClassValidator({})
        first.set_rules({"length": ["a", {"max": 1}]})
        second.set_rules({"length": ["b", {"max": 2}]})

        assert first.get_rules()[0] is not second.get_rules()[0]
        assert first.get_rules()[0].fields == ["a"]

    def test_shared_registry(self):
        registry = get_default_registry()
        registry.add_validator(PostcodeRule)

        validator = RulesClassValidator({"postcode": "1"}, registry=registry)
        validator.set_rules({"postcode": ["postcode"]})
        assert not validator.validate()

    def test_registry_locked_during_validate(self):
        registry = get_default_registry()
        validator = RulesClassValidator({"name": "x"}, registry=registry)
        validator.set_rules([["name", lambda value: registry.add_validator(EmailRule)]])

        with pytest.raises(RuntimeError, match="while a validation is running"):
            validator.validate()

        registry.add_validator(PostcodeRule)
        assert "postcode" in registry


class TestErrorViews:
    """Test error helpers and display views."""

    def test_errors_as_dict(self):
        validator = check(
            {"firstName": "a"},
            {"required": ["email"], "length": ["firstName", {"min": 2}]},
            labels={"email": "Email address"},
        )
        assert validator.errors_as_dict() == {
            "Email address": "This field is required",
            "first name": "Shorter than minimum allowed length of 2",
        }

    def test_errors_as_dict_joins(self):
        validator = check({"email": "bad"}, {"email": ["email"], "length": ["email", {"min": 10}]})
        validator.set_labels({"email": "Email"})
        assert validator.errors_as_dict() == {
            "Email": "Invalid email address. Shorter than minimum allowed length of 10",
        }

    def test_add_field_error(self):
        validator = RulesClassValidator({})
        validator.add_field_error("a", "x")
        validator.add_field_error("a", ["y"])
        validator.add_multiple_field_error(["a", "b"], "z")
        assert validator.get_errors() == {"a": ["x", "y", "z"], "b": ["z"]}

    def test_from_validation_error(self):
        validator = RulesClassValidator({})
        validator.from_validation_error(ValidationError(errors={"a": ["x"], "b": "y"}))
        assert validator.get_errors() == {"a": ["x"], "b": ["y"]}

    def test_required_step(self):
        validator = RulesClassValidator({"a": "x"})
        assert validator.required(["a"])
        assert not validator.required(["a", "b"])
        assert validator.get_errors() == {"b": REQUIRED}


class TestObjects:
    """Test validating objects instead of mappings."""

    def test_object_data(self):
        data = SimpleNamespace(email="bad", name="")
        validator = check(data, {"required": ["name"], "email": ["email"]})
        assert validator.get_errors() == {
            "name": REQUIRED,
            "email": ["Invalid email address"],
        }

    def test_set_field_value(self):
        data = SimpleNamespace(email="bad")
        validator = RulesClassValidator(data)
        validator.set_field_value("email", "a@b.co")
        assert data.email == "a@b.co"


class Signup(RulesValidatorMixin):
    def __init__(self, email=None, name=None):
        self.email = email
        self.name = name

    def rules(self):
        return {
            "required": ["email"],
            "email": ["email"],
            "length": ["name", {"max": 10}],
        }


class TestRulesValidatorMixin:
    """Test validation on classes defining rules()."""

    def test_valid(self):
        assert Signup(email="a@b.co", name="Ann").valid() is True

    def test_invalid_returns_errors(self):
        assert Signup(name="Ann").valid() == {"email": REQUIRED}

    def test_validate_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            Signup(email="bad").validate()
        assert exc_info.value.errors == {"email": ["Invalid email address"]}
        assert exc_info.value.message == "Validation failed for 'email'"

    def test_rules_required(self):
        with pytest.raises(NotImplementedError):
            RulesValidatorMixin().valid()
