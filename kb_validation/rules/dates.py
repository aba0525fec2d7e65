"""MySQL date/time format rules and the two-field date range rule."""

from typing import Any

from ..errors import RuleConfigError, ValidationError
from ..validity import Validity, check_date_range, date_key
from ..values import get_value, is_empty
from .base import BaseRule


class MysqlDateRule(BaseRule):
    name = "dateMySQL"

    def validate_one(self, field: str, value: Any) -> None:
        Validity.date_mysql(value)


class MysqlTimeRule(BaseRule):
    name = "timeMySQL"

    def validate_one(self, field: str, value: Any) -> None:
        Validity.time_mysql(value)


class MysqlDateTimeRule(BaseRule):
    name = "datetimeMySQL"

    def validate_one(self, field: str, value: Any) -> None:
        Validity.datetime_mysql(value)


class DateRangeRule(BaseRule):
    """
    A start and end date, in that field order.

        {"dateRange": ["date_start", "date_end", {"min": "2000-01-01", "ordered": True}]}

    Options:
        min: earliest allowed start date
        max: latest allowed end date
        ordered: start must not be after end (default True)
    """

    def __init__(self):
        super().__init__()
        self.min = None
        self.max = None
        self.ordered = True

    def parse(self, ruleset: Any) -> None:
        super().parse(ruleset)

        if len(self.fields) != 2:
            raise RuleConfigError(
                "Incorrect number of fields. A date range must only contain "
                "two dates: a start and an end date."
            )

        self.min = self.options.get("min", self.min)
        self.max = self.options.get("max", self.max)
        self.ordered = bool(self.options.get("ordered", self.ordered))

        # Fail on unreadable bounds now rather than mid-validation.
        for bound in (self.min, self.max):
            if bound:
                date_key(bound)

    def validate(self, data: Any) -> None:
        if len(self.fields) != 2:
            return

        start_field, end_field = self.fields
        start = get_value(data, start_field)
        end = get_value(data, end_field)

        if is_empty(start) or is_empty(end):
            return

        error = ValidationError()
        for field, value in ((start_field, start), (end_field, end)):
            try:
                Validity.date_mysql(value)
            except ValidationError as exc:
                error.add_errors({field: [exc.message]})

        if error.errors:
            raise error

        check_date_range(str(start), str(end), self.min, self.max, self.ordered)
