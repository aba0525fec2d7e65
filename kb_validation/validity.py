"""
Validity: the namespace of plain validation functions.

Every function takes the value first, then any arguments, and raises
ValidationError when the value is not acceptable. The rule classes in
kb_validation.rules delegate their checks here, so both the rules engine and
the callable-based front doors (legacy positional rulesets, attribute tags)
share one set of messages.

Functions are looked up by rule name with resolve_callable(), which accepts
the camelCase names used in rulesets ('positiveInt', 'dateMySQL') as well as
the snake_case method names.
"""

import re
from datetime import date, datetime
from typing import Any, Callable, List, Optional, Sequence

from .errors import RuleConfigError, ValidationError
from .values import is_empty, is_numeric, snake_case, to_number, to_text

_EMAIL_RE = re.compile(r"[^@]+@[^@.]+\.[^@]+", re.IGNORECASE)
_EMAIL_DOUBLES_RE = re.compile(r"[@.][@.]")
_DATE_RE = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")
_TIME_RE = re.compile(r"([0-9]{2}):([0-9]{2}):([0-9]{2})")
_DATETIME_RE = re.compile(r"([0-9]{4}-[0-9]{2}-[0-9]{2}) ([0-9]{2}:[0-9]{2}:[0-9]{2})")
_IPV4_RE = re.compile(r"[0-9]+(?:\.[0-9]+){3}")
_MASK_RE = re.compile(r"[0-9]{1,2}")

# Punctuation allowed in prose, besides letters, numbers and spaces.
PROSE_PUNCTUATION = set("-'\"/!?@#$%&():;.,")

MAX_PHONE_DIGITS = 15


class Validity:
    """Static validation helpers, resolvable by rule name."""

    # Rule names that don't snake_case to their method name.
    ALIASES = {
        "dateMySQL": "date_mysql",
        "timeMySQL": "time_mysql",
        "datetimeMySQL": "datetime_mysql",
    }

    @staticmethod
    def length(val, min_length=0, max_length=None):
        """Checks the length of a string is within an allowed range."""
        size = len(to_text(val))
        if size < min_length:
            raise ValidationError(f"Shorter than minimum allowed length of {min_length}")
        if max_length is not None and size > max_length:
            raise ValidationError(f"Longer than maximum allowed length of {max_length}")

    @staticmethod
    def email(val):
        """Validate an email address, loosely."""
        text = to_text(val)
        if not _EMAIL_RE.fullmatch(text) or _EMAIL_DOUBLES_RE.search(text):
            raise ValidationError("Invalid email address")

    @staticmethod
    def password(val, min_length=8):
        """Validate password by length and the types of characters used."""
        problems = password_problems(val, min_length)
        if problems:
            raise ValidationError(", ".join(problems))

    @staticmethod
    def phone(val, min_digits=8):
        """
        Checks if a phone number is valid.

        A leading +country code and a parenthesised area code are allowed,
        digits may be separated by spaces, dashes, dots or slashes.
        """
        min_digits = int(min_digits or 0)
        if min_digits <= 0:
            min_digits = 8

        text = to_text(val)
        clean = re.sub(r"^\+[0-9]+ *", "", text)
        clean = re.sub(r"^\(([0-9]+(?: [0-9]+)*)\)", r"\1", clean)

        if re.search(r"[^\- 0-9/.]", clean):
            if re.search(r"[+()]", clean):
                raise ValidationError("Invalid format")
            raise ValidationError("Contains invalid characters")

        digits = len(re.sub(r"[^0-9]", "", text))
        if digits < min_digits:
            raise ValidationError(f"Must contain at least {min_digits} digits")
        if digits > MAX_PHONE_DIGITS:
            raise ValidationError(f"Cannot contain more than {MAX_PHONE_DIGITS} digits")

    @staticmethod
    def positive_int(val):
        """Checks if a value is a positive whole number."""
        text = to_text(val)
        if re.search(r"[^0-9]", text):
            raise ValidationError("Value must be a whole number that is greater than zero")
        if not text or int(text) <= 0:
            raise ValidationError("Value must be greater than zero")

    @staticmethod
    def prose_text(val):
        """Letters, numbers, spaces and common punctuation only."""
        for char in to_text(val):
            if char.isalpha() or char.isnumeric() or char == " ":
                continue
            if char not in PROSE_PUNCTUATION:
                raise ValidationError("Non prose characters found")

    @staticmethod
    def date_mysql(val):
        """Checks if a value is a date in MySQL format (YYYY-MM-DD)."""
        match = _DATE_RE.fullmatch(to_text(val))
        if not match:
            raise ValidationError("Invalid date format")

        year, month, day = (int(part) for part in match.groups())
        if year < 1900 or year > 2100:
            raise ValidationError("Year is outside of range of 1900 to 2100")
        if month < 1 or month > 12:
            raise ValidationError("Month is outside of range of 1 to 12")
        if day < 1 or day > 31:
            raise ValidationError("Day is outside of range of 1 to 31")

    @staticmethod
    def time_mysql(val):
        """Checks if a value is a time in MySQL format (HH:MM:SS)."""
        match = _TIME_RE.fullmatch(to_text(val))
        if not match:
            raise ValidationError("Invalid time format")

        hour, minute, second = (int(part) for part in match.groups())
        if hour > 23:
            raise ValidationError("Hour is outside of range of 0 to 23")
        if minute > 59:
            raise ValidationError("Minute is outside of range of 0 to 59")
        if second > 59:
            raise ValidationError("Second is outside of range of 0 to 59")

    @staticmethod
    def datetime_mysql(val):
        """Checks if a value is a datetime in MySQL format (YYYY-MM-DD HH:MM:SS)."""
        match = _DATETIME_RE.fullmatch(to_text(val))
        if not match:
            raise ValidationError("Invalid datetime format")

        Validity.date_mysql(match.group(1))
        Validity.time_mysql(match.group(2))

    @staticmethod
    def one_required(vals):
        """At least one value must be specified (e.g. one of email/phone)."""
        if not any(not is_empty(val) for val in vals):
            raise ValidationError("At least one of these must be provided")

    @staticmethod
    def all_match(vals):
        """All values must match (e.g. password and password confirmation)."""
        if len({_identity(val) for val in vals}) > 1:
            raise ValidationError("Provided values do not match")

    @staticmethod
    def all_unique(vals):
        """All values must be different (e.g. home and work phone)."""
        keys = [_identity(val) for val in vals]
        if len(set(keys)) != len(keys):
            raise ValidationError("Provided values must not be the same")

    @staticmethod
    def in_array(val, allowed):
        """Checks a value is one of the allowed values."""
        if not any(loose_equals(val, option) for option in allowed):
            raise ValidationError("Invalid value")

    @staticmethod
    def all_in_array(val, allowed):
        """Checks every item of a list is one of the allowed values."""
        if not isinstance(val, (list, tuple, set, frozenset)):
            raise ValidationError("Invalid value")

        options = {to_text(option) for option in allowed}
        if any(to_text(item) not in options for item in val):
            raise ValidationError("Invalid value")

    @staticmethod
    def numeric(val):
        """Checks that a value is a number, integral or decimal."""
        if not is_numeric(val):
            raise ValidationError("Value must be a number")

    @staticmethod
    def binary(val):
        """Checks that a value is exactly '1' or '0'."""
        if isinstance(val, bool):
            raise ValidationError('Value must be a "1" or "0"')
        if val not in ("1", 1, "0", 0) or isinstance(val, float):
            raise ValidationError('Value must be a "1" or "0"')

    @staticmethod
    def range(val, min_value, max_value):
        """Checks that a value is numeric and within an inclusive range."""
        Validity.numeric(val)

        number = to_number(val)
        if number < min_value or number > max_value:
            raise ValidationError(
                f"Value must be no less than {min_value} and no greater than {max_value}"
            )

    @staticmethod
    def date_range(vals, min_date=None, max_date=None, enforce_ordering=True):
        """
        Checks that a (start, end) pair of MySQL dates is a valid range.

        Raises:
            RuleConfigError: If vals doesn't hold exactly two dates
            ValidationError: If either date or the range is invalid
        """
        if len(vals) != 2:
            raise RuleConfigError(
                "Incorrect number of fields. A date range must only contain "
                "two dates: a start and an end date."
            )

        start, end = vals
        Validity.date_mysql(start)
        Validity.date_mysql(end)
        check_date_range(start, end, min_date, max_date, enforce_ordering)

    @staticmethod
    def regex(val, pattern):
        """Checks that a value matches a regular expression."""
        if not re.search(pattern, to_text(val)):
            raise ValidationError("Incorrect format")

    @staticmethod
    def ipv4_addr(val):
        """Checks that a value is an IPv4 address."""
        text = to_text(val)
        if not _IPV4_RE.fullmatch(text):
            raise ValidationError("Invalid IP address")
        if any(int(part) > 255 for part in text.split(".")):
            raise ValidationError("Invalid IP address")

    @staticmethod
    def ipv4_cidr(val):
        """Checks that a value is an IPv4 CIDR block."""
        text = to_text(val)
        if "/" not in text:
            raise ValidationError("Invalid CIDR block")

        address, mask = text.split("/", 1)
        Validity.ipv4_addr(address)

        if not _MASK_RE.fullmatch(mask) or int(mask) > 32:
            raise ValidationError("Invalid network mask")

    @staticmethod
    def ipv4_addr_or_cidr(val):
        """Checks that a value is an IPv4 address or CIDR block."""
        if "/" in to_text(val):
            Validity.ipv4_cidr(val)
        else:
            Validity.ipv4_addr(val)


def password_problems(val: Any, min_length: int = 8) -> List[str]:
    """List what's wrong with a password, empty if nothing."""
    text = to_text(val)
    problems = []

    if len(text) < min_length:
        problems.append(f"Must be at least {min_length} characters long")
    if not re.search(r"[a-z]", text):
        problems.append("Must contain a lowercase letter")
    if not re.search(r"[A-Z]", text):
        problems.append("Must contain an uppercase letter")
    if not re.search(r"[0-9]", text):
        problems.append("Must contain a number")

    return problems


def date_key(value: Any) -> str:
    """
    Normalise a date bound to YYYY-MM-DD for comparison.

    Accepts date/datetime objects and ISO 8601 strings.

    Raises:
        RuleConfigError: If the value can't be read as a date
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    text = to_text(value).strip()
    if _DATE_RE.fullmatch(text):
        return text
    try:
        return datetime.fromisoformat(text).date().isoformat()
    except ValueError:
        raise RuleConfigError(f"Invalid date: {value!r}") from None


def check_date_range(start, end, min_date=None, max_date=None, ordered=True) -> None:
    """
    Compare two valid MySQL dates against each other and optional bounds.

    MySQL dates are fixed width, so string order is date order.
    """
    if ordered and start > end:
        raise ValidationError(
            f"The start date, {start}, cannot be later than the end date {end}"
        )

    if min_date and start < date_key(min_date):
        raise ValidationError(
            f"The start of this date range is outside the minimum of {min_date}"
        )

    if max_date and end > date_key(max_date):
        raise ValidationError(
            f"The end of this date range is outside the maximum of {max_date}"
        )


def loose_equals(left: Any, right: Any) -> bool:
    """Equality where '1' == 1 == 1.0, as form values compare."""
    if is_numeric(left) and is_numeric(right):
        return to_number(left) == to_number(right)
    return left == right


def _identity(val: Any) -> str:
    if isinstance(val, (list, tuple, dict, set, frozenset)):
        return repr(val)
    return to_text(val)


def resolve_callable(namespace: Any, name: str) -> Optional[Callable]:
    """
    Find a validation function by rule name on a namespace.

    Tries the name as given, the namespace's ALIASES, then the snake_case
    form of the name.

    Returns:
        The callable, or None if the namespace has no such function
    """
    if not isinstance(name, str) or not name:
        return None

    aliases = getattr(namespace, "ALIASES", None) or {}
    candidates: Sequence[str] = (name, aliases.get(name, ""), snake_case(name))

    for candidate in candidates:
        if not candidate or candidate.startswith("_"):
            continue
        func = getattr(namespace, candidate, None)
        if callable(func) and not isinstance(func, type):
            return func

    return None

