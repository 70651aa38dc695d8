"""
core/validation.py -- Declarative per-field form validation.

A rule set maps a form field name to an ordered list of rules. validate()
walks the rule set in order and reports at most one FieldError per field --
the first rule that field fails. The resulting list keeps rule-set order so
forms can show messages top to bottom in the same order as their inputs.

Only Required looks at empty values. Every other rule passes an empty value,
which makes a field optional simply by leaving Required out of its list.

Usage:
    rules = {
        "classification_name": [
            Required("Classification name is required."),
            Matches(r"^[A-Za-z0-9]+$", "No spaces or special characters."),
        ],
    }
    errors = validate(form_data, rules)   # [] when the form is valid
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Optional, Union

# Pragmatic format check. Deliverability is the mail server's problem.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$"


@dataclass(frozen=True)
class FieldError:
    """A single validation failure scoped to one form field."""

    field: str
    message: str


class Rule(ABC):
    """Base class. Subclasses implement passes() for non-empty values."""

    def __init__(self, message: str) -> None:
        self.message = message

    def __call__(self, value: str) -> bool:
        if value == "":
            return True
        return self.passes(value)

    @abstractmethod
    def passes(self, value: str) -> bool: ...


class Required(Rule):
    def __call__(self, value: str) -> bool:
        return self.passes(value)

    def passes(self, value: str) -> bool:
        return value != ""


class MinLength(Rule):
    def __init__(self, length: int, message: str) -> None:
        super().__init__(message)
        self.length = length

    def passes(self, value: str) -> bool:
        return len(value) >= self.length


class MaxLength(Rule):
    def __init__(self, length: int, message: str) -> None:
        super().__init__(message)
        self.length = length

    def passes(self, value: str) -> bool:
        return len(value) <= self.length


class MaxBytes(Rule):
    """Upper bound on the UTF-8 encoded length, for values handed to byte-limited APIs."""

    def __init__(self, length: int, message: str) -> None:
        super().__init__(message)
        self.length = length

    def passes(self, value: str) -> bool:
        return len(value.encode("utf-8")) <= self.length


class Matches(Rule):
    """Passes when the regex finds a match (use ^...$ for a full match)."""

    def __init__(self, pattern: str, message: str) -> None:
        super().__init__(message)
        self.pattern = re.compile(pattern)

    def passes(self, value: str) -> bool:
        return self.pattern.search(value) is not None


class Email(Matches):
    def __init__(self, message: str) -> None:
        super().__init__(EMAIL_PATTERN, message)


class IntRange(Rule):
    """Passes for base-10 integers within [minimum, maximum].

    Either bound may be a zero-argument callable so that bounds such as
    "next calendar year" are evaluated at validation time, not import time.
    """

    def __init__(
        self,
        message: str,
        minimum: Union[int, Callable[[], int], None] = None,
        maximum: Union[int, Callable[[], int], None] = None,
    ) -> None:
        super().__init__(message)
        self.minimum = minimum
        self.maximum = maximum

    def passes(self, value: str) -> bool:
        try:
            number = int(value)
        except ValueError:
            return False
        return _within(number, _resolve(self.minimum), _resolve(self.maximum))


class FloatRange(Rule):
    def __init__(self, message: str, minimum: Optional[float] = None, maximum: Optional[float] = None) -> None:
        super().__init__(message)
        self.minimum = minimum
        self.maximum = maximum

    def passes(self, value: str) -> bool:
        try:
            number = float(value)
        except ValueError:
            return False
        if number != number or number in (float("inf"), float("-inf")):
            return False
        return _within(number, self.minimum, self.maximum)


class OneOf(Rule):
    """Passes when the value is one of an allowed set (compared as strings)."""

    def __init__(self, allowed: Iterable[object], message: str) -> None:
        super().__init__(message)
        self.allowed = {str(a) for a in allowed}

    def passes(self, value: str) -> bool:
        return value in self.allowed


def _resolve(bound):
    return bound() if callable(bound) else bound


def _within(number, minimum, maximum) -> bool:
    if minimum is not None and number < minimum:
        return False
    if maximum is not None and number > maximum:
        return False
    return True


def validate(data: Mapping[str, Optional[str]], rules: Mapping[str, Sequence[Rule]]) -> list[FieldError]:
    """Apply a rule set to submitted form data and return the ordered failures.

    Values are stripped before checking. Missing keys are treated as empty.
    """
    errors: list[FieldError] = []
    for field, field_rules in rules.items():
        value = (data.get(field) or "").strip()
        for rule in field_rules:
            if not rule(value):
                errors.append(FieldError(field=field, message=rule.message))
                break
    return errors
