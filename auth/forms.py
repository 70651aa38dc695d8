"""
auth/forms.py -- Validation rule sets and typed inputs for account forms.

Each form has a rule set (consumed by core.validation.validate) and, where the
controller needs typed data after validation, a small dataclass built from the
already-validated raw values.

Password complexity: at least 8 characters with an upper-case letter, a digit
and a special character.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

from core.validation import Email, Matches, MaxBytes, MaxLength, MinLength, Required

_NAME_PATTERN = r"^[A-Za-z][A-Za-z '\-]*$"

PASSWORD_REQUIREMENTS = (
    "Passwords must be at least 8 characters and contain at least 1 capital letter, "
    "1 number and 1 special character."
)


def _password_rules(required: bool = True) -> list:
    rules = [Required("Password is required.")] if required else []
    rules += [
        MinLength(8, PASSWORD_REQUIREMENTS),
        MaxBytes(72, "Password must be 72 bytes or fewer. Accented letters and symbols count as more than one."),
        Matches(r"[A-Z]", PASSWORD_REQUIREMENTS),
        Matches(r"\d", PASSWORD_REQUIREMENTS),
        Matches(r"[^A-Za-z0-9]", PASSWORD_REQUIREMENTS),
    ]
    return rules


def _identity_rules() -> dict:
    return {
        "account_firstname": [
            Required("Please provide a first name."),
            MaxLength(100, "First name must be 100 characters or fewer."),
            Matches(_NAME_PATTERN, "First name may contain only letters, spaces, apostrophes and hyphens."),
        ],
        "account_lastname": [
            Required("Please provide a last name."),
            MinLength(2, "Last name must be at least 2 characters."),
            MaxLength(100, "Last name must be 100 characters or fewer."),
            Matches(_NAME_PATTERN, "Last name may contain only letters, spaces, apostrophes and hyphens."),
        ],
        "account_email": [
            Required("A valid email is required."),
            MaxLength(255, "Email must be 255 characters or fewer."),
            Email("A valid email is required."),
        ],
    }


def registration_rules() -> dict:
    rules = _identity_rules()
    rules["account_password"] = _password_rules()
    return rules


def login_rules() -> dict:
    return {
        "account_email": [Required("A valid email is required."), Email("A valid email is required.")],
        "account_password": [Required("Password is required.")],
    }


def account_update_rules() -> dict:
    return _identity_rules()


def password_change_rules() -> dict:
    # Emptiness is handled by the controller (notice, no change).
    return {"account_password": _password_rules(required=False)}


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


@dataclass(frozen=True)
class RegistrationInput:
    account_firstname: str
    account_lastname: str
    account_email: str
    account_password: str

    @classmethod
    def from_form(cls, data: Mapping[str, Optional[str]]) -> "RegistrationInput":
        return cls(
            account_firstname=(data.get("account_firstname") or "").strip(),
            account_lastname=(data.get("account_lastname") or "").strip(),
            account_email=normalize_email(data.get("account_email")),
            account_password=data.get("account_password") or "",
        )


@dataclass(frozen=True)
class AccountUpdateInput:
    account_id: int
    account_firstname: str
    account_lastname: str
    account_email: str

    @classmethod
    def from_form(cls, account_id: int, data: Mapping[str, Optional[str]]) -> "AccountUpdateInput":
        return cls(
            account_id=account_id,
            account_firstname=(data.get("account_firstname") or "").strip(),
            account_lastname=(data.get("account_lastname") or "").strip(),
            account_email=normalize_email(data.get("account_email")),
        )
