"""
auth/tokens.py -- JWT, password hashing, and auth cookie utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry a
       snapshot of the account's public fields (id, names, email, type) plus
       iat/exp. The password hash never enters the payload. Tokens are not
       stored server-side: signature + expiry decide validity. Because nothing
       re-reads the account on each request, a role change takes effect only
       at the next login.

  Verification raises TokenExpiredError or TokenInvalidError. Both subclass
       TokenError so gates can treat "expired" and "forged" the same way.

  Passwords: bcrypt with a fixed cost factor of 10. The _DUMMY_HASH constant
       enables timing equalization in authenticate_account() so response time
       does not reveal whether an email is registered.

Layer rule: no imports from api/, web/, or inventory/. Import from core/ is
allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import Account
    from auth.store import AccountStore

logger = logging.getLogger("dealership.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"
BCRYPT_ROUNDS = 10

# Claims copied from the account into every token. Anything else on the
# account (notably account_password) stays out.
_CLAIM_FIELDS = ("account_id", "account_firstname", "account_lastname", "account_email", "account_type")


class TokenError(Exception):
    """Base class for every reason a token is not accepted."""


class TokenExpiredError(TokenError):
    pass


class TokenInvalidError(TokenError):
    """Malformed token, bad signature, or missing identity claims."""


# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password (fresh salt per call)."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Computed once at module load. Always run bcrypt, even when the email is
# unknown, so both failure paths cost the same.
_DUMMY_HASH: str = hash_password("dealership_timing_dummy")


def authenticate_account(store: AccountStore, email: str, password: str) -> Account | None:
    """Check an email/password pair with timing equalization.

    Returns a copy of the account with account_password stripped, or None.
    Unknown email and wrong password are indistinguishable to the caller.
    """
    account = store.get_by_email(email)
    if account is None or not account.account_password:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, account.account_password):
        return None
    return replace(account, account_password=None)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def account_claims(account: Account) -> dict:
    """Return the public identity fields that go into a token."""
    return {name: getattr(account, name) for name in _CLAIM_FIELDS}


def create_access_token(account: Account, expire_seconds: int = 0, now: datetime | None = None) -> str:
    """Encode a signed JWT for the account.

    Args:
        account:        The authenticated account. Its password hash is ignored.
        expire_seconds: Validity window. 0 (default) uses Settings.token_expire_seconds.
        now:            Issue time; defaults to the current UTC time. Tests pin it.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    issued_at = int((now or datetime.now(timezone.utc)).timestamp())
    payload = account_claims(account)
    payload.update(sub=account.account_email, iat=issued_at, exp=issued_at + duration)
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str, now: datetime | None = None) -> dict:
    """Verify a JWT and return its claims.

    The signature is checked by python-jose; expiry is checked here against
    `now` so the validity window is exact and testable. A token whose exp
    equals the current second is still valid.

    Raises:
        TokenInvalidError: malformed token, bad signature, or missing claims.
        TokenExpiredError: signature is good but exp has passed.
    """
    try:
        payload = jwt.decode(
            token,
            _settings.secret_key,
            algorithms=[_ALGORITHM],
            options={"verify_exp": False},
        )
    except JWTError as exc:
        raise TokenInvalidError(str(exc)) from exc

    if "account_id" not in payload or "account_type" not in payload or "exp" not in payload:
        raise TokenInvalidError("token is missing identity claims")

    current = int((now or datetime.now(timezone.utc)).timestamp())
    try:
        expires = int(payload["exp"])
    except (TypeError, ValueError) as exc:
        raise TokenInvalidError("exp claim is not a timestamp") from exc
    if current > expires:
        raise TokenExpiredError("token has expired")
    return payload


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str, expire_seconds: int = 0) -> None:
    """Write the JWT as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie.
    samesite="lax": not sent on cross-site POSTs.
    secure: on everywhere except ENVIRONMENT=development.
    max_age: matches the token TTL so both expire together.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    response.set_cookie(
        _settings.auth_cookie_name,
        value=token,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=duration,
    )


def clear_auth_cookie(response) -> None:
    response.delete_cookie(
        _settings.auth_cookie_name,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
    )
