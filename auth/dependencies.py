"""
auth/dependencies.py -- Request gates for authentication and authorization.

Three gates, each usable on its own:

  check_jwt_token()          Token gate. Runs for every request (installed as
                             HTTP middleware in api/main.py). No cookie: the
                             request stays anonymous. Valid cookie: claims are
                             attached to the per-request context. Bad cookie:
                             cookie cleared, redirect to the login page.

  check_login()              Login-required gate. Needs the context the token
                             gate populated; otherwise redirects to login.

  check_employee_or_admin()  Role-required gate. Re-verifies the cookie itself
                             instead of trusting the token gate, then checks
                             the role claim.

Every gate returns None to let the request through or a RedirectResponse to
short-circuit it. Route handlers attach gates with:
    if redirect := check_login(request):
        return redirect

Layer rule: no imports from web/ or inventory/. FastAPI/Starlette imports are
allowed because these gates sit in the request pipeline.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Request
from fastapi.responses import RedirectResponse

from auth.models import STAFF_TYPES
from auth.tokens import TokenError, TokenExpiredError, clear_auth_cookie, decode_access_token
from core.config import get_settings
from core.flash import flash

logger = logging.getLogger("dealership.auth")

LOGIN_PATH = "/account/login"


@dataclass
class RequestContext:
    """Everything the gates learned about the caller, scoped to one request.

    Created fresh by the token gate on every request and stored on
    request.state.ctx. Never shared between requests.
    """

    claims: dict = field(default_factory=dict)
    logged_in: bool = False

    @property
    def account_id(self) -> Optional[int]:
        return self.claims.get("account_id")

    @property
    def account_type(self) -> Optional[str]:
        return self.claims.get("account_type")

    @property
    def firstname(self) -> str:
        return self.claims.get("account_firstname", "")

    @property
    def is_staff(self) -> bool:
        return self.account_type in STAFF_TYPES


def get_context(request: Request) -> RequestContext:
    """Return the request's context, creating an anonymous one if no gate ran."""
    ctx = getattr(request.state, "ctx", None)
    if ctx is None:
        ctx = RequestContext()
        request.state.ctx = ctx
    return ctx


def _auth_cookie(request: Request) -> Optional[str]:
    return request.cookies.get(get_settings().auth_cookie_name) or None


def _redirect_to_login() -> RedirectResponse:
    return RedirectResponse(LOGIN_PATH, status_code=302)


# ---------------------------------------------------------------------------
# Token gate
# ---------------------------------------------------------------------------


def check_jwt_token(request: Request, redirect_on_failure: bool = True) -> Optional[RedirectResponse]:
    """Populate request.state.ctx from the jwt cookie.

    Anonymous requests pass untouched -- plenty of pages do not need a login.
    A cookie that fails verification for any reason gets the same treatment:
    notice, cookie deletion, redirect to login. With redirect_on_failure=False
    (JSON endpoints, which cannot follow an HTML login redirect) a bad cookie
    is ignored and the request continues anonymous.
    """
    ctx = RequestContext()
    request.state.ctx = ctx

    token = _auth_cookie(request)
    if token is None:
        return None

    try:
        claims = decode_access_token(token)
    except TokenError as exc:
        logger.info("Rejected auth cookie on %s: %s", request.url.path, exc)
        if not redirect_on_failure:
            return None
        flash(request, "Please log in.")
        resp = _redirect_to_login()
        clear_auth_cookie(resp)
        return resp

    ctx.claims = claims
    ctx.logged_in = True
    return None


# ---------------------------------------------------------------------------
# Login-required gate
# ---------------------------------------------------------------------------


def check_login(request: Request) -> Optional[RedirectResponse]:
    if get_context(request).logged_in:
        return None
    flash(request, "Please log in.")
    return _redirect_to_login()


# ---------------------------------------------------------------------------
# Role-required gate
# ---------------------------------------------------------------------------


def check_employee_or_admin(request: Request) -> Optional[RedirectResponse]:
    """Allow only Employee and Admin tokens.

    Verifies the cookie independently of the token gate so the gate can be
    attached to any route on its own. The redirect for an insufficient role
    goes home and does not say which role would have been enough.
    """
    token = _auth_cookie(request)
    if token is None:
        flash(request, "You must be logged in to access this page.")
        return _redirect_to_login()

    try:
        claims = decode_access_token(token)
    except TokenError as exc:
        if isinstance(exc, TokenExpiredError):
            logger.info("Expired token on staff route %s", request.url.path)
        flash(request, "Session expired. Please log in again.")
        resp = _redirect_to_login()
        clear_auth_cookie(resp)
        return resp

    if claims.get("account_type") not in STAFF_TYPES:
        flash(request, "You do not have permission to access that page.")
        return RedirectResponse("/", status_code=302)

    ctx = get_context(request)
    ctx.claims = claims
    ctx.logged_in = True
    return None
