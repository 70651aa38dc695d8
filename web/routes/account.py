"""
web/routes/account.py -- Account pages: login, registration, profile, favorites.

Routes (mounted under /account):
  GET  /account/                          -- account management (login required)
  GET  /account/login                     -- login form
  POST /account/login                     -- password login; sets jwt cookie
  GET  /account/register                  -- registration form
  POST /account/register                  -- create a Client account
  GET  /account/update/{account_id}       -- profile + password forms (login required)
  POST /account/update/{account_id}       -- update names and email
  GET  /account/update-password           -- redirect to the caller's update page
  POST /account/update-password           -- change password
  GET  /account/logout                    -- clear session and cookie
  GET  /account/favorites                 -- saved vehicles (login required)
  POST /account/favorites/{inv_id}        -- save a vehicle (idempotent)
  POST /account/favorites/{inv_id}/delete -- unsave a vehicle (idempotent)

Registration route order: /update-password is registered before
/update/{account_id} only for readability; the paths do not overlap.

Security:
  Login returns one message for an unknown email and for a wrong password,
  and authenticate_account() equalizes their timing.
  Profile routes accept the caller's own account id; Admins may edit any.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.exc import IntegrityError

from auth.dependencies import RequestContext, check_login, get_context
from auth.forms import (
    AccountUpdateInput,
    RegistrationInput,
    account_update_rules,
    login_rules,
    normalize_email,
    password_change_rules,
    registration_rules,
)
from auth.models import ADMIN, CLIENT, Account
from auth.store import AccountStore
from auth.tokens import (
    authenticate_account,
    clear_auth_cookie,
    create_access_token,
    hash_password,
    set_auth_cookie,
)
from core.flash import flash
from core.validation import FieldError, validate
from inventory.store import InventoryStore
from web.templating import render

logger = logging.getLogger("dealership.web.account")

router = APIRouter()

_BAD_CREDENTIALS = "Please check your credentials and try again."


def _accounts(request: Request) -> AccountStore:
    return request.app.state.accounts


def _identity_form(
    account_firstname: Optional[str], account_lastname: Optional[str], account_email: Optional[str]
) -> dict:
    return {
        "account_firstname": account_firstname or "",
        "account_lastname": account_lastname or "",
        "account_email": account_email or "",
    }


def _can_edit(ctx: RequestContext, account_id: int) -> bool:
    return ctx.account_id == account_id or ctx.account_type == ADMIN


def _forbidden() -> RedirectResponse:
    return RedirectResponse("/account/", status_code=303)


# ---------------------------------------------------------------------------
# GET /account/ -- management page
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
def account_home(request: Request) -> HTMLResponse:
    if redirect := check_login(request):
        return redirect
    return render(request, "account/account.html", {"title": "Account Management"})


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


@router.get("/login", response_class=HTMLResponse)
def login_form(request: Request) -> HTMLResponse:
    if get_context(request).logged_in:
        return RedirectResponse("/account/", status_code=302)
    return render(request, "account/login.html", {"title": "Login"})


@router.post("/login", response_class=HTMLResponse)
def login_post(
    request: Request,
    account_email: Optional[str] = Form(default=None),
    account_password: Optional[str] = Form(default=None),
) -> HTMLResponse:
    """Handle the login form.

    On success the password hash is dropped from the account before its
    claims go into the token; nothing about the account is kept server-side.
    """
    form_data = {"account_email": account_email or ""}
    errors = validate({"account_email": account_email, "account_password": account_password}, login_rules())
    if errors:
        return render(
            request,
            "account/login.html",
            {"title": "Login", "errors": errors, "form_data": form_data},
            status_code=400,
        )

    account = authenticate_account(_accounts(request), normalize_email(account_email), account_password or "")
    if account is None:
        flash(request, _BAD_CREDENTIALS)
        return render(request, "account/login.html", {"title": "Login", "form_data": form_data}, status_code=400)

    token = create_access_token(account)
    logger.info("Login succeeded for account %s", account.account_id)
    resp = RedirectResponse("/account/", status_code=302)
    set_auth_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


@router.get("/register", response_class=HTMLResponse)
def register_form(request: Request) -> HTMLResponse:
    return render(request, "account/register.html", {"title": "Register"})


@router.post("/register", response_class=HTMLResponse)
def register_post(
    request: Request,
    account_firstname: Optional[str] = Form(default=None),
    account_lastname: Optional[str] = Form(default=None),
    account_email: Optional[str] = Form(default=None),
    account_password: Optional[str] = Form(default=None),
) -> HTMLResponse:
    """Create a Client account.

    The password is never echoed back: every re-render below passes only the
    name and email fields.
    """
    form_data = _identity_form(account_firstname, account_lastname, account_email)
    raw = dict(form_data, account_password=account_password or "")
    errors = validate(raw, registration_rules())
    if errors:
        return render(
            request,
            "account/register.html",
            {"title": "Register", "errors": errors, "form_data": form_data},
            status_code=400,
        )

    data = RegistrationInput.from_form(raw)
    try:
        hashed = hash_password(data.account_password)
    except Exception:
        logger.exception("Password hashing failed during registration")
        flash(request, "Sorry, there was an error processing the registration.")
        return render(
            request, "account/register.html", {"title": "Register", "form_data": form_data}, status_code=500
        )

    try:
        _accounts(request).create_account(
            Account(
                account_firstname=data.account_firstname,
                account_lastname=data.account_lastname,
                account_email=data.account_email,
                account_password=hashed,
                account_type=CLIENT,
            )
        )
    except IntegrityError:
        logger.info("Registration rejected by store: email already registered")
        flash(request, "Sorry, the registration failed. That email may already be registered.")
        return render(
            request, "account/register.html", {"title": "Register", "form_data": form_data}, status_code=409
        )

    flash(request, f"Congratulations, you're registered {data.account_firstname}. Please log in.")
    return render(
        request,
        "account/login.html",
        {"title": "Login", "form_data": {"account_email": data.account_email}},
        status_code=201,
    )


# ---------------------------------------------------------------------------
# Profile update
# ---------------------------------------------------------------------------


def _render_update(
    request: Request,
    account_id: int,
    form_data: dict,
    errors: Optional[list] = None,
    status_code: int = 200,
) -> HTMLResponse:
    return render(
        request,
        "account/update.html",
        {"title": "Update Account", "account_id": account_id, "form_data": form_data, "errors": errors or []},
        status_code=status_code,
    )


@router.get("/update/{account_id}", response_class=HTMLResponse)
def update_form(request: Request, account_id: int) -> HTMLResponse:
    if redirect := check_login(request):
        return redirect
    if not _can_edit(get_context(request), account_id):
        flash(request, "You do not have permission to access that page.")
        return _forbidden()
    account = _accounts(request).get_by_id(account_id)
    if account is None:
        flash(request, "Account not found.")
        return RedirectResponse("/account/", status_code=303)
    form_data = _identity_form(account.account_firstname, account.account_lastname, account.account_email)
    return _render_update(request, account_id, form_data)


@router.post("/update/{account_id}", response_class=HTMLResponse)
def update_post(
    request: Request,
    account_id: int,
    account_firstname: Optional[str] = Form(default=None),
    account_lastname: Optional[str] = Form(default=None),
    account_email: Optional[str] = Form(default=None),
) -> HTMLResponse:
    """Update names and email.

    An email owned by a different account is rejected before any write. The
    unique constraint still backs this up for concurrent updates. Names shown
    from the current token stay as they were until the next login.
    """
    if redirect := check_login(request):
        return redirect
    if not _can_edit(get_context(request), account_id):
        flash(request, "You do not have permission to access that page.")
        return _forbidden()

    form_data = _identity_form(account_firstname, account_lastname, account_email)
    errors = validate(form_data, account_update_rules())
    if errors:
        return _render_update(request, account_id, form_data, errors, status_code=400)

    data = AccountUpdateInput.from_form(account_id, form_data)
    store = _accounts(request)
    email_in_use = [FieldError(field="account_email", message="Email already in use")]
    existing = store.get_by_email(data.account_email)
    if existing is not None and existing.account_id != account_id:
        return _render_update(request, account_id, form_data, email_in_use, status_code=400)

    try:
        updated = store.update_account(
            account_id, data.account_firstname, data.account_lastname, data.account_email
        )
    except IntegrityError:
        return _render_update(request, account_id, form_data, email_in_use, status_code=409)

    if not updated:
        flash(request, "Failed to update account information.")
        return _render_update(request, account_id, form_data, status_code=500)

    flash(request, "Account information updated successfully.")
    return RedirectResponse("/account/", status_code=303)


# ---------------------------------------------------------------------------
# Password change
# ---------------------------------------------------------------------------


@router.get("/update-password", response_class=HTMLResponse)
def update_password_form(request: Request) -> RedirectResponse:
    if redirect := check_login(request):
        return redirect
    return RedirectResponse(f"/account/update/{get_context(request).account_id}", status_code=302)


@router.post("/update-password", response_class=HTMLResponse)
def update_password_post(
    request: Request,
    account_id: Optional[int] = Form(default=None),
    account_password: Optional[str] = Form(default=None),
) -> HTMLResponse:
    """Change a password. Independent of the name/email update above."""
    if redirect := check_login(request):
        return redirect
    ctx = get_context(request)
    target_id = account_id if account_id is not None else ctx.account_id
    if not _can_edit(ctx, target_id):
        flash(request, "You do not have permission to access that page.")
        return _forbidden()

    if not account_password:
        flash(request, "Please enter a new password to change it.")
        return RedirectResponse(f"/account/update/{target_id}", status_code=303)

    store = _accounts(request)
    errors = validate({"account_password": account_password}, password_change_rules())
    if errors:
        account = store.get_by_id(target_id)
        form_data = (
            _identity_form(account.account_firstname, account.account_lastname, account.account_email)
            if account
            else {}
        )
        return _render_update(request, target_id, form_data, errors, status_code=400)

    try:
        hashed = hash_password(account_password)
    except Exception:
        logger.exception("Password hashing failed during password change")
        flash(request, "Sorry, there was an error processing the password change.")
        return RedirectResponse(f"/account/update/{target_id}", status_code=303)

    if not store.update_password(target_id, hashed):
        flash(request, "Failed to change password.")
        return RedirectResponse("/account/", status_code=303)

    flash(request, "Password changed successfully.")
    return RedirectResponse("/account/", status_code=303)


# ---------------------------------------------------------------------------
# Logout
# ---------------------------------------------------------------------------


@router.get("/logout")
def logout(request: Request) -> RedirectResponse:
    """End the session: drop session state, delete the cookie, go home."""
    request.session.clear()
    flash(request, "You have been logged out.")
    resp = RedirectResponse("/", status_code=302)
    clear_auth_cookie(resp)
    return resp


# ---------------------------------------------------------------------------
# Favorites
# ---------------------------------------------------------------------------


@router.get("/favorites", response_class=HTMLResponse)
def favorites(request: Request) -> HTMLResponse:
    if redirect := check_login(request):
        return redirect
    inventory: InventoryStore = request.app.state.inventory
    vehicles = inventory.list_favorites(get_context(request).account_id)
    return render(request, "account/favorites.html", {"title": "My Favorites", "vehicles": vehicles})


@router.post("/favorites/{inv_id}")
def favorite_add(request: Request, inv_id: int) -> RedirectResponse:
    if redirect := check_login(request):
        return redirect
    inventory: InventoryStore = request.app.state.inventory
    vehicle = inventory.get_vehicle(inv_id)
    if vehicle is None:
        flash(request, "Sorry, that vehicle is no longer available.")
        return RedirectResponse("/account/favorites", status_code=303)

    if inventory.add_favorite(get_context(request).account_id, inv_id):
        flash(request, f"Saved the {vehicle.inv_year} {vehicle.inv_make} {vehicle.inv_model} to your favorites.")
    else:
        flash(request, "That vehicle is already in your favorites.")
    return RedirectResponse(f"/inv/detail/{inv_id}", status_code=303)


@router.post("/favorites/{inv_id}/delete")
def favorite_remove(request: Request, inv_id: int) -> RedirectResponse:
    if redirect := check_login(request):
        return redirect
    inventory: InventoryStore = request.app.state.inventory
    if inventory.remove_favorite(get_context(request).account_id, inv_id):
        flash(request, "Removed from your favorites.")
    else:
        flash(request, "That vehicle was not in your favorites.")
    return RedirectResponse("/account/favorites", status_code=303)
