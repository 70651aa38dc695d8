"""
core/flash.py -- One-time flash notices carried in the signed session cookie.

A flash notice is written while handling one request and shown on the next
rendered page, then discarded. Notices live in request.session (Starlette
SessionMiddleware), so nothing is shared between requests in process memory.

Usage:
    flash(request, "Please log in.")
    messages = pop_flashed_messages(request)   # [("notice", "Please log in.")]
"""

from __future__ import annotations

from starlette.requests import Request

_SESSION_KEY = "_flashes"


def flash(request: Request, message: str, category: str = "notice") -> None:
    """Queue a notice for the next rendered page."""
    queued = list(request.session.get(_SESSION_KEY, []))
    queued.append([category, message])
    request.session[_SESSION_KEY] = queued


def pop_flashed_messages(request: Request) -> list[tuple[str, str]]:
    """Return and clear every queued notice, oldest first.

    Returns [] outside the session middleware (e.g. the server error page,
    which is rendered by the outermost error middleware).
    """
    if "session" not in request.scope:
        return []
    queued = request.session.pop(_SESSION_KEY, [])
    return [(category, message) for category, message in queued]
