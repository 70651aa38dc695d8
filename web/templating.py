"""
web/templating.py -- Shared Jinja2 environment and the render() helper.

Every page needs the same shared data: the navigation classifications, the
flash notices queued by the previous request, and the caller's context
(logged in? which role?). render() loads that once per response so route
handlers only pass what is specific to their page.

HTML fragments (navigation list, classification grid, vehicle detail,
classification <select>) are Jinja2 partials under templates/partials/ and
consume the same fields the store returns.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from auth.dependencies import get_context
from core.flash import pop_flashed_messages
from core.formatter import format_number, format_usd
from core.validation import FieldError
from inventory.store import InventoryStore

logger = logging.getLogger("dealership.web")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
templates.env.filters["usd"] = format_usd
templates.env.filters["number"] = format_number


def render(
    request: Request,
    template: str,
    context: Optional[dict] = None,
    status_code: int = 200,
    load_nav: bool = True,
) -> HTMLResponse:
    """Render a full page with navigation, flash notices and caller context.

    load_nav=False skips the store round-trip; the server error page uses it
    so a failing store cannot break the page that reports the failure.
    """
    errors: list[FieldError] = (context or {}).get("errors") or []
    page = {
        "nav_classifications": [],
        "messages": pop_flashed_messages(request),
        "ctx": get_context(request),
        "errors": errors,
        "error_fields": {e.field for e in errors},
        "form_data": {},
    }
    if load_nav:
        store: InventoryStore = request.app.state.inventory
        page["nav_classifications"] = store.list_classifications()
    page.update(context or {})
    return templates.TemplateResponse(request, template, page, status_code=status_code)
