"""
web/errors.py -- Friendly HTML error pages layered over the API's JSON handlers.

api/main.py registers JSON error handlers. install_error_pages() wraps them:
paths that serve structured data keep the JSON envelope, every other path
gets a rendered page.

  404 / unknown route     -> errors/not_found.html
  422 request validation  -> errors/not_found.html with status 400
  anything unexpected     -> errors/server_error.html (500, generic text)

The raw exception is logged, never shown.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.main import JSON_PATH_PREFIXES
from web.templating import render

logger = logging.getLogger("dealership.web")


def _wants_json(request: Request) -> bool:
    return request.url.path.startswith(JSON_PATH_PREFIXES)


def install_error_pages(app: FastAPI) -> None:
    """Replace the app's error handlers with path-aware ones.

    Must run after api/main.py has registered its JSON handlers; those are
    captured here and still used for JSON paths.
    """
    json_handlers = dict(app.exception_handlers)

    async def http_error_page(request: Request, exc: StarletteHTTPException):
        if _wants_json(request):
            return await json_handlers[StarletteHTTPException](request, exc)
        if exc.status_code == 404:
            return render(
                request,
                "errors/not_found.html",
                {"title": "Page not found", "message": "Sorry, we appear to have lost that page."},
                status_code=404,
            )
        return render(
            request,
            "errors/not_found.html",
            {"title": "Request failed", "message": "Sorry, that request could not be completed."},
            status_code=exc.status_code,
        )

    async def validation_error_page(request: Request, exc: RequestValidationError):
        if _wants_json(request):
            return await json_handlers[RequestValidationError](request, exc)
        return render(
            request,
            "errors/not_found.html",
            {"title": "Invalid request", "message": "Sorry, that address is not valid."},
            status_code=400,
        )

    async def server_error_page(request: Request, exc: Exception):
        if _wants_json(request):
            return await json_handlers[Exception](request, exc)
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return render(
            request,
            "errors/server_error.html",
            {"title": "Server Error", "message": "Oh no! There was a crash. Maybe try a different route?"},
            status_code=500,
            load_nav=False,
        )

    app.add_exception_handler(StarletteHTTPException, http_error_page)
    app.add_exception_handler(RequestValidationError, validation_error_page)
    app.add_exception_handler(Exception, server_error_page)
