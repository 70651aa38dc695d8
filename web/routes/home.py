"""
web/routes/home.py -- Home page and the deliberate error route.

Routes:
  GET /               -- home page
  GET /error/trigger  -- raises on purpose; exercises the server error page
"""

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from web.templating import render

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
def home(request: Request) -> HTMLResponse:
    return render(request, "index.html", {"title": "Home"})


@router.get("/error/trigger", response_class=HTMLResponse)
def trigger_error(request: Request) -> HTMLResponse:
    raise RuntimeError("Intentional server error triggered from /error/trigger")
