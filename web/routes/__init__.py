"""
web/routes -- Server-rendered HTML routes.

Route modules are grouped by area and combined into one router here; asgi.py
includes it after the API routers.
"""

from fastapi import APIRouter

from web.routes import account, home, inventory

router = APIRouter()
router.include_router(home.router)
router.include_router(account.router, prefix="/account", tags=["account"])
router.include_router(inventory.router, prefix="/inv", tags=["inventory"])
