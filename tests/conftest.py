"""
tests/conftest.py -- Shared fixtures for the dealership site tests.

This module provides:
  - stores:      fresh AccountStore + InventoryStore per test
  - seed:        three accounts (one per role) with tokens, classifications, a vehicle
  - web_client:  TestClient over the assembled app, follow_redirects=False
  - crash_client: same app with raise_server_exceptions=False for the 500 page

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. Each test gets its own database name so tests never share rows.

ENVIRONMENT must be set before any core/auth import so get_settings()
auto-generates SECRET_KEY instead of raising ValueError, and so cookies are
not marked Secure (TestClient talks plain http to "testserver").
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# Set before any auth/core import.
os.environ.setdefault("ENVIRONMENT", "development")

import pytest
from fastapi.testclient import TestClient

from asgi import app
from auth.models import ADMIN, CLIENT, EMPLOYEE, Account
from auth.store import AccountStore
from auth.tokens import create_access_token, hash_password
from core.config import get_settings
from inventory.models import Vehicle
from inventory.store import InventoryStore

PASSWORD = "Passw0rd!"


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _memory_url(prefix: str) -> str:
    return f"sqlite:///file:{prefix}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


def _patch_lifespan(accounts: AccountStore, inventory: InventoryStore):
    """Return a lifespan that wires the test stores into app.state."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.accounts = accounts
        app.state.inventory = inventory
        yield

    return test_lifespan


def make_vehicle(classification_id: int, **overrides) -> Vehicle:
    values = dict(
        classification_id=classification_id,
        inv_make="Jeep",
        inv_model="Wrangler",
        inv_year=2019,
        inv_description="The Jeep Wrangler is small and compact with enough power to get you where you want to go.",
        inv_image="/images/vehicles/wrangler.jpg",
        inv_thumbnail="/images/vehicles/wrangler-tn.jpg",
        inv_price=28045.0,
        inv_miles=41205,
        inv_color="Yellow",
    )
    values.update(overrides)
    return Vehicle(**values)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def stores() -> Generator[tuple[AccountStore, InventoryStore], None, None]:
    accounts = AccountStore(db_url=_memory_url("accounts"))
    inventory = InventoryStore(db_url=_memory_url("inventory"))
    yield accounts, inventory
    accounts.close()
    inventory.close()


@dataclass
class Seed:
    accounts: AccountStore
    inventory: InventoryStore
    client_id: int
    employee_id: int
    admin_id: int
    client_token: str
    employee_token: str
    admin_token: str
    suv_id: int
    sedan_id: int
    truck_id: int  # no vehicles
    vehicle_id: int


@pytest.fixture
def seed(stores: tuple[AccountStore, InventoryStore]) -> Seed:
    """Populate the stores with one account per role and a small inventory."""
    accounts, inventory = stores
    hashed = hash_password(PASSWORD)
    ids = {}
    tokens = {}
    for role, first, email in (
        (CLIENT, "Basic", "basic@example.com"),
        (EMPLOYEE, "Happy", "happy@example.com"),
        (ADMIN, "Manager", "manager@example.com"),
    ):
        account = Account(
            account_firstname=first,
            account_lastname="Tester",
            account_email=email,
            account_password=hashed,
            account_type=role,
        )
        account.account_id = accounts.create_account(account)
        ids[role] = account.account_id
        tokens[role] = create_access_token(account)

    suv_id = inventory.add_classification("SUV")
    sedan_id = inventory.add_classification("Sedan")
    truck_id = inventory.add_classification("Truck")
    vehicle_id = inventory.add_vehicle(make_vehicle(suv_id))
    inventory.add_vehicle(make_vehicle(sedan_id, inv_make="Chevy", inv_model="Camaro", inv_price=25000))

    return Seed(
        accounts=accounts,
        inventory=inventory,
        client_id=ids[CLIENT],
        employee_id=ids[EMPLOYEE],
        admin_id=ids[ADMIN],
        client_token=tokens[CLIENT],
        employee_token=tokens[EMPLOYEE],
        admin_token=tokens[ADMIN],
        suv_id=suv_id,
        sedan_id=sedan_id,
        truck_id=truck_id,
        vehicle_id=vehicle_id,
    )


@pytest.fixture
def web_client(seed: Seed) -> Generator[TestClient, None, None]:
    """TestClient over the full app with seeded stores.

    follow_redirects=False is essential: tests assert on redirect locations,
    which are invisible once the client follows the redirect.
    """
    app.router.lifespan_context = _patch_lifespan(seed.accounts, seed.inventory)
    with TestClient(app, follow_redirects=False) as client:
        yield client


@pytest.fixture
def crash_client(seed: Seed) -> Generator[TestClient, None, None]:
    """TestClient that returns the 500 page instead of re-raising the error."""
    app.router.lifespan_context = _patch_lifespan(seed.accounts, seed.inventory)
    with TestClient(app, follow_redirects=False, raise_server_exceptions=False) as client:
        yield client


@pytest.fixture
def login_as(web_client: TestClient):
    """Return a helper that attaches an auth cookie the way a browser would after login."""

    # Same domain key the cookie jar uses for cookies the app sets, so the
    # app can overwrite or delete this one.
    def _login(token: str) -> None:
        web_client.cookies.set(get_settings().auth_cookie_name, token, domain="testserver.local")

    return _login
