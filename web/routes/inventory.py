"""
web/routes/inventory.py -- Public vehicle browsing and staff inventory management.

Routes (mounted under /inv):
  GET  /inv/type/{classification_id}  -- vehicle grid for one classification
  GET  /inv/detail/{inv_id}           -- single vehicle page
  GET  /inv/                          -- management page (Employee/Admin)
  GET  /inv/add-classification        -- classification form (Employee/Admin)
  POST /inv/add-classification        -- create classification
  GET  /inv/add-inventory             -- vehicle form (Employee/Admin)
  POST /inv/add-inventory             -- create vehicle
  GET  /inv/edit/{inv_id}             -- pre-filled vehicle form (Employee/Admin)
  POST /inv/update/                   -- save an edited vehicle
  GET  /inv/delete/{inv_id}           -- delete confirmation (Employee/Admin)
  POST /inv/delete/{inv_id}           -- delete, always back to /inv/

The JSON listing at /inv/getInventory/{classification_id} lives in
api/routes/inventory.py.

Every staff route runs check_employee_or_admin() first; nothing below the gate
executes for a Client or an anonymous caller.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.exc import IntegrityError

from auth.dependencies import check_employee_or_admin, get_context
from core.config import get_settings
from core.flash import flash
from core.validation import FieldError, validate
from inventory.forms import (
    VEHICLE_FIELDS,
    VehicleInput,
    classification_rules,
    vehicle_form_data,
    vehicle_rules,
)
from inventory.models import Vehicle
from inventory.store import InventoryStore
from web.templating import render

logger = logging.getLogger("dealership.web.inventory")

router = APIRouter()


def _store(request: Request) -> InventoryStore:
    return request.app.state.inventory


def _not_found(request: Request, message: str, status_code: int = 404) -> HTMLResponse:
    return render(
        request,
        "errors/not_found.html",
        {"title": "Not found" if status_code == 404 else "Invalid request", "message": message},
        status_code=status_code,
    )


def _is_id(value: str) -> bool:
    # str.isdigit() alone accepts characters like "²" that int() rejects.
    return value.isascii() and value.isdigit()


def _vehicle_name(vehicle: Vehicle) -> str:
    return f"{vehicle.inv_year} {vehicle.inv_make} {vehicle.inv_model}"


async def _vehicle_form(request: Request) -> dict:
    """Collect the vehicle fields from the submitted form as plain strings."""
    form = await request.form()
    return {name: str(form.get(name) or "") for name in VEHICLE_FIELDS}


# ---------------------------------------------------------------------------
# Public browsing
# ---------------------------------------------------------------------------


@router.get("/type/{classification_id}", response_class=HTMLResponse)
def by_classification(request: Request, classification_id: int) -> HTMLResponse:
    store = _store(request)
    classification = store.get_classification(classification_id)
    if classification is None:
        return _not_found(request, "Sorry, that vehicle classification does not exist.")

    vehicles = store.list_by_classification(classification_id)
    ctx = get_context(request)
    saved: set[int] = set()
    if ctx.logged_in and ctx.account_id is not None:
        saved = {f.inv_id for f in store.get_favorites(ctx.account_id)}

    return render(
        request,
        "inventory/classification.html",
        {
            "title": f"{classification.classification_name} vehicles",
            "classification": classification,
            "vehicles": vehicles,
            "saved_ids": saved,
        },
    )


@router.get("/detail/{inv_id}", response_class=HTMLResponse)
def vehicle_detail(request: Request, inv_id: str) -> HTMLResponse:
    """Vehicle page. inv_id is parsed here so a malformed id gets its own message."""
    if not _is_id(inv_id):
        return _not_found(request, "The vehicle ID is not valid", status_code=400)

    store = _store(request)
    vehicle = store.get_vehicle(int(inv_id))
    if vehicle is None:
        return _not_found(request, "Sorry, we could not find that vehicle.")

    ctx = get_context(request)
    is_saved = bool(ctx.logged_in and ctx.account_id is not None and store.is_favorite(ctx.account_id, vehicle.inv_id))
    return render(
        request,
        "inventory/detail.html",
        {"title": _vehicle_name(vehicle), "vehicle": vehicle, "is_saved": is_saved},
    )


# ---------------------------------------------------------------------------
# Management page
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
def management(request: Request) -> HTMLResponse:
    if redirect := check_employee_or_admin(request):
        return redirect
    return render(
        request,
        "inventory/management.html",
        {"title": "Vehicle Management", "classifications": _store(request).list_classifications()},
    )


# ---------------------------------------------------------------------------
# Classifications
# ---------------------------------------------------------------------------


@router.get("/add-classification", response_class=HTMLResponse)
def add_classification_form(request: Request) -> HTMLResponse:
    if redirect := check_employee_or_admin(request):
        return redirect
    return render(request, "inventory/add_classification.html", {"title": "Add New Classification"})


@router.post("/add-classification", response_class=HTMLResponse)
def add_classification(
    request: Request,
    classification_name: Optional[str] = Form(default=None),
) -> HTMLResponse:
    if redirect := check_employee_or_admin(request):
        return redirect

    form_data = {"classification_name": classification_name or ""}
    errors = validate(form_data, classification_rules())
    if errors:
        return render(
            request,
            "inventory/add_classification.html",
            {"title": "Add New Classification", "errors": errors, "form_data": form_data},
            status_code=400,
        )

    name = form_data["classification_name"].strip()
    try:
        _store(request).add_classification(name)
    except IntegrityError:
        errors = [FieldError(field="classification_name", message="That classification already exists.")]
        return render(
            request,
            "inventory/add_classification.html",
            {"title": "Add New Classification", "errors": errors, "form_data": form_data},
            status_code=409,
        )

    logger.info("Classification %r added by account %s", name, get_context(request).account_id)
    flash(request, f"The {name} classification was successfully added.")
    return RedirectResponse("/inv/", status_code=303)


# ---------------------------------------------------------------------------
# Vehicles: add / edit / update
# ---------------------------------------------------------------------------


def _render_vehicle_form(
    request: Request,
    template: str,
    title: str,
    form_data: dict,
    errors: Optional[list] = None,
    status_code: int = 200,
) -> HTMLResponse:
    return render(
        request,
        template,
        {
            "title": title,
            "classifications": _store(request).list_classifications(),
            "form_data": form_data,
            "errors": errors or [],
        },
        status_code=status_code,
    )


@router.get("/add-inventory", response_class=HTMLResponse)
def add_inventory_form(request: Request) -> HTMLResponse:
    if redirect := check_employee_or_admin(request):
        return redirect
    return _render_vehicle_form(request, "inventory/add_inventory.html", "Add New Vehicle", {})


@router.post("/add-inventory", response_class=HTMLResponse)
async def add_inventory(request: Request) -> HTMLResponse:
    """Create a vehicle.

    Async only to read the form; the store calls are short synchronous SQLite
    writes, the same trade-off the JSON routes make.
    """
    if redirect := check_employee_or_admin(request):
        return redirect

    store = _store(request)
    form_data = await _vehicle_form(request)
    ids = [c.classification_id for c in store.list_classifications()]
    errors = validate(form_data, vehicle_rules(ids))
    if errors:
        return _render_vehicle_form(
            request, "inventory/add_inventory.html", "Add New Vehicle", form_data, errors, status_code=400
        )

    vehicle = VehicleInput.from_form(form_data).to_vehicle(get_settings().placeholder_image)
    inv_id = store.add_vehicle(vehicle)
    logger.info("Vehicle %d added by account %s", inv_id, get_context(request).account_id)
    flash(request, f"The {_vehicle_name(vehicle)} was successfully added.")
    return RedirectResponse("/inv/", status_code=303)


@router.get("/edit/{inv_id}", response_class=HTMLResponse)
def edit_inventory_form(request: Request, inv_id: int) -> HTMLResponse:
    if redirect := check_employee_or_admin(request):
        return redirect
    vehicle = _store(request).get_vehicle(inv_id)
    if vehicle is None:
        return _not_found(request, "Sorry, we could not find that vehicle.")
    return _render_vehicle_form(
        request, "inventory/edit_inventory.html", f"Edit {_vehicle_name(vehicle)}", vehicle_form_data(vehicle)
    )


@router.post("/update/", response_class=HTMLResponse)
async def update_inventory(request: Request) -> HTMLResponse:
    if redirect := check_employee_or_admin(request):
        return redirect

    store = _store(request)
    form_data = await _vehicle_form(request)
    raw_id = str((await request.form()).get("inv_id") or "").strip()
    if not _is_id(raw_id):
        return _not_found(request, "The vehicle ID is not valid", status_code=400)
    inv_id = int(raw_id)
    form_data["inv_id"] = raw_id
    title = f"Edit {form_data['inv_year']} {form_data['inv_make']} {form_data['inv_model']}".strip()

    ids = [c.classification_id for c in store.list_classifications()]
    errors = validate(form_data, vehicle_rules(ids))
    if errors:
        return _render_vehicle_form(
            request, "inventory/edit_inventory.html", title, form_data, errors, status_code=400
        )

    vehicle = VehicleInput.from_form(form_data).to_vehicle(get_settings().placeholder_image, inv_id=inv_id)
    if not store.update_vehicle(vehicle):
        flash(request, "Sorry, the update failed.")
        return _render_vehicle_form(request, "inventory/edit_inventory.html", title, form_data, status_code=404)

    logger.info("Vehicle %d updated by account %s", inv_id, get_context(request).account_id)
    flash(request, f"The {vehicle.inv_make} {vehicle.inv_model} was successfully updated.")
    return RedirectResponse("/inv/", status_code=303)


# ---------------------------------------------------------------------------
# Vehicles: delete
# ---------------------------------------------------------------------------


@router.get("/delete/{inv_id}", response_class=HTMLResponse)
def delete_confirm(request: Request, inv_id: int) -> HTMLResponse:
    if redirect := check_employee_or_admin(request):
        return redirect
    vehicle = _store(request).get_vehicle(inv_id)
    if vehicle is None:
        return _not_found(request, "Sorry, we could not find that vehicle.")
    return render(
        request,
        "inventory/delete_confirm.html",
        {"title": f"Delete {_vehicle_name(vehicle)}", "vehicle": vehicle},
    )


@router.post("/delete/{inv_id}")
def delete_inventory(request: Request, inv_id: int) -> RedirectResponse:
    if redirect := check_employee_or_admin(request):
        return redirect
    if _store(request).delete_vehicle(inv_id):
        logger.info("Vehicle %d deleted by account %s", inv_id, get_context(request).account_id)
        flash(request, "The deletion was successful.")
    else:
        flash(request, "Sorry, the delete failed.")
    return RedirectResponse("/inv/", status_code=303)
