"""
inventory/models.py -- Domain dataclasses for the dealership inventory.

These are pure data containers with zero logic. Persistence lives in
inventory/store.py; validation lives in inventory/forms.py.

Field names follow the column names (inv_make, classification_name, ...) so
the same names flow unchanged from the store through templates, HTML form
inputs, and the JSON inventory endpoint.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Classification:
    """A named category of vehicles ("SUV", "Truck", ...).

    classification_id is None before the record is written to the database.
    """

    classification_name: str
    classification_id: Optional[int] = None


@dataclass
class Vehicle:
    """One inventory item.

    classification_name is filled in on reads (joined from classification)
    and ignored on writes.

    inv_id is None before the record is written to the database.
    """

    classification_id: int
    inv_make: str
    inv_model: str
    inv_year: int
    inv_description: str
    inv_image: str
    inv_thumbnail: str
    inv_price: float
    inv_miles: int
    inv_color: str
    inv_id: Optional[int] = None
    classification_name: str = ""


@dataclass
class Favorite:
    """An account's saved vehicle. Existence is the whole record."""

    account_id: int
    inv_id: int
    created_at: str = ""  # ISO 8601, set by store on insert
