"""
inventory/forms.py -- Rule sets and typed inputs for classification and vehicle forms.

Classification existence is checked here, by the validator, against the ids
the controller just loaded -- the store does not enforce it.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Optional

from core.validation import FloatRange, IntRange, Matches, MaxLength, MinLength, OneOf, Required
from inventory.models import Vehicle

MIN_YEAR = 1900

# Every text field a vehicle form submits, in form order.
VEHICLE_FIELDS = (
    "classification_id",
    "inv_make",
    "inv_model",
    "inv_year",
    "inv_description",
    "inv_image",
    "inv_thumbnail",
    "inv_price",
    "inv_miles",
    "inv_color",
)


def max_model_year() -> int:
    """Dealers list next year's models, so the upper bound is current year + 1."""
    return date.today().year + 1


def classification_rules() -> dict:
    return {
        "classification_name": [
            Required("Classification name is required."),
            MaxLength(50, "Classification name must be 50 characters or fewer."),
            Matches(r"^[A-Za-z0-9]+$", "Classification name must not contain spaces or special characters."),
        ],
    }


def vehicle_rules(classification_ids: Iterable[int]) -> dict:
    return {
        "classification_id": [
            Required("Classification is required."),
            IntRange("Classification must be a valid number."),
            OneOf(classification_ids, "Please choose an existing classification."),
        ],
        "inv_make": [
            Required("The 'Make' field is required."),
            MinLength(2, "Make must be at least 2 characters."),
            MaxLength(50, "Make must be 50 characters or fewer."),
        ],
        "inv_model": [
            Required("The 'Model' field is required."),
            MaxLength(50, "Model must be 50 characters or fewer."),
        ],
        "inv_year": [
            Required("The 'Year' field is required."),
            IntRange("Invalid year.", minimum=MIN_YEAR, maximum=max_model_year),
        ],
        "inv_description": [Required("Description is required.")],
        "inv_image": [MaxLength(255, "Image path must be 255 characters or fewer.")],
        "inv_thumbnail": [MaxLength(255, "Thumbnail path must be 255 characters or fewer.")],
        "inv_price": [
            Required("Price is required."),
            FloatRange("Price must be a positive number.", minimum=0),
        ],
        "inv_miles": [
            Required("Mileage is required."),
            IntRange("Mileage must be a positive whole number.", minimum=0),
        ],
        "inv_color": [
            Required("Color is required."),
            MaxLength(30, "Color must be 30 characters or fewer."),
        ],
    }


@dataclass(frozen=True)
class VehicleInput:
    """A validated vehicle form. Optional image paths are None when omitted."""

    classification_id: int
    inv_make: str
    inv_model: str
    inv_year: int
    inv_description: str
    inv_price: float
    inv_miles: int
    inv_color: str
    inv_image: Optional[str] = None
    inv_thumbnail: Optional[str] = None

    @classmethod
    def from_form(cls, data: Mapping[str, Optional[str]]) -> "VehicleInput":
        """Build from raw form values that already passed vehicle_rules()."""

        def text(name: str) -> str:
            return (data.get(name) or "").strip()

        return cls(
            classification_id=int(text("classification_id")),
            inv_make=text("inv_make"),
            inv_model=text("inv_model"),
            inv_year=int(text("inv_year")),
            inv_description=text("inv_description"),
            inv_price=float(text("inv_price")),
            inv_miles=int(text("inv_miles")),
            inv_color=text("inv_color"),
            inv_image=text("inv_image") or None,
            inv_thumbnail=text("inv_thumbnail") or None,
        )

    def to_vehicle(self, placeholder_image: str, inv_id: Optional[int] = None) -> Vehicle:
        """Map to the domain dataclass, substituting the placeholder for omitted images."""
        return Vehicle(
            inv_id=inv_id,
            classification_id=self.classification_id,
            inv_make=self.inv_make,
            inv_model=self.inv_model,
            inv_year=self.inv_year,
            inv_description=self.inv_description,
            inv_image=self.inv_image or placeholder_image,
            inv_thumbnail=self.inv_thumbnail or placeholder_image,
            inv_price=self.inv_price,
            inv_miles=self.inv_miles,
            inv_color=self.inv_color,
        )


def vehicle_form_data(vehicle: Vehicle) -> dict:
    """Pre-populate an edit form from a stored vehicle (all values as strings)."""
    price = vehicle.inv_price
    return {
        "inv_id": str(vehicle.inv_id),
        "classification_id": str(vehicle.classification_id),
        "inv_make": vehicle.inv_make,
        "inv_model": vehicle.inv_model,
        "inv_year": str(vehicle.inv_year),
        "inv_description": vehicle.inv_description,
        "inv_image": vehicle.inv_image,
        "inv_thumbnail": vehicle.inv_thumbnail,
        "inv_price": str(int(price)) if float(price).is_integer() else str(price),
        "inv_miles": str(vehicle.inv_miles),
        "inv_color": vehicle.inv_color,
    }
