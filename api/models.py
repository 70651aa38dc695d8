"""
API response models for the dealership's JSON endpoints.

These Pydantic v2 models define the HTTP transport contract. They are kept
separate from the dataclasses in inventory/models.py, which own the internal
domain representation. Route handlers map between the two.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from inventory.models import Vehicle


class InventoryRow(BaseModel):
    """One vehicle in GET /inv/getInventory/{classification_id}.

    Field names match the stored columns so the management page script can
    read them directly.
    """

    model_config = ConfigDict(frozen=True)

    inv_id: int
    inv_make: str
    inv_model: str
    inv_year: int
    inv_description: str
    inv_image: str
    inv_thumbnail: str
    inv_price: float
    inv_miles: int
    inv_color: str
    classification_id: int
    classification_name: str

    @classmethod
    def from_vehicle(cls, vehicle: Vehicle) -> "InventoryRow":
        return cls(
            inv_id=vehicle.inv_id,
            inv_make=vehicle.inv_make,
            inv_model=vehicle.inv_model,
            inv_year=vehicle.inv_year,
            inv_description=vehicle.inv_description,
            inv_image=vehicle.inv_image,
            inv_thumbnail=vehicle.inv_thumbnail,
            inv_price=vehicle.inv_price,
            inv_miles=vehicle.inv_miles,
            inv_color=vehicle.inv_color,
            classification_id=vehicle.classification_id,
            classification_name=vehicle.classification_name,
        )


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
    database: str = "ok"
