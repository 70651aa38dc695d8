"""
api/routes/inventory.py -- Structured inventory listing for the management page.

Routes:
  GET /inv/getInventory/{classification_id}  -- vehicles in one classification

Public on purpose: the same vehicles are already visible on /inv/type/{id}.
The management page script calls this to build its table without a reload.
"""

from fastapi import APIRouter, HTTPException, Request

from api.models import ErrorDetail, InventoryRow
from inventory.store import InventoryStore

router = APIRouter()


@router.get("/inv/getInventory/{classification_id}", response_model=list[InventoryRow])
def get_inventory(request: Request, classification_id: int) -> list[InventoryRow]:
    """Return every vehicle in a classification, ordered by make and model.

    An unknown classification is a 404; a known one with no vehicles is [].
    """
    store: InventoryStore = request.app.state.inventory
    if store.get_classification(classification_id) is None:
        raise HTTPException(
            status_code=404,
            detail=ErrorDetail(
                code="classification_not_found",
                message=f"Classification {classification_id} does not exist.",
            ).model_dump(),
        )
    return [InventoryRow.from_vehicle(v) for v in store.list_by_classification(classification_id)]
