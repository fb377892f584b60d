"""Batch API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from src.api.dependencies import get_inventory_service, get_stock_service
from src.schemas.batch import BatchMoveRequest, BatchResponse, BatchUpdate
from src.schemas.stock import BatchDeletionResponse, MoveResponse, StockEvaluationResponse
from src.services.inventory_service import InventoryService
from src.services.stock_service import StockService

router = APIRouter(prefix="/api/v1/households/{household_id}/batches", tags=["batches"])


@router.get("/{batch_id}", response_model=BatchResponse)
def get_batch(
    household_id: int,
    batch_id: int,
    inventory: Annotated[InventoryService, Depends(get_inventory_service)],
):
    """Get a specific batch."""
    return inventory.get_batch(household_id, batch_id)


@router.put("/{batch_id}", response_model=BatchResponse)
def update_batch(
    household_id: int,
    batch_id: int,
    batch_data: BatchUpdate,
    inventory: Annotated[InventoryService, Depends(get_inventory_service)],
    stock_service: Annotated[StockService, Depends(get_stock_service)],
):
    """Edit quantity, price, expiry or location of a batch.

    Returns 204 when setting a ghost product's batch to zero removed it.
    """
    batch = inventory.update_batch(household_id, batch_id, batch_data)
    stock_service.evaluate(household_id)
    if batch is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return batch


@router.delete("/{batch_id}", response_model=BatchDeletionResponse)
def delete_batch(
    household_id: int,
    batch_id: int,
    inventory: Annotated[InventoryService, Depends(get_inventory_service)],
    stock_service: Annotated[StockService, Depends(get_stock_service)],
):
    """Delete a batch (the last stocked batch of a tracked product becomes a sentinel)."""
    outcome = inventory.delete_batch(household_id, batch_id)
    evaluation = stock_service.evaluate(household_id)
    return BatchDeletionResponse(
        batch_id=batch_id,
        outcome=outcome.value,
        stock=StockEvaluationResponse.from_evaluation(evaluation),
    )


@router.post("/{batch_id}/move", response_model=MoveResponse)
def move_batch(
    household_id: int,
    batch_id: int,
    request: BatchMoveRequest,
    inventory: Annotated[InventoryService, Depends(get_inventory_service)],
    stock_service: Annotated[StockService, Depends(get_stock_service)],
):
    """Move a batch, or split part of it off, to another location."""
    result = inventory.move_batch(
        household_id,
        batch_id,
        destination=request.destination,
        quantity=request.quantity,
        origin_expiry_date=request.origin_expiry_date,
        destination_expiry_date=request.destination_expiry_date,
    )
    source = BatchResponse.model_validate(result.source)
    created = BatchResponse.model_validate(result.created) if result.created else None
    evaluation = stock_service.evaluate(household_id)
    return MoveResponse(
        source=source,
        created=created,
        stock=StockEvaluationResponse.from_evaluation(evaluation),
    )
