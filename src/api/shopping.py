"""Shopping list API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from src.api.dependencies import get_inventory_service, get_shopping_service, get_stock_service
from src.models.enums import ShoppingStatus
from src.schemas.batch import BatchResponse
from src.schemas.shopping import ReceptionRequest, ShoppingEntryCreate, ShoppingEntryResponse
from src.schemas.stock import ReceptionResponse, StockEvaluationResponse
from src.services.inventory_service import InventoryService
from src.services.shopping_service import ShoppingService
from src.services.stock_service import StockService

router = APIRouter(prefix="/api/v1/households/{household_id}/shopping", tags=["shopping"])


@router.get("", response_model=list[ShoppingEntryResponse])
def list_shopping_entries(
    household_id: int,
    shopping: Annotated[ShoppingService, Depends(get_shopping_service)],
):
    """List entries still to buy (active, checked and postponed)."""
    return shopping.list_open(household_id)


@router.get("/reception", response_model=list[ShoppingEntryResponse])
def list_reception_queue(
    household_id: int,
    shopping: Annotated[ShoppingService, Depends(get_shopping_service)],
):
    """List bought entries waiting to be received into stock."""
    return shopping.list_reception(household_id)


@router.post("", response_model=ShoppingEntryResponse)
def add_shopping_entry(
    household_id: int,
    entry_data: ShoppingEntryCreate,
    response: Response,
    shopping: Annotated[ShoppingService, Depends(get_shopping_service)],
    stock_service: Annotated[StockService, Depends(get_stock_service)],
):
    """Add an entry by hand.

    Returns 201 when created, or 200 with the existing active entry.
    """
    entry, created = shopping.add_manual(household_id, entry_data)
    body = ShoppingEntryResponse.model_validate(entry)
    stock_service.evaluate(household_id)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return body


@router.post("/finish", response_model=list[ShoppingEntryResponse])
def finish_shopping(
    household_id: int,
    shopping: Annotated[ShoppingService, Depends(get_shopping_service)],
    stock_service: Annotated[StockService, Depends(get_stock_service)],
):
    """Mark all checked entries as bought."""
    entries = shopping.finish_shopping(household_id)
    stock_service.evaluate(household_id)
    return entries


@router.post("/{entry_id}/toggle", response_model=ShoppingEntryResponse)
def toggle_shopping_entry(
    household_id: int,
    entry_id: int,
    shopping: Annotated[ShoppingService, Depends(get_shopping_service)],
    stock_service: Annotated[StockService, Depends(get_stock_service)],
):
    """Check an active entry, or bring a checked/postponed one back."""
    body = ShoppingEntryResponse.model_validate(shopping.toggle(household_id, entry_id))
    stock_service.evaluate(household_id)
    return body


@router.post("/{entry_id}/postpone", response_model=ShoppingEntryResponse)
def postpone_shopping_entry(
    household_id: int,
    entry_id: int,
    shopping: Annotated[ShoppingService, Depends(get_shopping_service)],
    stock_service: Annotated[StockService, Depends(get_stock_service)],
):
    """Postpone an active entry."""
    entry = shopping.set_status(household_id, entry_id, ShoppingStatus.POSTPONED)
    body = ShoppingEntryResponse.model_validate(entry)
    stock_service.evaluate(household_id)
    return body


@router.post("/{entry_id}/resume", response_model=ShoppingEntryResponse)
def resume_shopping_entry(
    household_id: int,
    entry_id: int,
    shopping: Annotated[ShoppingService, Depends(get_shopping_service)],
    stock_service: Annotated[StockService, Depends(get_stock_service)],
):
    """Bring a postponed entry back to the active list."""
    entry = shopping.set_status(household_id, entry_id, ShoppingStatus.ACTIVE)
    body = ShoppingEntryResponse.model_validate(entry)
    stock_service.evaluate(household_id)
    return body


@router.post("/{entry_id}/archive", response_model=ShoppingEntryResponse)
def archive_shopping_entry(
    household_id: int,
    entry_id: int,
    shopping: Annotated[ShoppingService, Depends(get_shopping_service)],
    stock_service: Annotated[StockService, Depends(get_stock_service)],
):
    """Archive an entry."""
    entry = shopping.set_status(household_id, entry_id, ShoppingStatus.ARCHIVED)
    stock_service.evaluate(household_id)
    return entry


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_shopping_entry(
    household_id: int,
    entry_id: int,
    shopping: Annotated[ShoppingService, Depends(get_shopping_service)],
    stock_service: Annotated[StockService, Depends(get_stock_service)],
):
    """Remove an entry from the list."""
    shopping.delete(household_id, entry_id)
    stock_service.evaluate(household_id)


@router.post("/{entry_id}/receive", response_model=ReceptionResponse)
def receive_shopping_entry(
    household_id: int,
    entry_id: int,
    request: ReceptionRequest,
    inventory: Annotated[InventoryService, Depends(get_inventory_service)],
    stock_service: Annotated[StockService, Depends(get_stock_service)],
):
    """Turn a bought entry into a batch, creating the product if it is new."""
    result = inventory.receive(household_id, entry_id, request)
    batch = BatchResponse.model_validate(result.batch)
    product_id = result.product.id
    evaluation = stock_service.evaluate(household_id)
    return ReceptionResponse(
        product_id=product_id,
        product_created=result.product_created,
        batch=batch,
        stock=StockEvaluationResponse.from_evaluation(evaluation),
    )
