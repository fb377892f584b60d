"""Product API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_inventory_service, get_stock_service
from src.schemas.batch import BatchCreate, BatchResponse, ConsumeRequest, MoveAllRequest
from src.schemas.product import ProductCreate, ProductResponse, ProductUpdate
from src.schemas.stock import ConsumptionResponse, StockEvaluationResponse
from src.services.inventory_service import InventoryService
from src.services.stock_service import StockService

router = APIRouter(prefix="/api/v1/households/{household_id}/products", tags=["products"])


@router.get("", response_model=list[ProductResponse])
def list_products(
    household_id: int,
    inventory: Annotated[InventoryService, Depends(get_inventory_service)],
):
    """List every product registered in the household."""
    return inventory.list_products(household_id)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    household_id: int,
    product_data: ProductCreate,
    inventory: Annotated[InventoryService, Depends(get_inventory_service)],
    stock_service: Annotated[StockService, Depends(get_stock_service)],
):
    """Register a product, optionally with its first batch."""
    product = inventory.create_product(household_id, product_data)
    stock_service.evaluate(household_id)
    return product


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    household_id: int,
    product_id: int,
    inventory: Annotated[InventoryService, Depends(get_inventory_service)],
):
    """Get a specific product."""
    return inventory.get_product(household_id, product_id)


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    household_id: int,
    product_id: int,
    product_data: ProductUpdate,
    inventory: Annotated[InventoryService, Depends(get_inventory_service)],
    stock_service: Annotated[StockService, Depends(get_stock_service)],
):
    """Update a product's tier, threshold, ghost flag or details."""
    product = inventory.update_product(household_id, product_id, product_data)
    stock_service.evaluate(household_id)
    return product


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    household_id: int,
    product_id: int,
    inventory: Annotated[InventoryService, Depends(get_inventory_service)],
    stock_service: Annotated[StockService, Depends(get_stock_service)],
):
    """Delete a product and all of its batches."""
    inventory.delete_product(household_id, product_id)
    stock_service.evaluate(household_id)


@router.post(
    "/{product_id}/batches", response_model=BatchResponse, status_code=status.HTTP_201_CREATED
)
def add_batch(
    household_id: int,
    product_id: int,
    batch_data: BatchCreate,
    inventory: Annotated[InventoryService, Depends(get_inventory_service)],
    stock_service: Annotated[StockService, Depends(get_stock_service)],
):
    """Add a new lot to an existing product."""
    batch = inventory.add_batch(household_id, product_id, batch_data)
    stock_service.evaluate(household_id)
    return batch


@router.post("/{product_id}/consume", response_model=ConsumptionResponse)
def consume_product(
    household_id: int,
    product_id: int,
    request: ConsumeRequest,
    inventory: Annotated[InventoryService, Depends(get_inventory_service)],
    stock_service: Annotated[StockService, Depends(get_stock_service)],
):
    """Use up stock, soonest-expiring batches first."""
    result = inventory.consume(household_id, product_id, request.amount)
    evaluation = stock_service.evaluate(household_id)
    return ConsumptionResponse(
        product_id=result.product_id,
        consumed=result.consumed,
        updated_batch_ids=result.updated_batch_ids,
        sentinel_batch_ids=result.sentinel_batch_ids,
        deleted_batch_ids=result.deleted_batch_ids,
        stock=StockEvaluationResponse.from_evaluation(evaluation),
    )


@router.post("/{product_id}/move-all", response_model=StockEvaluationResponse)
def move_all_batches(
    household_id: int,
    product_id: int,
    request: MoveAllRequest,
    inventory: Annotated[InventoryService, Depends(get_inventory_service)],
    stock_service: Annotated[StockService, Depends(get_stock_service)],
):
    """Move every stocked batch of a product to one location."""
    inventory.move_all(household_id, product_id, request.destination)
    return StockEvaluationResponse.from_evaluation(stock_service.evaluate(household_id))
