"""Stock view API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from src.api.dependencies import get_stock_service
from src.schemas.stock import StockEvaluationResponse, StockSummaryResponse
from src.services.stock_service import StockService

router = APIRouter(prefix="/api/v1/households/{household_id}/stock", tags=["stock"])


@router.get("", response_model=StockEvaluationResponse)
def get_stock(
    household_id: int,
    stock_service: Annotated[StockService, Depends(get_stock_service)],
):
    """Recompute the grouped view and alerts, syncing the shopping list."""
    evaluation = stock_service.evaluate(household_id)
    return StockEvaluationResponse.from_evaluation(evaluation)


@router.get("/summary", response_model=StockSummaryResponse)
def get_stock_summary(
    household_id: int,
    stock_service: Annotated[StockService, Depends(get_stock_service)],
):
    """Dashboard counters: alerts by tier, open shopping entries, reception queue."""
    return stock_service.summarize(household_id)
