"""FastAPI dependencies for database-backed services."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from src.database import get_db
from src.services.inventory_service import InventoryService
from src.services.shopping_service import ShoppingService
from src.services.stock_service import StockService


def get_inventory_service(
    db: Annotated[Session, Depends(get_db)],
) -> InventoryService:
    """Get inventory service with dependencies."""
    return InventoryService(db)


def get_stock_service(
    db: Annotated[Session, Depends(get_db)],
) -> StockService:
    """Get stock evaluation service with dependencies."""
    return StockService(db)


def get_shopping_service(
    db: Annotated[Session, Depends(get_db)],
) -> ShoppingService:
    """Get shopping list service with dependencies."""
    return ShoppingService(db)
