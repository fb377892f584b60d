"""Pydantic schemas for API requests and responses."""

from src.schemas.batch import (
    BatchCreate,
    BatchMoveRequest,
    BatchResponse,
    BatchUpdate,
    ConsumeRequest,
    MoveAllRequest,
)
from src.schemas.product import ProductCreate, ProductResponse, ProductUpdate
from src.schemas.shopping import ReceptionRequest, ShoppingEntryCreate, ShoppingEntryResponse

__all__ = [
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "BatchCreate",
    "BatchUpdate",
    "BatchMoveRequest",
    "MoveAllRequest",
    "ConsumeRequest",
    "BatchResponse",
    "ShoppingEntryCreate",
    "ShoppingEntryResponse",
    "ReceptionRequest",
]
