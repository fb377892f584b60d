"""Batch schemas."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

PriceType = Literal["total", "unit"]


class BatchCreate(BaseModel):
    """Add a physical lot to a product."""

    model_config = ConfigDict(str_strip_whitespace=True)

    quantity: float = Field(..., gt=0)
    location: str | None = Field(None, max_length=100)
    expiry_date: date | None = None
    price: float | None = Field(None, ge=0)
    price_type: PriceType = "total"  # price is for the whole lot or per unit
    store: str | None = Field(None, max_length=100)


class BatchUpdate(BaseModel):
    """Edit a batch in place. Only fields that are sent are changed."""

    model_config = ConfigDict(str_strip_whitespace=True)

    quantity: float | None = Field(None, ge=0)
    location: str | None = Field(None, max_length=100)  # empty keeps the current location
    expiry_date: date | None = None
    price: float | None = Field(None, ge=0)
    store: str | None = Field(None, max_length=100)


class BatchMoveRequest(BaseModel):
    """Move all or part of a batch to another location."""

    model_config = ConfigDict(str_strip_whitespace=True)

    destination: str = Field(..., min_length=1, max_length=100)
    quantity: float = Field(..., gt=0)
    origin_expiry_date: date | None = None
    destination_expiry_date: date | None = None


class MoveAllRequest(BaseModel):
    """Move every stocked batch of a product."""

    model_config = ConfigDict(str_strip_whitespace=True)

    destination: str = Field(..., min_length=1, max_length=100)


class ConsumeRequest(BaseModel):
    """Deduct an amount from a product's stock."""

    amount: float = Field(..., gt=0)


class BatchResponse(BaseModel):
    """Batch response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    household_id: int
    quantity: float
    location: str
    store: str | None
    price: float | None
    expiry_date: date | None
    created_at: datetime
