"""Product schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import Importance, Unit
from src.schemas.batch import BatchCreate


class ProductCreate(BaseModel):
    """Create a product, optionally with its first batch."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    category: str = Field("Pantry", min_length=1, max_length=100)
    unit: Unit = Unit.UNITS
    importance: Importance = Importance.NORMAL
    min_quantity: float | None = Field(None, ge=0)
    is_ghost: bool = False
    initial_batch: BatchCreate | None = None


class ProductUpdate(BaseModel):
    """Update a product's definition."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(None, min_length=1, max_length=255)
    category: str | None = Field(None, min_length=1, max_length=100)
    unit: Unit | None = None
    importance: Importance | None = None
    min_quantity: float | None = Field(None, ge=0)  # explicit null clears the override
    is_ghost: bool | None = None


class ProductResponse(BaseModel):
    """Product response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    household_id: int
    name: str
    normalized_name: str
    category: str
    unit: str
    importance: str
    min_quantity: float | None
    is_ghost: bool
    threshold: float | None
    created_at: datetime
    updated_at: datetime
