"""Shopping list schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import Importance, ShoppingPriority, Unit
from src.schemas.batch import PriceType


class ShoppingEntryCreate(BaseModel):
    """Add an entry to the shopping list by hand."""

    model_config = ConfigDict(str_strip_whitespace=True)

    item_name: str = Field(..., min_length=1, max_length=255)
    category: str | None = Field(None, max_length=100)
    priority: ShoppingPriority = ShoppingPriority.NORMAL
    quantity: float | None = Field(None, gt=0)
    unit: Unit | None = None
    is_ghost: bool = False


class ShoppingEntryResponse(BaseModel):
    """Shopping list entry response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    household_id: int
    item_name: str
    category: str | None
    priority: str
    status: str
    quantity: float | None
    unit: str | None
    is_manual: bool
    is_ghost: bool
    created_at: datetime
    updated_at: datetime


class ReceptionRequest(BaseModel):
    """Confirm a bought entry and turn it into stock.

    The product fields only apply when the item name matches no existing
    product in the household.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    quantity: float = Field(..., gt=0)
    unit: Unit | None = None
    location: str | None = Field(None, max_length=100)
    expiry_date: date | None = None
    price: float | None = Field(None, ge=0)
    price_type: PriceType = "total"
    store: str | None = Field(None, max_length=100)

    # New product configuration
    importance: Importance = Importance.NORMAL
    is_ghost: bool | None = None  # defaults to the entry's ghost flag
    min_quantity: float | None = Field(None, ge=0)
