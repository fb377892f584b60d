"""SQLAlchemy models."""

from src.models.batch import Batch
from src.models.product import Product
from src.models.shopping_entry import ShoppingListEntry

__all__ = [
    "Product",
    "Batch",
    "ShoppingListEntry",
]
