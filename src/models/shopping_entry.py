"""Shopping list entry model."""

from sqlalchemy import Boolean, Column, Float, Index, Integer, String, text

from src.database import Base
from src.models.enums import ShoppingPriority, ShoppingStatus
from src.models.mixins import TimestampMixin


class ShoppingListEntry(Base, TimestampMixin):
    """An item on a household's shopping list.

    At most one active entry may exist per (household, item name); the
    partial unique index backs the idempotent insert used by reconciliation.
    """

    __tablename__ = "shopping_entries"
    __table_args__ = (
        Index(
            "uq_shopping_active_item",
            "household_id",
            "normalized_name",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    household_id = Column(Integer, nullable=False, index=True)
    item_name = Column(String(255), nullable=False)
    normalized_name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)
    priority = Column(String(20), nullable=False, default=ShoppingPriority.NORMAL.value)
    status = Column(String(20), nullable=False, default=ShoppingStatus.ACTIVE.value, index=True)
    quantity = Column(Float, nullable=True)
    unit = Column(String(10), nullable=True)
    is_manual = Column(Boolean, nullable=False, default=True)
    is_ghost = Column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<ShoppingListEntry(id={self.id}, item='{self.item_name}', status={self.status})>"
