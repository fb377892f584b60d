"""Product model: the registry entry for a trackable good."""

from sqlalchemy import Boolean, Column, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.enums import Importance, Unit
from src.models.mixins import TimestampMixin


def normalize_name(name: str) -> str:
    """Lowercase and trim a name for case-insensitive matching."""
    return name.lower().strip()


class Product(Base, TimestampMixin):
    """Canonical definition of a good tracked by a household."""

    __tablename__ = "products"
    __table_args__ = (
        UniqueConstraint("household_id", "normalized_name", name="uq_products_household_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    household_id = Column(Integer, nullable=False, index=True)
    name = Column(String(255), nullable=False)  # Display name
    normalized_name = Column(String(255), nullable=False)  # Lowercase, trimmed for matching
    category = Column(String(100), nullable=False, default="Pantry")
    unit = Column(String(10), nullable=False, default=Unit.UNITS.value)
    importance = Column(String(20), nullable=False, default=Importance.NORMAL.value)
    min_quantity = Column(Float, nullable=True)  # null => derive from importance
    is_ghost = Column(Boolean, nullable=False, default=False)

    # Relationships
    batches = relationship(
        "Batch",
        back_populates="product",
        cascade="all, delete-orphan",
    )

    @property
    def threshold(self) -> float | None:
        """Resolved minimum stock, or None for ghost products."""
        if self.is_ghost:
            return None
        if self.min_quantity is not None:
            return self.min_quantity
        return Importance(self.importance).default_threshold

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', importance={self.importance})>"
