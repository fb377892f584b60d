"""Batch model: a physical lot of one product."""

from sqlalchemy import Column, Date, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.mixins import TimestampMixin


class Batch(Base, TimestampMixin):
    """A quantity of one product sharing location, expiry and purchase context.

    A batch with quantity 0 is a sentinel keeping a tracked product visible
    to the stock view after it has been fully consumed.
    """

    __tablename__ = "batches"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    household_id = Column(Integer, nullable=False, index=True)
    quantity = Column(Float, nullable=False, default=0)
    location = Column(String(100), nullable=False)
    store = Column(String(100), nullable=True)
    price = Column(Float, nullable=True)  # Unit price
    expiry_date = Column(Date, nullable=True, index=True)

    # Relationships
    product = relationship("Product", back_populates="batches")

    @property
    def is_sentinel(self) -> bool:
        """Check if this is a zero-quantity placeholder row."""
        return self.quantity <= 0

    def __repr__(self) -> str:
        return f"<Batch(id={self.id}, product_id={self.product_id}, quantity={self.quantity})>"
