"""Inventory mutations: products, batches, consumption, moves and reception.

These are the only writes into the batch ledger. Each public method
validates first, mutates inside one session, and commits once; any failure
rolls the whole operation back.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum

from sqlalchemy.orm import Session

from src.config import get_settings
from src.models.batch import Batch
from src.models.enums import Importance, ShoppingStatus, Unit
from src.models.product import Product, normalize_name
from src.models.shopping_entry import ShoppingListEntry
from src.schemas.batch import BatchCreate, BatchUpdate, PriceType
from src.schemas.product import ProductCreate, ProductUpdate
from src.schemas.shopping import ReceptionRequest
from src.services.aggregation import consumption_order
from src.services.exceptions import (
    DuplicateProductError,
    StockNotFoundError,
    StockValidationError,
)
from src.services.realtime import HouseholdEventType, publish_household_event

logger = logging.getLogger(__name__)

QUANTITY_DECIMALS = 3


def _q(value: float) -> float:
    return round(value, QUANTITY_DECIMALS)


def unit_price(price: float | None, price_type: PriceType, quantity: float) -> float | None:
    """Convert a price entered for the whole lot or per unit into a unit price."""
    if price is None:
        return None
    if price_type == "unit" or quantity <= 0:
        return round(price, 4)
    return round(price / quantity, 4)


class DeletionOutcome(StrEnum):
    DELETED = "deleted"
    SENTINEL = "sentinel"
    PRODUCT_DELETED = "product_deleted"


@dataclass
class ConsumptionResult:
    product_id: int
    consumed: float
    updated_batch_ids: list[int] = field(default_factory=list)
    sentinel_batch_ids: list[int] = field(default_factory=list)
    deleted_batch_ids: list[int] = field(default_factory=list)


@dataclass
class MoveResult:
    source: Batch
    created: Batch | None = None


@dataclass
class ReceptionResult:
    product: Product
    batch: Batch
    product_created: bool


class InventoryService:
    """Service for every mutation of a household's products and batches."""

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    # --- Lookups ---

    def get_product(self, household_id: int, product_id: int) -> Product:
        product = (
            self.db.query(Product)
            .filter(Product.id == product_id, Product.household_id == household_id)
            .first()
        )
        if not product:
            raise StockNotFoundError("Product", product_id)
        return product

    def get_batch(self, household_id: int, batch_id: int) -> Batch:
        batch = (
            self.db.query(Batch)
            .filter(Batch.id == batch_id, Batch.household_id == household_id)
            .first()
        )
        if not batch:
            raise StockNotFoundError("Batch", batch_id)
        return batch

    def find_product_by_name(self, household_id: int, name: str) -> Product | None:
        return (
            self.db.query(Product)
            .filter(
                Product.household_id == household_id,
                Product.normalized_name == normalize_name(name),
            )
            .first()
        )

    def list_products(self, household_id: int) -> list[Product]:
        return (
            self.db.query(Product)
            .filter(Product.household_id == household_id)
            .order_by(Product.normalized_name)
            .all()
        )

    # --- Product registry ---

    def create_product(self, household_id: int, data: ProductCreate) -> Product:
        """Register a product, with its first batch or a sentinel placeholder."""
        name = data.name.strip()
        if not name:
            raise StockValidationError("Product name must not be empty")
        if self.find_product_by_name(household_id, name):
            raise DuplicateProductError(name)

        try:
            product = self._new_product(
                household_id,
                name=name,
                category=data.category,
                unit=data.unit,
                importance=data.importance,
                min_quantity=data.min_quantity,
                is_ghost=data.is_ghost,
            )
            if data.initial_batch is not None:
                self._add_batch(product, data.initial_batch)
            elif not product.is_ghost:
                # Keep a tracked product visible (at zero) until stock arrives
                self.db.add(self._sentinel(product))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(product)
        logger.info(f"Created product '{product.name}' in household {household_id}")
        publish_household_event(
            household_id, HouseholdEventType.PRODUCT_CREATED, {"product_id": product.id}
        )
        return product

    def update_product(self, household_id: int, product_id: int, data: ProductUpdate) -> Product:
        product = self.get_product(household_id, product_id)
        changes = data.model_dump(exclude_unset=True)

        if "name" in changes:
            name = (changes["name"] or "").strip()
            if not name:
                raise StockValidationError("Product name must not be empty")
            existing = self.find_product_by_name(household_id, name)
            if existing and existing.id != product.id:
                raise DuplicateProductError(name)
            product.name = name
            product.normalized_name = normalize_name(name)
        if changes.get("category"):
            product.category = changes["category"]
        if changes.get("unit") is not None:
            product.unit = Unit(changes["unit"]).value
        if changes.get("importance") is not None:
            product.importance = Importance(changes["importance"]).value
        if "min_quantity" in changes:
            product.min_quantity = changes["min_quantity"]
        if changes.get("is_ghost") is not None:
            product.is_ghost = changes["is_ghost"]
        elif changes.get("importance") == Importance.GHOST:
            product.is_ghost = True

        if product.is_ghost:
            product.importance = Importance.GHOST.value
            product.min_quantity = None
        else:
            if product.importance == Importance.GHOST.value:
                product.importance = Importance.NORMAL.value
            if not product.batches:
                # A drained ghost has no rows left; keep the tracked product visible
                self.db.add(self._sentinel(product))

        self.db.commit()
        self.db.refresh(product)
        logger.info(f"Updated product {product.id} in household {household_id}")
        publish_household_event(
            household_id, HouseholdEventType.PRODUCT_UPDATED, {"product_id": product.id}
        )
        return product

    def delete_product(self, household_id: int, product_id: int) -> None:
        """Delete a product together with every batch it owns."""
        product = self.get_product(household_id, product_id)
        self.db.delete(product)
        self.db.commit()
        logger.info(f"Deleted product {product_id} in household {household_id}")
        publish_household_event(
            household_id, HouseholdEventType.PRODUCT_DELETED, {"product_id": product_id}
        )

    # --- Batches ---

    def add_batch(self, household_id: int, product_id: int, data: BatchCreate) -> Batch:
        """Add a lot to an existing product; real stock replaces its sentinels."""
        product = self.get_product(household_id, product_id)
        try:
            self._clear_sentinels(product)
            batch = self._add_batch(product, data)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(batch)
        logger.info(f"Added {batch.quantity} {product.unit} of '{product.name}' at {batch.location}")
        publish_household_event(
            household_id, HouseholdEventType.BATCH_CREATED, {"batch_id": batch.id}
        )
        return batch

    def update_batch(self, household_id: int, batch_id: int, data: BatchUpdate) -> Batch | None:
        """Edit a batch. Returns None if setting it to zero removed a ghost batch."""
        batch = self.get_batch(household_id, batch_id)
        changes = data.model_dump(exclude_unset=True)

        if "location" in changes and changes["location"]:
            batch.location = changes["location"]
        if "expiry_date" in changes:
            batch.expiry_date = changes["expiry_date"]
        if "price" in changes:
            batch.price = changes["price"]
        if "store" in changes:
            batch.store = changes["store"] or None

        removed = False
        if changes.get("quantity") is not None:
            batch.quantity = _q(changes["quantity"])
            if batch.quantity == 0:
                removed = self._exhaust(batch.product, batch)

        self.db.commit()
        publish_household_event(
            household_id,
            HouseholdEventType.BATCH_DELETED if removed else HouseholdEventType.BATCH_UPDATED,
            {"batch_id": batch_id},
        )
        if removed:
            return None
        self.db.refresh(batch)
        return batch

    def delete_batch(self, household_id: int, batch_id: int) -> DeletionOutcome:
        """Delete one batch.

        Removing the last stocked batch of a product follows the same rule as
        consumption: a ghost product disappears entirely, a tracked product
        keeps a zero-quantity sentinel. Any other batch is simply deleted.
        """
        batch = self.get_batch(household_id, batch_id)
        product = batch.product
        others_stocked = any(b.id != batch.id and b.quantity > 0 for b in product.batches)

        if batch.quantity > 0 and not others_stocked:
            if product.is_ghost:
                self.db.delete(product)
                outcome = DeletionOutcome.PRODUCT_DELETED
            else:
                batch.quantity = 0
                batch.expiry_date = None
                outcome = DeletionOutcome.SENTINEL
        else:
            self.db.delete(batch)
            outcome = DeletionOutcome.DELETED

        self.db.commit()
        logger.info(f"Deleted batch {batch_id} ({outcome}) in household {household_id}")
        event = (
            HouseholdEventType.PRODUCT_DELETED
            if outcome == DeletionOutcome.PRODUCT_DELETED
            else HouseholdEventType.BATCH_DELETED
        )
        publish_household_event(household_id, event, {"batch_id": batch_id, "outcome": outcome})
        return outcome

    # --- Consumption ---

    def consume(self, household_id: int, product_id: int, amount: float) -> ConsumptionResult:
        """Deduct an amount from a product, soonest-expiring batches first.

        Each fully drained batch is deleted for ghost products and turned into
        a sentinel (quantity 0, no expiry) for tracked ones.
        """
        product = self.get_product(household_id, product_id)
        stocked = consumption_order(b for b in product.batches if b.quantity > 0)
        total = _q(sum(b.quantity for b in stocked))

        if _q(amount) <= 0:
            raise StockValidationError("Amount to consume must be positive")
        if _q(amount) > total:
            logger.warning(
                f"Rejected consuming {amount} of product {product_id}: only {total} in stock"
            )
            raise StockValidationError(f"Cannot consume {amount}: only {total} in stock")

        result = ConsumptionResult(product_id=product.id, consumed=_q(amount))
        remaining = _q(amount)
        try:
            for batch in stocked:
                if remaining <= 0:
                    break
                if batch.quantity > remaining:
                    batch.quantity = _q(batch.quantity - remaining)
                    remaining = 0
                    result.updated_batch_ids.append(batch.id)
                    continue
                remaining = _q(remaining - batch.quantity)
                if self._exhaust(product, batch):
                    result.deleted_batch_ids.append(batch.id)
                else:
                    result.sentinel_batch_ids.append(batch.id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Consumed {amount} {product.unit} of '{product.name}'")
        publish_household_event(
            household_id,
            HouseholdEventType.STOCK_CONSUMED,
            {"product_id": product.id, "amount": result.consumed},
        )
        return result

    # --- Move / split ---

    def move_batch(
        self,
        household_id: int,
        batch_id: int,
        destination: str,
        quantity: float,
        origin_expiry_date: date | None = None,
        destination_expiry_date: date | None = None,
    ) -> MoveResult:
        """Move a batch, or split off part of it, to another location.

        Moving the whole quantity relocates the batch in place. Moving less
        leaves the rest at the origin and creates a new batch at the
        destination. The expiry overrides default to the batch's own date.
        """
        batch = self.get_batch(household_id, batch_id)
        destination = (destination or "").strip()
        if not destination:
            raise StockValidationError("A destination location is required")
        if _q(quantity) <= 0 or _q(quantity) > _q(batch.quantity):
            raise StockValidationError(
                f"Quantity to move must be between 0 and {batch.quantity}"
            )

        try:
            if _q(quantity) == _q(batch.quantity):
                batch.location = destination
                if destination_expiry_date is not None:
                    batch.expiry_date = destination_expiry_date
                result = MoveResult(source=batch)
            else:
                new_batch = Batch(
                    product_id=batch.product_id,
                    household_id=batch.household_id,
                    quantity=_q(quantity),
                    location=destination,
                    store=batch.store,
                    price=batch.price,
                    expiry_date=destination_expiry_date or batch.expiry_date,
                )
                batch.quantity = _q(batch.quantity - quantity)
                if origin_expiry_date is not None:
                    batch.expiry_date = origin_expiry_date
                self.db.add(new_batch)
                result = MoveResult(source=batch, created=new_batch)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(result.source)
        if result.created is not None:
            self.db.refresh(result.created)
        logger.info(f"Moved {quantity} of batch {batch_id} to {destination}")
        publish_household_event(
            household_id,
            HouseholdEventType.BATCH_MOVED,
            {"batch_id": batch_id, "split": result.created is not None},
        )
        return result

    def move_all(self, household_id: int, product_id: int, destination: str) -> int:
        """Relocate every stocked batch of a product. Returns how many moved."""
        product = self.get_product(household_id, product_id)
        destination = (destination or "").strip()
        if not destination:
            raise StockValidationError("A destination location is required")

        moved = 0
        for batch in product.batches:
            if batch.quantity > 0:
                batch.location = destination
                moved += 1
        self.db.commit()
        logger.info(f"Moved {moved} batches of '{product.name}' to {destination}")
        publish_household_event(
            household_id, HouseholdEventType.BATCH_MOVED, {"product_id": product_id}
        )
        return moved

    # --- Reception ---

    def receive(self, household_id: int, entry_id: int, data: ReceptionRequest) -> ReceptionResult:
        """Promote a bought shopping entry into a batch.

        Product resolution, batch insertion and entry removal happen in one
        transaction. The batch is written before the entry is deleted, so a
        failure never loses the purchase.
        """
        entry = (
            self.db.query(ShoppingListEntry)
            .filter(
                ShoppingListEntry.id == entry_id,
                ShoppingListEntry.household_id == household_id,
            )
            .first()
        )
        if not entry:
            raise StockNotFoundError("Shopping entry", entry_id)
        if entry.status != ShoppingStatus.BOUGHT.value:
            raise StockValidationError(
                f"Only bought entries can be received (entry is {entry.status})"
            )

        try:
            product = self.find_product_by_name(household_id, entry.item_name)
            created = product is None
            if created:
                is_ghost = entry.is_ghost if data.is_ghost is None else data.is_ghost
                product = self._new_product(
                    household_id,
                    name=entry.item_name.strip(),
                    category=entry.category or "Pantry",
                    unit=data.unit or Unit(entry.unit or Unit.UNITS.value),
                    importance=data.importance,
                    min_quantity=data.min_quantity,
                    is_ghost=is_ghost,
                )
            else:
                self._clear_sentinels(product)

            batch = self._add_batch(
                product,
                BatchCreate(
                    quantity=data.quantity,
                    location=data.location,
                    expiry_date=data.expiry_date,
                    price=data.price,
                    price_type=data.price_type,
                    store=data.store,
                ),
            )
            self.db.flush()
            self.db.delete(entry)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(batch)
        logger.info(
            f"Received {batch.quantity} {product.unit} of '{product.name}'"
            f"{' (new product)' if created else ''}"
        )
        publish_household_event(
            household_id,
            HouseholdEventType.STOCK_RECEIVED,
            {"product_id": product.id, "batch_id": batch.id, "entry_id": entry_id},
        )
        return ReceptionResult(product=product, batch=batch, product_created=created)

    # --- Internals ---

    def _new_product(
        self,
        household_id: int,
        *,
        name: str,
        category: str,
        unit: Unit,
        importance: Importance,
        min_quantity: float | None,
        is_ghost: bool,
    ) -> Product:
        if is_ghost or importance == Importance.GHOST:
            is_ghost = True
            importance = Importance.GHOST
            min_quantity = None
        product = Product(
            household_id=household_id,
            name=name,
            normalized_name=normalize_name(name),
            category=category,
            unit=Unit(unit).value,
            importance=Importance(importance).value,
            min_quantity=min_quantity,
            is_ghost=is_ghost,
        )
        self.db.add(product)
        self.db.flush()
        return product

    def _add_batch(self, product: Product, data: BatchCreate) -> Batch:
        if _q(data.quantity) <= 0:
            raise StockValidationError("Batch quantity must be positive")
        batch = Batch(
            product_id=product.id,
            household_id=product.household_id,
            quantity=_q(data.quantity),
            location=(data.location or "").strip() or self.settings.default_location,
            store=data.store or None,
            price=unit_price(data.price, data.price_type, data.quantity),
            expiry_date=data.expiry_date,
        )
        product.batches.append(batch)
        self.db.add(batch)
        self.db.flush()
        return batch

    def _sentinel(self, product: Product) -> Batch:
        return Batch(
            product=product,
            household_id=product.household_id,
            quantity=0,
            location=self.settings.default_location,
        )

    def _clear_sentinels(self, product: Product) -> None:
        for batch in list(product.batches):
            if batch.quantity <= 0:
                product.batches.remove(batch)
                self.db.delete(batch)

    def _exhaust(self, product: Product, batch: Batch) -> bool:
        """Apply the zero-quantity rule to a drained batch. Returns True if deleted."""
        if product.is_ghost:
            if batch in product.batches:
                product.batches.remove(batch)
            self.db.delete(batch)
            return True
        batch.quantity = 0
        batch.expiry_date = None
        return False
