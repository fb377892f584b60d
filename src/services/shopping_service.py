"""Shopping list entries created and moved through their lifecycle by users."""

import logging

from sqlalchemy.orm import Session

from src.models.enums import ShoppingStatus
from src.models.product import normalize_name
from src.models.shopping_entry import ShoppingListEntry
from src.schemas.shopping import ShoppingEntryCreate
from src.services.exceptions import StockNotFoundError, StockValidationError
from src.services.realtime import HouseholdEventType, publish_household_event
from src.services.reconciliation import OPEN_STATUSES, insert_entry_if_absent

logger = logging.getLogger(__name__)

# Allowed user-driven transitions: current status -> new statuses
TRANSITIONS: dict[str, set[str]] = {
    ShoppingStatus.ACTIVE.value: {
        ShoppingStatus.CHECKED.value,
        ShoppingStatus.POSTPONED.value,
        ShoppingStatus.ARCHIVED.value,
    },
    ShoppingStatus.CHECKED.value: {
        ShoppingStatus.ACTIVE.value,
        ShoppingStatus.BOUGHT.value,
        ShoppingStatus.ARCHIVED.value,
    },
    ShoppingStatus.POSTPONED.value: {ShoppingStatus.ACTIVE.value, ShoppingStatus.ARCHIVED.value},
    ShoppingStatus.BOUGHT.value: {ShoppingStatus.ARCHIVED.value},
    ShoppingStatus.ARCHIVED.value: set(),
}


class ShoppingService:
    """Service for manual shopping list operations."""

    def __init__(self, db: Session):
        self.db = db

    def get_entry(self, household_id: int, entry_id: int) -> ShoppingListEntry:
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
        return entry

    def list_open(self, household_id: int) -> list[ShoppingListEntry]:
        """Entries still to buy: active, checked and postponed."""
        return (
            self.db.query(ShoppingListEntry)
            .filter(
                ShoppingListEntry.household_id == household_id,
                ShoppingListEntry.status.in_(OPEN_STATUSES),
            )
            .order_by(ShoppingListEntry.created_at, ShoppingListEntry.id)
            .all()
        )

    def list_reception(self, household_id: int) -> list[ShoppingListEntry]:
        """Bought entries waiting to be received into stock, newest first."""
        return (
            self.db.query(ShoppingListEntry)
            .filter(
                ShoppingListEntry.household_id == household_id,
                ShoppingListEntry.status == ShoppingStatus.BOUGHT.value,
            )
            .order_by(ShoppingListEntry.created_at.desc(), ShoppingListEntry.id.desc())
            .all()
        )

    def add_manual(
        self, household_id: int, data: ShoppingEntryCreate
    ) -> tuple[ShoppingListEntry, bool]:
        """Add an entry by hand.

        Returns the entry and whether it was created; an existing active
        entry with the same name is returned unchanged instead of duplicated.
        """
        name = data.item_name.strip()
        if not name:
            raise StockValidationError("Item name must not be empty")
        normalized = normalize_name(name)

        created = insert_entry_if_absent(
            self.db,
            {
                "household_id": household_id,
                "item_name": name,
                "normalized_name": normalized,
                "category": data.category,
                "priority": data.priority.value,
                "status": ShoppingStatus.ACTIVE.value,
                "quantity": data.quantity,
                "unit": data.unit.value if data.unit else None,
                "is_manual": True,
                "is_ghost": data.is_ghost,
            },
        )
        self.db.commit()

        entry = (
            self.db.query(ShoppingListEntry)
            .filter(
                ShoppingListEntry.household_id == household_id,
                ShoppingListEntry.normalized_name == normalized,
                ShoppingListEntry.status == ShoppingStatus.ACTIVE.value,
            )
            .one()
        )
        if created:
            logger.info(f"Added '{name}' to shopping list of household {household_id}")
            publish_household_event(
                household_id, HouseholdEventType.SHOPPING_CREATED, {"entry_id": entry.id}
            )
        return entry, created

    def set_status(
        self, household_id: int, entry_id: int, status: ShoppingStatus
    ) -> ShoppingListEntry:
        entry = self.get_entry(household_id, entry_id)
        if status.value not in TRANSITIONS.get(entry.status, set()):
            raise StockValidationError(f"Cannot move entry from {entry.status} to {status.value}")
        if status == ShoppingStatus.ACTIVE and self._has_other_active(entry):
            raise StockValidationError(f"'{entry.item_name}' is already on the active list")

        entry.status = status.value
        self.db.commit()
        self.db.refresh(entry)
        publish_household_event(
            household_id,
            HouseholdEventType.SHOPPING_UPDATED,
            {"entry_id": entry.id, "status": entry.status},
        )
        return entry

    def toggle(self, household_id: int, entry_id: int) -> ShoppingListEntry:
        """Check an active entry, or bring a checked/postponed one back to active."""
        entry = self.get_entry(household_id, entry_id)
        if entry.status == ShoppingStatus.ACTIVE.value:
            return self.set_status(household_id, entry_id, ShoppingStatus.CHECKED)
        return self.set_status(household_id, entry_id, ShoppingStatus.ACTIVE)

    def finish_shopping(self, household_id: int) -> list[ShoppingListEntry]:
        """Mark every checked entry as bought, queuing it for reception."""
        checked = (
            self.db.query(ShoppingListEntry)
            .filter(
                ShoppingListEntry.household_id == household_id,
                ShoppingListEntry.status == ShoppingStatus.CHECKED.value,
            )
            .all()
        )
        for entry in checked:
            entry.status = ShoppingStatus.BOUGHT.value
        self.db.commit()

        if checked:
            logger.info(f"Marked {len(checked)} entries bought in household {household_id}")
            publish_household_event(
                household_id,
                HouseholdEventType.SHOPPING_UPDATED,
                {"entry_ids": [e.id for e in checked], "status": ShoppingStatus.BOUGHT.value},
            )
        return checked

    def delete(self, household_id: int, entry_id: int) -> None:
        entry = self.get_entry(household_id, entry_id)
        self.db.delete(entry)
        self.db.commit()
        publish_household_event(
            household_id, HouseholdEventType.SHOPPING_DELETED, {"entry_id": entry_id}
        )

    def _has_other_active(self, entry: ShoppingListEntry) -> bool:
        return (
            self.db.query(ShoppingListEntry.id)
            .filter(
                ShoppingListEntry.household_id == entry.household_id,
                ShoppingListEntry.normalized_name == entry.normalized_name,
                ShoppingListEntry.status == ShoppingStatus.ACTIVE.value,
                ShoppingListEntry.id != entry.id,
            )
            .first()
            is not None
        )
