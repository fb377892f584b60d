"""Household stock evaluation: recompute the grouped view and reconcile."""

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session, joinedload

from src.config import get_settings
from src.models.batch import Batch
from src.models.enums import Importance, ShoppingPriority, ShoppingStatus
from src.models.shopping_entry import ShoppingListEntry
from src.services.aggregation import AlertReason, StockView, build_stock_view
from src.services.realtime import HouseholdEventType, publish_household_event
from src.services.reconciliation import OPEN_STATUSES, ReconciliationResult, ShoppingReconciler

logger = logging.getLogger(__name__)

PRIORITY_RANK = {
    ShoppingPriority.PANIC.value: 2,
    ShoppingPriority.LOW.value: 1,
    ShoppingPriority.NORMAL.value: 0,
}


@dataclass
class StockEvaluation:
    """A freshly recomputed view and the shopping list changes it caused."""

    view: StockView
    reconciliation: ReconciliationResult


@dataclass
class StockSummary:
    """Counters for the household dashboard."""

    critical_count: int
    high_count: int
    normal_count: int
    expiring_only_count: int
    has_critical_expiry: bool
    has_high_expiry: bool
    shopping_count: int
    max_shopping_priority: str  # panic | low | normal | stocked
    reception_count: int


class StockService:
    """Service for recomputing and reconciling a household's stock."""

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    def recompute(self, household_id: int, today: date | None = None) -> StockView:
        """Rebuild the grouped view from every batch the household owns."""
        batches = (
            self.db.query(Batch)
            .options(joinedload(Batch.product))
            .filter(Batch.household_id == household_id)
            .all()
        )
        return build_stock_view(batches, today, self.settings.expiry_window_days)

    def evaluate(self, household_id: int, today: date | None = None) -> StockEvaluation:
        """Recompute the view, then sync the shopping list with its alerts.

        Safe to call after any change notification: a second call with no
        intervening mutation recomputes the same view and changes nothing.
        """
        view = self.recompute(household_id, today)
        try:
            result = ShoppingReconciler(self.db).reconcile(household_id, view)
            if result.changed:
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if result.changed:
            publish_household_event(
                household_id,
                HouseholdEventType.STOCK_RECONCILED,
                {"created": result.created, "cleared": result.cleared},
            )
        return StockEvaluation(view=view, reconciliation=result)

    def summarize(self, household_id: int, today: date | None = None) -> StockSummary:
        """Dashboard counters from the current view and shopping list."""
        view = self.recompute(household_id, today)

        critical = [a for a in view.critical if a.product.importance == Importance.CRITICAL]
        high = [a for a in view.critical if a.product.importance == Importance.HIGH]
        normal = [
            a
            for a in view.suggestions
            if a.reason in (AlertReason.OPTIONAL_RESTOCK, AlertReason.OPTIONAL_OUT_OF_STOCK)
        ]
        expiring_only = [a for a in view.suggestions if a.reason == AlertReason.EXPIRING_SOON]

        open_priorities = [
            priority
            for (priority,) in self.db.query(ShoppingListEntry.priority).filter(
                ShoppingListEntry.household_id == household_id,
                ShoppingListEntry.status.in_(OPEN_STATUSES),
            )
        ]
        reception_count = (
            self.db.query(ShoppingListEntry)
            .filter(
                ShoppingListEntry.household_id == household_id,
                ShoppingListEntry.status == ShoppingStatus.BOUGHT.value,
            )
            .count()
        )

        if open_priorities:
            max_priority = max(open_priorities, key=lambda p: PRIORITY_RANK.get(p, 0))
        else:
            max_priority = "stocked"

        return StockSummary(
            critical_count=len(critical),
            high_count=len(high),
            normal_count=len(normal),
            expiring_only_count=len(expiring_only),
            has_critical_expiry=any(a.product.has_expiring_batch for a in critical),
            has_high_expiry=any(a.product.has_expiring_batch for a in high),
            shopping_count=len(open_priorities),
            max_shopping_priority=max_priority,
            reception_count=reception_count,
        )
