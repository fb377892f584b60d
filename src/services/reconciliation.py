"""Shopping list reconciliation against detected stock shortages."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from sqlalchemy import text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.models.enums import ShoppingPriority, ShoppingStatus
from src.models.shopping_entry import ShoppingListEntry
from src.services.aggregation import GroupedProduct, StockView

logger = logging.getLogger(__name__)

OPEN_STATUSES = [s.value for s in ShoppingStatus if s.is_open]
ACTIVE_ENTRY_CONDITION = "status = 'active'"


@dataclass
class ReconciliationResult:
    """Shopping list mutations made by one reconciliation pass."""

    created: list[str] = field(default_factory=list)
    cleared: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.cleared)


def insert_entry_if_absent(db: Session, values: dict) -> bool:
    """Insert an active shopping entry unless one already exists for the name.

    Backed by the partial unique index on active entries, so two evaluators
    racing on the same shortage still leave exactly one row. Returns True
    if a row was inserted.
    """
    dialect = db.get_bind().dialect.name
    if dialect in ("postgresql", "sqlite"):
        insert = pg_insert if dialect == "postgresql" else sqlite_insert
        stmt = (
            insert(ShoppingListEntry)
            .values(**values)
            .on_conflict_do_nothing(
                index_elements=["household_id", "normalized_name"],
                index_where=text(ACTIVE_ENTRY_CONDITION),
            )
        )
        result = db.execute(stmt)
        return bool(result.rowcount)

    # Other backends: rely on the unique index and swallow the conflict
    try:
        with db.begin_nested():
            db.add(ShoppingListEntry(**values))
    except IntegrityError:
        return False
    return True


class ShoppingReconciler:
    """Keeps a household's shopping list in step with its critical alerts.

    Shortages of critical/high products get one automatic active entry;
    automatic entries are cleared once stock (plus anything bought but not
    yet received) is back above the threshold. Manual entries are never
    removed here.
    """

    def __init__(self, db: Session):
        self.db = db

    def reconcile(self, household_id: int, view: StockView) -> ReconciliationResult:
        result = ReconciliationResult()
        open_entries, incoming = self._load_entries(household_id)

        for group in view.products:
            if group.is_ghost:
                self._clear_auto_entries(open_entries.get(group.normalized_name, []), result)
                continue
            if group.threshold is None:
                continue

            covered = group.healthy_quantity + incoming.get(group.normalized_name, 0.0)
            alert = view.critical_for(group.product_id)

            if alert is not None and self._still_short(group, covered, incoming):
                if group.normalized_name in open_entries:
                    continue
                if self._insert_auto_entry(household_id, group):
                    result.created.append(group.name)
            elif covered > group.threshold:
                self._clear_auto_entries(open_entries.get(group.normalized_name, []), result)

        if result.changed:
            self.db.flush()
            logger.info(
                f"Reconciled household {household_id}: "
                f"created={result.created} cleared={result.cleared}"
            )
        return result

    def _load_entries(
        self, household_id: int
    ) -> tuple[dict[str, list[ShoppingListEntry]], dict[str, float]]:
        entries = (
            self.db.query(ShoppingListEntry)
            .filter(
                ShoppingListEntry.household_id == household_id,
                ShoppingListEntry.status.in_([*OPEN_STATUSES, ShoppingStatus.BOUGHT.value]),
            )
            .all()
        )

        open_entries: dict[str, list[ShoppingListEntry]] = defaultdict(list)
        incoming: dict[str, float] = defaultdict(float)
        for entry in entries:
            if entry.status == ShoppingStatus.BOUGHT.value:
                # Bought but not yet received still counts as stock on its way
                incoming[entry.normalized_name] += entry.quantity or 1
            else:
                open_entries[entry.normalized_name].append(entry)
        return open_entries, incoming

    def _clear_auto_entries(
        self, entries: list[ShoppingListEntry], result: ReconciliationResult
    ) -> None:
        for entry in entries:
            if entry.is_manual or entry.status != ShoppingStatus.ACTIVE.value:
                continue
            self.db.delete(entry)
            result.cleared.append(entry.item_name)

    @staticmethod
    def _still_short(group: GroupedProduct, covered: float, incoming: dict[str, float]) -> bool:
        if group.normalized_name not in incoming:
            return True
        return covered <= group.threshold

    def _insert_auto_entry(self, household_id: int, group: GroupedProduct) -> bool:
        return insert_entry_if_absent(
            self.db,
            {
                "household_id": household_id,
                "item_name": group.name,
                "normalized_name": group.normalized_name,
                "category": group.category,
                "priority": ShoppingPriority.for_importance(group.importance).value,
                "status": ShoppingStatus.ACTIVE.value,
                "unit": group.unit,
                "is_manual": False,
                "is_ghost": False,
            },
        )
