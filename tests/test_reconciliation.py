"""Tests for evaluation and shopping list reconciliation."""

from datetime import timedelta

import pytest

from src.models.enums import Importance, ShoppingStatus
from src.models.shopping_entry import ShoppingListEntry
from src.schemas.product import ProductUpdate
from src.services.inventory_service import InventoryService
from src.services.reconciliation import insert_entry_if_absent
from src.services.stock_service import StockService

HOUSEHOLD_ID = 1


def entries(db, **filters):
    query = db.query(ShoppingListEntry).filter_by(household_id=HOUSEHOLD_ID, **filters)
    return query.order_by(ShoppingListEntry.id).all()


class TestInsertion:
    """Tests for automatic entry creation."""

    def test_critical_shortage_creates_panic_entry(self, db, make_product):
        make_product("Milk", Importance.CRITICAL, batches=[(2, None)])

        result = StockService(db).evaluate(HOUSEHOLD_ID).reconciliation

        assert result.created == ["Milk"]
        (entry,) = entries(db)
        assert entry.item_name == "Milk"
        assert entry.normalized_name == "milk"
        assert entry.status == "active"
        assert entry.priority == "panic"
        assert entry.is_manual is False

    def test_high_shortage_creates_low_priority_entry(self, db, make_product, today):
        make_product("Eggs", Importance.HIGH, batches=[(3, today + timedelta(days=2))])

        StockService(db).evaluate(HOUSEHOLD_ID)

        (entry,) = entries(db)
        assert entry.priority == "low"

    def test_out_of_stock_sentinel_creates_entry(self, db, make_product):
        make_product("Coffee", Importance.CRITICAL, batches=[(0, None)])

        result = StockService(db).evaluate(HOUSEHOLD_ID).reconciliation

        assert result.created == ["Coffee"]

    def test_normal_product_never_auto_listed(self, db, make_product):
        make_product("Bread", Importance.NORMAL, batches=[(0, None)])

        result = StockService(db).evaluate(HOUSEHOLD_ID).reconciliation

        assert result.changed is False
        assert entries(db) == []

    def test_ghost_product_never_auto_listed(self, db, make_product):
        make_product("Chips", is_ghost=True, batches=[(1, None)])

        StockService(db).evaluate(HOUSEHOLD_ID)

        assert entries(db) == []

    def test_evaluating_twice_is_idempotent(self, db, make_product):
        make_product("Milk", Importance.CRITICAL, batches=[(2, None)])
        service = StockService(db)

        first = service.evaluate(HOUSEHOLD_ID)
        second = service.evaluate(HOUSEHOLD_ID)

        assert first.reconciliation.created == ["Milk"]
        assert second.reconciliation.changed is False
        assert len(entries(db)) == 1

    @pytest.mark.parametrize("status", ["active", "checked", "postponed"])
    def test_open_entry_blocks_insertion(self, db, make_product, make_entry, status):
        make_product("Milk", Importance.CRITICAL, batches=[(2, None)])
        make_entry("milk", status=status)

        result = StockService(db).evaluate(HOUSEHOLD_ID).reconciliation

        assert result.created == []
        assert len(entries(db)) == 1

    def test_archived_entry_does_not_block(self, db, make_product, make_entry):
        make_product("Milk", Importance.CRITICAL, batches=[(2, None)])
        make_entry("Milk", status=ShoppingStatus.ARCHIVED.value)

        result = StockService(db).evaluate(HOUSEHOLD_ID).reconciliation

        assert result.created == ["Milk"]

    def test_incoming_stock_suppresses_insertion(self, db, make_product, make_entry):
        make_product("Milk", Importance.CRITICAL, batches=[(2, None)])
        make_entry("Milk", status=ShoppingStatus.BOUGHT.value, quantity=6)

        result = StockService(db).evaluate(HOUSEHOLD_ID).reconciliation

        assert result.created == []
        assert entries(db, status="active") == []

    def test_insufficient_incoming_stock_still_inserts(self, db, make_product, make_entry):
        make_product("Milk", Importance.CRITICAL, batches=[(1, None)])
        make_entry("Milk", status=ShoppingStatus.BOUGHT.value, quantity=2)

        result = StockService(db).evaluate(HOUSEHOLD_ID).reconciliation

        assert result.created == ["Milk"]

    def test_households_are_isolated(self, db, make_product):
        make_product("Milk", Importance.CRITICAL, batches=[(2, None)], household_id=2)

        result = StockService(db).evaluate(HOUSEHOLD_ID).reconciliation

        assert result.changed is False
        assert db.query(ShoppingListEntry).count() == 0


class TestClearance:
    """Tests for removing entries once stock recovers."""

    def test_restocked_product_clears_auto_entry(self, db, make_product, make_entry):
        make_product("Milk", Importance.CRITICAL, batches=[(6, None)])
        make_entry("Milk", is_manual=False)

        result = StockService(db).evaluate(HOUSEHOLD_ID).reconciliation

        assert result.cleared == ["Milk"]
        assert entries(db) == []

    def test_manual_entry_is_kept(self, db, make_product, make_entry):
        make_product("Milk", Importance.CRITICAL, batches=[(6, None)])
        make_entry("Milk", is_manual=True)

        result = StockService(db).evaluate(HOUSEHOLD_ID).reconciliation

        assert result.cleared == []
        assert len(entries(db)) == 1

    def test_checked_entry_is_kept(self, db, make_product, make_entry):
        make_product("Milk", Importance.CRITICAL, batches=[(6, None)])
        make_entry("Milk", status=ShoppingStatus.CHECKED.value, is_manual=False)

        result = StockService(db).evaluate(HOUSEHOLD_ID).reconciliation

        assert result.cleared == []

    def test_stock_at_threshold_keeps_entry(self, db, make_product, make_entry):
        make_product("Milk", Importance.CRITICAL, batches=[(4, None)])
        make_entry("Milk", is_manual=False)

        result = StockService(db).evaluate(HOUSEHOLD_ID).reconciliation

        assert result.changed is False
        assert len(entries(db)) == 1

    def test_expiring_stock_does_not_count_toward_clearance(self, db, make_product, make_entry, today):
        make_product("Milk", Importance.CRITICAL, batches=[(6, today + timedelta(days=1))])
        make_entry("Milk", is_manual=False)

        result = StockService(db).evaluate(HOUSEHOLD_ID).reconciliation

        assert result.cleared == []

    def test_product_turned_ghost_clears_auto_entry(self, db, make_product):
        milk = make_product("Milk", Importance.CRITICAL, batches=[(1, None)])
        service = StockService(db)
        assert service.evaluate(HOUSEHOLD_ID).reconciliation.created == ["Milk"]

        InventoryService(db).update_product(HOUSEHOLD_ID, milk.id, ProductUpdate(is_ghost=True))
        result = service.evaluate(HOUSEHOLD_ID).reconciliation

        assert result.cleared == ["Milk"]
        assert entries(db) == []

    def test_ghost_product_keeps_manual_entry(self, db, make_product, make_entry):
        make_product("Chips", is_ghost=True, batches=[(1, None)])
        make_entry("Chips", is_manual=True)
        make_entry("Chips", status=ShoppingStatus.POSTPONED.value, is_manual=False)

        result = StockService(db).evaluate(HOUSEHOLD_ID).reconciliation

        assert result.changed is False
        assert len(entries(db)) == 2

    def test_incoming_stock_clears_auto_entry(self, db, make_product, make_entry):
        make_product("Milk", Importance.CRITICAL, batches=[(2, None)])
        make_entry("Milk", is_manual=False)
        make_entry("Milk", status=ShoppingStatus.BOUGHT.value, quantity=3)

        result = StockService(db).evaluate(HOUSEHOLD_ID).reconciliation

        assert result.cleared == ["Milk"]
        assert [e.status for e in entries(db)] == ["bought"]


class TestInsertEntryIfAbsent:
    """Tests for the conflict-tolerant insert."""

    def values(self, name="Milk"):
        return {
            "household_id": HOUSEHOLD_ID,
            "item_name": name,
            "normalized_name": name.lower(),
            "priority": "panic",
            "status": "active",
            "is_manual": False,
            "is_ghost": False,
        }

    def test_second_insert_is_ignored(self, db):
        assert insert_entry_if_absent(db, self.values()) is True
        assert insert_entry_if_absent(db, self.values()) is False
        db.commit()

        assert len(entries(db)) == 1

    def test_inactive_entries_do_not_conflict(self, db, make_entry):
        make_entry("Milk", status=ShoppingStatus.BOUGHT.value)
        make_entry("Milk", status=ShoppingStatus.ARCHIVED.value)

        assert insert_entry_if_absent(db, self.values()) is True
        db.commit()

        assert len(entries(db)) == 3


class TestSummary:
    """Tests for the dashboard counters."""

    def test_counts_alerts_and_shopping(self, db, make_product, make_entry, today):
        make_product("Milk", Importance.CRITICAL, batches=[(1, today + timedelta(days=1))])
        make_product("Eggs", Importance.HIGH, batches=[(1, None)])
        make_product("Bread", Importance.NORMAL, batches=[(0, None)])
        make_product("Yogurt", Importance.NORMAL, batches=[(5, today + timedelta(days=2))])
        make_entry("Flour", status=ShoppingStatus.BOUGHT.value)
        service = StockService(db)
        service.evaluate(HOUSEHOLD_ID)

        summary = service.summarize(HOUSEHOLD_ID)

        assert summary.critical_count == 1
        assert summary.high_count == 1
        assert summary.normal_count == 1
        assert summary.expiring_only_count == 1
        assert summary.has_critical_expiry is True
        assert summary.has_high_expiry is False
        assert summary.shopping_count == 2
        assert summary.max_shopping_priority == "panic"
        assert summary.reception_count == 1

    def test_normal_entries_only_report_normal_priority(self, db, make_entry):
        make_entry("Flour")
        make_entry("Salt", status=ShoppingStatus.POSTPONED.value)

        summary = StockService(db).summarize(HOUSEHOLD_ID)

        assert summary.shopping_count == 2
        assert summary.max_shopping_priority == "normal"

    def test_empty_household_is_stocked(self, db):
        summary = StockService(db).summarize(HOUSEHOLD_ID)

        assert summary.critical_count == 0
        assert summary.shopping_count == 0
        assert summary.max_shopping_priority == "stocked"
