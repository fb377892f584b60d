"""Tests for product, batch and stock API endpoints."""

from datetime import timedelta

from src.models.enums import Importance
from src.models.shopping_entry import ShoppingListEntry

HOUSEHOLD_ID = 1

BASE = f"/api/v1/households/{HOUSEHOLD_ID}"


class TestProducts:
    """Tests for the product registry endpoints."""

    def test_create_product_with_initial_batch(self, client, today):
        response = client.post(
            f"{BASE}/products",
            json={
                "name": "Milk",
                "importance": "critical",
                "initial_batch": {
                    "quantity": 6,
                    "location": "Fridge",
                    "expiry_date": (today + timedelta(days=10)).isoformat(),
                },
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Milk"
        assert data["normalized_name"] == "milk"
        assert data["importance"] == "critical"
        assert data["threshold"] == 4

    def test_create_low_critical_product_adds_shopping_entry(self, client, db):
        response = client.post(
            f"{BASE}/products",
            json={"name": "Milk", "importance": "critical", "initial_batch": {"quantity": 2}},
        )

        assert response.status_code == 201
        entry = db.query(ShoppingListEntry).one()
        assert entry.item_name == "Milk"
        assert entry.priority == "panic"

    def test_create_duplicate_product_conflicts(self, client, make_product):
        make_product("Milk")

        response = client.post(f"{BASE}/products", json={"name": "milk"})

        assert response.status_code == 409

    def test_create_product_requires_name(self, client):
        response = client.post(f"{BASE}/products", json={"name": ""})

        assert response.status_code == 422

    def test_create_product_rejects_unknown_importance(self, client):
        response = client.post(f"{BASE}/products", json={"name": "Milk", "importance": "vital"})

        assert response.status_code == 422

    def test_list_products(self, client, make_product):
        make_product("Rice")
        make_product("Beans")
        make_product("Other", household_id=2)

        response = client.get(f"{BASE}/products")

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Beans", "Rice"]

    def test_get_missing_product(self, client):
        response = client.get(f"{BASE}/products/999")

        assert response.status_code == 404

    def test_update_product(self, client, make_product):
        rice = make_product("Rice", batches=[(1, None)])

        response = client.put(
            f"{BASE}/products/{rice.id}", json={"importance": "high", "min_quantity": 5}
        )

        assert response.status_code == 200
        assert response.json()["threshold"] == 5

    def test_delete_product(self, client, make_product):
        rice = make_product("Rice", batches=[(1, None)])
        product_id = rice.id

        response = client.delete(f"{BASE}/products/{product_id}")

        assert response.status_code == 204
        assert client.get(f"{BASE}/products/{product_id}").status_code == 404

    def test_add_batch(self, client, make_product):
        rice = make_product("Rice", batches=[(0, None)])

        response = client.post(
            f"{BASE}/products/{rice.id}/batches",
            json={"quantity": 4, "price": 8, "store": "Market"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["quantity"] == 4
        assert data["price"] == 2
        assert data["location"] == "Pantry"

    def test_add_batch_rejects_zero_quantity(self, client, make_product):
        rice = make_product("Rice")

        response = client.post(f"{BASE}/products/{rice.id}/batches", json={"quantity": 0})

        assert response.status_code == 422


class TestConsume:
    """Tests for the consume endpoint."""

    def test_consume_returns_recomputed_stock(self, client, make_product, db):
        milk = make_product("Milk", Importance.CRITICAL, batches=[(6, None)])

        response = client.post(f"{BASE}/products/{milk.id}/consume", json={"amount": 4})

        assert response.status_code == 200
        data = response.json()
        assert data["consumed"] == 4
        stock = data["stock"]
        assert stock["products"][0]["total_quantity"] == 2
        assert stock["critical"][0]["reason"] == "low_stock"
        assert stock["reconciliation"]["created"] == ["Milk"]
        assert db.query(ShoppingListEntry).count() == 1

    def test_consume_more_than_stock_is_rejected(self, client, make_product):
        milk = make_product("Milk", batches=[(1, None)])

        response = client.post(f"{BASE}/products/{milk.id}/consume", json={"amount": 2})

        assert response.status_code == 400

    def test_consume_negative_amount_is_invalid(self, client, make_product):
        milk = make_product("Milk", batches=[(1, None)])

        response = client.post(f"{BASE}/products/{milk.id}/consume", json={"amount": -1})

        assert response.status_code == 422

    def test_move_all(self, client, make_product):
        meat = make_product("Meat", batches=[(1, None), (2, None)])

        response = client.post(
            f"{BASE}/products/{meat.id}/move-all", json={"destination": "Freezer"}
        )

        assert response.status_code == 200
        locations = {b["location"] for b in response.json()["products"][0]["batches"]}
        assert locations == {"Freezer"}


class TestBatches:
    """Tests for the batch endpoints."""

    def test_split_batch(self, client, make_product, db):
        meat = make_product("Meat", batches=[(3, None)])
        batch_id = meat.batches[0].id

        response = client.post(
            f"{BASE}/batches/{batch_id}/move", json={"destination": "Freezer", "quantity": 1}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["source"]["quantity"] == 2
        assert data["created"]["quantity"] == 1
        assert data["created"]["location"] == "Freezer"
        assert data["stock"]["products"][0]["total_quantity"] == 3

    def test_move_too_much_is_rejected(self, client, make_product):
        meat = make_product("Meat", batches=[(3, None)])
        batch_id = meat.batches[0].id

        response = client.post(
            f"{BASE}/batches/{batch_id}/move", json={"destination": "Freezer", "quantity": 5}
        )

        assert response.status_code == 400

    def test_delete_last_batch_leaves_sentinel(self, client, make_product):
        milk = make_product("Milk", Importance.CRITICAL, batches=[(2, None)])
        batch_id = milk.batches[0].id

        response = client.delete(f"{BASE}/batches/{batch_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["outcome"] == "sentinel"
        assert data["stock"]["critical"][0]["reason"] == "out_of_stock"

    def test_update_ghost_batch_to_zero_removes_it(self, client, make_product):
        chips = make_product("Chips", is_ghost=True, batches=[(2, None)])
        batch_id = chips.batches[0].id

        response = client.put(f"{BASE}/batches/{batch_id}", json={"quantity": 0})

        assert response.status_code == 204
        assert client.get(f"{BASE}/batches/{batch_id}").status_code == 404

    def test_batch_of_other_household_not_found(self, client, make_product):
        milk = make_product("Milk", batches=[(2, None)], household_id=2)

        response = client.get(f"{BASE}/batches/{milk.batches[0].id}")

        assert response.status_code == 404


class TestStock:
    """Tests for the stock view endpoints."""

    def test_stock_view_groups_batches(self, client, make_product, today):
        make_product("Eggs", Importance.HIGH, batches=[(3, today + timedelta(days=2)), (5, None)])

        response = client.get(f"{BASE}/stock")

        assert response.status_code == 200
        data = response.json()
        (eggs,) = data["products"]
        assert eggs["total_quantity"] == 8
        assert eggs["healthy_quantity"] == 5
        assert eggs["expiring_quantity"] == 3
        assert eggs["has_expiring_batch"] is True
        assert data["critical"] == []
        assert data["suggestions"][0]["reason"] == "expiring_soon"

    def test_summary(self, client, make_product):
        make_product("Milk", Importance.CRITICAL, batches=[(1, None)])
        client.get(f"{BASE}/stock")

        response = client.get(f"{BASE}/stock/summary")

        assert response.status_code == 200
        data = response.json()
        assert data["critical_count"] == 1
        assert data["shopping_count"] == 1
        assert data["max_shopping_priority"] == "panic"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
