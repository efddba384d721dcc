"""
API tests for purchase order and production endpoints.
"""
import pytest
from decimal import Decimal


pytestmark = pytest.mark.api

BASE_URL = "/api/v1/purchase-orders"


def _po_payload(supplier, warehouse, product, **overrides):
    payload = {
        "supplier_id": supplier.id,
        "warehouse_id": warehouse.id,
        "order_date": "2026-01-15",
        "items": [{
            "product_id": product.id,
            "unit_type": "bag",
            "quantity": 10,
            "bag_weight": 25,
            "unit_price": 100,
            "tax_rate": 10,
        }],
    }
    payload.update(overrides)
    return payload


class TestPurchaseOrderEndpoints:

    def test_create_purchase_order(self, client, supplier, warehouse, product):
        response = client.post(
            f"{BASE_URL}/", json=_po_payload(supplier, warehouse, product), headers={"X-User": "clerk"}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["po_number"] == "PO001"
        assert data["status"] == "pending"
        assert data["created_by"] == "clerk"
        assert Decimal(data["total_amount"]) == Decimal("27500")
        assert Decimal(data["items"][0]["total_kg"]) == Decimal("250")
        assert data["items"][0]["is_production_completed"] is False

    def test_client_totals_are_ignored(self, client, supplier, warehouse, product):
        payload = _po_payload(supplier, warehouse, product, total_amount=1, subtotal=1)
        response = client.post(f"{BASE_URL}/", json=payload)
        assert Decimal(response.json()["total_amount"]) == Decimal("27500")

    def test_missing_bag_weight_is_validation_error(self, client, supplier, warehouse, product):
        payload = _po_payload(supplier, warehouse, product)
        del payload["items"][0]["bag_weight"]
        response = client.post(f"{BASE_URL}/", json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "VALIDATION_ERROR"
        assert body["message"] == "Missing bag weight"
        assert body["details"]["field"] == "items[0].bag_weight"

    def test_malformed_body_is_422(self, client, supplier, warehouse, product):
        payload = _po_payload(supplier, warehouse, product, items="none")
        response = client.post(f"{BASE_URL}/", json=payload)
        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_unknown_supplier_is_404(self, client, warehouse, product, supplier):
        payload = _po_payload(supplier, warehouse, product, supplier_id=9999)
        response = client.post(f"{BASE_URL}/", json=payload)
        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    def test_list_get_and_pending(self, client, supplier, warehouse, product):
        created = client.post(f"{BASE_URL}/", json=_po_payload(supplier, warehouse, product)).json()

        listing = client.get(f"{BASE_URL}/", params={"supplier_id": supplier.id}).json()
        assert listing["pagination"]["total"] == 1
        assert listing["items"][0]["po_number"] == "PO001"

        detail = client.get(f"{BASE_URL}/{created['id']}")
        assert detail.status_code == 200
        assert detail.json()["id"] == created["id"]

        pending = client.get(f"{BASE_URL}/pending-production").json()
        assert pending[0]["po_number"] == "PO001"
        assert pending[0]["pending_item_count"] == 1

        assert client.get(f"{BASE_URL}/9999").status_code == 404

    def test_cancel(self, client, supplier, warehouse, product):
        created = client.post(f"{BASE_URL}/", json=_po_payload(supplier, warehouse, product)).json()

        response = client.post(f"{BASE_URL}/{created['id']}/cancel")
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

        again = client.post(f"{BASE_URL}/{created['id']}/cancel")
        assert again.status_code == 409
        assert again.json()["error"] == "INVALID_STATE"


class TestProductionEndpoints:

    @pytest.fixture
    def purchase_order(self, client, supplier, warehouse, product):
        return client.post(f"{BASE_URL}/", json=_po_payload(supplier, warehouse, product)).json()

    def _item_url(self, purchase_order):
        item_id = purchase_order["items"][0]["id"]
        return f"/api/v1/production/purchase-orders/{purchase_order['id']}/items/{item_id}"

    def test_process_item(self, client, purchase_order, product, warehouse):
        response = client.post(self._item_url(purchase_order), json={"production_kg": 235})

        assert response.status_code == 201
        data = response.json()
        record = data["production_record"]
        assert Decimal(record["wastage_kg"]) == Decimal("15")
        assert Decimal(record["wastage_percentage"]) == Decimal("6")
        assert data["wastage_record_id"] is not None
        assert data["order_completed"] is True
        assert data["order_status"] == "production_completed"

        stock = client.get(
            "/api/v1/stock/position", params={"product_id": product.id, "warehouse_id": warehouse.id}
        ).json()
        assert Decimal(stock["quantity"]) == Decimal("235")

    def test_overproduction_is_400(self, client, purchase_order):
        response = client.post(self._item_url(purchase_order), json={"production_kg": 260})
        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_reprocessing_is_409(self, client, purchase_order):
        client.post(self._item_url(purchase_order), json={"production_kg": 235})
        response = client.post(self._item_url(purchase_order), json={"production_kg": 235})
        assert response.status_code == 409
        assert response.json()["error"] == "ALREADY_PROCESSED"

    def test_batch_and_history(self, client, purchase_order):
        item_id = purchase_order["items"][0]["id"]
        pending = client.get("/api/v1/production/pending-items").json()
        assert [i["id"] for i in pending] == [item_id]

        response = client.post(
            f"/api/v1/production/purchase-orders/{purchase_order['id']}",
            json={"entries": [{"item_id": item_id, "production_kg": 240}]},
        )
        assert response.status_code == 201
        assert len(response.json()) == 1

        history = client.get(f"/api/v1/production/purchase-orders/{purchase_order['id']}/history").json()
        assert history["summary"]["record_count"] == 1
        assert Decimal(history["summary"]["total_wastage_kg"]) == Decimal("10")
        assert Decimal(history["summary"]["wastage_percentage"]) == Decimal("4")

        overall = client.get("/api/v1/production/history").json()
        assert overall["summary"]["record_count"] == 1
        assert client.get("/api/v1/production/pending-items").json() == []
