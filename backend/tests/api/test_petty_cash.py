"""
API tests for petty cash and client ledger endpoints.
"""
import pytest
from decimal import Decimal


pytestmark = pytest.mark.api

BASE_URL = "/api/v1/petty-cash"


class TestPettyCashEndpoints:

    def test_create_update_void(self, client, customer):
        created = client.post(f"{BASE_URL}/", json={
            "client_id": customer.id,
            "transaction_type": "cash_in",
            "amount": 100,
            "transaction_date": "2026-05-01",
        })
        assert created.status_code == 201
        body = created.json()
        assert body["transaction_number"] == "PC-000001"
        assert body["counterparty_role"] == "customer"

        updated = client.put(f"{BASE_URL}/{body['id']}", json={"amount": 120})
        assert updated.status_code == 200
        assert Decimal(updated.json()["amount"]) == Decimal("120")

        flow = client.get(f"{BASE_URL}/clients/{customer.id}/cash-flow").json()
        assert Decimal(flow["balance"]) == Decimal("-120")
        assert Decimal(flow["total_cash_in"]) == Decimal("120")

        voided = client.post(f"{BASE_URL}/{body['id']}/void")
        assert voided.json()["is_void"] is True
        flow = client.get(f"{BASE_URL}/clients/{customer.id}/cash-flow").json()
        assert Decimal(flow["balance"]) == Decimal("0")
        assert flow["transactions"] == []

        assert client.post(f"{BASE_URL}/{body['id']}/void").status_code == 409

    def test_invalid_transaction_type_is_400(self, client, customer):
        response = client.post(f"{BASE_URL}/", json={
            "client_id": customer.id, "transaction_type": "refund", "amount": 10,
        })
        assert response.status_code == 400

    def test_daily_summary(self, client, supplier):
        for amount, method in ((50, "cash"), (70, "bank")):
            client.post(f"{BASE_URL}/", json={
                "client_id": supplier.id,
                "transaction_type": "cash_out",
                "amount": amount,
                "payment_method": method,
                "transaction_date": "2026-05-02",
            })

        summary = client.get(f"{BASE_URL}/daily-summary", params={"on": "2026-05-02"}).json()
        assert summary["transaction_count"] == 2
        assert Decimal(summary["total_cash_out"]) == Decimal("120")
        assert Decimal(summary["by_payment_method"]["bank"]["cash_out"]) == Decimal("70")

    def test_post_ledger_and_history(self, client, supplier):
        response = client.post(f"{BASE_URL}/ledger", json={
            "client_id": supplier.id, "amount": "1500.50", "description": "Opening payable",
        })
        assert response.status_code == 201
        assert response.json()["entry_type"] == "manual"

        entries = client.get(f"{BASE_URL}/clients/{supplier.id}/ledger").json()
        assert len(entries) == 1
        assert Decimal(entries[0]["balance_after"]) == Decimal("1500.50")

    def test_unknown_client_is_404(self, client):
        assert client.get(f"{BASE_URL}/clients/9999/ledger").status_code == 404
        response = client.post(f"{BASE_URL}/ledger", json={"client_id": 9999, "amount": 10})
        assert response.status_code == 404


class TestHealth:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_error_body_documented(self, client):
        schema = client.get("/openapi.json").json()
        assert "ErrorResponse" in schema["components"]["schemas"]
        responses = schema["paths"]["/api/v1/purchase-orders/{po_id}"]["get"]["responses"]
        for status in ("400", "404", "409", "422"):
            ref = responses[status]["content"]["application/json"]["schema"]["$ref"]
            assert ref.endswith("/ErrorResponse")
