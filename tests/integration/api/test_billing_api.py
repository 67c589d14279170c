"""HTTP tests for the billing API"""

import pytest
from decimal import Decimal

from src.app.services.patient_directory import PatientDirectory
from src.depends import get_patient_directory

INVOICE_BODY = {
    "patient_id": "patient_123",
    "currency": "USD",
    "items": [
        {
            "description": "General consultation",
            "quantity": "2",
            "unit_price": "100.00",
            "tax_rate": "10",
            "discount": "0",
        }
    ],
}


class KnownPatients(PatientDirectory):
    def __init__(self, *patient_ids):
        self.patient_ids = set(patient_ids)

    async def exists(self, patient_id: str) -> bool:
        return patient_id in self.patient_ids


async def create_invoice(client, body=None):
    response = await client.post("/api/billing/invoices", json=body or INVOICE_BODY)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
class TestInvoiceEndpoints:
    async def test_create_invoice(self, client):
        """
        Given: One item {quantity: 2, unit_price: 100, tax_rate: 10}
        When: POST /api/billing/invoices
        Then: 201 with total=220, balance=220 and status=draft
        """
        # Act
        response = await client.post("/api/billing/invoices", json=INVOICE_BODY)

        # Assert
        assert response.status_code == 201
        data = response.json()
        assert data["invoice_number"] == "INV-0001"
        assert data["status"] == "draft"
        assert Decimal(data["subtotal"]) == Decimal("200")
        assert Decimal(data["tax_amount"]) == Decimal("20")
        assert Decimal(data["total_amount"]) == Decimal("220")
        assert Decimal(data["balance_amount"]) == Decimal("220")
        assert data["formatted_total"] == "$220.00"
        assert data["created_by"] == "user_42"
        assert len(data["items"]) == 1

    async def test_create_invoice_invalid_currency(self, client):
        response = await client.post("/api/billing/invoices", json={**INVOICE_BODY, "currency": "XYZ"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_CURRENCY"

    async def test_create_invoice_without_items(self, client):
        response = await client.post("/api/billing/invoices", json={**INVOICE_BODY, "items": []})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "EMPTY_INVOICE_ITEMS"

    async def test_create_invoice_missing_patient_id(self, client):
        body = {key: value for key, value in INVOICE_BODY.items() if key != "patient_id"}

        response = await client.post("/api/billing/invoices", json=body)

        assert response.status_code == 422

    async def test_create_invoice_unknown_patient(self, app, client):
        app.dependency_overrides[get_patient_directory] = lambda: KnownPatients("patient_123")

        response = await client.post(
            "/api/billing/invoices", json={**INVOICE_BODY, "patient_id": "patient_404"}
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PATIENT_NOT_FOUND"

    async def test_get_invoice(self, client):
        created = await create_invoice(client)

        response = await client.get(f"/api/billing/invoices/{created['invoice_id']}")

        assert response.status_code == 200
        assert response.json()["invoice_number"] == created["invoice_number"]
        assert response.json()["payments"] == []

    async def test_get_missing_invoice(self, client):
        response = await client.get("/api/billing/invoices/9999")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "INVOICE_NOT_FOUND"

    async def test_list_invoices_with_filters(self, client):
        await create_invoice(client)
        await create_invoice(client, {**INVOICE_BODY, "patient_id": "patient_456"})
        await create_invoice(client, {**INVOICE_BODY, "patient_id": "patient_456", "currency": "EUR"})

        response = await client.get("/api/billing/invoices", params={"patient_id": "patient_456"})
        assert response.status_code == 200
        assert response.json()["total"] == 2

        response = await client.get("/api/billing/invoices", params={"currency": "EUR"})
        assert response.json()["total"] == 1

        response = await client.get("/api/billing/patients/patient_123/invoices")
        assert response.json()["total"] == 1

        response = await client.get("/api/billing/invoices", params={"limit": 2, "page": 2})
        data = response.json()
        assert data["total"] == 3
        assert data["total_pages"] == 2
        assert len(data["invoices"]) == 1

    async def test_list_invoices_invalid_status(self, client):
        response = await client.get("/api/billing/invoices", params={"status": "overdue"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_STATUS"

    async def test_list_invoices_limit_capped(self, client):
        response = await client.get("/api/billing/invoices", params={"limit": 101})

        assert response.status_code == 422

    async def test_update_invoice_items(self, client):
        created = await create_invoice(client)

        response = await client.put(
            f"/api/billing/invoices/{created['invoice_id']}",
            json={"items": [{"description": "Follow-up", "unit_price": "80"}], "notes": "Revised"},
        )

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["total_amount"]) == Decimal("80")
        assert data["notes"] == "Revised"
        assert [item["description"] for item in data["items"]] == ["Follow-up"]

    async def test_update_paid_invoice_conflict(self, client):
        created = await create_invoice(client)
        await client.post(
            "/api/billing/payments",
            json={"invoice_id": created["invoice_id"], "amount": "220.00", "payment_method": "cash"},
        )

        response = await client.put(
            f"/api/billing/invoices/{created['invoice_id']}", json={"notes": "too late"}
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVOICE_NOT_MUTABLE"

    async def test_send_and_cancel(self, client):
        created = await create_invoice(client)
        invoice_id = created["invoice_id"]

        sent = await client.post(f"/api/billing/invoices/{invoice_id}/send")
        resent = await client.post(f"/api/billing/invoices/{invoice_id}/send")
        cancelled = await client.post(f"/api/billing/invoices/{invoice_id}/cancel")

        assert sent.status_code == 200
        assert sent.json()["status"] == "sent"
        assert resent.status_code == 409
        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "cancelled"

    async def test_delete_invoice(self, client):
        created = await create_invoice(client)

        response = await client.delete(f"/api/billing/invoices/{created['invoice_id']}")

        assert response.status_code == 200
        assert response.json()["deleted_items"] == 1
        missing = await client.get(f"/api/billing/invoices/{created['invoice_id']}")
        assert missing.status_code == 404

    async def test_delete_paid_invoice_conflict(self, client):
        created = await create_invoice(client)
        await client.post(
            "/api/billing/payments",
            json={"invoice_id": created["invoice_id"], "amount": "220", "payment_method": "card"},
        )

        response = await client.delete(f"/api/billing/invoices/{created['invoice_id']}")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVOICE_ALREADY_PAID"

    async def test_download_pdf(self, client):
        created = await create_invoice(client)

        response = await client.get(f"/api/billing/invoices/{created['invoice_id']}/pdf")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert "INV-0001" in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")


@pytest.mark.asyncio
class TestPaymentEndpoints:
    async def test_full_payment_marks_invoice_paid(self, client):
        """
        Given: An invoice with total=220
        When: POST /api/billing/payments with amount=220
        Then: 201, the invoice is paid and the payment is listed
        """
        # Arrange
        created = await create_invoice(client)

        # Act
        response = await client.post(
            "/api/billing/payments",
            json={
                "invoice_id": created["invoice_id"],
                "amount": "220.00",
                "payment_method": "card",
                "transaction_id": "ch_3Nf9",
            },
        )

        # Assert
        assert response.status_code == 201
        data = response.json()
        assert data["invoice"]["status"] == "paid"
        assert Decimal(data["invoice"]["balance_amount"]) == Decimal("0")
        assert data["payment"]["processed_by"] == "user_42"

        payment = await client.get(f"/api/billing/payments/{data['payment']['id']}")
        assert payment.status_code == 200
        assert payment.json()["transaction_id"] == "ch_3Nf9"

        listed = await client.get("/api/billing/payments", params={"invoice_id": created["invoice_id"]})
        assert listed.json()["total"] == 1

    async def test_overpayment_rejected(self, client):
        created = await create_invoice(client)

        response = await client.post(
            "/api/billing/payments",
            json={"invoice_id": created["invoice_id"], "amount": "221.00", "payment_method": "cash"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "PAYMENT_EXCEEDS_BALANCE"

    async def test_zero_amount_rejected_by_schema(self, client):
        created = await create_invoice(client)

        response = await client.post(
            "/api/billing/payments",
            json={"invoice_id": created["invoice_id"], "amount": "0", "payment_method": "cash"},
        )

        assert response.status_code == 422

    async def test_payment_for_missing_invoice(self, client):
        response = await client.post(
            "/api/billing/payments",
            json={"invoice_id": 9999, "amount": "10", "payment_method": "cash"},
        )

        assert response.status_code == 404

    async def test_payment_on_paid_invoice_conflict(self, client):
        created = await create_invoice(client)
        body = {"invoice_id": created["invoice_id"], "amount": "220", "payment_method": "cash"}
        await client.post("/api/billing/payments", json=body)

        response = await client.post("/api/billing/payments", json={**body, "amount": "1"})

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVOICE_ALREADY_PAID"

    async def test_get_missing_payment(self, client):
        response = await client.get("/api/billing/payments/9999")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PAYMENT_NOT_FOUND"


@pytest.mark.asyncio
class TestSettingsEndpoints:
    async def test_settings_defaults_and_update(self, client):
        defaults = await client.get("/api/billing/settings")
        assert defaults.status_code == 200
        assert defaults.json()["invoice_prefix"] == "INV"
        assert defaults.json()["invoice_counter"] == 1

        updated = await client.put(
            "/api/billing/settings",
            json={"invoice_prefix": "CLN", "invoice_counter": 100, "payment_terms_days": 14},
        )
        assert updated.status_code == 200
        assert updated.json()["invoice_prefix"] == "CLN"

        created = await create_invoice(client)
        assert created["invoice_number"] == "CLN-0100"

    async def test_invalid_prefix(self, client):
        response = await client.put("/api/billing/settings", json={"invoice_prefix": "bad prefix!"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_INVOICE_PREFIX"


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
