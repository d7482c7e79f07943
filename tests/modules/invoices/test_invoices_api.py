"""API tests for invoices and the revenue endpoints."""

from httpx import AsyncClient


def _invoice_payload(directory: dict, **overrides) -> dict:
    payload = {
        "family_id": directory["family"].id,
        "status": "sent",
        "invoice_date": "2026-02-01",
        "period_start": "2026-02-01",
        "period_end": "2026-02-28",
        "line_items": [
            {
                "description": "Learning pod - February",
                "enrollment_id": directory["enrollments"]["pod"].id,
                "amount": "120.00",
            },
            {"description": "Registration (waived)", "amount": "0.00"},
        ],
    }
    payload.update(overrides)
    return payload


class TestInvoiceEndpoints:
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_create_and_get_invoice(self, client: AsyncClient, directory: dict):
        response = await client.post("/api/v1/invoices", json=_invoice_payload(directory))
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "sent"
        assert data["total_amount"] == "120.00"
        assert data["revenue_records_created"] == 0
        assert len(data["line_items"]) == 2

        response = await client.get(f"/api/v1/invoices/{data['id']}")
        assert response.status_code == 200
        assert response.json()["data"]["revenue_records_created"] is None

    async def test_mark_paid_recognizes_revenue(self, client: AsyncClient, directory: dict):
        response = await client.post("/api/v1/invoices", json=_invoice_payload(directory))
        invoice_id = response.json()["data"]["id"]

        response = await client.patch(
            f"/api/v1/invoices/{invoice_id}/status", json={"status": "paid"}
        )
        assert response.status_code == 200
        assert response.json()["data"]["revenue_records_created"] == 1

        # Re-saving as paid adds nothing
        response = await client.patch(
            f"/api/v1/invoices/{invoice_id}/status", json={"status": "paid"}
        )
        assert response.json()["data"]["revenue_records_created"] == 0

        response = await client.get("/api/v1/revenue/records", params={"invoice_id": invoice_id})
        assert response.status_code == 200
        page = response.json()["data"]
        assert page["total"] == 1
        record = page["items"][0]
        assert record["revenue"] == "120.00"
        assert record["source"] == "invoice"
        assert record["location_id"] == directory["locations"]["kendall"].id

    async def test_historical_import_before_cutoff(self, client: AsyncClient, directory: dict):
        response = await client.post(
            "/api/v1/invoices",
            json=_invoice_payload(
                directory,
                status="paid",
                invoice_date="2025-06-01",
                period_start=None,
                period_end=None,
            ),
        )
        assert response.status_code == 201
        assert response.json()["data"]["revenue_records_created"] == 0

        response = await client.get("/api/v1/revenue/records")
        assert response.json()["data"]["total"] == 0

    async def test_payment_completes_invoice(self, client: AsyncClient, directory: dict):
        response = await client.post("/api/v1/invoices", json=_invoice_payload(directory))
        invoice_id = response.json()["data"]["id"]

        response = await client.post(
            f"/api/v1/invoices/{invoice_id}/payments",
            json={"amount": "120.00", "payment_date": "2026-02-10", "payment_method": "card"},
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "paid"
        assert data["balance_due"] == "0.00"
        assert data["revenue_records_created"] == 1

    async def test_unknown_family_returns_404(self, client: AsyncClient, directory: dict):
        response = await client.post(
            "/api/v1/invoices", json=_invoice_payload(directory, family_id=99999)
        )
        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert "Family" in body["message"]

    async def test_invalid_status_returns_422(self, client: AsyncClient, directory: dict):
        response = await client.post("/api/v1/invoices", json=_invoice_payload(directory))
        invoice_id = response.json()["data"]["id"]

        response = await client.patch(
            f"/api/v1/invoices/{invoice_id}/status", json={"status": "refunded"}
        )
        assert response.status_code == 422

    async def test_payment_must_be_positive(self, client: AsyncClient, directory: dict):
        response = await client.post("/api/v1/invoices", json=_invoice_payload(directory))
        invoice_id = response.json()["data"]["id"]

        response = await client.post(
            f"/api/v1/invoices/{invoice_id}/payments",
            json={"amount": "0", "payment_date": "2026-02-10"},
        )
        assert response.status_code == 422


class TestRevenueEndpoints:
    async def test_by_location_and_backfill(self, client: AsyncClient, directory: dict):
        payload = _invoice_payload(
            directory,
            status="paid",
            line_items=[
                {
                    "description": "Spanish 101",
                    "enrollment_id": directory["enrollments"]["spanish"].id,
                    "amount": "40.00",
                },
                {
                    "description": "Learning pod",
                    "enrollment_id": directory["enrollments"]["pod"].id,
                    "amount": "100.00",
                },
            ],
        )
        response = await client.post("/api/v1/invoices", json=payload)
        assert response.json()["data"]["revenue_records_created"] == 2

        response = await client.get("/api/v1/revenue/by-location")
        assert response.status_code == 200
        totals = {row["location_code"]: row["revenue"] for row in response.json()["data"]}
        assert totals == {"kendall": "100.00", "remote": "40.00"}

        # Everything is already recognized
        response = await client.post("/api/v1/revenue/backfill", json={})
        assert response.status_code == 200
        result = response.json()["data"]
        assert result["invoices_checked"] == 1
        assert result["records_created"] == 0
        assert result["duplicates_ignored"] == 2
        assert result["cutoff"] == "2026-01-01"
