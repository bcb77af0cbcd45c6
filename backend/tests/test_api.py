"""HTTP API: authentication, error envelopes and an end-to-end billing flow."""

from decimal import Decimal

import pytest
from httpx import AsyncClient

from app.auth.permissions import ALL_PERMISSIONS, resolve_permissions


@pytest.mark.api
@pytest.mark.asyncio
class TestAuthentication:
    async def test_health_is_public(self, client: AsyncClient):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["service"] == "FreightOps"

    async def test_shipments_require_auth(self, client: AsyncClient):
        resp = await client.get("/api/shipments")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "HTTP_401"

    async def test_invalid_token_is_rejected(self, client: AsyncClient):
        resp = await client.get("/api/invoices", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    async def test_operator_cannot_bill(self, client: AsyncClient, headers_for):
        resp = await client.post(
            "/api/invoices",
            json={"shipment_id": "s", "customer_id": "c", "costing_ids": ["x"]},
            headers=headers_for("operator"),
        )
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "PERMISSION_DENIED"

    async def test_accountant_cannot_open_jobs(self, client: AsyncClient, headers_for):
        resp = await client.post(
            "/api/shipments",
            json={"direction": "Import", "mode": "SeaFreightFCL"},
            headers=headers_for("accountant"),
        )
        assert resp.status_code == 403


@pytest.mark.api
@pytest.mark.asyncio
class TestErrorEnvelope:
    async def test_not_found(self, client: AsyncClient, auth_headers):
        resp = await client.get("/api/invoices/missing", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "RESOURCE_NOT_FOUND"

    async def test_validation_error_lists_fields(self, client: AsyncClient, auth_headers):
        resp = await client.post(
            "/api/invoices",
            json={"shipment_id": "s", "customer_id": "c", "costing_ids": []},
            headers=auth_headers,
        )
        assert resp.status_code == 422
        error = resp.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert any("costing_ids" in e["field"] for e in error["details"]["errors"])

    async def test_duplicate_selection_is_rejected(self, client: AsyncClient, auth_headers):
        resp = await client.post(
            "/api/invoices",
            json={"shipment_id": "s", "customer_id": "c", "costing_ids": ["a", "a"]},
            headers=auth_headers,
        )
        assert resp.status_code == 422

    async def test_duplicate_customer_code(self, client: AsyncClient, auth_headers):
        body = {"code": "C900", "name": "Harbour Foods"}
        assert (await client.post("/api/customers", json=body, headers=auth_headers)).status_code == 201

        resp = await client.post("/api/customers", json=body, headers=auth_headers)
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "DUPLICATE_CUSTOMER_CODE"

    async def test_unknown_lookup(self, client: AsyncClient, auth_headers):
        resp = await client.get("/api/reference/planets", headers=auth_headers)
        assert resp.status_code == 404


@pytest.mark.api
@pytest.mark.asyncio
class TestBillingFlow:
    """Job → parties → costing → invoice → receipts, checked over HTTP."""

    async def _open_job(self, client, headers, reference):
        consignee = (await client.post("/api/customers", json={
            "code": "C100", "name": "Desert Retail FZE", "credit_days": 45,
        }, headers=headers)).json()
        carrier = (await client.post("/api/customers", json={
            "code": "V100", "name": "Arabian Sea Lines", "master_type": "Creditors",
        }, headers=headers)).json()

        resp = await client.post("/api/shipments", json={
            "direction": "Import",
            "mode": "SeaFreightFCL",
            "job_date": "2026-03-01",
            "port_of_loading_id": reference.pol_id,
            "port_of_discharge_id": reference.pod_id,
        }, headers=headers)
        assert resp.status_code == 201
        shipment = resp.json()
        assert shipment["job_number"] == "26AE0001"
        assert shipment["job_status"] == "Opened"

        consignee_party = (await client.post(
            f"/api/shipments/{shipment['id']}/parties",
            json={"customer_id": consignee["id"], "party_type": "Consignee"},
            headers=headers,
        )).json()
        await client.post(
            f"/api/shipments/{shipment['id']}/parties",
            json={"customer_id": carrier["id"], "party_type": "ShippingLine"},
            headers=headers,
        )
        return shipment, consignee, carrier, consignee_party

    async def _add_costing(self, client, headers, shipment, consignee, carrier):
        resp = await client.post(f"/api/shipments/{shipment['id']}/costings", json={
            "description": "Ocean Freight",
            "sale_qty": "2",
            "sale_unit": "500.00",
            "sale_currency": "AED",
            "sale_ex_rate": "1",
            "bill_to_customer_id": consignee["id"],
            "cost_qty": "2",
            "cost_unit": "100.00",
            "cost_currency": "USD",
            "cost_ex_rate": "3.6725",
            "vendor_customer_id": carrier["id"],
            "gp": "1",
        }, headers=headers)
        assert resp.status_code == 201
        return resp.json()

    async def test_flow(self, client: AsyncClient, auth_headers, reference):
        shipment, consignee, carrier, consignee_party = await self._open_job(
            client, auth_headers, reference,
        )
        costing = await self._add_costing(client, auth_headers, shipment, consignee, carrier)
        assert Decimal(costing["sale_lcy"]) == Decimal("1000.00")
        assert Decimal(costing["cost_lcy"]) == Decimal("734.50")
        assert Decimal(costing["gp"]) == Decimal("265.50")

        listing = (await client.get(
            f"/api/shipments/{shipment['id']}/costings", headers=auth_headers,
        )).json()
        assert Decimal(listing["totals"]["total_gp"]) == Decimal("265.50")

        resp = await client.post("/api/invoices", json={
            "shipment_id": shipment["id"],
            "customer_id": consignee["id"],
            "costing_ids": [costing["id"]],
            "invoice_date": "2026-03-05",
        }, headers=auth_headers)
        assert resp.status_code == 201
        invoice = resp.json()
        assert invoice["invoice_number"] == "INVAE260001"
        assert invoice["due_date"] == "2026-04-19"
        assert Decimal(invoice["amount"]) == Decimal("1000.00")
        assert len(invoice["lines"]) == 1

        # Billing flags block deletion of the costing and its party
        resp = await client.delete(f"/api/shipments/costings/{costing['id']}", headers=auth_headers)
        assert resp.status_code == 409
        error = resp.json()["error"]
        assert error["code"] == "DEPENDENT_INVOICE_EXISTS"
        assert error["details"]["allowed"] is False

        check = (await client.get(
            f"/api/shipments/parties/{consignee_party['id']}/delete-check", headers=auth_headers,
        )).json()
        assert check["allowed"] is False
        assert "1 dependent costing" in check["reason"]

        # Party on the invoiced side is frozen
        resp = await client.put(f"/api/shipments/costings/{costing['id']}", json={
            "description": "Ocean Freight",
            "sale_currency": "AED",
            "cost_currency": "USD",
            "bill_to_customer_id": carrier["id"],
            "vendor_customer_id": carrier["id"],
        }, headers=auth_headers)
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "FIELD_LOCKED"
        assert resp.json()["error"]["details"]["unlock_hint"] == "Remove the line from its invoice first."

        # Receipts: 400 then 600
        resp = await client.post(
            f"/api/invoices/{invoice['id']}/receipts",
            json={"amount": "400.00", "payment_date": "2026-03-10"},
            headers=auth_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["invoice"]["payment_status"] == "PartiallyPaid"
        assert resp.json()["receipt"]["receipt_number"] == "RVAE26001"

        resp = await client.post(
            f"/api/invoices/{invoice['id']}/receipts",
            json={"amount": "600.00", "payment_date": "2026-03-20"},
            headers=auth_headers,
        )
        paid = resp.json()["invoice"]
        assert paid["payment_status"] == "Paid"
        assert Decimal(paid["balance_amount"]) == Decimal("0")

        resp = await client.post(
            f"/api/invoices/{invoice['id']}/receipts",
            json={"amount": "0.01"},
            headers=auth_headers,
        )
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "PAYMENT_EXCEEDS_BALANCE"

        resp = await client.delete(f"/api/invoices/{invoice['id']}", headers=auth_headers)
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "PAYMENTS_APPLIED"

        statement = (await client.get(
            f"/api/customers/{consignee['id']}/statement", headers=auth_headers,
        )).json()
        assert [e["entry_type"] for e in statement["entries"]] == [
            "opening", "invoice", "receipt", "receipt",
        ]
        assert Decimal(statement["net_outstanding_receivable"]) == Decimal("0")

        aging = (await client.get(
            "/api/reports/aging", params={"as_of": "2026-04-01"}, headers=auth_headers,
        )).json()
        assert aging["rows"] == []

    async def test_unpaid_invoice_delete_frees_costing(self, client: AsyncClient, auth_headers, reference):
        shipment, consignee, carrier, _ = await self._open_job(client, auth_headers, reference)
        costing = await self._add_costing(client, auth_headers, shipment, consignee, carrier)

        invoice = (await client.post("/api/invoices", json={
            "shipment_id": shipment["id"],
            "customer_id": consignee["id"],
            "costing_ids": [costing["id"]],
        }, headers=auth_headers)).json()

        resp = await client.post("/api/invoices", json={
            "shipment_id": shipment["id"],
            "customer_id": consignee["id"],
            "costing_ids": [costing["id"]],
        }, headers=auth_headers)
        assert resp.status_code == 409
        assert resp.json()["error"]["details"]["retryable"] is True

        resp = await client.delete(f"/api/invoices/{invoice['id']}", headers=auth_headers)
        assert resp.status_code == 204

        resp = await client.delete(f"/api/shipments/costings/{costing['id']}", headers=auth_headers)
        assert resp.status_code == 204

        check = (await client.get(
            f"/api/shipments/{shipment['id']}/delete-check", headers=auth_headers,
        )).json()
        assert check["allowed"] is True

        resp = await client.delete(f"/api/shipments/{shipment['id']}", headers=auth_headers)
        assert resp.status_code == 204

    async def test_purchase_invoice_and_payment(self, client: AsyncClient, auth_headers, reference):
        shipment, consignee, carrier, _ = await self._open_job(client, auth_headers, reference)
        costing = await self._add_costing(client, auth_headers, shipment, consignee, carrier)

        resp = await client.post("/api/purchase-invoices", json={
            "shipment_id": shipment["id"],
            "vendor_id": carrier["id"],
            "costing_ids": [costing["id"]],
            "vendor_invoice_no": "ASL-2291",
            "invoice_date": "2026-03-05",
        }, headers=auth_headers)
        assert resp.status_code == 201
        purchase = resp.json()
        assert purchase["purchase_number"] == "PIAE260001"
        assert Decimal(purchase["amount"]) == Decimal("734.50")

        resp = await client.post(
            f"/api/purchase-invoices/{purchase['id']}/payments",
            json={"amount": "734.50", "payment_date": "2026-03-06"},
            headers=auth_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["purchase_invoice"]["payment_status"] == "Paid"
        assert resp.json()["payment"]["voucher_number"] == "PVAE26001"

        documents = (await client.get(
            f"/api/shipments/{shipment['id']}/invoices", headers=auth_headers,
        )).json()
        assert documents["invoices"] == []
        assert [p["purchase_number"] for p in documents["purchase_invoices"]] == ["PIAE260001"]

    async def test_unknown_currency_over_http(self, client: AsyncClient, auth_headers, reference):
        shipment, consignee, carrier, _ = await self._open_job(client, auth_headers, reference)
        resp = await client.post(f"/api/shipments/{shipment['id']}/costings", json={
            "description": "Customs Duty",
            "sale_currency": "ZZZ",
            "cost_currency": "AED",
        }, headers=auth_headers)
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "UNKNOWN_REFERENCE"

    async def test_required_job_fields_reject_null(self, client: AsyncClient, auth_headers, reference):
        shipment, _, _, _ = await self._open_job(client, auth_headers, reference)
        url = f"/api/shipments/{shipment['id']}"

        resp = await client.put(url, json={"mode": None}, headers=auth_headers)
        assert resp.status_code == 422
        error = resp.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert any("mode" in e["field"] for e in error["details"]["errors"])

        resp = await client.put(url, json={"vessel": "MSC AURORA"}, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["mode"] == "SeaFreightFCL"
        assert resp.json()["vessel"] == "MSC AURORA"


@pytest.mark.unit
class TestPermissions:
    def test_role_defaults(self):
        assert "financials.write" not in resolve_permissions("operator")
        assert "shipment.write" not in resolve_permissions("accountant")
        assert resolve_permissions("administrator") == sorted(ALL_PERMISSIONS)

    def test_overrides_grant_and_revoke(self):
        perms = resolve_permissions(
            "operator", {"financials.write": True, "shipment.delete": False, "bogus.perm": True},
        )
        assert "financials.write" in perms
        assert "shipment.delete" not in perms
        assert "bogus.perm" not in perms

    def test_unknown_role_has_nothing(self):
        assert resolve_permissions("visitor") == []
