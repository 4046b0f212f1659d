"""
Tests para Órdenes de Compra
"""
from decimal import Decimal

import pytest


@pytest.fixture
def vendor(client, maker_headers):
    response = client.post("/vendors/", headers=maker_headers, json={
        "name": "Bharat Steel", "address": "Bhosari MIDC, Pune"
    })
    return response.json()


@pytest.fixture
def po_lines():
    return [{"product_name": "MS Sheet 2mm", "quantity": "20", "unit": "Kg", "unit_price": "75", "tax_rate": "18"}]


def create_po(client, headers, vendor, lines, **extra):
    return client.post("/purchase-orders/", headers=headers, json={
        "vendor_id": vendor["id"], "line_items": lines, **extra
    })


class TestPurchaseOrders:

    def test_create_uses_company_delivery_address(self, client, maker_headers, vendor, po_lines):
        client.put("/settings/company", headers=maker_headers, json={"delivery_address": "Plant 2, Chakan"})
        response = create_po(client, maker_headers, vendor, po_lines)
        assert response.status_code == 201
        body = response.json()
        assert body["po_number"] == "PO-0001"
        assert body["status"] == "Draft"
        assert body["vendor_name"] == "Bharat Steel"
        assert body["vendor_address"] == "Bhosari MIDC, Pune"
        assert body["delivery_address"] == "Plant 2, Chakan"
        assert Decimal(body["sub_total"]) == Decimal("1500")
        assert Decimal(body["total"]) == Decimal("1770")

    def test_vendor_token_in_number(self, client, maker_headers, vendor, po_lines):
        client.put("/settings/numbering/", headers=maker_headers, json={
            "purchase_order": {"prefix": "PO/{VEND}/", "next_number": 1, "suffix": ""}
        })
        body = create_po(client, maker_headers, vendor, po_lines).json()
        assert body["po_number"] == "PO/BHAR/0001"

    def test_unknown_vendor(self, client, maker_headers, po_lines):
        response = create_po(client, maker_headers, {"id": "00000000-0000-0000-0000-000000000000"}, po_lines)
        assert response.status_code == 404

    def test_status_flow_and_lock(self, client, maker_headers, vendor, po_lines):
        po = create_po(client, maker_headers, vendor, po_lines).json()
        for target in ("Sent", "Approved"):
            response = client.patch(f"/purchase-orders/{po['id']}/status", headers=maker_headers, json={"status": target})
            assert response.status_code == 200

        locked = client.patch(f"/purchase-orders/{po['id']}", headers=maker_headers, json={"notes": "cambio"})
        assert locked.status_code == 400

        invalid = client.patch(f"/purchase-orders/{po['id']}/status", headers=maker_headers, json={"status": "Draft"})
        assert invalid.status_code == 400

    def test_update_lines_recomputes_totals(self, client, maker_headers, vendor, po_lines):
        po = create_po(client, maker_headers, vendor, po_lines).json()
        response = client.patch(f"/purchase-orders/{po['id']}", headers=maker_headers, json={
            "line_items": [{"product_name": "MS Sheet 2mm", "quantity": "10", "unit_price": "75"}]
        })
        assert Decimal(response.json()["total"]) == Decimal("885")

    def test_filters(self, client, maker_headers, vendor, po_lines):
        create_po(client, maker_headers, vendor, po_lines, order_date="2024-04-01")
        create_po(client, maker_headers, vendor, po_lines, order_date="2024-06-01")
        response = client.get("/purchase-orders/", headers=maker_headers, params={
            "start_date": "2024-05-01", "end_date": "2024-06-30"
        })
        assert response.json()["total"] == 1
        response = client.get("/purchase-orders/", headers=maker_headers, params={"search": "bharat"})
        assert response.json()["total"] == 2

    def test_delete(self, client, maker_headers, approver_headers, vendor, po_lines):
        po = create_po(client, maker_headers, vendor, po_lines).json()
        assert client.delete(f"/purchase-orders/{po['id']}", headers=approver_headers).status_code == 200
        assert client.get(f"/purchase-orders/{po['id']}", headers=maker_headers).status_code == 404
