"""
Tests para el módulo de Ventas

Flujo completo: cotización -> aprobación -> orden de venta -> despachos,
incluyendo revisiones, reglas de estado y devolución de cantidades.
"""
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.modules.sales.models import DocumentStatus, SalesOrder, SalesOrderItem
from app.modules.sales.service import SalesOrderService
from app.modules.sales.utils import compute_totals


@pytest.fixture
def customer(client, maker_headers, customer_payload):
    response = client.post("/customers/", headers=maker_headers, json=customer_payload)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def quote(client, maker_headers, customer, quote_line_items):
    response = client.post("/quotes/", headers=maker_headers, json={
        "customer_id": customer["id"],
        "line_items": quote_line_items,
    })
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def sales_order(client, maker_headers, quote):
    client.patch(f"/quotes/{quote['id']}/status", headers=maker_headers, json={"status": "Approved"})
    response = client.post(
        f"/quotes/{quote['id']}/sales-order", headers=maker_headers, json={"client_po_number": "PO-7781"}
    )
    assert response.status_code == 201
    return response.json()


def deliver(client, headers, order, quantities):
    lines = [
        {"sales_order_item_id": item["id"], "quantity": str(qty)}
        for item, qty in zip(order["line_items"], quantities)
        if qty
    ]
    return client.post("/delivery-orders/", headers=headers, json={
        "sales_order_id": order["id"],
        "vehicle_number": "mh 12 ab 1234",
        "line_items": lines,
    })


class TestTotals:

    def test_compute_totals(self):
        items = [
            SimpleNamespace(quantity=Decimal("10"), unit_price=Decimal("150"), tax_rate=Decimal("18")),
            SimpleNamespace(quantity=Decimal("100"), unit_price=Decimal("2.50"), tax_rate=Decimal("18")),
        ]
        assert compute_totals(items) == (Decimal("1750.00"), Decimal("315.00"), Decimal("2065.00"))

    def test_total_rounded_to_rupee(self):
        items = [SimpleNamespace(quantity=Decimal("1"), unit_price=Decimal("10.30"), tax_rate=Decimal("5"))]
        sub_total, gst_total, total = compute_totals(items)
        assert sub_total == Decimal("10.30")
        assert gst_total == Decimal("0.52")
        assert total == Decimal("11.00")


class TestQuotes:

    def test_create_quote_snapshot_and_number(self, quote, customer):
        assert quote["quote_number"] == "Q-0001/24-25"
        assert quote["display_number"] == "Q-0001/24-25"
        assert quote["status"] == "Draft"
        assert quote["customer_name"] == "Acme Industries"
        assert quote["contact"]["name"] == "Ravi Kumar"
        assert quote["shipping_address"]["city"] == "Pune"
        assert Decimal(quote["total"]) == Decimal("2065")
        assert len(quote["terms"]) == 5

    def test_unknown_contact_rejected(self, client, maker_headers, customer, quote_line_items):
        response = client.post("/quotes/", headers=maker_headers, json={
            "customer_id": customer["id"],
            "contact_id": "no-existe",
            "line_items": quote_line_items,
        })
        assert response.status_code == 400

    def test_expiry_before_issue_rejected(self, client, maker_headers, customer, quote_line_items):
        response = client.post("/quotes/", headers=maker_headers, json={
            "customer_id": customer["id"],
            "issue_date": "2024-05-10",
            "expiry_date": "2024-05-01",
            "line_items": quote_line_items,
        })
        assert response.status_code == 422

    def test_requires_line_items(self, client, maker_headers, customer):
        response = client.post("/quotes/", headers=maker_headers, json={
            "customer_id": customer["id"], "line_items": []
        })
        assert response.status_code == 422

    def test_update_recomputes_totals(self, client, maker_headers, quote):
        response = client.patch(f"/quotes/{quote['id']}", headers=maker_headers, json={
            "line_items": [{"product_name": "Steel Bracket", "quantity": "2", "unit_price": "100"}]
        })
        assert response.status_code == 200
        assert Decimal(response.json()["total"]) == Decimal("236")

    def test_invalid_transition(self, client, maker_headers, quote):
        response = client.patch(f"/quotes/{quote['id']}/status", headers=maker_headers, json={"status": "Closed"})
        assert response.status_code == 400

    def test_status_filter(self, client, maker_headers, quote):
        client.patch(f"/quotes/{quote['id']}/status", headers=maker_headers, json={"status": "Sent"})
        response = client.get("/quotes/", headers=maker_headers, params={"status": "Sent"})
        assert response.json()["total"] == 1
        response = client.get("/quotes/", headers=maker_headers, params={"status": "Draft"})
        assert response.json()["total"] == 0

    def test_revise_quote(self, client, maker_headers, quote):
        response = client.post(f"/quotes/{quote['id']}/revise", headers=maker_headers)
        assert response.status_code == 201
        revision = response.json()
        assert revision["quote_number"] == quote["quote_number"]
        assert revision["revision_number"] == 1
        assert revision["display_number"] == "Q-0001/24-25-Rev1"
        assert revision["original_quote_id"] == quote["id"]
        assert revision["status"] == "Draft"

        old = client.get(f"/quotes/{quote['id']}", headers=maker_headers).json()
        assert old["status"] == "Superseded"

        second = client.post(f"/quotes/{revision['id']}/revise", headers=maker_headers).json()
        assert second["original_quote_id"] == quote["id"]

        chain = client.get(f"/quotes/{second['id']}/revisions", headers=maker_headers).json()
        assert [q["revision_number"] for q in chain] == [0, 1, 2]

    def test_superseded_quote_is_locked(self, client, maker_headers, quote):
        client.post(f"/quotes/{quote['id']}/revise", headers=maker_headers)
        response = client.patch(f"/quotes/{quote['id']}", headers=maker_headers, json={"additional_description": "x"})
        assert response.status_code == 400

    def test_revision_does_not_consume_number(self, client, maker_headers, quote, customer, quote_line_items):
        client.post(f"/quotes/{quote['id']}/revise", headers=maker_headers)
        response = client.post("/quotes/", headers=maker_headers, json={
            "customer_id": customer["id"], "line_items": quote_line_items
        })
        assert response.json()["quote_number"] == "Q-0002/24-25"

    def test_only_approved_quotes_convert(self, client, maker_headers, quote):
        response = client.post(f"/quotes/{quote['id']}/sales-order", headers=maker_headers, json={})
        assert response.status_code == 400


class TestSalesOrders:

    def test_conversion_links_quote(self, client, maker_headers, quote, sales_order):
        assert sales_order["order_number"] == "SO-0001"
        assert sales_order["status"] == "Approved"
        assert sales_order["quote_number"] == quote["display_number"]
        assert sales_order["client_po_number"] == "PO-7781"
        assert Decimal(sales_order["total"]) == Decimal(quote["total"])

        linked = client.get(f"/quotes/{quote['id']}", headers=maker_headers).json()
        assert linked["status"] == "Closed"
        assert linked["linked_sales_order_id"] == sales_order["id"]

    def test_second_conversion_conflicts(self, client, maker_headers, quote, sales_order, db_session):
        response = client.post(f"/quotes/{quote['id']}/sales-order", headers=maker_headers, json={})
        assert response.status_code in (400, 409)

    def test_linked_quote_cannot_be_deleted(self, client, approver_headers, quote, sales_order):
        response = client.delete(f"/quotes/{quote['id']}", headers=approver_headers)
        assert response.status_code == 409

    def test_delete_order_reopens_quote(self, client, maker_headers, approver_headers, quote, sales_order):
        response = client.delete(f"/sales-orders/{sales_order['id']}", headers=approver_headers)
        assert response.status_code == 200
        reopened = client.get(f"/quotes/{quote['id']}", headers=maker_headers).json()
        assert reopened["status"] == "Approved"
        assert reopened["linked_sales_order_id"] is None

    def test_revise_order_keeps_delivered_floor(self, client, maker_headers, sales_order):
        deliver(client, maker_headers, sales_order, [4, 0])
        order = client.get(f"/sales-orders/{sales_order['id']}", headers=maker_headers).json()
        first, second = order["line_items"]

        too_low = client.put(f"/sales-orders/{order['id']}", headers=maker_headers, json={
            "line_items": [
                {"id": first["id"], "product_name": first["product_name"], "quantity": "3", "unit_price": "150"},
                {"id": second["id"], "product_name": second["product_name"], "quantity": "100", "unit_price": "2.50"},
            ]
        })
        assert too_low.status_code == 400

        removed = client.put(f"/sales-orders/{order['id']}", headers=maker_headers, json={
            "line_items": [
                {"id": second["id"], "product_name": second["product_name"], "quantity": "100", "unit_price": "2.50"},
            ]
        })
        assert removed.status_code == 400

        ok = client.put(f"/sales-orders/{order['id']}", headers=maker_headers, json={
            "line_items": [
                {"id": first["id"], "product_name": first["product_name"], "quantity": "4", "unit_price": "150"},
            ],
            "client_po_number": "PO-7781-A",
        })
        assert ok.status_code == 200
        body = ok.json()
        assert body["status"] == "Closed"
        assert body["client_po_number"] == "PO-7781-A"
        assert Decimal(body["line_items"][0]["delivered_quantity"]) == Decimal("4")

    def test_revise_order_rejects_repeated_line(self, client, maker_headers, sales_order):
        first = sales_order["line_items"][0]
        line = {"id": first["id"], "product_name": first["product_name"], "quantity": "10", "unit_price": "150"}

        response = client.put(f"/sales-orders/{sales_order['id']}", headers=maker_headers, json={
            "line_items": [line, line]
        })
        assert response.status_code == 400

        order = client.get(f"/sales-orders/{sales_order['id']}", headers=maker_headers).json()
        assert len(order["line_items"]) == 2
        assert Decimal(order["sub_total"]) == sum(Decimal(item["total"]) for item in order["line_items"])

    def test_pending_items(self, client, maker_headers, sales_order):
        deliver(client, maker_headers, sales_order, [10, 40])
        pending = client.get("/sales-orders/pending-items", headers=maker_headers).json()
        assert len(pending) == 1
        assert Decimal(pending[0]["pending_quantity"]) == Decimal("60")

    def test_refresh_status(self):
        order = SalesOrder(line_items=[
            SalesOrderItem(quantity=Decimal("5"), delivered_quantity=Decimal("0")),
            SalesOrderItem(quantity=Decimal("2"), delivered_quantity=Decimal("0")),
        ])
        SalesOrderService.refresh_status(order)
        assert order.status == DocumentStatus.APPROVED.value

        order.line_items[0].delivered_quantity = Decimal("5")
        SalesOrderService.refresh_status(order)
        assert order.status == DocumentStatus.PARTIAL.value

        order.line_items[1].delivered_quantity = Decimal("2")
        SalesOrderService.refresh_status(order)
        assert order.status == DocumentStatus.CLOSED.value


class TestDeliveryOrders:

    def test_partial_then_full_delivery(self, client, maker_headers, sales_order):
        first = deliver(client, maker_headers, sales_order, [4, 100])
        assert first.status_code == 201
        body = first.json()
        assert body["delivery_number"] == "DO-0001"
        assert body["status"] == "Dispatched"
        assert body["vehicle_number"] == "MH 12 AB 1234"
        assert body["sales_order_number"] == sales_order["order_number"]

        order = client.get(f"/sales-orders/{sales_order['id']}", headers=maker_headers).json()
        assert order["status"] == "Partial"

        second = deliver(client, maker_headers, sales_order, [6, 0])
        assert second.status_code == 201
        order = client.get(f"/sales-orders/{sales_order['id']}", headers=maker_headers).json()
        assert order["status"] == "Closed"

        deliveries = client.get(f"/sales-orders/{sales_order['id']}/delivery-orders", headers=maker_headers).json()
        assert len(deliveries) == 2

    def test_over_delivery_rejected(self, client, maker_headers, sales_order):
        response = deliver(client, maker_headers, sales_order, [11, 0])
        assert response.status_code == 400

    def test_duplicate_rows_are_aggregated(self, client, maker_headers, sales_order):
        item_id = sales_order["line_items"][0]["id"]
        response = client.post("/delivery-orders/", headers=maker_headers, json={
            "sales_order_id": sales_order["id"],
            "line_items": [
                {"sales_order_item_id": item_id, "quantity": "6"},
                {"sales_order_item_id": item_id, "quantity": "6"},
            ],
        })
        assert response.status_code == 400

    def test_closed_order_cannot_be_delivered(self, client, maker_headers, sales_order):
        deliver(client, maker_headers, sales_order, [10, 100])
        response = deliver(client, maker_headers, sales_order, [1, 0])
        assert response.status_code == 400

    def test_delete_delivery_restores_quantities(self, client, maker_headers, approver_headers, sales_order):
        delivery = deliver(client, maker_headers, sales_order, [10, 100]).json()
        response = client.delete(f"/delivery-orders/{delivery['id']}", headers=approver_headers)
        assert response.status_code == 200

        order = client.get(f"/sales-orders/{sales_order['id']}", headers=maker_headers).json()
        assert order["status"] == "Approved"
        assert all(Decimal(item["delivered_quantity"]) == 0 for item in order["line_items"])

    def test_order_with_deliveries_cannot_be_deleted(self, client, maker_headers, approver_headers, sales_order):
        deliver(client, maker_headers, sales_order, [1, 0])
        response = client.delete(f"/sales-orders/{sales_order['id']}", headers=approver_headers)
        assert response.status_code == 409

    def test_status_only_dispatched_to_closed(self, client, maker_headers, sales_order):
        delivery = deliver(client, maker_headers, sales_order, [1, 0]).json()
        bad = client.patch(f"/delivery-orders/{delivery['id']}/status", headers=maker_headers, json={"status": "Draft"})
        assert bad.status_code == 400
        ok = client.patch(f"/delivery-orders/{delivery['id']}/status", headers=maker_headers, json={"status": "Closed"})
        assert ok.status_code == 200
        assert ok.json()["status"] == "Closed"

    def test_update_editable_fields(self, client, maker_headers, sales_order):
        delivery = deliver(client, maker_headers, sales_order, [1, 0]).json()
        response = client.patch(f"/delivery-orders/{delivery['id']}", headers=maker_headers, json={
            "vehicle_number": "ka01xy9999", "notes": "Entregar en portería"
        })
        assert response.json()["vehicle_number"] == "KA01XY9999"
        assert response.json()["notes"] == "Entregar en portería"
