"""
Tests para el tablero principal
"""
from decimal import Decimal


def create_quote(client, headers, customer_id, line_items, approve=False):
    quote = client.post("/quotes/", headers=headers, json={
        "customer_id": customer_id,
        "line_items": line_items,
    }).json()
    if approve:
        client.patch(f"/quotes/{quote['id']}/status", headers=headers, json={"status": "Approved"})
    return quote


class TestDashboard:

    def test_empty_dashboard(self, client, viewer_headers):
        response = client.get("/dashboard/", headers=viewer_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["counts"] == {
            "customers": 0, "products": 0, "employees": 0,
            "open_quotes": 0, "pending_sales_orders": 0, "action_required": 0,
        }
        assert Decimal(body["open_sales_order_value"]) == Decimal("0")
        assert body["recent_quotes"] == []

    def test_counts_and_recent_documents(self, client, maker_headers, viewer_headers,
                                         customer_payload, quote_line_items):
        customer = client.post("/customers/", headers=maker_headers, json=customer_payload).json()

        create_quote(client, maker_headers, customer["id"], quote_line_items)
        create_quote(client, maker_headers, customer["id"], quote_line_items, approve=True)
        converted = create_quote(client, maker_headers, customer["id"], quote_line_items, approve=True)
        order = client.post(f"/quotes/{converted['id']}/sales-order", headers=maker_headers, json={}).json()

        body = client.get("/dashboard/", headers=viewer_headers).json()
        counts = body["counts"]
        assert counts["customers"] == 1
        assert counts["open_quotes"] == 1
        assert counts["pending_sales_orders"] == 1
        # aprobada pero sin orden de venta
        assert counts["action_required"] == 1
        assert Decimal(body["open_sales_order_value"]) == Decimal("2065")

        assert len(body["recent_quotes"]) == 3
        assert body["recent_sales_orders"][0]["number"] == order["order_number"]
        assert body["recent_sales_orders"][0]["customer_name"] == "Acme Industries"

    def test_closed_orders_not_pending(self, client, maker_headers, viewer_headers,
                                       customer_payload, quote_line_items):
        customer = client.post("/customers/", headers=maker_headers, json=customer_payload).json()
        quote = create_quote(client, maker_headers, customer["id"], quote_line_items, approve=True)
        order = client.post(f"/quotes/{quote['id']}/sales-order", headers=maker_headers, json={}).json()
        client.post("/delivery-orders/", headers=maker_headers, json={
            "sales_order_id": order["id"],
            "line_items": [
                {"sales_order_item_id": item["id"], "quantity": item["quantity"]}
                for item in order["line_items"]
            ],
        })

        body = client.get("/dashboard/", headers=viewer_headers).json()
        assert body["counts"]["pending_sales_orders"] == 0
        assert Decimal(body["open_sales_order_value"]) == Decimal("0")
        assert len(body["recent_delivery_orders"]) == 1
