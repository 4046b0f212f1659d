"""
Tests para exportaciones PDF y CSV
"""
import csv
import io

import pytest

from app.modules.exports.csv_utils import format_csv_value
from app.modules.exports.service import safe_filename


@pytest.fixture
def sales_order(client, maker_headers, customer_payload, quote_line_items):
    customer = client.post("/customers/", headers=maker_headers, json=customer_payload).json()
    quote = client.post("/quotes/", headers=maker_headers, json={
        "customer_id": customer["id"],
        "line_items": quote_line_items,
    }).json()
    client.patch(f"/quotes/{quote['id']}/status", headers=maker_headers, json={"status": "Approved"})
    response = client.post(f"/quotes/{quote['id']}/sales-order", headers=maker_headers, json={})
    assert response.status_code == 201
    return response.json()


def read_csv(response):
    return list(csv.reader(io.StringIO(response.text)))


class TestHelpers:

    def test_safe_filename(self):
        assert safe_filename("Q-0001/24-25") == "Q-0001-24-25"
        assert safe_filename("PO/ACME/0001") == "PO-ACME-0001"

    def test_format_csv_value(self):
        assert format_csv_value(None) == ""
        assert format_csv_value(True) == "Yes"
        assert format_csv_value(["a", "b"]) == '["a", "b"]'


class TestPdfExports:
    """Los documentos se generan con reportlab"""

    def test_quote_pdf(self, client, viewer_headers, sales_order):
        response = client.get(f"/exports/pdf/quotes/{sales_order['linked_quote_id']}", headers=viewer_headers)
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"].startswith("attachment; filename=Quote-Q-0001-")
        assert response.content.startswith(b"%PDF")

    def test_sales_order_pdf(self, client, viewer_headers, sales_order):
        response = client.get(f"/exports/pdf/sales-orders/{sales_order['id']}", headers=viewer_headers)
        assert response.status_code == 200
        assert response.headers["content-disposition"] == "attachment; filename=SalesOrder-SO-0001.pdf"
        assert response.content.startswith(b"%PDF")

    def test_delivery_order_pdf(self, client, maker_headers, sales_order):
        delivery = client.post("/delivery-orders/", headers=maker_headers, json={
            "sales_order_id": sales_order["id"],
            "line_items": [{"sales_order_item_id": sales_order["line_items"][0]["id"], "quantity": "4"}],
        }).json()
        response = client.get(f"/exports/pdf/delivery-orders/{delivery['id']}", headers=maker_headers)
        assert response.status_code == 200
        assert response.content.startswith(b"%PDF")

    def test_purchase_order_pdf(self, client, maker_headers):
        vendor = client.post("/vendors/", headers=maker_headers, json={"name": "Bharat Steels"}).json()
        po = client.post("/purchase-orders/", headers=maker_headers, json={
            "vendor_id": vendor["id"],
            "line_items": [{"product_name": "MS Sheet", "quantity": "5", "unit_price": "150", "tax_rate": "18"}],
        }).json()
        response = client.get(f"/exports/pdf/purchase-orders/{po['id']}", headers=maker_headers)
        assert response.status_code == 200
        assert response.content.startswith(b"%PDF")

    def test_payslip_pdf(self, client, admin_headers):
        employee = client.post("/payroll/employees", headers=admin_headers, json={
            "employee_id": "EMP001",
            "name": "Suresh Patil",
            "monthly_ctc": "30000",
        }).json()
        record = client.post("/payroll/runs", headers=admin_headers, json={
            "payroll_month": "2024-05",
            "records": [{"employee_id": employee["id"], "days_present": "30"}],
        }).json()[0]
        response = client.get(f"/exports/pdf/payslips/{record['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert response.headers["content-disposition"] == "attachment; filename=Payslip-EMP001-2024-05.pdf"
        assert response.content.startswith(b"%PDF")

    def test_missing_document(self, client, viewer_headers):
        response = client.get(
            "/exports/pdf/quotes/00000000-0000-0000-0000-000000000000", headers=viewer_headers
        )
        assert response.status_code == 404


class TestCsvExports:

    def test_customers_csv(self, client, maker_headers, customer_payload):
        client.post("/customers/", headers=maker_headers, json=customer_payload)
        response = client.get("/exports/csv/customers", headers=maker_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        rows = read_csv(response)
        assert rows[0][:3] == ["ID", "Name", "GSTIN"]
        assert rows[1][1] == "Acme Industries"
        assert rows[1][3] == "Ravi Kumar"

    def test_sales_orders_and_pending_items(self, client, viewer_headers, sales_order):
        orders = read_csv(client.get("/exports/csv/sales-orders", headers=viewer_headers))
        assert orders[1][0] == "SO-0001"
        assert orders[1][-1] == "2065.00"

        pending = read_csv(client.get("/exports/csv/pending-items", headers=viewer_headers))
        assert pending[0] == ["SO Number", "Order Date", "Customer", "Product", "Unit",
                              "Ordered", "Delivered", "Pending"]
        assert len(pending) == 3

    def test_empty_export_has_header_only(self, client, viewer_headers):
        rows = read_csv(client.get("/exports/csv/purchase-orders", headers=viewer_headers))
        assert rows == [["PO Number", "Order Date", "Vendor", "Vendor GSTIN", "Status",
                         "Sub Total", "GST", "Total"]]

    def test_payroll_csv_requires_month(self, client, viewer_headers):
        assert client.get("/exports/csv/payroll", headers=viewer_headers).status_code == 422
