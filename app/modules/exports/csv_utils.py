"""
Utilidades de exportación CSV

Las filas se preparan como diccionarios y se escriben con
create_csv_response usando un mapeo campo -> encabezado.
"""

import csv
import io
import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import Response


def create_csv_response(
    data: List[Dict[str, Any]],
    filename: str,
    headers: Optional[Dict[str, str]] = None
) -> Response:
    """
    Crear una respuesta CSV a partir de una lista de diccionarios.

    Args:
        data: filas del reporte
        filename: nombre del archivo descargado
        headers: mapeo opcional campo -> encabezado del CSV
    """
    output = io.StringIO()
    fieldnames = list(headers.keys()) if headers else (list(data[0].keys()) if data else [])
    csv_headers = list(headers.values()) if headers else fieldnames

    if fieldnames:
        writer = csv.DictWriter(output, fieldnames=fieldnames, extrasaction="ignore")
        writer.writerow(dict(zip(fieldnames, csv_headers)))
        for row in data:
            writer.writerow({key: format_csv_value(row.get(key)) for key in fieldnames})

    csv_content = output.getvalue()
    output.close()

    return Response(
        content=csv_content,
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename={filename}",
            "Content-Type": "text/csv; charset=utf-8"
        }
    )


def format_csv_value(value: Any) -> str:
    """Representación de un valor apta para CSV (listas y dicts como JSON)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (list, dict)):
        return json.dumps(value, default=str, ensure_ascii=False)
    return str(value)


# ===== ENCABEZADOS =====

CSV_HEADERS = {
    "customers": {
        "id": "ID", "name": "Name", "gstin": "GSTIN", "primary_contact": "Primary Contact",
        "email": "Email", "phone": "Phone", "billing_address": "Billing Address",
        "shipping_addresses": "Shipping Addresses",
    },
    "products": {
        "id": "ID", "name": "Name", "description": "Description", "unit": "Unit",
        "rate": "Rate", "hsn_code": "HSN Code",
    },
    "quotes": {
        "number": "Quote Number", "issue_date": "Issue Date", "expiry_date": "Expiry Date",
        "customer_name": "Customer", "status": "Status", "sub_total": "Sub Total",
        "gst_total": "GST", "total": "Total", "linked_sales_order_id": "Sales Order",
    },
    "sales_orders": {
        "order_number": "SO Number", "order_date": "Order Date", "quote_number": "Quote Number",
        "client_po_number": "Client PO", "customer_name": "Customer", "status": "Status",
        "sub_total": "Sub Total", "gst_total": "GST", "total": "Total",
    },
    "delivery_orders": {
        "delivery_number": "DO Number", "delivery_date": "Delivery Date",
        "sales_order_number": "SO Number", "customer_name": "Customer",
        "vehicle_number": "Vehicle", "status": "Status", "items": "Items",
    },
    "purchase_orders": {
        "po_number": "PO Number", "order_date": "Order Date", "vendor_name": "Vendor",
        "vendor_gstin": "Vendor GSTIN", "status": "Status", "sub_total": "Sub Total",
        "gst_total": "GST", "total": "Total",
    },
    "pending_items": {
        "order_number": "SO Number", "order_date": "Order Date", "customer_name": "Customer",
        "product_name": "Product", "unit": "Unit", "ordered_quantity": "Ordered",
        "delivered_quantity": "Delivered", "pending_quantity": "Pending",
    },
    "payroll": {
        "employee_code": "Employee ID", "employee_name": "Name", "category": "Category",
        "payroll_month": "Month", "days_present": "Days Present", "overtime_details": "Overtime",
        "basic_pay": "Basic", "hra": "HRA", "special_allowance": "Special Allowance",
        "overtime": "Overtime Pay", "gross_pay": "Gross Pay", "pf": "PF", "esi": "ESI",
        "pt": "PT", "tds": "TDS", "advance_deduction": "Advance Deduction",
        "total_deductions": "Total Deductions", "net_pay": "Net Pay", "status": "Status",
        "bank_name": "Bank", "account_number": "Account Number", "ifsc": "IFSC",
    },
}


# ===== PREPARACIÓN DE FILAS =====

def _address_text(address: Optional[Dict[str, Any]]) -> str:
    if not address:
        return ""
    parts = [address.get("line1"), address.get("line2"), address.get("city"),
             address.get("state"), address.get("pincode")]
    return ", ".join(p for p in parts if p)


def prepare_customers_csv(customers) -> List[Dict[str, Any]]:
    rows = []
    for customer in customers:
        contact = customer.primary_contact or {}
        rows.append({
            "id": customer.id,
            "name": customer.name,
            "gstin": customer.gstin,
            "primary_contact": contact.get("name"),
            "email": contact.get("email"),
            "phone": contact.get("phone"),
            "billing_address": _address_text(customer.billing_address),
            "shipping_addresses": " | ".join(_address_text(a) for a in customer.shipping_addresses or []),
        })
    return rows


def prepare_products_csv(products) -> List[Dict[str, Any]]:
    return [
        {
            "id": p.id, "name": p.name, "description": p.description,
            "unit": p.unit, "rate": p.rate, "hsn_code": p.hsn_code,
        }
        for p in products
    ]


def prepare_quotes_csv(quotes) -> List[Dict[str, Any]]:
    return [
        {
            "number": q.display_number, "issue_date": q.issue_date, "expiry_date": q.expiry_date,
            "customer_name": q.customer_name, "status": q.status, "sub_total": q.sub_total,
            "gst_total": q.gst_total, "total": q.total, "linked_sales_order_id": q.linked_sales_order_id,
        }
        for q in quotes
    ]


def prepare_sales_orders_csv(orders) -> List[Dict[str, Any]]:
    return [
        {
            "order_number": o.order_number, "order_date": o.order_date, "quote_number": o.quote_number,
            "client_po_number": o.client_po_number, "customer_name": o.customer_name,
            "status": o.status, "sub_total": o.sub_total, "gst_total": o.gst_total, "total": o.total,
        }
        for o in orders
    ]


def prepare_delivery_orders_csv(deliveries) -> List[Dict[str, Any]]:
    return [
        {
            "delivery_number": d.delivery_number, "delivery_date": d.delivery_date,
            "sales_order_number": d.sales_order_number, "customer_name": d.customer_name,
            "vehicle_number": d.vehicle_number, "status": d.status,
            "items": "; ".join(f"{i.product_name} x {i.quantity} {i.unit}" for i in d.line_items),
        }
        for d in deliveries
    ]


def prepare_purchase_orders_csv(purchase_orders) -> List[Dict[str, Any]]:
    return [
        {
            "po_number": po.po_number, "order_date": po.order_date, "vendor_name": po.vendor_name,
            "vendor_gstin": po.vendor_gstin, "status": po.status, "sub_total": po.sub_total,
            "gst_total": po.gst_total, "total": po.total,
        }
        for po in purchase_orders
    ]


def prepare_pending_items_csv(pending_items) -> List[Dict[str, Any]]:
    return [item.model_dump() for item in pending_items]


def prepare_payroll_csv(records) -> List[Dict[str, Any]]:
    rows = []
    for r in records:
        account = r.remittance_account or {}
        rows.append({
            "employee_code": r.employee_code, "employee_name": r.employee_name,
            "category": r.category, "payroll_month": r.payroll_month,
            "days_present": r.days_present, "overtime_details": r.overtime_details,
            "basic_pay": r.basic_pay, "hra": r.hra, "special_allowance": r.special_allowance,
            "overtime": r.overtime, "gross_pay": r.gross_pay, "pf": r.pf, "esi": r.esi,
            "pt": r.pt, "tds": r.tds, "advance_deduction": r.advance_deduction,
            "total_deductions": r.total_deductions, "net_pay": r.net_pay, "status": r.status,
            "bank_name": account.get("bank_name"), "account_number": account.get("account_number"),
            "ifsc": account.get("ifsc"),
        })
    return rows
