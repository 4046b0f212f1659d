from fastapi import APIRouter, Depends, Query, Response
from uuid import UUID
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, VIEW_ROLES
from app.modules.exports.service import ExportService
from app.modules.exports.csv_utils import create_csv_response, CSV_HEADERS

router = APIRouter(prefix="/exports", tags=["Exports"])


def pdf_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


# ===== PDF =====

@router.get("/pdf/quotes/{quote_id}")
def export_quote_pdf(
    quote_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return pdf_response(*ExportService(db).quote_pdf(quote_id))


@router.get("/pdf/sales-orders/{order_id}")
def export_sales_order_pdf(
    order_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return pdf_response(*ExportService(db).sales_order_pdf(order_id))


@router.get("/pdf/delivery-orders/{delivery_id}")
def export_delivery_order_pdf(
    delivery_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return pdf_response(*ExportService(db).delivery_order_pdf(delivery_id))


@router.get("/pdf/purchase-orders/{po_id}")
def export_purchase_order_pdf(
    po_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return pdf_response(*ExportService(db).purchase_order_pdf(po_id))


@router.get("/pdf/payslips/{record_id}")
def export_payslip_pdf(
    record_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return pdf_response(*ExportService(db).payslip_pdf(record_id))


# ===== CSV =====

@router.get("/csv/customers")
def export_customers_csv(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return create_csv_response(ExportService(db).customers_rows(), "customers.csv", CSV_HEADERS["customers"])


@router.get("/csv/products")
def export_products_csv(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return create_csv_response(ExportService(db).products_rows(), "products.csv", CSV_HEADERS["products"])


@router.get("/csv/quotes")
def export_quotes_csv(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return create_csv_response(ExportService(db).quotes_rows(), "quotes.csv", CSV_HEADERS["quotes"])


@router.get("/csv/sales-orders")
def export_sales_orders_csv(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return create_csv_response(ExportService(db).sales_orders_rows(), "sales_orders.csv", CSV_HEADERS["sales_orders"])


@router.get("/csv/delivery-orders")
def export_delivery_orders_csv(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return create_csv_response(
        ExportService(db).delivery_orders_rows(), "delivery_orders.csv", CSV_HEADERS["delivery_orders"]
    )


@router.get("/csv/purchase-orders")
def export_purchase_orders_csv(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return create_csv_response(
        ExportService(db).purchase_orders_rows(), "purchase_orders.csv", CSV_HEADERS["purchase_orders"]
    )


@router.get("/csv/pending-items")
def export_pending_items_csv(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return create_csv_response(ExportService(db).pending_items_rows(), "pending_items.csv", CSV_HEADERS["pending_items"])


@router.get("/csv/payroll")
def export_payroll_csv(
    month: str = Query(..., description="YYYY-MM"),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return create_csv_response(ExportService(db).payroll_rows(month), f"payroll_{month}.csv", CSV_HEADERS["payroll"])
