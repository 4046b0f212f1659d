"""
Servicio de exportaciones: reúne los datos de cada módulo y los entrega
como PDF (bytes) o filas CSV.
"""
import logging
import re
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from app.modules.customers.models import Customer
from app.modules.products.models import Product
from app.modules.sales.models import Quote, SalesOrder, DeliveryOrder
from app.modules.sales.service import QuoteService, SalesOrderService, DeliveryOrderService
from app.modules.purchases.models import PurchaseOrder
from app.modules.purchases.service import PurchaseOrderService
from app.modules.payroll.service import PayrollService
from app.modules.settings.models import PointOfContact
from app.modules.settings.service import SettingsService
from app.modules.exports import csv_utils, pdf

logger = logging.getLogger(__name__)


def safe_filename(value: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]+", "-", value).strip("-")


class ExportService:

    def __init__(self, db: Session):
        self.db = db
        self.settings = SettingsService(db)

    def _poc(self, poc_id: Optional[UUID]):
        return self.db.get(PointOfContact, poc_id) if poc_id else None

    # ===== PDF =====

    def quote_pdf(self, quote_id: UUID) -> Tuple[bytes, str]:
        quote = QuoteService(self.db).get_quote(quote_id)
        content = pdf.render_quote_pdf(
            quote, self.settings.get_company_details(), self.settings.get_pdf_settings(),
            self._poc(quote.point_of_contact_id)
        )
        logger.info(f"Quote PDF generated: {quote.display_number}")
        return content, f"Quote-{safe_filename(quote.display_number)}.pdf"

    def sales_order_pdf(self, order_id: UUID) -> Tuple[bytes, str]:
        order = SalesOrderService(self.db).get_order(order_id)
        content = pdf.render_sales_order_pdf(
            order, self.settings.get_company_details(), self.settings.get_pdf_settings(),
            self._poc(order.point_of_contact_id)
        )
        return content, f"SalesOrder-{safe_filename(order.order_number)}.pdf"

    def delivery_order_pdf(self, delivery_id: UUID) -> Tuple[bytes, str]:
        delivery = DeliveryOrderService(self.db).get_delivery(delivery_id)
        content = pdf.render_delivery_order_pdf(
            delivery, self.settings.get_company_details(), self.settings.get_pdf_settings()
        )
        return content, f"DeliveryOrder-{safe_filename(delivery.delivery_number)}.pdf"

    def purchase_order_pdf(self, po_id: UUID) -> Tuple[bytes, str]:
        po = PurchaseOrderService(self.db).get_purchase_order(po_id)
        content = pdf.render_purchase_order_pdf(
            po, self.settings.get_company_details(), self.settings.get_pdf_settings(),
            self._poc(po.point_of_contact_id)
        )
        return content, f"PurchaseOrder-{safe_filename(po.po_number)}.pdf"

    def payslip_pdf(self, record_id: UUID) -> Tuple[bytes, str]:
        record = PayrollService(self.db).get_record(record_id)
        content = pdf.render_payslip_pdf(
            record, self.settings.get_company_details(), self.settings.get_pdf_settings()
        )
        return content, f"Payslip-{safe_filename(record.employee_code)}-{record.payroll_month}.pdf"

    # ===== CSV =====

    def customers_rows(self):
        customers = self.db.query(Customer).order_by(Customer.name.asc()).all()
        return csv_utils.prepare_customers_csv(customers)

    def products_rows(self):
        products = self.db.query(Product).order_by(Product.name.asc()).all()
        return csv_utils.prepare_products_csv(products)

    def quotes_rows(self):
        quotes = self.db.query(Quote).order_by(Quote.issue_date.desc(), Quote.quote_number.desc()).all()
        return csv_utils.prepare_quotes_csv(quotes)

    def sales_orders_rows(self):
        orders = self.db.query(SalesOrder).order_by(SalesOrder.order_date.desc()).all()
        return csv_utils.prepare_sales_orders_csv(orders)

    def delivery_orders_rows(self):
        deliveries = self.db.query(DeliveryOrder).order_by(DeliveryOrder.delivery_date.desc()).all()
        return csv_utils.prepare_delivery_orders_csv(deliveries)

    def purchase_orders_rows(self):
        purchase_orders = self.db.query(PurchaseOrder).order_by(PurchaseOrder.order_date.desc()).all()
        return csv_utils.prepare_purchase_orders_csv(purchase_orders)

    def pending_items_rows(self):
        return csv_utils.prepare_pending_items_csv(SalesOrderService(self.db).get_pending_items())

    def payroll_rows(self, month: str):
        return csv_utils.prepare_payroll_csv(PayrollService(self.db).get_records(month=month))
