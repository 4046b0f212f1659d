"""
Verificación de integridad de datos.

Las referencias entre documentos no tienen llave foránea (son snapshots),
así que aquí se detectan referencias rotas, duplicados, aritmética de nómina
inconsistente y saldos de anticipos inválidos. Algunas incidencias se pueden
corregir automáticamente.
"""
import logging
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.common.utils import money, to_decimal
from app.common.validators import needs_flag_normalization
from app.modules.admin.schemas import (
    IntegrityIssue, IntegrityReport, IntegritySummary, IssueSeverity
)
from app.modules.admin.service import DataAdminService
from app.modules.customers.models import Customer, Vendor
from app.modules.customers.service import repair_customer
from app.modules.payroll.models import AdvancePayment, AdvanceStatus, Employee, PayrollRecord
from app.modules.products.models import Product, StockMovement
from app.modules.purchases.models import PurchaseOrder
from app.modules.sales.models import DeliveryOrder, DocumentStatus, Quote, SalesOrder

logger = logging.getLogger(__name__)

TOLERANCE = Decimal("0.01")


class IntegrityChecker:
    """Recorre las colecciones y acumula incidencias"""

    def __init__(self, db: Session, auto_fix: bool = False):
        self.db = db
        self.auto_fix = auto_fix
        self.issues: List[IntegrityIssue] = []
        self.auto_fixed = 0

    def _add(
        self,
        collection: str,
        record_id,
        issue_type: str,
        severity: IssueSeverity,
        description: str,
        fix: Optional[Callable[[], None]] = None,
    ):
        self.issues.append(IntegrityIssue(
            collection=collection,
            record_id=str(record_id),
            issue_type=issue_type,
            severity=severity,
            description=description,
            auto_fixable=fix is not None,
        ))
        if fix is not None and self.auto_fix:
            fix()
            self.auto_fixed += 1

    def _ids(self, model) -> set:
        return {row[0] for row in self.db.query(model.id).all()}

    # ===== REFERENCIAS =====

    def check_references(self):
        customers = self._ids(Customer)
        vendors = self._ids(Vendor)
        products = self._ids(Product)
        quotes = self._ids(Quote)
        orders = self._ids(SalesOrder)
        employees = self._ids(Employee)
        advances = self._ids(AdvancePayment)

        for quote in self.db.query(Quote).all():
            if quote.customer_id not in customers:
                self._add("quotes", quote.id, "missing_reference", IssueSeverity.WARNING,
                          f"Cotización {quote.display_number} referencia un cliente inexistente")
            if quote.linked_sales_order_id and quote.linked_sales_order_id not in orders:
                self._add("quotes", quote.id, "missing_reference", IssueSeverity.WARNING,
                          f"Cotización {quote.display_number} enlazada a una orden de venta inexistente",
                          fix=lambda q=quote: self._unlink_quote(q))

        for order in self.db.query(SalesOrder).all():
            if order.customer_id not in customers:
                self._add("sales_orders", order.id, "missing_reference", IssueSeverity.WARNING,
                          f"Orden de venta {order.order_number} referencia un cliente inexistente")
            if order.linked_quote_id and order.linked_quote_id not in quotes:
                self._add("sales_orders", order.id, "missing_reference", IssueSeverity.INFO,
                          f"Orden de venta {order.order_number} referencia una cotización inexistente")

        for delivery in self.db.query(DeliveryOrder).all():
            if delivery.customer_id not in customers:
                self._add("delivery_orders", delivery.id, "missing_reference", IssueSeverity.WARNING,
                          f"Nota de entrega {delivery.delivery_number} referencia un cliente inexistente")
            if delivery.sales_order_id not in orders:
                self._add("delivery_orders", delivery.id, "missing_reference", IssueSeverity.CRITICAL,
                          f"Nota de entrega {delivery.delivery_number} referencia una orden de venta inexistente")

        for po in self.db.query(PurchaseOrder).all():
            if po.vendor_id not in vendors:
                self._add("purchase_orders", po.id, "missing_reference", IssueSeverity.WARNING,
                          f"Orden de compra {po.po_number} referencia un proveedor inexistente")

        for movement in self.db.query(StockMovement).all():
            if movement.product_id not in products:
                self._add("stock_movements", movement.id, "missing_reference", IssueSeverity.WARNING,
                          f"Movimiento de stock referencia un producto inexistente ({movement.product_name})")

        for record in self.db.query(PayrollRecord).all():
            if record.employee_id not in employees:
                self._add("payroll_records", record.id, "missing_reference", IssueSeverity.CRITICAL,
                          f"Nómina {record.payroll_month} de {record.employee_name} referencia un empleado inexistente")
            if record.advance_payment_id and record.advance_payment_id not in advances:
                self._add("payroll_records", record.id, "missing_reference", IssueSeverity.WARNING,
                          f"Nómina {record.payroll_month} de {record.employee_name} referencia un anticipo inexistente",
                          fix=lambda r=record: setattr(r, "advance_payment_id", None))

        for advance in self.db.query(AdvancePayment).all():
            if advance.employee_id not in employees:
                self._add("advance_payments", advance.id, "missing_reference", IssueSeverity.CRITICAL,
                          "Anticipo referencia un empleado inexistente")

    def _unlink_quote(self, quote: Quote):
        quote.linked_sales_order_id = None
        quote.status = DocumentStatus.APPROVED.value

    # ===== DUPLICADOS =====

    def _duplicates(self, collection: str, records: Iterable, key: Callable, label: str,
                    severity: IssueSeverity):
        groups: Dict[str, list] = defaultdict(list)
        for record in records:
            value = key(record)
            if value:
                groups[value].append(record)
        for value, group in groups.items():
            if len(group) < 2:
                continue
            for record in group[1:]:
                self._add(collection, record.id, "duplicate", severity,
                          f"{label} duplicado: {value} ({len(group)} registros)")

    def check_duplicates(self):
        customers = self.db.query(Customer).all()
        self._duplicates("customers", customers, lambda c: (c.name or "").strip().lower(),
                         "Nombre de cliente", IssueSeverity.WARNING)
        self._duplicates("customers", customers, lambda c: (c.gstin or "").strip().upper(),
                         "GSTIN de cliente", IssueSeverity.CRITICAL)
        self._duplicates("products", self.db.query(Product).all(),
                         lambda p: (p.name or "").strip().lower(),
                         "Nombre de producto", IssueSeverity.WARNING)
        self._duplicates("employees", self.db.query(Employee).all(), lambda e: e.employee_id,
                         "Código de empleado", IssueSeverity.CRITICAL)
        # Las revisiones comparten quote_number; se compara el número visible
        self._duplicates("quotes", self.db.query(Quote).all(), lambda q: q.display_number,
                         "Número de cotización", IssueSeverity.CRITICAL)
        self._duplicates("sales_orders", self.db.query(SalesOrder).all(), lambda o: o.order_number,
                         "Número de orden de venta", IssueSeverity.CRITICAL)
        self._duplicates("delivery_orders", self.db.query(DeliveryOrder).all(), lambda d: d.delivery_number,
                         "Número de nota de entrega", IssueSeverity.CRITICAL)
        self._duplicates("purchase_orders", self.db.query(PurchaseOrder).all(), lambda p: p.po_number,
                         "Número de orden de compra", IssueSeverity.CRITICAL)

    # ===== NÓMINA Y ANTICIPOS =====

    @staticmethod
    def expected_payroll_totals(record: PayrollRecord):
        gross = money(
            to_decimal(record.basic_pay) + to_decimal(record.hra)
            + to_decimal(record.special_allowance) + to_decimal(record.overtime)
        )
        deductions = money(
            to_decimal(record.pf) + to_decimal(record.esi) + to_decimal(record.pt)
            + to_decimal(record.tds) + to_decimal(record.advance_deduction)
        )
        return gross, deductions, money(gross - deductions)

    def _fix_payroll(self, record: PayrollRecord):
        record.gross_pay, record.total_deductions, record.net_pay = self.expected_payroll_totals(record)

    def check_payroll(self):
        for record in self.db.query(PayrollRecord).all():
            gross, deductions, net = self.expected_payroll_totals(record)
            mismatched = [
                name for name, stored, expected in (
                    ("gross_pay", record.gross_pay, gross),
                    ("total_deductions", record.total_deductions, deductions),
                    ("net_pay", record.net_pay, net),
                )
                if abs(to_decimal(stored) - expected) > TOLERANCE
            ]
            if mismatched:
                self._add("payroll_records", record.id, "calculation_mismatch", IssueSeverity.WARNING,
                          f"Nómina {record.payroll_month} de {record.employee_name}: "
                          f"totales inconsistentes ({', '.join(mismatched)})",
                          fix=lambda r=record: self._fix_payroll(r))

    def _fix_negative_balance(self, advance: AdvancePayment):
        advance.balance_amount = Decimal("0.00")
        advance.status = AdvanceStatus.FULLY_DEDUCTED.value

    def check_advances(self):
        for advance in self.db.query(AdvancePayment).all():
            balance = to_decimal(advance.balance_amount)
            if balance < 0:
                self._add("advance_payments", advance.id, "negative_balance", IssueSeverity.CRITICAL,
                          f"Saldo de anticipo negativo: {balance}",
                          fix=lambda a=advance: self._fix_negative_balance(a))
            elif balance > to_decimal(advance.amount):
                self._add("advance_payments", advance.id, "balance_exceeds_amount", IssueSeverity.WARNING,
                          f"Saldo {balance} mayor que el monto entregado {advance.amount}")

    # ===== CLIENTES =====

    def check_customers(self):
        for customer in self.db.query(Customer).all():
            if (
                not customer.contacts
                or not customer.shipping_addresses
                or not customer.billing_address
                or needs_flag_normalization(customer.contacts, "is_primary")
                or needs_flag_normalization(customer.shipping_addresses, "is_default")
            ):
                self._add("customers", customer.id, "invalid_defaults", IssueSeverity.INFO,
                          f"Cliente {customer.name}: contacto o dirección por defecto inválidos",
                          fix=lambda c=customer: repair_customer(c))

    # ===== REPORTE =====

    def run(self) -> IntegrityReport:
        try:
            self.check_references()
            self.check_duplicates()
            self.check_payroll()
            self.check_advances()
            self.check_customers()
            if self.auto_fix and self.auto_fixed:
                self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Integrity check failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error verificando integridad: {str(e)}"
            )

        stats = DataAdminService(self.db).get_stats()
        summary = IntegritySummary()
        for issue in self.issues:
            setattr(summary, issue.severity.value, getattr(summary, issue.severity.value) + 1)

        logger.info(
            f"Integrity check: {len(self.issues)} issues, {self.auto_fixed} auto-fixed "
            f"(critical={summary.critical}, warning={summary.warning}, info={summary.info})"
        )
        return IntegrityReport(
            timestamp=datetime.now(timezone.utc),
            collections_checked=sorted(stats.collections),
            total_documents=stats.total_documents,
            issues=self.issues,
            auto_fixed=self.auto_fixed,
            manual_fixes_required=sum(1 for issue in self.issues if not issue.auto_fixable),
            summary=summary,
        )
