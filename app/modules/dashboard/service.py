import logging
from decimal import Decimal
from typing import List

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.common.utils import money
from app.modules.customers.models import Customer
from app.modules.payroll.models import Employee
from app.modules.products.models import Product
from app.modules.sales.models import DeliveryOrder, DocumentStatus, Quote, SalesOrder
from app.modules.sales.service import OPEN_ORDER_STATUSES
from app.modules.dashboard.schemas import DashboardCounts, DashboardResponse, RecentDocument

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5
OPEN_QUOTE_STATUSES = [
    DocumentStatus.DRAFT.value,
    DocumentStatus.SENT.value,
    DocumentStatus.DISCUSSION.value,
]


class DashboardService:
    """Indicadores del tablero principal"""

    def __init__(self, db: Session):
        self.db = db

    def _count(self, model, *criteria) -> int:
        return self.db.query(func.count(model.id)).filter(*criteria).scalar() or 0

    def _recent_quotes(self) -> List[RecentDocument]:
        quotes = self.db.query(Quote).order_by(Quote.created_at.desc()).limit(RECENT_LIMIT).all()
        return [
            RecentDocument(
                id=q.id, number=q.display_number, customer_name=q.customer_name,
                date=q.issue_date, status=q.status, total=q.total
            )
            for q in quotes
        ]

    def _recent_orders(self) -> List[RecentDocument]:
        orders = self.db.query(SalesOrder).order_by(SalesOrder.created_at.desc()).limit(RECENT_LIMIT).all()
        return [
            RecentDocument(
                id=o.id, number=o.order_number, customer_name=o.customer_name,
                date=o.order_date, status=o.status, total=o.total
            )
            for o in orders
        ]

    def _recent_deliveries(self) -> List[RecentDocument]:
        deliveries = (
            self.db.query(DeliveryOrder)
            .order_by(DeliveryOrder.created_at.desc())
            .limit(RECENT_LIMIT)
            .all()
        )
        return [
            RecentDocument(
                id=d.id, number=d.delivery_number, customer_name=d.customer_name,
                date=d.delivery_date, status=d.status
            )
            for d in deliveries
        ]

    def get_dashboard(self) -> DashboardResponse:
        try:
            counts = DashboardCounts(
                customers=self._count(Customer),
                products=self._count(Product),
                employees=self._count(Employee),
                open_quotes=self._count(Quote, Quote.status.in_(OPEN_QUOTE_STATUSES)),
                pending_sales_orders=self._count(SalesOrder, SalesOrder.status.in_(OPEN_ORDER_STATUSES)),
                action_required=self._count(
                    Quote,
                    Quote.status == DocumentStatus.APPROVED.value,
                    Quote.linked_sales_order_id.is_(None),
                ),
            )
            open_value = (
                self.db.query(func.coalesce(func.sum(SalesOrder.total), 0))
                .filter(SalesOrder.status.in_(OPEN_ORDER_STATUSES))
                .scalar()
            )
            return DashboardResponse(
                counts=counts,
                open_sales_order_value=money(open_value or Decimal("0")),
                recent_quotes=self._recent_quotes(),
                recent_sales_orders=self._recent_orders(),
                recent_delivery_orders=self._recent_deliveries(),
            )
        except Exception as e:
            logger.error(f"Error building dashboard: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error al obtener el tablero: {str(e)}"
            )
