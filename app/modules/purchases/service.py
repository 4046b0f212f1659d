"""
Servicio de órdenes de compra
"""
import logging
from datetime import date
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.modules.customers.models import Vendor
from app.modules.customers.service import VendorService
from app.modules.numbering.schemas import DocumentType
from app.modules.numbering.service import NumberingService
from app.modules.purchases.models import PurchaseOrder, POItem
from app.modules.purchases.schemas import PurchaseOrderCreate, PurchaseOrderUpdate
from app.modules.sales.models import DocumentStatus
from app.modules.sales.service import check_transition
from app.modules.sales.utils import apply_totals, build_line_items
from app.modules.settings.service import SettingsService, PointOfContactService

logger = logging.getLogger(__name__)


PO_TRANSITIONS = {
    DocumentStatus.DRAFT: {DocumentStatus.SENT, DocumentStatus.REJECTED},
    DocumentStatus.SENT: {DocumentStatus.APPROVED, DocumentStatus.REJECTED, DocumentStatus.DRAFT},
    DocumentStatus.APPROVED: {DocumentStatus.CLOSED, DocumentStatus.REJECTED},
    DocumentStatus.REJECTED: {DocumentStatus.DRAFT},
}

PO_EDITABLE = {DocumentStatus.DRAFT.value, DocumentStatus.SENT.value}


def snapshot_vendor(vendor: Vendor) -> Dict:
    return {
        "vendor_id": vendor.id,
        "vendor_name": vendor.name,
        "vendor_gstin": vendor.gstin,
        "vendor_address": vendor.address,
    }


class PurchaseOrderService:
    """Servicio para gestión de órdenes de compra"""

    def __init__(self, db: Session):
        self.db = db

    def _number_exists(self, number: str) -> bool:
        return self.db.query(PurchaseOrder.id).filter(PurchaseOrder.po_number == number).first() is not None

    def create_purchase_order(self, po_data: PurchaseOrderCreate, user_id: Optional[UUID] = None) -> PurchaseOrder:
        """Crear nueva orden de compra en estado Draft"""
        try:
            vendor = VendorService(self.db).get_vendor(po_data.vendor_id)

            delivery_address = po_data.delivery_address
            if not delivery_address:
                delivery_address = SettingsService(self.db).get_company_details().delivery_address or None

            poc_id = po_data.point_of_contact_id
            if poc_id is None:
                default_poc = PointOfContactService(self.db).get_default()
                poc_id = default_poc.id if default_poc else None

            number = NumberingService(self.db).allocate(
                DocumentType.PURCHASE_ORDER, vendor.name, exists=self._number_exists
            )

            items = build_line_items(POItem, po_data.line_items)
            purchase_order = PurchaseOrder(
                po_number=number,
                order_date=po_data.order_date,
                delivery_address=delivery_address,
                point_of_contact_id=poc_id,
                notes=po_data.notes,
                status=DocumentStatus.DRAFT.value,
                created_by=user_id,
                line_items=items,
                **snapshot_vendor(vendor)
            )
            apply_totals(purchase_order, items)

            self.db.add(purchase_order)
            self.db.commit()
            self.db.refresh(purchase_order)

            logger.info(f"Purchase order created: {purchase_order.po_number} for {vendor.name}")
            return purchase_order

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating purchase order: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error creando orden de compra: {str(e)}"
            )

    def get_purchase_orders(
        self,
        limit: int = 100,
        offset: int = 0,
        status_filter: Optional[DocumentStatus] = None,
        vendor_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None
    ) -> Tuple[List[PurchaseOrder], int]:
        """Listar órdenes de compra con filtros"""
        query = self.db.query(PurchaseOrder)

        if status_filter:
            query = query.filter(PurchaseOrder.status == status_filter.value)
        if vendor_id:
            query = query.filter(PurchaseOrder.vendor_id == vendor_id)
        if start_date:
            query = query.filter(PurchaseOrder.order_date >= start_date)
        if end_date:
            query = query.filter(PurchaseOrder.order_date <= end_date)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                PurchaseOrder.po_number.ilike(pattern),
                PurchaseOrder.vendor_name.ilike(pattern)
            ))

        total = query.count()
        purchase_orders = query.order_by(PurchaseOrder.created_at.desc()).offset(offset).limit(limit).all()
        return purchase_orders, total

    def get_purchase_order(self, po_id: UUID) -> PurchaseOrder:
        po = self.db.get(PurchaseOrder, po_id)
        if not po:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Orden de compra no encontrada"
            )
        return po

    def update_purchase_order(self, po_id: UUID, update_data: PurchaseOrderUpdate) -> PurchaseOrder:
        """Actualizar orden de compra (solo en Draft o Sent)"""
        try:
            po = self.get_purchase_order(po_id)
            if po.status not in PO_EDITABLE:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"No se puede modificar una orden de compra en estado {po.status}"
                )

            values = update_data.model_dump(exclude_unset=True, exclude={"line_items"})
            vendor_id = values.pop("vendor_id", None)
            if vendor_id:
                vendor = VendorService(self.db).get_vendor(vendor_id)
                for field, value in snapshot_vendor(vendor).items():
                    setattr(po, field, value)

            for field, value in values.items():
                if field == "order_date" and value is None:
                    continue
                setattr(po, field, value)

            if update_data.line_items is not None:
                po.line_items = build_line_items(POItem, update_data.line_items)
            apply_totals(po, po.line_items)

            self.db.commit()
            self.db.refresh(po)
            return po

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating purchase order {po_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error actualizando orden de compra: {str(e)}"
            )

    def change_status(self, po_id: UUID, new_status: DocumentStatus) -> PurchaseOrder:
        po = self.get_purchase_order(po_id)
        if po.status == new_status.value:
            return po
        check_transition(PO_TRANSITIONS, po.status, new_status)

        previous = po.status
        po.status = new_status.value
        self.db.commit()
        self.db.refresh(po)
        logger.info(f"Purchase order {po.po_number}: {previous} -> {new_status.value}")
        return po

    def delete_purchase_order(self, po_id: UUID) -> Dict[str, str]:
        po = self.get_purchase_order(po_id)
        self.db.delete(po)
        self.db.commit()
        logger.info(f"Purchase order deleted: {po.po_number}")
        return {"message": "Orden de compra eliminada exitosamente"}
