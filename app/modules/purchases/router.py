from fastapi import APIRouter, status, Depends, Query
from uuid import UUID
from datetime import date
from typing import Optional
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, VIEW_ROLES, EDIT_ROLES, DELETE_ROLES
from app.modules.sales.models import DocumentStatus
from app.modules.purchases.service import PurchaseOrderService
from app.modules.purchases.schemas import (
    PurchaseOrderCreate, PurchaseOrderUpdate, PurchaseOrderOut,
    PurchaseOrderList, PurchaseOrderStatusUpdate
)

router = APIRouter(prefix="/purchase-orders", tags=["Purchase Orders"])


@router.post("/", response_model=PurchaseOrderOut, status_code=status.HTTP_201_CREATED)
def create_purchase_order(
    po_data: PurchaseOrderCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    """
    Crear orden de compra en estado Draft.

    - Número asignado con la secuencia `purchase_order` ({VEND} = código del proveedor)
    - Dirección de entrega por defecto desde los datos de la empresa
    """
    return PurchaseOrderService(db).create_purchase_order(po_data, user_id=auth_context.user_id)


@router.get("/", response_model=PurchaseOrderList)
def list_purchase_orders(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    status_filter: Optional[DocumentStatus] = Query(None, alias="status"),
    vendor_id: Optional[UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None, description="Número o proveedor"),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    items, total = PurchaseOrderService(db).get_purchase_orders(
        limit, offset, status_filter, vendor_id, start_date, end_date, search
    )
    return PurchaseOrderList(items=items, total=total, limit=limit, offset=offset)


@router.get("/{po_id}", response_model=PurchaseOrderOut)
def get_purchase_order(
    po_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return PurchaseOrderService(db).get_purchase_order(po_id)


@router.patch("/{po_id}", response_model=PurchaseOrderOut)
def update_purchase_order(
    po_id: UUID,
    update_data: PurchaseOrderUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    return PurchaseOrderService(db).update_purchase_order(po_id, update_data)


@router.patch("/{po_id}/status", response_model=PurchaseOrderOut)
def change_purchase_order_status(
    po_id: UUID,
    data: PurchaseOrderStatusUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    return PurchaseOrderService(db).change_status(po_id, data.status)


@router.delete("/{po_id}")
def delete_purchase_order(
    po_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(DELETE_ROLES))
):
    return PurchaseOrderService(db).delete_purchase_order(po_id)
