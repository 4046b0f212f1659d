from fastapi import APIRouter, status, Depends, Query, Body
from uuid import UUID
from typing import List, Optional
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, VIEW_ROLES, EDIT_ROLES, DELETE_ROLES
from app.modules.sales.models import DocumentStatus
from app.modules.sales.service import QuoteService, SalesOrderService, DeliveryOrderService
from app.modules.sales.schemas import (
    QuoteCreate, QuoteUpdate, QuoteOut, QuoteList, QuoteStatusUpdate,
    SalesOrderCreate, SalesOrderRevise, SalesOrderOut, SalesOrderList, PendingItem,
    DeliveryOrderCreate, DeliveryOrderUpdate, DeliveryOrderStatusUpdate,
    DeliveryOrderOut, DeliveryOrderList
)

quotes_router = APIRouter(prefix="/quotes", tags=["Quotes"])
sales_orders_router = APIRouter(prefix="/sales-orders", tags=["Sales Orders"])
delivery_orders_router = APIRouter(prefix="/delivery-orders", tags=["Delivery Orders"])


# ===== QUOTES =====

@quotes_router.post("/", response_model=QuoteOut, status_code=status.HTTP_201_CREATED)
def create_quote(
    quote_data: QuoteCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    """
    Crear cotización en estado Draft.

    - Número asignado con la secuencia `quote` ({CUST} = código del cliente)
    - Contacto y direcciones se copian del cliente (primario / por defecto si no se indican)
    - Términos por defecto desde la configuración
    """
    return QuoteService(db).create_quote(quote_data, user_id=auth_context.user_id)


@quotes_router.get("/", response_model=QuoteList)
def list_quotes(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    status_filter: Optional[DocumentStatus] = Query(None, alias="status"),
    customer_id: Optional[UUID] = Query(None),
    search: Optional[str] = Query(None, description="Número o cliente"),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    quotes, total = QuoteService(db).get_quotes(limit, offset, status_filter, customer_id, search)
    return QuoteList(items=quotes, total=total, limit=limit, offset=offset)


@quotes_router.get("/{quote_id}", response_model=QuoteOut)
def get_quote(
    quote_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return QuoteService(db).get_quote(quote_id)


@quotes_router.patch("/{quote_id}", response_model=QuoteOut)
def update_quote(
    quote_id: UUID,
    update_data: QuoteUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    return QuoteService(db).update_quote(quote_id, update_data)


@quotes_router.delete("/{quote_id}")
def delete_quote(
    quote_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(DELETE_ROLES))
):
    return QuoteService(db).delete_quote(quote_id)


@quotes_router.patch("/{quote_id}/status", response_model=QuoteOut)
def change_quote_status(
    quote_id: UUID,
    data: QuoteStatusUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    return QuoteService(db).change_status(quote_id, data.status)


@quotes_router.post("/{quote_id}/revise", response_model=QuoteOut, status_code=status.HTTP_201_CREATED)
def revise_quote(
    quote_id: UUID,
    update_data: Optional[QuoteUpdate] = Body(None),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    """Crear una nueva revisión (-RevN); la actual queda Superseded."""
    return QuoteService(db).revise_quote(quote_id, update_data, user_id=auth_context.user_id)


@quotes_router.get("/{quote_id}/revisions", response_model=List[QuoteOut])
def get_quote_revisions(
    quote_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return QuoteService(db).get_revisions(quote_id)


@quotes_router.post("/{quote_id}/sales-order", response_model=SalesOrderOut, status_code=status.HTTP_201_CREATED)
def convert_quote_to_sales_order(
    quote_id: UUID,
    order_data: SalesOrderCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    """Convertir una cotización Approved en orden de venta"""
    return SalesOrderService(db).create_from_quote(quote_id, order_data, user_id=auth_context.user_id)


# ===== SALES ORDERS =====

@sales_orders_router.get("/", response_model=SalesOrderList)
def list_sales_orders(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    status_filter: Optional[DocumentStatus] = Query(None, alias="status"),
    customer_id: Optional[UUID] = Query(None),
    search: Optional[str] = Query(None, description="Número, cliente o PO del cliente"),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    orders, total = SalesOrderService(db).get_orders(limit, offset, status_filter, customer_id, search)
    return SalesOrderList(items=orders, total=total, limit=limit, offset=offset)


@sales_orders_router.get("/pending-items", response_model=List[PendingItem])
def get_pending_items(
    customer_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    """Líneas pendientes de despacho en órdenes Approved/Partial"""
    return SalesOrderService(db).get_pending_items(customer_id)


@sales_orders_router.get("/{order_id}", response_model=SalesOrderOut)
def get_sales_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return SalesOrderService(db).get_order(order_id)


@sales_orders_router.put("/{order_id}", response_model=SalesOrderOut)
def revise_sales_order(
    order_id: UUID,
    revise_data: SalesOrderRevise,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    """Reemplazar líneas conservando lo despachado por id de línea"""
    return SalesOrderService(db).revise_order(order_id, revise_data)


@sales_orders_router.delete("/{order_id}")
def delete_sales_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(DELETE_ROLES))
):
    return SalesOrderService(db).delete_order(order_id)


@sales_orders_router.get("/{order_id}/delivery-orders", response_model=List[DeliveryOrderOut])
def get_sales_order_deliveries(
    order_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    SalesOrderService(db).get_order(order_id)
    deliveries, _ = DeliveryOrderService(db).get_deliveries(limit=500, sales_order_id=order_id)
    return deliveries


# ===== DELIVERY ORDERS =====

@delivery_orders_router.post("/", response_model=DeliveryOrderOut, status_code=status.HTTP_201_CREATED)
def create_delivery_order(
    delivery_data: DeliveryOrderCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    """
    Despachar cantidades de una orden de venta Approved/Partial.
    Ninguna cantidad puede exceder lo pendiente de su línea.
    """
    return DeliveryOrderService(db).create_delivery(delivery_data, user_id=auth_context.user_id)


@delivery_orders_router.get("/", response_model=DeliveryOrderList)
def list_delivery_orders(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    sales_order_id: Optional[UUID] = Query(None),
    status_filter: Optional[DocumentStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, description="Número, cliente o vehículo"),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    deliveries, total = DeliveryOrderService(db).get_deliveries(limit, offset, sales_order_id, status_filter, search)
    return DeliveryOrderList(items=deliveries, total=total, limit=limit, offset=offset)


@delivery_orders_router.get("/{delivery_id}", response_model=DeliveryOrderOut)
def get_delivery_order(
    delivery_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return DeliveryOrderService(db).get_delivery(delivery_id)


@delivery_orders_router.patch("/{delivery_id}", response_model=DeliveryOrderOut)
def update_delivery_order(
    delivery_id: UUID,
    update_data: DeliveryOrderUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    return DeliveryOrderService(db).update_delivery(delivery_id, update_data)


@delivery_orders_router.patch("/{delivery_id}/status", response_model=DeliveryOrderOut)
def change_delivery_order_status(
    delivery_id: UUID,
    data: DeliveryOrderStatusUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    return DeliveryOrderService(db).change_status(delivery_id, data.status)


@delivery_orders_router.delete("/{delivery_id}")
def delete_delivery_order(
    delivery_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(DELETE_ROLES))
):
    """Eliminar despacho; las cantidades vuelven a quedar pendientes"""
    return DeliveryOrderService(db).delete_delivery(delivery_id)
