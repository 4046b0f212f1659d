"""
Servicios de negocio para Ventas: cotizaciones, órdenes de venta y órdenes de despacho

Flujo:
    Quote (Draft) -> Approved -> SalesOrder (Approved) -> DeliveryOrder(s)
    La orden de venta pasa a Partial / Closed según lo despachado.
"""
import logging
from collections import defaultdict
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.common.utils import to_decimal
from app.modules.customers.models import Customer
from app.modules.customers.service import CustomerService
from app.modules.email.notifications import (
    notify_document_event, SALES_ORDER_CREATED, DELIVERY_ORDER_CREATED
)
from app.modules.numbering.schemas import DocumentType
from app.modules.numbering.service import NumberingService
from app.modules.sales.models import (
    DocumentStatus, Quote, QuoteItem, SalesOrder, SalesOrderItem,
    DeliveryOrder, DeliveryOrderItem
)
from app.modules.sales.schemas import (
    QuoteCreate, QuoteUpdate, SalesOrderCreate, SalesOrderRevise,
    DeliveryOrderCreate, DeliveryOrderUpdate, PendingItem
)
from app.modules.sales.utils import (
    apply_totals, build_line_items, copy_line_items, line_total
)
from app.modules.settings.service import SettingsService, PointOfContactService

logger = logging.getLogger(__name__)


QUOTE_TRANSITIONS = {
    DocumentStatus.DRAFT: {DocumentStatus.SENT, DocumentStatus.DISCUSSION, DocumentStatus.APPROVED, DocumentStatus.REJECTED},
    DocumentStatus.SENT: {DocumentStatus.DRAFT, DocumentStatus.DISCUSSION, DocumentStatus.APPROVED, DocumentStatus.REJECTED},
    DocumentStatus.DISCUSSION: {DocumentStatus.SENT, DocumentStatus.APPROVED, DocumentStatus.REJECTED},
    DocumentStatus.APPROVED: {DocumentStatus.REJECTED},
    DocumentStatus.REJECTED: {DocumentStatus.DRAFT},
}

QUOTE_LOCKED = {DocumentStatus.CLOSED.value, DocumentStatus.SUPERSEDED.value}
QUOTE_REVISABLE = {
    DocumentStatus.DRAFT.value, DocumentStatus.SENT.value,
    DocumentStatus.DISCUSSION.value, DocumentStatus.REJECTED.value
}
OPEN_ORDER_STATUSES = [DocumentStatus.APPROVED.value, DocumentStatus.PARTIAL.value]


def check_transition(transitions: Dict, current: str, target: DocumentStatus) -> None:
    allowed = transitions.get(DocumentStatus(current), set())
    if target not in allowed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Transición de estado no permitida: {current} -> {target.value}"
        )


def _pick(entries: Optional[List[Dict[str, Any]]], entry_id: Optional[str], flag: str) -> Optional[Dict[str, Any]]:
    """Entrada por id, o la marcada con `flag`, o la primera."""
    entries = entries or []
    if entry_id:
        for entry in entries:
            if str(entry.get("id")) == str(entry_id):
                return dict(entry)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Id {entry_id} no pertenece al cliente"
        )
    chosen = next((e for e in entries if e.get(flag)), entries[0] if entries else None)
    return dict(chosen) if chosen else None


def snapshot_customer(customer: Customer, contact_id: Optional[str] = None,
                      shipping_address_id: Optional[str] = None) -> Dict[str, Any]:
    """Copia de los datos del cliente al momento de emitir el documento."""
    return {
        "customer_id": customer.id,
        "customer_name": customer.name,
        "customer_gstin": customer.gstin,
        "contact": _pick(customer.contacts, contact_id, "is_primary"),
        "billing_address": dict(customer.billing_address) if customer.billing_address else None,
        "shipping_address": _pick(customer.shipping_addresses, shipping_address_id, "is_default"),
    }


def _recipients(db: Session, contact: Optional[Dict[str, Any]]) -> List[str]:
    company = SettingsService(db).get_company_details()
    recipients = []
    if contact and contact.get("email"):
        recipients.append(contact["email"])
    if company.email_settings.notification_email:
        recipients.append(company.email_settings.notification_email)
    return recipients


def _items_context(items) -> List[Dict[str, Any]]:
    return [
        {"product_name": item.product_name, "quantity": str(item.quantity), "unit": item.unit}
        for item in items
    ]


class QuoteService:
    """Servicio de cotizaciones"""

    def __init__(self, db: Session):
        self.db = db

    def _number_exists(self, number: str) -> bool:
        return self.db.query(Quote.id).filter(Quote.quote_number == number).first() is not None

    def create_quote(self, quote_data: QuoteCreate, user_id: Optional[UUID] = None) -> Quote:
        """Crear cotización en estado Draft con numeración {CUST}"""
        try:
            customer = CustomerService(self.db).get_customer(quote_data.customer_id)
            snapshot = snapshot_customer(customer, quote_data.contact_id, quote_data.shipping_address_id)

            terms = quote_data.terms
            if terms is None:
                terms = SettingsService(self.db).get_terms()

            poc_id = quote_data.point_of_contact_id
            if poc_id is None:
                default_poc = PointOfContactService(self.db).get_default()
                poc_id = default_poc.id if default_poc else None

            number = NumberingService(self.db).allocate(
                DocumentType.QUOTE, customer.name, exists=self._number_exists
            )

            items = build_line_items(QuoteItem, quote_data.line_items)
            quote = Quote(
                quote_number=number,
                revision_number=0,
                issue_date=quote_data.issue_date,
                expiry_date=quote_data.expiry_date,
                terms=terms,
                additional_description=quote_data.additional_description,
                point_of_contact_id=poc_id,
                status=DocumentStatus.DRAFT.value,
                created_by=user_id,
                line_items=items,
                **snapshot
            )
            apply_totals(quote, items)

            self.db.add(quote)
            self.db.commit()
            self.db.refresh(quote)

            logger.info(f"Quote created: {quote.quote_number} for {customer.name} ({quote.id})")
            return quote

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating quote: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error creando cotización: {str(e)}"
            )

    def get_quotes(
        self,
        limit: int = 100,
        offset: int = 0,
        status_filter: Optional[DocumentStatus] = None,
        customer_id: Optional[UUID] = None,
        search: Optional[str] = None
    ) -> Tuple[List[Quote], int]:
        query = self.db.query(Quote)
        if status_filter:
            query = query.filter(Quote.status == status_filter.value)
        if customer_id:
            query = query.filter(Quote.customer_id == customer_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Quote.quote_number.ilike(pattern), Quote.customer_name.ilike(pattern)))

        total = query.count()
        quotes = query.order_by(
            Quote.created_at.desc(), Quote.revision_number.desc()
        ).offset(offset).limit(limit).all()
        return quotes, total

    def get_quote(self, quote_id: UUID) -> Quote:
        quote = self.db.get(Quote, quote_id)
        if not quote:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Cotización no encontrada"
            )
        return quote

    def _apply_update(self, quote: Quote, update_data: QuoteUpdate) -> None:
        values = update_data.model_dump(exclude_unset=True)

        if "customer_id" in values or "contact_id" in values or "shipping_address_id" in values:
            customer_id = values.get("customer_id") or quote.customer_id
            customer = CustomerService(self.db).get_customer(customer_id)
            snapshot = snapshot_customer(customer, values.get("contact_id"), values.get("shipping_address_id"))
            for field, value in snapshot.items():
                setattr(quote, field, value)

        for field in ("issue_date", "expiry_date", "terms", "additional_description", "point_of_contact_id"):
            if field in values:
                if field in ("issue_date", "terms") and values[field] is None:
                    continue
                setattr(quote, field, values[field])

        if quote.expiry_date and quote.issue_date and quote.expiry_date < quote.issue_date:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="La fecha de vencimiento no puede ser anterior a la de emisión"
            )

        if update_data.line_items is not None:
            quote.line_items = build_line_items(QuoteItem, update_data.line_items)
        apply_totals(quote, quote.line_items)

    def update_quote(self, quote_id: UUID, update_data: QuoteUpdate) -> Quote:
        try:
            quote = self.get_quote(quote_id)
            if quote.status in QUOTE_LOCKED:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"No se puede modificar una cotización en estado {quote.status}"
                )

            self._apply_update(quote, update_data)
            self.db.commit()
            self.db.refresh(quote)
            return quote

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating quote {quote_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error actualizando cotización: {str(e)}"
            )

    def delete_quote(self, quote_id: UUID) -> Dict[str, str]:
        quote = self.get_quote(quote_id)
        if quote.linked_sales_order_id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="La cotización tiene una orden de venta asociada"
            )
        self.db.delete(quote)
        self.db.commit()
        logger.info(f"Quote deleted: {quote.display_number} ({quote_id})")
        return {"message": "Cotización eliminada exitosamente"}

    def change_status(self, quote_id: UUID, new_status: DocumentStatus) -> Quote:
        quote = self.get_quote(quote_id)
        if quote.status == new_status.value:
            return quote
        check_transition(QUOTE_TRANSITIONS, quote.status, new_status)

        previous = quote.status
        quote.status = new_status.value
        self.db.commit()
        self.db.refresh(quote)
        logger.info(f"Quote {quote.display_number}: {previous} -> {new_status.value}")
        return quote

    def revise_quote(self, quote_id: UUID, update_data: Optional[QuoteUpdate] = None,
                     user_id: Optional[UUID] = None) -> Quote:
        """
        Crear una revisión: la actual pasa a Superseded y la nueva queda en
        Draft con el mismo número y revision_number + 1.
        """
        try:
            current = self.get_quote(quote_id)
            if current.status not in QUOTE_REVISABLE:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"No se puede revisar una cotización en estado {current.status}"
                )

            revision = Quote(
                quote_number=current.quote_number,
                revision_number=current.revision_number + 1,
                original_quote_id=current.original_quote_id or current.id,
                customer_id=current.customer_id,
                customer_name=current.customer_name,
                customer_gstin=current.customer_gstin,
                contact=current.contact,
                billing_address=current.billing_address,
                shipping_address=current.shipping_address,
                issue_date=current.issue_date,
                expiry_date=current.expiry_date,
                terms=list(current.terms or []),
                additional_description=current.additional_description,
                point_of_contact_id=current.point_of_contact_id,
                status=DocumentStatus.DRAFT.value,
                created_by=user_id or current.created_by,
                line_items=copy_line_items(QuoteItem, current.line_items),
            )
            if update_data is not None:
                self._apply_update(revision, update_data)
            else:
                apply_totals(revision, revision.line_items)

            current.status = DocumentStatus.SUPERSEDED.value
            self.db.add(revision)
            self.db.commit()
            self.db.refresh(revision)

            logger.info(f"Quote {current.display_number} revised as {revision.display_number}")
            return revision

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error revising quote {quote_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error revisando cotización: {str(e)}"
            )

    def get_revisions(self, quote_id: UUID) -> List[Quote]:
        """Todas las revisiones de la cadena, de la más antigua a la más reciente."""
        quote = self.get_quote(quote_id)
        root_id = quote.original_quote_id or quote.id
        return self.db.query(Quote).filter(
            or_(Quote.id == root_id, Quote.original_quote_id == root_id)
        ).order_by(Quote.revision_number.asc()).all()


class SalesOrderService:
    """Servicio de órdenes de venta"""

    def __init__(self, db: Session):
        self.db = db

    def _number_exists(self, number: str) -> bool:
        return self.db.query(SalesOrder.id).filter(SalesOrder.order_number == number).first() is not None

    @staticmethod
    def refresh_status(order: SalesOrder) -> None:
        """Closed si todo fue despachado, Partial si algo fue despachado, si no Approved."""
        items = order.line_items
        delivered = [to_decimal(item.delivered_quantity) for item in items]
        if items and all(d >= to_decimal(item.quantity) for d, item in zip(delivered, items)):
            order.status = DocumentStatus.CLOSED.value
        elif any(d > 0 for d in delivered):
            order.status = DocumentStatus.PARTIAL.value
        else:
            order.status = DocumentStatus.APPROVED.value

    def create_from_quote(self, quote_id: UUID, order_data: SalesOrderCreate,
                          user_id: Optional[UUID] = None) -> SalesOrder:
        """Convertir una cotización aprobada en orden de venta"""
        try:
            quote = QuoteService(self.db).get_quote(quote_id)
            if quote.status != DocumentStatus.APPROVED.value:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Solo se pueden convertir cotizaciones aprobadas"
                )
            if quote.linked_sales_order_id:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="La cotización ya tiene una orden de venta"
                )

            number = NumberingService(self.db).allocate(
                DocumentType.SALES_ORDER, quote.customer_name, exists=self._number_exists
            )

            items = copy_line_items(SalesOrderItem, quote.line_items, delivered_quantity=Decimal("0"))
            order = SalesOrder(
                id=uuid4(),
                order_number=number,
                linked_quote_id=quote.id,
                quote_number=quote.display_number,
                client_po_number=order_data.client_po_number,
                customer_id=quote.customer_id,
                customer_name=quote.customer_name,
                customer_gstin=quote.customer_gstin,
                contact=quote.contact,
                billing_address=quote.billing_address,
                shipping_address=quote.shipping_address,
                order_date=order_data.order_date,
                terms=list(quote.terms or []),
                additional_description=quote.additional_description,
                point_of_contact_id=quote.point_of_contact_id,
                status=DocumentStatus.APPROVED.value,
                created_by=user_id,
                line_items=items,
            )
            apply_totals(order, items)

            quote.status = DocumentStatus.CLOSED.value
            quote.linked_sales_order_id = order.id

            self.db.add(order)
            self.db.commit()
            self.db.refresh(order)

            logger.info(f"Sales order {order.order_number} created from quote {quote.display_number}")

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating sales order from quote {quote_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error creando orden de venta: {str(e)}"
            )

        company = SettingsService(self.db).get_company_details()
        notify_document_event(
            self.db,
            SALES_ORDER_CREATED,
            order.order_number,
            _recipients(self.db, order.contact),
            {
                "contact_name": (order.contact or {}).get("name"),
                "customer_name": order.customer_name,
                "quote_number": order.quote_number,
                "client_po_number": order.client_po_number,
                "line_items": _items_context(order.line_items),
                "total": str(order.total),
                "company_name": company.name,
            }
        )
        return order

    def get_orders(
        self,
        limit: int = 100,
        offset: int = 0,
        status_filter: Optional[DocumentStatus] = None,
        customer_id: Optional[UUID] = None,
        search: Optional[str] = None
    ) -> Tuple[List[SalesOrder], int]:
        query = self.db.query(SalesOrder)
        if status_filter:
            query = query.filter(SalesOrder.status == status_filter.value)
        if customer_id:
            query = query.filter(SalesOrder.customer_id == customer_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                SalesOrder.order_number.ilike(pattern),
                SalesOrder.customer_name.ilike(pattern),
                SalesOrder.client_po_number.ilike(pattern)
            ))

        total = query.count()
        orders = query.order_by(SalesOrder.created_at.desc()).offset(offset).limit(limit).all()
        return orders, total

    def get_order(self, order_id: UUID) -> SalesOrder:
        order = self.db.get(SalesOrder, order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Orden de venta no encontrada"
            )
        return order

    def revise_order(self, order_id: UUID, revise_data: SalesOrderRevise) -> SalesOrder:
        """
        Reemplazar líneas y número de PO del cliente.

        Las líneas existentes se identifican por id y conservan su cantidad
        despachada; ninguna puede quedar por debajo de lo ya despachado.
        """
        try:
            order = self.get_order(order_id)
            if order.status == DocumentStatus.CLOSED.value:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="No se puede revisar una orden de venta cerrada"
                )

            existing = {item.id: item for item in order.line_items}
            kept_ids = set()
            seen_ids = set()
            new_items = []

            for position, data in enumerate(revise_data.line_items):
                if data.id is not None:
                    if data.id in seen_ids:
                        raise HTTPException(
                            status_code=status.HTTP_400_BAD_REQUEST,
                            detail=f"La línea {data.id} aparece más de una vez en la revisión"
                        )
                    seen_ids.add(data.id)
                item = existing.get(data.id) if data.id else None
                if item is None:
                    item = SalesOrderItem(delivered_quantity=Decimal("0"))
                else:
                    kept_ids.add(item.id)
                    if data.quantity < to_decimal(item.delivered_quantity):
                        raise HTTPException(
                            status_code=status.HTTP_400_BAD_REQUEST,
                            detail=(
                                f"La cantidad de '{data.product_name}' ({data.quantity}) no puede ser "
                                f"menor a la ya despachada ({item.delivered_quantity})"
                            )
                        )
                item.position = position
                item.product_id = data.product_id
                item.product_name = data.product_name
                item.description = data.description
                item.hsn_code = data.hsn_code
                item.quantity = data.quantity
                item.unit = data.unit
                item.unit_price = data.unit_price
                item.tax_rate = data.tax_rate
                item.total = line_total(data.quantity, data.unit_price)
                new_items.append(item)

            for item_id, item in existing.items():
                if item_id not in kept_ids and to_decimal(item.delivered_quantity) > 0:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=f"No se puede eliminar '{item.product_name}': tiene cantidades despachadas"
                    )

            order.line_items = new_items
            if "client_po_number" in revise_data.model_fields_set:
                order.client_po_number = revise_data.client_po_number
            apply_totals(order, new_items)
            self.refresh_status(order)

            self.db.commit()
            self.db.refresh(order)
            logger.info(f"Sales order {order.order_number} revised")
            return order

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error revising sales order {order_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error revisando orden de venta: {str(e)}"
            )

    def delete_order(self, order_id: UUID) -> Dict[str, str]:
        """Eliminar orden de venta; la cotización origen vuelve a Approved."""
        order = self.get_order(order_id)
        deliveries = self.db.query(DeliveryOrder.id).filter(
            DeliveryOrder.sales_order_id == order.id
        ).count()
        if deliveries:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"La orden de venta tiene {deliveries} orden(es) de despacho"
            )

        if order.linked_quote_id:
            quote = self.db.get(Quote, order.linked_quote_id)
            if quote is not None:
                quote.status = DocumentStatus.APPROVED.value
                quote.linked_sales_order_id = None
            else:
                logger.warning(f"Sales order {order.order_number} references missing quote {order.linked_quote_id}")

        self.db.delete(order)
        self.db.commit()
        logger.info(f"Sales order deleted: {order.order_number}")
        return {"message": "Orden de venta eliminada exitosamente"}

    def get_pending_items(self, customer_id: Optional[UUID] = None) -> List[PendingItem]:
        """Líneas con cantidad pendiente de despacho en órdenes Approved/Partial"""
        query = self.db.query(SalesOrder).filter(SalesOrder.status.in_(OPEN_ORDER_STATUSES))
        if customer_id:
            query = query.filter(SalesOrder.customer_id == customer_id)

        pending = []
        for order in query.order_by(SalesOrder.order_date.asc(), SalesOrder.order_number.asc()).all():
            for item in order.line_items:
                remaining = to_decimal(item.quantity) - to_decimal(item.delivered_quantity)
                if remaining <= 0:
                    continue
                pending.append(PendingItem(
                    sales_order_id=order.id,
                    order_number=order.order_number,
                    customer_name=order.customer_name,
                    order_date=order.order_date,
                    sales_order_item_id=item.id,
                    product_name=item.product_name,
                    unit=item.unit,
                    ordered_quantity=item.quantity,
                    delivered_quantity=item.delivered_quantity,
                    pending_quantity=remaining
                ))
        return pending


class DeliveryOrderService:
    """Servicio de órdenes de despacho"""

    def __init__(self, db: Session):
        self.db = db

    def _number_exists(self, number: str) -> bool:
        return self.db.query(DeliveryOrder.id).filter(DeliveryOrder.delivery_number == number).first() is not None

    def create_delivery(self, delivery_data: DeliveryOrderCreate, user_id: Optional[UUID] = None) -> DeliveryOrder:
        """Despachar cantidades pendientes de una orden de venta"""
        try:
            order = SalesOrderService(self.db).get_order(delivery_data.sales_order_id)
            if order.status not in OPEN_ORDER_STATUSES:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"No se puede despachar una orden de venta en estado {order.status}"
                )

            # Agrupar por línea: varias filas pueden apuntar a la misma línea
            requested: Dict[UUID, Decimal] = defaultdict(Decimal)
            for line in delivery_data.line_items:
                requested[line.sales_order_item_id] += line.quantity

            order_items = {item.id: item for item in order.line_items}
            for item_id, quantity in requested.items():
                item = order_items.get(item_id)
                if item is None:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=f"La línea {item_id} no pertenece a la orden {order.order_number}"
                    )
                pending = to_decimal(item.quantity) - to_decimal(item.delivered_quantity)
                if quantity > pending:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=(
                            f"Cantidad a despachar de '{item.product_name}' ({quantity}) "
                            f"excede lo pendiente ({pending})"
                        )
                    )

            number = NumberingService(self.db).allocate(
                DocumentType.DELIVERY_ORDER, order.customer_name, exists=self._number_exists
            )

            delivery_items = []
            for position, (item_id, quantity) in enumerate(requested.items()):
                source = order_items[item_id]
                delivery_items.append(DeliveryOrderItem(
                    position=position,
                    sales_order_item_id=source.id,
                    product_id=source.product_id,
                    product_name=source.product_name,
                    description=source.description,
                    hsn_code=source.hsn_code,
                    quantity=quantity,
                    unit=source.unit,
                    unit_price=source.unit_price,
                    tax_rate=source.tax_rate,
                    total=line_total(quantity, source.unit_price),
                ))
                source.delivered_quantity = to_decimal(source.delivered_quantity) + quantity

            delivery = DeliveryOrder(
                delivery_number=number,
                sales_order_id=order.id,
                sales_order_number=order.order_number,
                customer_id=order.customer_id,
                customer_name=order.customer_name,
                customer_gstin=order.customer_gstin,
                contact=order.contact,
                shipping_address=order.shipping_address,
                delivery_date=delivery_data.delivery_date,
                vehicle_number=delivery_data.vehicle_number,
                notes=delivery_data.notes,
                status=DocumentStatus.DISPATCHED.value,
                created_by=user_id,
                line_items=delivery_items,
            )
            SalesOrderService.refresh_status(order)

            self.db.add(delivery)
            self.db.commit()
            self.db.refresh(delivery)

            logger.info(
                f"Delivery order {delivery.delivery_number} created for {order.order_number} "
                f"(sales order now {order.status})"
            )

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating delivery order: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error creando orden de despacho: {str(e)}"
            )

        company = SettingsService(self.db).get_company_details()
        notify_document_event(
            self.db,
            DELIVERY_ORDER_CREATED,
            delivery.delivery_number,
            _recipients(self.db, delivery.contact),
            {
                "contact_name": (delivery.contact or {}).get("name"),
                "customer_name": delivery.customer_name,
                "sales_order_number": delivery.sales_order_number,
                "delivery_date": delivery.delivery_date.isoformat(),
                "vehicle_number": delivery.vehicle_number,
                "line_items": _items_context(delivery.line_items),
                "company_name": company.name,
            }
        )
        return delivery

    def get_deliveries(
        self,
        limit: int = 100,
        offset: int = 0,
        sales_order_id: Optional[UUID] = None,
        status_filter: Optional[DocumentStatus] = None,
        search: Optional[str] = None
    ) -> Tuple[List[DeliveryOrder], int]:
        query = self.db.query(DeliveryOrder)
        if sales_order_id:
            query = query.filter(DeliveryOrder.sales_order_id == sales_order_id)
        if status_filter:
            query = query.filter(DeliveryOrder.status == status_filter.value)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                DeliveryOrder.delivery_number.ilike(pattern),
                DeliveryOrder.customer_name.ilike(pattern),
                DeliveryOrder.vehicle_number.ilike(pattern)
            ))

        total = query.count()
        deliveries = query.order_by(DeliveryOrder.created_at.desc()).offset(offset).limit(limit).all()
        return deliveries, total

    def get_delivery(self, delivery_id: UUID) -> DeliveryOrder:
        delivery = self.db.get(DeliveryOrder, delivery_id)
        if not delivery:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Orden de despacho no encontrada"
            )
        return delivery

    def update_delivery(self, delivery_id: UUID, update_data: DeliveryOrderUpdate) -> DeliveryOrder:
        """Solo fecha, vehículo y notas son editables"""
        delivery = self.get_delivery(delivery_id)
        values = update_data.model_dump(exclude_unset=True)
        if values.get("delivery_date") is not None:
            delivery.delivery_date = values["delivery_date"]
        if "vehicle_number" in values:
            vehicle = values["vehicle_number"]
            delivery.vehicle_number = vehicle.strip().upper() if vehicle else None
        if "notes" in values:
            delivery.notes = values["notes"]
        self.db.commit()
        self.db.refresh(delivery)
        return delivery

    def change_status(self, delivery_id: UUID, new_status: DocumentStatus) -> DeliveryOrder:
        delivery = self.get_delivery(delivery_id)
        if delivery.status == new_status.value:
            return delivery
        if not (delivery.status == DocumentStatus.DISPATCHED.value and new_status == DocumentStatus.CLOSED):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Transición de estado no permitida: {delivery.status} -> {new_status.value}"
            )
        delivery.status = new_status.value
        self.db.commit()
        self.db.refresh(delivery)
        logger.info(f"Delivery order {delivery.delivery_number} closed")
        return delivery

    def delete_delivery(self, delivery_id: UUID) -> Dict[str, str]:
        """Eliminar despacho y devolver las cantidades a la orden de venta"""
        try:
            delivery = self.get_delivery(delivery_id)
            order = self.db.get(SalesOrder, delivery.sales_order_id)

            if order is None:
                logger.warning(
                    f"Delivery {delivery.delivery_number} references missing sales order {delivery.sales_order_id}"
                )
            else:
                order_items = {item.id: item for item in order.line_items}
                for line in delivery.line_items:
                    item = order_items.get(line.sales_order_item_id)
                    if item is None:
                        continue
                    remaining = to_decimal(item.delivered_quantity) - to_decimal(line.quantity)
                    item.delivered_quantity = max(remaining, Decimal("0"))
                SalesOrderService.refresh_status(order)

            self.db.delete(delivery)
            self.db.commit()
            logger.info(f"Delivery order deleted: {delivery.delivery_number}")
            return {"message": "Orden de despacho eliminada exitosamente"}

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting delivery order {delivery_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error eliminando orden de despacho: {str(e)}"
            )
