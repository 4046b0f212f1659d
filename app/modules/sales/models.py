"""
Modelos SQLAlchemy para el módulo de Ventas
"""
from app.database.database import Base
from sqlalchemy import (
    Column, String, Integer, Date, Text, Numeric, JSON, Uuid, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship
from datetime import date
from uuid import uuid4
from app.common.mixins import BaseMixin
import enum


# ===== ENUMS =====

class DocumentStatus(str, enum.Enum):
    """Estados compartidos por todos los documentos"""
    DRAFT = "Draft"               # Borrador
    SENT = "Sent"                 # Enviado al cliente
    DISCUSSION = "Discussion"     # En negociación
    APPROVED = "Approved"         # Aprobado
    REJECTED = "Rejected"         # Rechazado
    CLOSED = "Closed"             # Cerrado/completado
    PARTIAL = "Partial"           # Despacho parcial
    DISPATCHED = "Dispatched"     # Despachado
    SUPERSEDED = "Superseded"     # Reemplazado por una revisión


# ===== LÍNEAS =====

class LineItemMixin:
    """Columnas comunes de una línea de documento (snapshot del producto)"""

    id = Column(Uuid, primary_key=True, default=uuid4)
    position = Column(Integer, nullable=False, default=0)
    product_id = Column(Uuid, nullable=True)
    product_name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    hsn_code = Column(String(20), nullable=True)
    quantity = Column(Numeric(12, 3), nullable=False)
    unit = Column(String(20), nullable=False, default="Nos")
    unit_price = Column(Numeric(15, 2), nullable=False)
    tax_rate = Column(Numeric(5, 2), nullable=False, default=18)
    total = Column(Numeric(15, 2), nullable=False)  # quantity × unit_price


# ===== MODELOS =====

class Quote(Base, BaseMixin):
    """
    Cotización

    Las revisiones comparten quote_number; original_quote_id apunta a la
    primera cotización de la cadena.
    """
    __tablename__ = "quotes"

    quote_number = Column(String(60), nullable=False, index=True)
    revision_number = Column(Integer, nullable=False, default=0)
    original_quote_id = Column(Uuid, nullable=True, index=True)

    customer_id = Column(Uuid, nullable=False, index=True)
    customer_name = Column(String(200), nullable=False)
    customer_gstin = Column(String(15), nullable=True)
    contact = Column(JSON, nullable=True)            # {id, name, email, phone}
    billing_address = Column(JSON, nullable=True)
    shipping_address = Column(JSON, nullable=True)

    issue_date = Column(Date, nullable=False, default=date.today)
    expiry_date = Column(Date, nullable=True)

    sub_total = Column(Numeric(15, 2), nullable=False, default=0)
    gst_total = Column(Numeric(15, 2), nullable=False, default=0)
    total = Column(Numeric(15, 2), nullable=False, default=0)

    terms = Column(JSON, nullable=False, default=list)
    additional_description = Column(Text, nullable=True)
    point_of_contact_id = Column(Uuid, nullable=True)
    status = Column(String(20), nullable=False, default=DocumentStatus.DRAFT.value, index=True)
    linked_sales_order_id = Column(Uuid, nullable=True)
    created_by = Column(Uuid, nullable=True)

    line_items = relationship(
        "QuoteItem", cascade="all, delete-orphan", order_by="QuoteItem.position", lazy="selectin"
    )

    __table_args__ = (
        UniqueConstraint("quote_number", "revision_number", name="uq_quote_number_revision"),
    )

    @property
    def display_number(self) -> str:
        if self.revision_number:
            return f"{self.quote_number}-Rev{self.revision_number}"
        return self.quote_number


class QuoteItem(Base, LineItemMixin):
    __tablename__ = "quote_items"

    quote_id = Column(Uuid, ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True)


class SalesOrder(Base, BaseMixin):
    """Orden de venta creada a partir de una cotización aprobada"""
    __tablename__ = "sales_orders"

    order_number = Column(String(60), nullable=False, unique=True, index=True)
    linked_quote_id = Column(Uuid, nullable=True, index=True)
    quote_number = Column(String(80), nullable=True)  # Número visible de la cotización (con -RevN)
    client_po_number = Column(String(100), nullable=True)

    customer_id = Column(Uuid, nullable=False, index=True)
    customer_name = Column(String(200), nullable=False)
    customer_gstin = Column(String(15), nullable=True)
    contact = Column(JSON, nullable=True)
    billing_address = Column(JSON, nullable=True)
    shipping_address = Column(JSON, nullable=True)

    order_date = Column(Date, nullable=False, default=date.today)

    sub_total = Column(Numeric(15, 2), nullable=False, default=0)
    gst_total = Column(Numeric(15, 2), nullable=False, default=0)
    total = Column(Numeric(15, 2), nullable=False, default=0)

    terms = Column(JSON, nullable=False, default=list)
    additional_description = Column(Text, nullable=True)
    point_of_contact_id = Column(Uuid, nullable=True)
    status = Column(String(20), nullable=False, default=DocumentStatus.APPROVED.value, index=True)
    created_by = Column(Uuid, nullable=True)

    line_items = relationship(
        "SalesOrderItem", cascade="all, delete-orphan", order_by="SalesOrderItem.position", lazy="selectin"
    )

    @property
    def delivered_quantities(self) -> dict:
        return {str(item.id): item.delivered_quantity for item in self.line_items}


class SalesOrderItem(Base, LineItemMixin):
    __tablename__ = "sales_order_items"

    sales_order_id = Column(Uuid, ForeignKey("sales_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    delivered_quantity = Column(Numeric(12, 3), nullable=False, default=0)

    @property
    def pending_quantity(self):
        return max(self.quantity - (self.delivered_quantity or 0), 0)


class DeliveryOrder(Base, BaseMixin):
    """Orden de despacho (parcial o total) de una orden de venta"""
    __tablename__ = "delivery_orders"

    delivery_number = Column(String(60), nullable=False, unique=True, index=True)
    sales_order_id = Column(Uuid, nullable=False, index=True)
    sales_order_number = Column(String(60), nullable=False)

    customer_id = Column(Uuid, nullable=False, index=True)
    customer_name = Column(String(200), nullable=False)
    customer_gstin = Column(String(15), nullable=True)
    contact = Column(JSON, nullable=True)
    shipping_address = Column(JSON, nullable=True)

    delivery_date = Column(Date, nullable=False, default=date.today)
    vehicle_number = Column(String(30), nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=DocumentStatus.DISPATCHED.value, index=True)
    created_by = Column(Uuid, nullable=True)

    line_items = relationship(
        "DeliveryOrderItem", cascade="all, delete-orphan", order_by="DeliveryOrderItem.position", lazy="selectin"
    )


class DeliveryOrderItem(Base, LineItemMixin):
    __tablename__ = "delivery_order_items"

    delivery_order_id = Column(Uuid, ForeignKey("delivery_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    sales_order_item_id = Column(Uuid, nullable=False)
