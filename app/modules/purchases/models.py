"""
Modelos SQLAlchemy para Órdenes de Compra
"""
from app.database.database import Base
from sqlalchemy import Column, String, Date, Text, Numeric, Uuid, ForeignKey
from sqlalchemy.orm import relationship
from datetime import date
from app.common.mixins import BaseMixin
from app.modules.sales.models import DocumentStatus, LineItemMixin


class PurchaseOrder(Base, BaseMixin):
    """
    Orden de compra

    Los datos del proveedor se copian al crear la orden (snapshot);
    vendor_id es una referencia blanda.
    """
    __tablename__ = "purchase_orders"

    po_number = Column(String(60), nullable=False, unique=True, index=True)

    vendor_id = Column(Uuid, nullable=False, index=True)
    vendor_name = Column(String(200), nullable=False)
    vendor_gstin = Column(String(15), nullable=True)
    vendor_address = Column(Text, nullable=True)

    order_date = Column(Date, nullable=False, default=date.today)
    delivery_address = Column(Text, nullable=True)

    sub_total = Column(Numeric(15, 2), nullable=False, default=0)
    gst_total = Column(Numeric(15, 2), nullable=False, default=0)
    total = Column(Numeric(15, 2), nullable=False, default=0)

    point_of_contact_id = Column(Uuid, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=DocumentStatus.DRAFT.value, index=True)
    created_by = Column(Uuid, nullable=True)

    line_items = relationship(
        "POItem", cascade="all, delete-orphan", order_by="POItem.position", lazy="selectin"
    )


class POItem(Base, LineItemMixin):
    __tablename__ = "purchase_order_items"

    purchase_order_id = Column(Uuid, ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False, index=True)
