from app.database.database import Base
from sqlalchemy import Column, String, Numeric, Text, DateTime, Uuid
from sqlalchemy.sql import func
from app.common.mixins import BaseMixin
import enum


class MovementType(str, enum.Enum):
    IN = "in"      # Entrada
    OUT = "out"    # Salida


class Product(Base, BaseMixin):
    __tablename__ = "products"

    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    unit = Column(String(20), nullable=False, default="Nos")
    rate = Column(Numeric(15, 2), nullable=False, default=0)  # Precio unitario por defecto
    hsn_code = Column(String(20), nullable=True)


class StockMovement(Base, BaseMixin):
    """
    Movimiento de inventario.

    product_id es una referencia blanda (sin FK): el historial sobrevive a la
    eliminación del producto y la verificación de integridad lo reporta.
    """
    __tablename__ = "stock_movements"

    product_id = Column(Uuid, nullable=False, index=True)
    product_name = Column(String(200), nullable=False)  # Snapshot
    type = Column(String(10), nullable=False)  # MovementType
    quantity = Column(Numeric(12, 3), nullable=False)
    date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    notes = Column(Text, nullable=True)
