from sqlalchemy import Column, String, Integer, Boolean
from app.database.database import Base
from app.common.mixins import TimestampMixin


class DocumentSequence(Base, TimestampMixin):
    """Contador de numeración por tipo de documento"""
    __tablename__ = "document_sequences"

    doc_type = Column(String(30), primary_key=True)  # quote, sales_order, delivery_order, purchase_order
    prefix = Column(String(30), nullable=False, default="")
    next_number = Column(Integer, nullable=False, default=1)
    suffix = Column(String(30), nullable=False, default="")
    use_customer_prefix = Column(Boolean, nullable=False, default=False)
