from sqlalchemy import Column, String, Boolean, JSON
from app.database.database import Base
from app.common.mixins import BaseMixin, TimestampMixin


class AppSetting(Base, TimestampMixin):
    """
    Documento de configuración singleton identificado por clave.

    El valor se guarda como JSON y se valida con el schema Pydantic
    correspondiente al leerlo (ver SettingsService).
    """
    __tablename__ = "app_settings"

    key = Column(String(50), primary_key=True)
    value = Column(JSON, nullable=False, default=dict)


class PointOfContact(Base, BaseMixin):
    """Persona de contacto de la empresa que aparece en cotizaciones y órdenes."""
    __tablename__ = "points_of_contact"

    name = Column(String(200), nullable=False)
    designation = Column(String(100), nullable=True)
    phone = Column(String(30), nullable=True)
    email = Column(String(255), nullable=True)
    is_default = Column(Boolean, default=False, nullable=False)
