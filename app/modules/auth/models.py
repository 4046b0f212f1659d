from sqlalchemy import Column, String, Boolean, DateTime
from datetime import datetime, timezone
from app.database.database import Base
from app.common.mixins import BaseMixin
import enum


class UserRole(str, enum.Enum):
    """Roles de la aplicación"""
    ADMIN = "Admin"          # Todo, incluyendo usuarios y administración de datos
    MAKER = "Maker"          # Crear y editar
    APPROVER = "Approver"    # Crear, editar y eliminar
    VIEWER = "Viewer"        # Solo lectura


class User(Base, BaseMixin):
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    password = Column(String, nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.VIEWER.value)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)

    def touch_login(self):
        self.last_login = datetime.now(timezone.utc)
