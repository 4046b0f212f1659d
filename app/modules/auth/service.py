import logging
from typing import Optional, Tuple, List
from uuid import UUID
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.modules.auth.models import User
from app.modules.auth.schemas import UserCreate, UserUpdate, TokenResponse
from app.modules.auth.utils import hash_password, verify_password, create_access_token, user_claims
from app.core.config import settings

logger = logging.getLogger(__name__)


class AuthService:
    """
    Servicio de autenticación y gestión de usuarios.
    """

    def __init__(self, db: Session):
        self.db = db

    def login(self, email: str, password: str) -> TokenResponse:
        """
        Validar credenciales y emitir token de acceso con el rol del usuario.
        """
        user = self.db.query(User).filter(User.email == email.lower()).first()
        if not user or not verify_password(password, user.password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Email o contraseña incorrectos",
                headers={"WWW-Authenticate": "Bearer"},
            )
        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Usuario inactivo"
            )

        user.touch_login()
        self.db.commit()

        token = create_access_token(user_claims(user))
        logger.info(f"User {user.email} logged in")
        return TokenResponse(
            access_token=token,
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        )

    def create_user(self, user_data: UserCreate) -> User:
        """Crear usuario con contraseña hasheada."""
        email = user_data.email.lower()
        if self.db.query(User).filter(User.email == email).first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Este email ya está registrado"
            )

        user = User(
            email=email,
            name=user_data.name,
            password=hash_password(user_data.password),
            role=user_data.role.value,
            is_active=True
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"User {email} created with role {user.role}")
        return user

    def list_users(self, limit: int = 100, offset: int = 0) -> Tuple[List[User], int]:
        query = self.db.query(User)
        total = query.count()
        users = query.order_by(User.created_at.asc()).offset(offset).limit(limit).all()
        return users, total

    def get_user(self, user_id: UUID) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Usuario no encontrado"
            )
        return user

    def update_user(self, user_id: UUID, update_data: UserUpdate) -> User:
        user = self.get_user(user_id)
        data = update_data.model_dump(exclude_unset=True)

        if "password" in data:
            password = data.pop("password")
            if password:
                user.password = hash_password(password)
        if "role" in data and data["role"] is not None:
            user.role = data.pop("role").value
        for field, value in data.items():
            if value is not None:
                setattr(user, field, value)

        self.db.commit()
        self.db.refresh(user)
        return user

    def delete_user(self, user_id: UUID, current_user_id: Optional[UUID] = None) -> None:
        """Eliminar usuario. Un administrador no puede eliminarse a sí mismo."""
        if current_user_id is not None and user_id == current_user_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No puedes eliminar tu propio usuario"
            )
        user = self.get_user(user_id)
        self.db.delete(user)
        self.db.commit()
        logger.info(f"User {user.email} deleted")
