"""
Dependencias de autenticación y control de acceso por rol.

    Viewer    solo lectura
    Maker     + crear y editar (incluye configuración)
    Approver  + eliminar y aprobar
    Admin     todo, incluida la gestión de usuarios y datos
"""
from typing import List
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.models import User, UserRole
from app.modules.auth.schemas import AuthContext
from app.modules.auth.utils import decode_access_token

security = HTTPBearer()

VIEW_ROLES = [UserRole.ADMIN.value, UserRole.MAKER.value, UserRole.APPROVER.value, UserRole.VIEWER.value]
EDIT_ROLES = [UserRole.ADMIN.value, UserRole.MAKER.value, UserRole.APPROVER.value]
DELETE_ROLES = [UserRole.ADMIN.value, UserRole.APPROVER.value]
APPROVE_ROLES = DELETE_ROLES
SETTINGS_ROLES = EDIT_ROLES
ADMIN_ROLES = [UserRole.ADMIN.value]


class AuthDependencies:

    @staticmethod
    def get_current_user(
        credentials: HTTPAuthorizationCredentials = Depends(security),
        db: Session = Depends(get_db)
    ) -> User:
        """Usuario activo dueño del token; 401 en cualquier otro caso."""
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No se pudieron validar las credenciales",
            headers={"WWW-Authenticate": "Bearer"},
        )

        try:
            payload = decode_access_token(credentials.credentials)
            user_id = UUID(payload["sub"])
        except (jwt.PyJWTError, KeyError, ValueError):
            raise credentials_exception

        user = db.get(User, user_id)
        if user is None or not user.is_active:
            raise credentials_exception
        return user

    @staticmethod
    def get_auth_context(current_user: User = Depends(get_current_user)) -> AuthContext:
        return AuthContext(
            user_id=current_user.id,
            email=current_user.email,
            name=current_user.name,
            role=UserRole(current_user.role)
        )

    @staticmethod
    def require_role(allowed_roles: List[str]):
        """
        Dependencia que exige uno de los roles indicados (403 si no).
        Retorna el AuthContext para usarlo en el endpoint.
        """
        def role_checker(auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)):
            if auth_context.role.value not in allowed_roles:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Se requiere uno de estos roles: {', '.join(allowed_roles)}"
                )
            return auth_context
        return role_checker


get_current_user = AuthDependencies.get_current_user
