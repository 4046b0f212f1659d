"""
Hash de contraseñas y tokens JWT de acceso.

El token lleva sub (id del usuario), email y role; el rol se vuelve a leer
de la base de datos en cada request, el claim es solo informativo.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

from app.core.config import settings

TOKEN_TYPE = "access"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    """False si el usuario no tiene contraseña almacenada."""
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def user_claims(user) -> Dict[str, Any]:
    return {"sub": str(user.id), "email": user.email, "role": user.role}


def create_access_token(claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    expires_delta = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        **claims,
        "exp": datetime.now(timezone.utc) + expires_delta,
        "type": TOKEN_TYPE,
    }
    return jwt.encode(payload, settings.APP_SECRET_STRING, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decodificar y validar un token de acceso.

    Raises:
        jwt.PyJWTError: firma inválida, token expirado o tipo incorrecto
    """
    payload = jwt.decode(token, settings.APP_SECRET_STRING, algorithms=[settings.ALGORITHM])
    if payload.get("type") != TOKEN_TYPE:
        raise jwt.InvalidTokenError("Tipo de token inválido")
    return payload
