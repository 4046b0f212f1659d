from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from uuid import UUID
from datetime import datetime
from app.modules.auth.models import UserRole


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=2, max_length=200)
    password: str = Field(..., min_length=8, max_length=128)
    role: UserRole = UserRole.VIEWER


class UserUpdate(BaseModel):
    """Actualización de usuario. El email no se puede cambiar."""
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    password: Optional[str] = Field(None, min_length=8, max_length=128)


class UserOut(BaseModel):
    id: UUID
    email: str
    name: str
    role: UserRole
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UserList(BaseModel):
    users: List[UserOut]
    total: int
    limit: int
    offset: int


class AuthContext(BaseModel):
    """Contexto del usuario autenticado que reciben los endpoints protegidos."""
    user_id: UUID
    email: str
    name: str
    role: UserRole
