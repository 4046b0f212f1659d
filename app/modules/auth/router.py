from fastapi import APIRouter, Depends, Query, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.service import AuthService
from app.modules.auth.dependencies import get_current_user, AuthDependencies, ADMIN_ROLES
from app.modules.auth.models import User
from app.modules.auth.schemas import (
    UserCreate, UserUpdate, UserOut, UserList, TokenResponse, AuthContext
)

auth_router = APIRouter()
users_router = APIRouter(prefix="/users", tags=["Users"])


@auth_router.post("/login", response_model=TokenResponse)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    """
    Login de usuario (form-data: username = email, password).
    """
    auth_service = AuthService(db)
    return auth_service.login(form_data.username, form_data.password)


@auth_router.get("/me", response_model=UserOut)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    """
    Obtener información del usuario actual.
    """
    return UserOut.model_validate(current_user)


# ===== USER MANAGEMENT (Admin) =====

@users_router.get("/", response_model=UserList)
def list_users(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ADMIN_ROLES))
):
    users, total = AuthService(db).list_users(limit, offset)
    return UserList(users=users, total=total, limit=limit, offset=offset)


@users_router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ADMIN_ROLES))
):
    return AuthService(db).create_user(user_data)


@users_router.patch("/{user_id}", response_model=UserOut)
def update_user(
    user_id: UUID,
    update_data: UserUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ADMIN_ROLES))
):
    return AuthService(db).update_user(user_id, update_data)


@users_router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ADMIN_ROLES))
):
    AuthService(db).delete_user(user_id, auth_context.user_id)
