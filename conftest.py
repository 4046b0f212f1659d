"""
Fixtures compartidas para los tests de todos los módulos.

La base de datos es SQLite en memoria (una sola conexión compartida); las
tablas se crean y eliminan en cada test.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("EMAIL_NOTIFICATIONS_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.database.database import Base, SessionLocal, sync_engine, get_db
from app.modules.auth.models import User, UserRole
from app.modules.auth.utils import hash_password, create_access_token, user_claims

TEST_PASSWORD = "Secret123!"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=sync_engine)
    yield
    Base.metadata.drop_all(bind=sync_engine)


@pytest.fixture
def db_session(setup_database):
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_user(db, role: UserRole, email: str = None) -> User:
    user = User(
        email=email or f"{role.value.lower()}@example.com",
        name=f"{role.value} User",
        password=TEST_PASSWORD_HASH,
        role=role.value,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def headers_for(user: User) -> dict:
    token = create_access_token(user_claims(user))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_user(db_session):
    return make_user(db_session, UserRole.ADMIN)


@pytest.fixture
def admin_headers(admin_user):
    return headers_for(admin_user)


@pytest.fixture
def maker_headers(db_session):
    return headers_for(make_user(db_session, UserRole.MAKER))


@pytest.fixture
def approver_headers(db_session):
    return headers_for(make_user(db_session, UserRole.APPROVER))


@pytest.fixture
def viewer_headers(db_session):
    return headers_for(make_user(db_session, UserRole.VIEWER))


@pytest.fixture
def customer_payload():
    return {
        "name": "Acme Industries",
        "gstin": "27AAPFU0939F1ZV",
        "contacts": [
            {"name": "Ravi Kumar", "email": "ravi@acme.in", "phone": "9876543210"},
        ],
        "billing_address": {"line1": "12 MG Road", "city": "Pune", "state": "Maharashtra", "pincode": "411001"},
        "shipping_addresses": [
            {"line1": "Plot 7, MIDC", "city": "Pune", "state": "Maharashtra", "pincode": "411019"},
        ],
    }


@pytest.fixture
def quote_line_items():
    return [
        {"product_name": "Steel Bracket", "quantity": "10", "unit_price": "150.00", "tax_rate": "18"},
        {"product_name": "Hex Bolt M8", "quantity": "100", "unit_price": "2.50", "tax_rate": "18"},
    ]
