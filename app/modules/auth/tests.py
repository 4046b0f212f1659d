"""
Tests para autenticación y gestión de usuarios
"""
from conftest import TEST_PASSWORD, make_user
from app.modules.auth.models import UserRole


class TestLogin:
    """Login con formulario OAuth2 y acceso a /auth/me"""

    def test_login_returns_token(self, client, admin_user):
        response = client.post(
            "/auth/login",
            data={"username": admin_user.email, "password": TEST_PASSWORD},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["access_token"]

        me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert me.status_code == 200
        assert me.json()["email"] == admin_user.email
        assert me.json()["role"] == "Admin"

    def test_login_wrong_password(self, client, admin_user):
        response = client.post(
            "/auth/login",
            data={"username": admin_user.email, "password": "incorrecta"},
        )
        assert response.status_code == 401

    def test_login_inactive_user(self, client, db_session):
        user = make_user(db_session, UserRole.MAKER)
        user.is_active = False
        db_session.commit()
        response = client.post("/auth/login", data={"username": user.email, "password": TEST_PASSWORD})
        assert response.status_code == 403

    def test_missing_token_rejected(self, client):
        response = client.get("/customers/")
        assert response.status_code in (401, 403)

    def test_invalid_token_rejected(self, client):
        response = client.get("/customers/", headers={"Authorization": "Bearer no-es-un-jwt"})
        assert response.status_code == 401


class TestUserManagement:
    """Administración de usuarios (solo Admin)"""

    def test_admin_creates_user(self, client, admin_headers):
        response = client.post("/users/", headers=admin_headers, json={
            "email": "Nuevo@Example.com",
            "name": "Nuevo Usuario",
            "password": "password123",
            "role": "Maker",
        })
        assert response.status_code == 201
        assert response.json()["email"] == "nuevo@example.com"
        assert response.json()["role"] == "Maker"

        listing = client.get("/users/", headers=admin_headers)
        assert listing.json()["total"] == 2

    def test_duplicate_email_conflict(self, client, admin_headers, admin_user):
        response = client.post("/users/", headers=admin_headers, json={
            "email": admin_user.email,
            "name": "Otro",
            "password": "password123",
        })
        assert response.status_code == 409

    def test_non_admin_forbidden(self, client, maker_headers):
        response = client.get("/users/", headers=maker_headers)
        assert response.status_code == 403

    def test_update_role(self, client, admin_headers, db_session):
        user = make_user(db_session, UserRole.VIEWER)
        response = client.patch(f"/users/{user.id}", headers=admin_headers, json={"role": "Approver"})
        assert response.status_code == 200
        assert response.json()["role"] == "Approver"

    def test_admin_cannot_delete_self(self, client, admin_headers, admin_user):
        response = client.delete(f"/users/{admin_user.id}", headers=admin_headers)
        assert response.status_code == 400
