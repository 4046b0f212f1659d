"""
Tests para plantillas y encolado de notificaciones
"""
import pytest

from app.core.config import settings
from app.modules.email import notifications
from app.modules.email.service import email_service
from app.modules.settings.schemas import CompanyDetails, EmailSettings
from app.modules.settings.service import SettingsService


@pytest.fixture
def queued(monkeypatch):
    """Reemplaza la tarea de Celery y acumula las llamadas a delay()"""
    calls = []

    class FakeTask:
        @staticmethod
        def delay(**kwargs):
            calls.append(kwargs)

    monkeypatch.setattr(notifications, "send_document_notification_task", FakeTask)
    return calls


@pytest.fixture
def notifications_on(monkeypatch, db_session):
    monkeypatch.setattr(settings, "EMAIL_NOTIFICATIONS_ENABLED", True)
    SettingsService(db_session).update_company_details(CompanyDetails(
        name="ABS Engineering",
        email_settings=EmailSettings(enable_notifications=True, notification_email="sales@abs.in"),
    ))


class TestTemplates:

    def test_render_sales_order_template(self):
        html = email_service.render_template("sales_order_created.html", {
            "number": "SO-0001",
            "customer_name": "Acme Industries",
            "quote_number": "Q-0001/24-25",
            "client_po_number": "PO-7781",
            "line_items": [{"product_name": "Steel Bracket", "quantity": "10", "unit": "Nos"}],
            "total": "2065.00",
            "company_name": "ABS Engineering",
        })
        assert "SO-0001" in html
        assert "Steel Bracket" in html
        assert "PO-7781" in html

    def test_build_message(self):
        msg = email_service.build_message(["a@example.com", "b@example.com"], "Asunto", text_content="hola")
        assert msg["To"] == "a@example.com, b@example.com"
        assert msg["Subject"] == "Asunto"


class TestNotifications:

    def test_disabled_globally(self, db_session, queued):
        assert notifications.notify_document_event(
            db_session, notifications.SALES_ORDER_CREATED, "SO-0001", ["ravi@acme.in"], {}
        ) is False
        assert queued == []

    def test_company_flag_required(self, monkeypatch, db_session, queued):
        monkeypatch.setattr(settings, "EMAIL_NOTIFICATIONS_ENABLED", True)
        assert notifications.notify_document_event(
            db_session, notifications.SALES_ORDER_CREATED, "SO-0001", ["ravi@acme.in"], {}
        ) is False

    def test_no_recipients(self, db_session, notifications_on, queued):
        assert notifications.notify_document_event(
            db_session, notifications.DELIVERY_ORDER_CREATED, "DO-0001", [None, ""], {}
        ) is False
        assert queued == []

    def test_sales_order_creation_queues_notification(
        self, client, maker_headers, customer_payload, quote_line_items, notifications_on, queued
    ):
        customer = client.post("/customers/", headers=maker_headers, json=customer_payload).json()
        quote = client.post("/quotes/", headers=maker_headers, json={
            "customer_id": customer["id"],
            "line_items": quote_line_items,
        }).json()
        client.patch(f"/quotes/{quote['id']}/status", headers=maker_headers, json={"status": "Approved"})
        response = client.post(f"/quotes/{quote['id']}/sales-order", headers=maker_headers, json={})
        assert response.status_code == 201

        assert len(queued) == 1
        assert queued[0]["to_emails"] == ["ravi@acme.in", "sales@abs.in"]
        assert queued[0]["subject"] == "Sales Order SO-0001 created"
        assert queued[0]["template_name"] == "sales_order_created.html"
        assert queued[0]["context"]["company_name"] == "ABS Engineering"

    def test_queue_failure_does_not_break_operation(self, monkeypatch, db_session, notifications_on):
        class BrokenTask:
            @staticmethod
            def delay(**kwargs):
                raise ConnectionError("redis no disponible")

        monkeypatch.setattr(notifications, "send_document_notification_task", BrokenTask)
        assert notifications.notify_document_event(
            db_session, notifications.SALES_ORDER_CREATED, "SO-0001", ["ravi@acme.in"], {}
        ) is False


class TestEmailEndpoints:

    def test_config_hides_credentials(self, client, admin_headers):
        response = client.get("/email/config", headers=admin_headers)
        assert response.status_code == 200
        assert "password" not in response.json()
        assert response.json()["notifications_enabled"] is False

    def test_admin_only(self, client, maker_headers):
        assert client.get("/email/config", headers=maker_headers).status_code == 403
