"""
Tests para configuración de empresa, PDF, términos y puntos de contacto
"""
from app.modules.settings.schemas import DEFAULT_TERMS
from app.modules.settings.service import SettingsService


class TestCompanySettings:

    def test_defaults_when_missing(self, client, viewer_headers):
        response = client.get("/settings/company", headers=viewer_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == ""
        assert body["email_settings"]["enable_notifications"] is False

    def test_update_company(self, client, maker_headers):
        payload = {
            "name": "ABS Engineering",
            "gstin": "27aapfu0939f1zv",
            "address": "Pune",
            "bank_details": {"name": "HDFC", "branch": "Baner", "account_number": "123", "ifsc": "hdfc0001234"},
        }
        response = client.put("/settings/company", headers=maker_headers, json=payload)
        assert response.status_code == 200
        body = response.json()
        assert body["gstin"] == "27AAPFU0939F1ZV"
        assert body["bank_details"]["ifsc"] == "HDFC0001234"

    def test_invalid_ifsc_rejected(self, client, maker_headers):
        response = client.put("/settings/company", headers=maker_headers, json={
            "bank_details": {"ifsc": "XYZ"}
        })
        assert response.status_code == 422

    def test_viewer_cannot_update(self, client, viewer_headers):
        response = client.put("/settings/company", headers=viewer_headers, json={"name": "X"})
        assert response.status_code == 403

    def test_corrupt_document_falls_back_to_defaults(self, db_session):
        from app.modules.settings.models import AppSetting
        db_session.add(AppSetting(key="pdf_settings", value={"accent_color": "rojo"}))
        db_session.commit()
        pdf = SettingsService(db_session).get_pdf_settings()
        assert pdf.accent_color == "#002f5f"


class TestTerms:

    def test_default_terms(self, client, viewer_headers):
        response = client.get("/settings/terms", headers=viewer_headers)
        assert response.json()["terms"] == DEFAULT_TERMS

    def test_blank_terms_are_dropped(self, client, maker_headers):
        response = client.put("/settings/terms", headers=maker_headers, json={
            "terms": ["  Payment: 50% advance ", "", "   "]
        })
        assert response.json()["terms"] == ["Payment: 50% advance"]


class TestPointsOfContact:
    """A lo sumo un punto de contacto por defecto"""

    def test_first_contact_is_default(self, client, maker_headers):
        response = client.post("/settings/points-of-contact", headers=maker_headers, json={"name": "Anita"})
        assert response.status_code == 201
        assert response.json()["is_default"] is True

    def test_single_default(self, client, maker_headers):
        first = client.post("/settings/points-of-contact", headers=maker_headers, json={"name": "Anita"}).json()
        second = client.post(
            "/settings/points-of-contact", headers=maker_headers, json={"name": "Bala", "is_default": True}
        ).json()
        contacts = client.get("/settings/points-of-contact", headers=maker_headers).json()
        defaults = [c["id"] for c in contacts if c["is_default"]]
        assert defaults == [second["id"]]

        client.post(f"/settings/points-of-contact/{first['id']}/default", headers=maker_headers)
        contacts = client.get("/settings/points-of-contact", headers=maker_headers).json()
        assert [c["id"] for c in contacts if c["is_default"]] == [first["id"]]
