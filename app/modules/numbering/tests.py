"""
Tests para numeración de documentos
"""
from app.modules.numbering.models import DocumentSequence
from app.modules.numbering.schemas import DocumentType
from app.modules.numbering.service import NumberingService, format_number, party_code


class TestFormatting:

    def test_party_code(self):
        assert party_code("Acme Industries") == "ACME"
        assert party_code("  t v s motors") == "TVSM"
        assert party_code(None) == ""

    def test_format_with_party_token(self):
        assert format_number("{CUST}/Q-", 7, "/24-25", "Acme Industries") == "ACME/Q-0007/24-25"
        assert format_number("PO-{VEND}-", 12, "", "Bharat Steel", token="{VEND}") == "PO-BHAR-0012"


class TestAllocation:

    def test_default_quote_number(self, db_session):
        service = NumberingService(db_session)
        assert service.allocate(DocumentType.QUOTE) == "Q-0001/24-25"
        assert service.allocate(DocumentType.QUOTE) == "Q-0002/24-25"

    def test_preview_does_not_consume(self, db_session):
        service = NumberingService(db_session)
        assert service.preview(DocumentType.SALES_ORDER) == "SO-0001"
        assert service.preview(DocumentType.SALES_ORDER) == "SO-0001"
        assert service.allocate(DocumentType.SALES_ORDER) == "SO-0001"

    def test_skips_numbers_in_use(self, db_session):
        used = {"DO-0001", "DO-0002"}
        number = NumberingService(db_session).allocate(DocumentType.DELIVERY_ORDER, exists=lambda n: n in used)
        assert number == "DO-0003"

    def test_update_settings_endpoint(self, client, maker_headers):
        response = client.put("/settings/numbering/", headers=maker_headers, json={
            "purchase_order": {"prefix": "PO-{VEND}-", "next_number": 50, "suffix": ""}
        })
        assert response.status_code == 200
        assert response.json()["purchase_order"]["next_number"] == 50

        preview = client.get(
            "/settings/numbering/purchase_order/preview",
            headers=maker_headers,
            params={"party_name": "Bharat Steel"},
        )
        assert preview.json()["number"] == "PO-BHAR-0050"

    def test_default_insert_keeps_existing_row(self, db_session):
        """Si otra transacción ya creó la secuencia, la inserción por defecto no falla ni la pisa"""
        db_session.add(DocumentSequence(doc_type=DocumentType.QUOTE.value, prefix="Q-", next_number=7, suffix="/24-25"))
        db_session.commit()

        service = NumberingService(db_session)
        service._insert_default_sequence(DocumentType.QUOTE)
        assert service.allocate(DocumentType.QUOTE) == "Q-0007/24-25"

    def test_first_allocation_creates_sequence(self, db_session):
        assert db_session.get(DocumentSequence, DocumentType.PURCHASE_ORDER.value) is None
        assert NumberingService(db_session).allocate(DocumentType.PURCHASE_ORDER, party_name="Bharat Steel") == "PO-0001"
        assert db_session.get(DocumentSequence, DocumentType.PURCHASE_ORDER.value).next_number == 2
