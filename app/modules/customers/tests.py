"""
Tests para el módulo de Clientes y Proveedores

Cubren la normalización de contactos y direcciones (una sola bandera
primaria/por defecto), la unicidad del GSTIN y la reparación de datos heredados.
"""
from app.common.validators import normalize_flagged_list, needs_flag_normalization
from app.modules.customers.models import Customer
from app.modules.customers.service import repair_customer


class TestFlagNormalization:

    def test_first_flagged_wins(self):
        items = normalize_flagged_list(
            [{"name": "A"}, {"name": "B", "is_primary": True}, {"name": "C", "is_primary": True}],
            "is_primary",
        )
        assert [i["is_primary"] for i in items] == [False, True, False]
        assert all(i["id"] for i in items)

    def test_first_entry_flagged_when_none(self):
        items = normalize_flagged_list([{"line1": "X"}, {"line1": "Y"}], "is_default")
        assert [i["is_default"] for i in items] == [True, False]

    def test_empty_list(self):
        assert normalize_flagged_list([], "is_default") == []
        assert needs_flag_normalization([], "is_default") is False

    def test_needs_normalization(self):
        assert needs_flag_normalization([{"id": "1", "is_primary": False}], "is_primary") is True
        assert needs_flag_normalization([{"id": "1", "is_primary": True}], "is_primary") is False
        assert needs_flag_normalization([{"is_primary": True}], "is_primary") is True


class TestCustomerApi:

    def test_create_customer_normalizes_lists(self, client, maker_headers, customer_payload):
        response = client.post("/customers/", headers=maker_headers, json=customer_payload)
        assert response.status_code == 201
        body = response.json()
        assert body["contacts"][0]["is_primary"] is True
        assert body["contacts"][0]["id"]
        assert body["shipping_addresses"][0]["is_default"] is True
        assert body["billing_address"]["is_default"] is True

    def test_duplicate_gstin_conflict(self, client, maker_headers, customer_payload):
        client.post("/customers/", headers=maker_headers, json=customer_payload)
        other = {**customer_payload, "name": "Otro Cliente"}
        response = client.post("/customers/", headers=maker_headers, json=other)
        assert response.status_code == 409

    def test_invalid_gstin(self, client, maker_headers, customer_payload):
        response = client.post("/customers/", headers=maker_headers, json={**customer_payload, "gstin": "1234"})
        assert response.status_code == 422

    def test_search(self, client, maker_headers, customer_payload):
        client.post("/customers/", headers=maker_headers, json=customer_payload)
        client.post("/customers/", headers=maker_headers, json={"name": "Bharat Forge"})
        response = client.get("/customers/", headers=maker_headers, params={"search": "acme"})
        assert response.json()["total"] == 1
        assert response.json()["items"][0]["name"] == "Acme Industries"

    def test_update_keeps_single_default_address(self, client, maker_headers, customer_payload):
        customer = client.post("/customers/", headers=maker_headers, json=customer_payload).json()
        addresses = customer["shipping_addresses"] + [
            {"line1": "Warehouse 2", "city": "Nashik", "is_default": True}
        ]
        response = client.patch(
            f"/customers/{customer['id']}", headers=maker_headers, json={"shipping_addresses": addresses}
        )
        flags = [a["is_default"] for a in response.json()["shipping_addresses"]]
        assert flags == [True, False]

    def test_viewer_cannot_delete(self, client, maker_headers, viewer_headers, customer_payload):
        customer = client.post("/customers/", headers=maker_headers, json=customer_payload).json()
        response = client.delete(f"/customers/{customer['id']}", headers=viewer_headers)
        assert response.status_code == 403

    def test_delete_customer(self, client, maker_headers, approver_headers, customer_payload):
        customer = client.post("/customers/", headers=maker_headers, json=customer_payload).json()
        response = client.delete(f"/customers/{customer['id']}", headers=approver_headers)
        assert response.status_code == 200
        assert client.get(f"/customers/{customer['id']}", headers=maker_headers).status_code == 404


class TestRepairCustomer:

    def test_fills_missing_defaults(self, db_session):
        customer = Customer(name="Legacy Co", contacts=[], shipping_addresses=[], billing_address=None)
        db_session.add(customer)
        db_session.commit()

        assert repair_customer(customer) is True
        assert customer.contacts[0]["is_primary"] is True
        assert customer.shipping_addresses[0]["is_default"] is True
        assert customer.billing_address["line1"] == "Default Billing Address"

    def test_clean_customer_untouched(self, db_session, customer_payload):
        customer = Customer(
            name="Clean Co",
            contacts=normalize_flagged_list(customer_payload["contacts"], "is_primary"),
            shipping_addresses=normalize_flagged_list(customer_payload["shipping_addresses"], "is_default"),
            billing_address={"id": "b1", "line1": "12 MG Road", "is_default": True},
        )
        assert repair_customer(customer) is False


class TestVendorApi:

    def test_vendor_crud(self, client, maker_headers, approver_headers):
        response = client.post("/vendors/", headers=maker_headers, json={
            "name": "Bharat Steel", "gstin": "29ABCDE1234F1Z5", "email": "sales@bharat.in"
        })
        assert response.status_code == 201
        vendor_id = response.json()["id"]

        updated = client.patch(f"/vendors/{vendor_id}", headers=maker_headers, json={"phone": "9812345678"})
        assert updated.json()["phone"] == "9812345678"

        assert client.delete(f"/vendors/{vendor_id}", headers=approver_headers).status_code == 200
