"""
Tests para Productos e Inventario
"""
from decimal import Decimal

import pytest

from app.modules.products.models import Product, StockMovement
from app.modules.products.service import InventoryService


@pytest.fixture
def product(db_session):
    product = Product(name="Steel Bracket", unit="Nos", rate=Decimal("150.00"), hsn_code="7326")
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product


class TestProductApi:

    def test_create_product(self, client, maker_headers):
        response = client.post("/products/", headers=maker_headers, json={
            "name": "Hex Bolt M8", "rate": "2.50", "hsn_code": "7318"
        })
        assert response.status_code == 201
        assert response.json()["unit"] == "Nos"

    def test_invalid_hsn(self, client, maker_headers):
        response = client.post("/products/", headers=maker_headers, json={"name": "X", "hsn_code": "AB"})
        assert response.status_code == 422

    def test_negative_rate(self, client, maker_headers):
        response = client.post("/products/", headers=maker_headers, json={"name": "X", "rate": "-1"})
        assert response.status_code == 422

    def test_get_missing_product(self, client, viewer_headers):
        response = client.get("/products/00000000-0000-0000-0000-000000000000", headers=viewer_headers)
        assert response.status_code == 404


class TestInventory:

    def test_stock_is_signed_sum(self, client, maker_headers, product):
        for movement_type, quantity in (("in", "50"), ("out", "12"), ("in", "5")):
            response = client.post("/inventory/movements", headers=maker_headers, json={
                "product_id": str(product.id), "type": movement_type, "quantity": quantity
            })
            assert response.status_code == 201

        inventory = client.get("/inventory/", headers=maker_headers).json()
        assert Decimal(inventory[0]["current_stock"]) == Decimal("43")

    def test_product_without_movements_has_zero_stock(self, db_session, product):
        items = InventoryService(db_session).get_inventory()
        assert items[0].current_stock == Decimal("0")

    def test_movement_snapshots_product_name(self, client, maker_headers, product, db_session):
        client.post("/inventory/movements", headers=maker_headers, json={
            "product_id": str(product.id), "type": "in", "quantity": "1"
        })
        movement = db_session.query(StockMovement).one()
        assert movement.product_name == "Steel Bracket"

    def test_zero_quantity_rejected(self, client, maker_headers, product):
        response = client.post("/inventory/movements", headers=maker_headers, json={
            "product_id": str(product.id), "type": "in", "quantity": "0"
        })
        assert response.status_code == 422

    def test_csv_import_reports_bad_rows(self, db_session, product):
        content = (
            "productId,type,quantity,notes\n"
            f"{product.id},in,10,Opening stock\n"
            f"{product.id},sideways,3,\n"
            "not-a-uuid,in,1,\n"
            f"{product.id},out,-2,\n"
        )
        result = InventoryService(db_session).import_adjustments_csv(content)
        assert result.imported == 1
        assert [e.row for e in result.errors] == [3, 4, 5]
        assert db_session.query(StockMovement).count() == 1
