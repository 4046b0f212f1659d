"""
Servicios de productos e inventario
"""
import csv
import io
import logging
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Tuple
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from app.modules.products.models import Product, StockMovement, MovementType
from app.modules.products.schemas import (
    ProductCreate, ProductUpdate, StockMovementCreate,
    InventoryItem, StockImportResult, StockImportError
)

logger = logging.getLogger(__name__)


class ProductService:
    """Catálogo de productos"""

    def __init__(self, db: Session):
        self.db = db

    def create_product(self, product_data: ProductCreate) -> Product:
        product = Product(**product_data.model_dump())
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        logger.info(f"Product created: {product.name} ({product.id})")
        return product

    def get_products(
        self,
        limit: int = 100,
        offset: int = 0,
        search: Optional[str] = None
    ) -> Tuple[List[Product], int]:
        query = self.db.query(Product)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Product.name.ilike(pattern), Product.hsn_code.ilike(pattern)))
        total = query.count()
        products = query.order_by(Product.name.asc()).offset(offset).limit(limit).all()
        return products, total

    def get_product(self, product_id: UUID) -> Product:
        product = self.db.get(Product, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Producto no encontrado"
            )
        return product

    def update_product(self, product_id: UUID, update_data: ProductUpdate) -> Product:
        product = self.get_product(product_id)
        for field, value in update_data.model_dump(exclude_unset=True).items():
            if value is None and field in ("name", "unit", "rate"):
                continue
            setattr(product, field, value)
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete_product(self, product_id: UUID) -> dict:
        """Eliminar producto. Los movimientos de stock se conservan."""
        product = self.get_product(product_id)
        self.db.delete(product)
        self.db.commit()
        logger.info(f"Product deleted: {product_id}")
        return {"message": "Producto eliminado exitosamente"}


class InventoryService:
    """Movimientos y niveles de inventario"""

    def __init__(self, db: Session):
        self.db = db

    def add_movement(self, movement_data: StockMovementCreate, commit: bool = True) -> StockMovement:
        product = ProductService(self.db).get_product(movement_data.product_id)
        movement = StockMovement(
            product_id=product.id,
            product_name=product.name,
            type=movement_data.type.value,
            quantity=movement_data.quantity,
            notes=movement_data.notes
        )
        self.db.add(movement)
        if commit:
            self.db.commit()
            self.db.refresh(movement)
        logger.info(
            f"Stock movement {movement_data.type.value} {movement_data.quantity} for {product.name}"
        )
        return movement

    def get_movements_for_product(self, product_id: UUID) -> List[StockMovement]:
        return self.db.query(StockMovement).filter(
            StockMovement.product_id == product_id
        ).order_by(StockMovement.date.desc(), StockMovement.created_at.desc()).all()

    def get_inventory(self) -> List[InventoryItem]:
        """
        Stock actual por producto (Σ entradas − Σ salidas), ordenado de mayor
        a menor. Los productos sin movimientos aparecen con stock 0.
        """
        signed_qty = case(
            (StockMovement.type == MovementType.IN.value, StockMovement.quantity),
            else_=-StockMovement.quantity
        )
        totals = {
            row.product_id: (row.stock, row.last_date)
            for row in self.db.query(
                StockMovement.product_id,
                func.coalesce(func.sum(signed_qty), 0).label("stock"),
                func.max(StockMovement.date).label("last_date")
            ).group_by(StockMovement.product_id).all()
        }

        items = []
        for product in self.db.query(Product).all():
            stock, last_date = totals.get(product.id, (0, None))
            items.append(InventoryItem(
                product_id=product.id,
                product_name=product.name,
                unit=product.unit,
                current_stock=Decimal(str(stock)),
                last_updated=last_date
            ))

        orphaned = set(totals) - {item.product_id for item in items}
        if orphaned:
            logger.warning(f"Stock movements reference {len(orphaned)} deleted products")

        return sorted(items, key=lambda item: item.current_stock, reverse=True)

    def import_adjustments_csv(self, content: str) -> StockImportResult:
        """
        Importar ajustes de stock desde CSV.

        Columnas: productId (o product_id), type (in/out), quantity (> 0), notes.
        Las filas inválidas se reportan y se omiten; las válidas se guardan juntas.
        """
        reader = csv.DictReader(io.StringIO(content.lstrip("\ufeff")))
        errors: List[StockImportError] = []
        imported = 0

        try:
            # La fila 1 es el encabezado
            for row_number, row in enumerate(reader, start=2):
                row = {(k or "").strip(): (v or "").strip() for k, v in row.items()}
                product_id = row.get("productId") or row.get("product_id")
                if not product_id:
                    errors.append(StockImportError(row=row_number, error="productId requerido"))
                    continue
                try:
                    product = self.db.get(Product, UUID(product_id))
                except ValueError:
                    product = None
                if not product:
                    errors.append(StockImportError(row=row_number, error=f"Producto {product_id} no encontrado"))
                    continue

                movement_type = row.get("type", "").lower()
                if movement_type not in (MovementType.IN.value, MovementType.OUT.value):
                    errors.append(StockImportError(row=row_number, error="type debe ser 'in' u 'out'"))
                    continue

                try:
                    quantity = Decimal(row.get("quantity", ""))
                except InvalidOperation:
                    quantity = None
                if quantity is None or not quantity.is_finite() or quantity <= 0:
                    errors.append(StockImportError(row=row_number, error="quantity debe ser un número mayor a 0"))
                    continue

                self.db.add(StockMovement(
                    product_id=product.id,
                    product_name=product.name,
                    type=movement_type,
                    quantity=quantity,
                    notes=row.get("notes") or "CSV import"
                ))
                imported += 1

            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Stock CSV import failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Error importando CSV: {str(e)}"
            )

        logger.info(f"Stock CSV import: {imported} imported, {len(errors)} errors")
        return StockImportResult(imported=imported, errors=errors)
