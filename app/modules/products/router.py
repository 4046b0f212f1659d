from fastapi import APIRouter, status, Depends, HTTPException, Query, UploadFile, File
from uuid import UUID
from typing import List, Optional
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, VIEW_ROLES, EDIT_ROLES, DELETE_ROLES
from app.modules.products.service import ProductService, InventoryService
from app.modules.products.schemas import (
    ProductCreate, ProductUpdate, ProductOut, ProductList,
    StockMovementCreate, StockMovementOut, InventoryItem, StockImportResult
)

product_router = APIRouter(prefix="/products", tags=["Products"])
inventory_router = APIRouter(prefix="/inventory", tags=["Inventory"])


@product_router.post("/", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    return ProductService(db).create_product(data)


@product_router.get("/", response_model=ProductList)
def list_products(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None, description="Búsqueda por nombre o HSN"),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    products, total = ProductService(db).get_products(limit, offset, search)
    return ProductList(items=products, total=total, limit=limit, offset=offset)


@product_router.get("/{product_id}", response_model=ProductOut)
def get_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return ProductService(db).get_product(product_id)


@product_router.patch("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: UUID,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    return ProductService(db).update_product(product_id, data)


@product_router.delete("/{product_id}")
def delete_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(DELETE_ROLES))
):
    return ProductService(db).delete_product(product_id)


# ===== INVENTORY =====

@inventory_router.get("/", response_model=List[InventoryItem])
def get_inventory(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    """Stock actual de todos los productos, de mayor a menor."""
    return InventoryService(db).get_inventory()


@inventory_router.post("/movements", response_model=StockMovementOut, status_code=status.HTTP_201_CREATED)
def add_stock_movement(
    data: StockMovementCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    return InventoryService(db).add_movement(data)


@inventory_router.get("/movements/{product_id}", response_model=List[StockMovementOut])
def get_product_movements(
    product_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    """Historial de movimientos de un producto, más reciente primero."""
    return InventoryService(db).get_movements_for_product(product_id)


@inventory_router.post("/import", response_model=StockImportResult)
async def import_stock_adjustments(
    file: UploadFile = File(..., description="CSV: productId,type,quantity,notes"),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    """
    Importar ajustes de stock desde CSV.
    Las filas inválidas se reportan con su número y se omiten.
    """
    raw = await file.read()
    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="El archivo debe estar en UTF-8")
    return InventoryService(db).import_adjustments_csv(content)
