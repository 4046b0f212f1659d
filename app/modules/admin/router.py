from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ADMIN_ROLES
from app.modules.admin.integrity import IntegrityChecker
from app.modules.admin.schemas import (
    CollectionStats, CollectionImportResult, BackupDocument, RestoreRequest,
    RestoreResult, DeleteAllResult, IntegrityReport
)
from app.modules.admin.service import DataAdminService
from app.modules.exports.csv_utils import create_csv_response

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/stats", response_model=CollectionStats)
def get_stats(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ADMIN_ROLES))
):
    """Cantidad de registros por colección"""
    return DataAdminService(db).get_stats()


@router.get("/collections/{name}/export")
def export_collection(
    name: str,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ADMIN_ROLES))
):
    rows, headers = DataAdminService(db).export_collection_rows(name)
    return create_csv_response(rows, f"{name}.csv", headers)


@router.post("/collections/{name}/import", response_model=CollectionImportResult)
async def import_collection(
    name: str,
    file: UploadFile = File(..., description="CSV con encabezados iguales a los nombres de columna"),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ADMIN_ROLES))
):
    """
    Importar una colección desde CSV.
    Los registros con id existente se actualizan; el resto se inserta.
    """
    raw = await file.read()
    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="El archivo debe estar en UTF-8")
    return DataAdminService(db).import_collection_csv(name, content)


@router.get("/backup", response_model=BackupDocument)
def create_backup(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ADMIN_ROLES))
):
    return DataAdminService(db).create_backup()


@router.post("/restore", response_model=RestoreResult)
def restore_backup(
    data: RestoreRequest,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ADMIN_ROLES))
):
    """Reemplaza las colecciones con el contenido del respaldo (usuarios excluidos)."""
    return DataAdminService(db).restore_backup(data.backup, data.collections)


@router.delete("/data", response_model=DeleteAllResult)
def delete_all_data(
    confirm: bool = Query(False, description="Debe ser true para ejecutar"),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ADMIN_ROLES))
):
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Confirmación requerida (confirm=true)"
        )
    return DataAdminService(db).delete_all_data()


@router.get("/integrity-check", response_model=IntegrityReport)
def integrity_check(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ADMIN_ROLES))
):
    return IntegrityChecker(db).run()


@router.post("/integrity-check/fix", response_model=IntegrityReport)
def integrity_fix(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ADMIN_ROLES))
):
    """Ejecuta la verificación aplicando las correcciones automáticas."""
    return IntegrityChecker(db, auto_fix=True).run()
