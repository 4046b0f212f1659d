"""
Administración de datos: estadísticas, CSV por colección, respaldo y restauración.

Cada colección corresponde a una tabla de negocio; la tabla de usuarios
nunca se exporta, restaura ni elimina desde aquí.
"""
import csv
import io
import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from fastapi import HTTPException, status
from sqlalchemy import (
    Boolean, Date, DateTime, Integer, JSON, Numeric, String, Table, Uuid, func, select
)
from sqlalchemy.orm import Session

from app.database.database import Base
# Registrar todas las tablas en Base.metadata
from app.modules.auth import models as auth_models  # noqa: F401
from app.modules.customers import models as customer_models  # noqa: F401
from app.modules.numbering import models as numbering_models  # noqa: F401
from app.modules.payroll import models as payroll_models  # noqa: F401
from app.modules.products import models as product_models  # noqa: F401
from app.modules.purchases import models as purchase_models  # noqa: F401
from app.modules.sales import models as sales_models  # noqa: F401
from app.modules.settings import models as settings_models  # noqa: F401
from app.modules.admin.schemas import (
    CollectionStats, CollectionImportResult, ImportRowError,
    BackupDocument, RestoreResult, DeleteAllResult
)

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0"
PROTECTED_TABLES = {"users"}


def business_tables() -> List[Table]:
    """Tablas de negocio en orden de dependencias (padres primero)."""
    return [t for t in Base.metadata.sorted_tables if t.name not in PROTECTED_TABLES]


def serialize_value(value: Any) -> Any:
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def coerce_value(column, raw: Any) -> Any:
    """Convertir un valor de CSV/JSON al tipo de la columna."""
    col_type = column.type
    if isinstance(col_type, JSON):
        return json.loads(raw) if isinstance(raw, str) else raw
    if isinstance(col_type, Uuid):
        return raw if isinstance(raw, UUID) else UUID(str(raw))
    if isinstance(col_type, Boolean):
        if isinstance(raw, bool):
            return raw
        return str(raw).strip().lower() in ("true", "1", "yes", "y")
    if isinstance(col_type, Integer):
        return int(raw)
    if isinstance(col_type, Numeric):
        try:
            return Decimal(str(raw))
        except InvalidOperation:
            raise ValueError(f"valor numérico inválido: {raw}")
    if isinstance(col_type, DateTime):
        return raw if isinstance(raw, datetime) else datetime.fromisoformat(str(raw))
    if isinstance(col_type, Date):
        return raw if isinstance(raw, date) else date.fromisoformat(str(raw)[:10])
    return str(raw)


def coerce_row(table: Table, row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convertir una fila completa. Las columnas desconocidas se ignoran; los
    vacíos quedan en NULL si la columna lo admite y si no se omiten para que
    apliquen los valores por defecto.
    """
    values = {}
    for column in table.columns:
        if column.name not in row:
            continue
        raw = row[column.name]
        if raw is None or raw == "":
            if isinstance(column.type, String) and not column.nullable and raw == "":
                values[column.name] = ""
            elif column.nullable:
                values[column.name] = None
            continue
        try:
            values[column.name] = coerce_value(column, raw)
        except (ValueError, TypeError) as e:
            raise ValueError(f"{column.name}: {e}")
    return values


class DataAdminService:
    """Operaciones de administración sobre todas las colecciones"""

    def __init__(self, db: Session):
        self.db = db

    def _get_table(self, name: str) -> Table:
        for table in business_tables():
            if table.name == name:
                return table
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Colección '{name}' no encontrada"
        )

    def _primary_key(self, table: Table):
        return list(table.primary_key.columns)[0]

    def _count(self, table: Table) -> int:
        return self.db.execute(select(func.count()).select_from(table)).scalar_one()

    def _rows(self, table: Table) -> List[Dict[str, Any]]:
        return [dict(row._mapping) for row in self.db.execute(select(table)).all()]

    # ===== ESTADÍSTICAS =====

    def get_stats(self) -> CollectionStats:
        counts = {table.name: self._count(table) for table in business_tables()}
        return CollectionStats(collections=counts, total_documents=sum(counts.values()))

    # ===== CSV =====

    def export_collection_rows(self, name: str):
        """Filas y encabezados (nombres de columna) de una colección"""
        table = self._get_table(name)
        headers = {column.name: column.name for column in table.columns}
        return self._rows(table), headers

    def import_collection_csv(self, name: str, content: str) -> CollectionImportResult:
        """
        Importar CSV con upsert por clave primaria.
        Las filas con errores de formato se reportan y se omiten.
        """
        table = self._get_table(name)
        pk = self._primary_key(table)
        reader = csv.DictReader(io.StringIO(content.lstrip("\ufeff")))
        errors: List[ImportRowError] = []
        inserted = updated = 0

        try:
            for row_number, row in enumerate(reader, start=2):
                row = {(k or "").strip(): v for k, v in row.items()}
                try:
                    values = coerce_row(table, row)
                except ValueError as e:
                    errors.append(ImportRowError(row=row_number, error=str(e)))
                    continue

                key = values.get(pk.name)
                if key is None:
                    if isinstance(pk.type, Uuid):
                        key = values[pk.name] = uuid4()
                    else:
                        errors.append(ImportRowError(row=row_number, error=f"{pk.name} requerido"))
                        continue

                exists = self.db.execute(select(pk).where(pk == key)).first() is not None
                if exists:
                    changes = {k: v for k, v in values.items() if k != pk.name}
                    if changes:
                        self.db.execute(table.update().where(pk == key).values(**changes))
                    updated += 1
                else:
                    self.db.execute(table.insert().values(**values))
                    inserted += 1

            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"CSV import into {name} failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Error importando CSV en {name}: {str(e)}"
            )

        logger.info(f"CSV import into {name}: {inserted} inserted, {updated} updated, {len(errors)} errors")
        return CollectionImportResult(collection=name, inserted=inserted, updated=updated, errors=errors)

    # ===== RESPALDO =====

    def create_backup(self) -> Dict[str, Any]:
        collections = {
            table.name: [
                {key: serialize_value(value) for key, value in row.items()}
                for row in self._rows(table)
            ]
            for table in business_tables()
        }
        total = sum(len(rows) for rows in collections.values())
        logger.info(f"Backup created with {total} documents")
        return {
            "version": BACKUP_VERSION,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "collections": collections,
        }

    def restore_backup(self, backup: BackupDocument, only: Optional[List[str]] = None) -> RestoreResult:
        """
        Reemplazar las colecciones del respaldo en una sola transacción.
        Las colecciones desconocidas (o protegidas) se omiten.
        """
        known = {table.name for table in business_tables()}
        requested = set(only) if only else set(backup.collections)
        skipped = sorted(name for name in requested if name not in known or name not in backup.collections)
        targets = [t for t in business_tables() if t.name in requested and t.name in backup.collections]

        restored: Dict[str, int] = {}
        try:
            for table in reversed(targets):
                self.db.execute(table.delete())
            for table in targets:
                count = 0
                for row in backup.collections[table.name]:
                    self.db.execute(table.insert().values(**coerce_row(table, row)))
                    count += 1
                restored[table.name] = count
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Restore failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Error restaurando respaldo: {str(e)}"
            )

        if skipped:
            logger.warning(f"Restore skipped collections: {', '.join(skipped)}")
        logger.info(f"Backup restored: {sum(restored.values())} documents in {len(restored)} collections")
        return RestoreResult(restored=restored, skipped=skipped)

    def delete_all_data(self) -> DeleteAllResult:
        """Eliminar todos los datos de negocio; los usuarios se conservan."""
        deleted: Dict[str, int] = {}
        try:
            for table in reversed(business_tables()):
                deleted[table.name] = self._count(table)
                self.db.execute(table.delete())
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Delete all data failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error eliminando datos: {str(e)}"
            )
        logger.warning(f"All business data deleted ({sum(deleted.values())} documents)")
        return DeleteAllResult(deleted=deleted)
