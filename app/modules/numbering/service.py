"""
Servicio de numeración de documentos.
"""
import logging
import re
from typing import Callable, Optional

from fastapi import HTTPException, status
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from app.modules.numbering.models import DocumentSequence
from app.modules.numbering.schemas import (
    DocumentType, NumberingFormat, NumberingSettings, NumberingSettingsUpdate
)

logger = logging.getLogger(__name__)

DEFAULT_SEQUENCES = {
    DocumentType.QUOTE: {"prefix": "Q-", "next_number": 1, "suffix": "/24-25"},
    DocumentType.SALES_ORDER: {"prefix": "SO-", "next_number": 1, "suffix": ""},
    DocumentType.DELIVERY_ORDER: {"prefix": "DO-", "next_number": 1, "suffix": ""},
    DocumentType.PURCHASE_ORDER: {"prefix": "PO-", "next_number": 1, "suffix": ""},
}

# Marcador de contraparte por tipo de documento
PARTY_TOKENS = {
    DocumentType.QUOTE: "{CUST}",
    DocumentType.SALES_ORDER: "{CUST}",
    DocumentType.DELIVERY_ORDER: "{CUST}",
    DocumentType.PURCHASE_ORDER: "{VEND}",
}

NUMBER_WIDTH = 4


def party_code(name: Optional[str]) -> str:
    """Primeras 4 letras del nombre sin espacios, en mayúsculas."""
    if not name:
        return ""
    return re.sub(r"\s+", "", name)[:4].upper()


def format_number(
    prefix: str,
    next_number: int,
    suffix: str,
    party_name: Optional[str] = None,
    token: str = "{CUST}"
) -> str:
    """prefijo + número (4 dígitos) + sufijo, con el marcador reemplazado."""
    code = party_code(party_name)
    return (
        f"{prefix.replace(token, code)}"
        f"{str(next_number).zfill(NUMBER_WIDTH)}"
        f"{suffix.replace(token, code)}"
    )


class NumberingService:
    """Asignación y configuración de secuencias de numeración."""

    def __init__(self, db: Session):
        self.db = db

    def _get_sequence(self, doc_type: DocumentType, lock: bool = False) -> DocumentSequence:
        query = self.db.query(DocumentSequence).filter(DocumentSequence.doc_type == doc_type.value)
        if lock:
            query = query.with_for_update()
        sequence = query.first()
        if sequence is None:
            self._insert_default_sequence(doc_type)
            sequence = query.one()
        return sequence

    def _insert_default_sequence(self, doc_type: DocumentType) -> None:
        """
        Insertar la secuencia por defecto ignorando la fila si otra
        transacción ya la creó (primer uso concurrente de un tipo).
        """
        values = {"doc_type": doc_type.value, **DEFAULT_SEQUENCES[doc_type]}
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = postgresql_insert(DocumentSequence).values(**values)
        elif dialect == "sqlite":
            stmt = sqlite_insert(DocumentSequence).values(**values)
        else:
            self.db.add(DocumentSequence(**values))
            self.db.flush()
            return
        self.db.execute(stmt.on_conflict_do_nothing(index_elements=["doc_type"]))

    def ensure_sequences(self) -> None:
        """Crear las secuencias que falten con sus valores por defecto."""
        existing = {row.doc_type for row in self.db.query(DocumentSequence.doc_type).all()}
        created = False
        for doc_type, defaults in DEFAULT_SEQUENCES.items():
            if doc_type.value not in existing:
                self.db.add(DocumentSequence(doc_type=doc_type.value, **defaults))
                created = True
        if created:
            self.db.commit()
            logger.info("Default document sequences created")

    def allocate(
        self,
        doc_type: DocumentType,
        party_name: Optional[str] = None,
        exists: Optional[Callable[[str], bool]] = None
    ) -> str:
        """
        Asignar el siguiente número e incrementar el contador.

        No hace commit: el número y el documento se confirman juntos en la
        transacción del llamador. `exists` permite saltar números que ya
        estén en uso (por ejemplo tras reiniciar el contador manualmente).
        """
        sequence = self._get_sequence(doc_type, lock=True)
        token = PARTY_TOKENS[doc_type]

        number = format_number(sequence.prefix, sequence.next_number, sequence.suffix, party_name, token)
        while exists is not None and exists(number):
            logger.warning(f"Number {number} already in use for {doc_type.value}, skipping")
            sequence.next_number += 1
            number = format_number(sequence.prefix, sequence.next_number, sequence.suffix, party_name, token)

        sequence.next_number += 1
        self.db.flush()
        logger.info(f"Allocated {doc_type.value} number {number}")
        return number

    def preview(self, doc_type: DocumentType, party_name: Optional[str] = None) -> str:
        """Número que se asignaría, sin incrementar el contador."""
        sequence = self._get_sequence(doc_type)
        return format_number(
            sequence.prefix, sequence.next_number, sequence.suffix,
            party_name, PARTY_TOKENS[doc_type]
        )

    def get_settings(self) -> NumberingSettings:
        return NumberingSettings(**{
            doc_type.value: NumberingFormat.model_validate(self._get_sequence(doc_type))
            for doc_type in DocumentType
        })

    def update_settings(self, data: NumberingSettingsUpdate) -> NumberingSettings:
        try:
            for doc_type in DocumentType:
                new_format = getattr(data, doc_type.value)
                if new_format is None:
                    continue
                sequence = self._get_sequence(doc_type, lock=True)
                sequence.prefix = new_format.prefix
                sequence.next_number = new_format.next_number
                sequence.suffix = new_format.suffix
                sequence.use_customer_prefix = new_format.use_customer_prefix
            self.db.commit()
        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating numbering settings: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error actualizando numeración: {str(e)}"
            )
        logger.info("Numbering settings updated")
        return self.get_settings()
