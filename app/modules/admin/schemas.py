from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class CollectionStats(BaseModel):
    collections: Dict[str, int]
    total_documents: int


class ImportRowError(BaseModel):
    row: int
    error: str


class CollectionImportResult(BaseModel):
    collection: str
    inserted: int
    updated: int
    errors: List[ImportRowError]


class BackupDocument(BaseModel):
    version: str = "1.0"
    created_at: datetime
    collections: Dict[str, List[Dict[str, Any]]]


class RestoreRequest(BaseModel):
    backup: BackupDocument
    collections: Optional[List[str]] = Field(None, description="Restaurar solo estas colecciones")


class RestoreResult(BaseModel):
    restored: Dict[str, int]
    skipped: List[str]


class DeleteAllResult(BaseModel):
    deleted: Dict[str, int]


class IssueSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class IntegrityIssue(BaseModel):
    collection: str
    record_id: str
    issue_type: str
    severity: IssueSeverity
    description: str
    auto_fixable: bool = False


class IntegritySummary(BaseModel):
    critical: int = 0
    warning: int = 0
    info: int = 0


class IntegrityReport(BaseModel):
    timestamp: datetime
    collections_checked: List[str]
    total_documents: int
    issues: List[IntegrityIssue]
    auto_fixed: int
    manual_fixes_required: int
    summary: IntegritySummary
