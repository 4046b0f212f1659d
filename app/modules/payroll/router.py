from fastapi import APIRouter, status, Depends, Query
from uuid import UUID
from typing import List, Optional
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import (
    AuthDependencies, VIEW_ROLES, EDIT_ROLES, DELETE_ROLES, APPROVE_ROLES, SETTINGS_ROLES
)
from app.modules.payroll.models import EmployeeStatus, EmployeeCategory, AdvanceStatus, LeaveStatus
from app.modules.payroll.service import (
    EmployeeService, PayrollSettingsService, AdvanceService, PayrollService, LeaveService
)
from app.modules.payroll.schemas import (
    EmployeeCreate, EmployeeUpdate, EmployeeOut, EmployeeList,
    PayrollSettings, PayrollPrepareResponse, PayrollRunSave, PayrollRecordOut,
    PayrollStatusUpdate, PayrollSummary, PayrollDashboard,
    AdvanceIssue, AdvancePaymentOut,
    LeaveRequestCreate, LeaveRequestOut, LeaveReject
)

router = APIRouter(prefix="/payroll", tags=["Payroll"])


# ===== EMPLOYEES =====

@router.post("/employees", response_model=EmployeeOut, status_code=status.HTTP_201_CREATED)
def create_employee(
    employee_data: EmployeeCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    """Crear empleado. El código de empleado debe ser único; annual_ctc = monthly_ctc × 12."""
    return EmployeeService(db).create_employee(employee_data)


@router.get("/employees", response_model=EmployeeList)
def list_employees(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    status_filter: Optional[EmployeeStatus] = Query(None, alias="status"),
    category: Optional[EmployeeCategory] = Query(None),
    department: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Nombre o código"),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    employees, total = EmployeeService(db).get_employees(limit, offset, status_filter, category, department, search)
    return EmployeeList(items=employees, total=total, limit=limit, offset=offset)


@router.get("/employees/{employee_id}", response_model=EmployeeOut)
def get_employee(
    employee_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return EmployeeService(db).get_employee(employee_id)


@router.patch("/employees/{employee_id}", response_model=EmployeeOut)
def update_employee(
    employee_id: UUID,
    update_data: EmployeeUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    return EmployeeService(db).update_employee(employee_id, update_data)


@router.delete("/employees/{employee_id}")
def delete_employee(
    employee_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(DELETE_ROLES))
):
    return EmployeeService(db).delete_employee(employee_id)


# ===== SETTINGS =====

@router.get("/settings", response_model=PayrollSettings)
def get_payroll_settings(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return PayrollSettingsService(db).get_settings()


@router.put("/settings", response_model=PayrollSettings)
def update_payroll_settings(
    data: PayrollSettings,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(SETTINGS_ROLES))
):
    return PayrollSettingsService(db).update_settings(data)


# ===== RUNS & RECORDS =====

@router.get("/runs/prepare", response_model=PayrollPrepareResponse)
def prepare_payroll_run(
    month: str = Query(..., description="YYYY-MM"),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    """
    Borradores calculados para los empleados activos sin nómina en el mes,
    con el descuento de anticipo sugerido y la cuenta bancaria por defecto.
    """
    return PayrollService(db).prepare_run(month)


@router.post("/runs", response_model=List[PayrollRecordOut], status_code=status.HTTP_201_CREATED)
def save_payroll_run(
    run_data: PayrollRunSave,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    """Guardar la nómina del mes (Processed) y aplicar los descuentos de anticipo"""
    return PayrollService(db).save_run(run_data)


@router.delete("/runs/{month}")
def delete_payroll_run(
    month: str,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(DELETE_ROLES))
):
    """Revertir todas las nóminas del mes"""
    return PayrollService(db).delete_run(month)


@router.get("/records", response_model=List[PayrollRecordOut])
def list_payroll_records(
    month: Optional[str] = Query(None, description="YYYY-MM"),
    employee_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return PayrollService(db).get_records(month, employee_id)


@router.get("/records/{record_id}", response_model=PayrollRecordOut)
def get_payroll_record(
    record_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return PayrollService(db).get_record(record_id)


@router.patch("/records/{record_id}/status", response_model=PayrollRecordOut)
def change_payroll_record_status(
    record_id: UUID,
    data: PayrollStatusUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    return PayrollService(db).change_status(record_id, data.status)


@router.delete("/records/{record_id}")
def revert_payroll_record(
    record_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(DELETE_ROLES))
):
    """Eliminar una nómina devolviendo su descuento al anticipo"""
    return PayrollService(db).revert_record(record_id)


@router.get("/summary", response_model=PayrollSummary)
def get_payroll_summary(
    month: str = Query(..., description="YYYY-MM"),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return PayrollService(db).get_summary(month)


@router.get("/dashboard", response_model=PayrollDashboard)
def get_payroll_dashboard(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return PayrollService(db).get_dashboard()


# ===== ADVANCES =====

@router.get("/advances", response_model=List[AdvancePaymentOut])
def list_advances(
    employee_id: Optional[UUID] = Query(None),
    status_filter: Optional[AdvanceStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return AdvanceService(db).get_advances(employee_id, status_filter)


@router.post("/advances", response_model=AdvancePaymentOut, status_code=status.HTTP_201_CREATED)
def issue_advance(
    data: AdvanceIssue,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(EDIT_ROLES))
):
    """Entregar anticipo; si el empleado ya tiene uno activo se suma al saldo"""
    return AdvanceService(db).issue_advance(data)


@router.get("/advances/active/{employee_id}", response_model=Optional[AdvancePaymentOut])
def get_active_advance(
    employee_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return AdvanceService(db).get_active_advance(employee_id)


@router.get("/advances/{advance_id}", response_model=AdvancePaymentOut)
def get_advance(
    advance_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return AdvanceService(db).get_advance(advance_id)


# ===== LEAVES =====

@router.post("/leaves", response_model=LeaveRequestOut, status_code=status.HTTP_201_CREATED)
def create_leave_request(
    data: LeaveRequestCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return LeaveService(db).create_leave(data, user_id=auth_context.user_id)


@router.get("/leaves", response_model=List[LeaveRequestOut])
def list_leave_requests(
    employee_id: Optional[UUID] = Query(None),
    status_filter: Optional[LeaveStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return LeaveService(db).get_leaves(employee_id, status_filter)


@router.get("/leaves/{leave_id}", response_model=LeaveRequestOut)
def get_leave_request(
    leave_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return LeaveService(db).get_leave(leave_id)


@router.post("/leaves/{leave_id}/approve", response_model=LeaveRequestOut)
def approve_leave_request(
    leave_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(APPROVE_ROLES))
):
    return LeaveService(db).approve_leave(leave_id, approver_id=auth_context.user_id)


@router.post("/leaves/{leave_id}/reject", response_model=LeaveRequestOut)
def reject_leave_request(
    leave_id: UUID,
    data: LeaveReject,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(APPROVE_ROLES))
):
    return LeaveService(db).reject_leave(leave_id, data.rejection_reason)


@router.post("/leaves/{leave_id}/cancel", response_model=LeaveRequestOut)
def cancel_leave_request(
    leave_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(VIEW_ROLES))
):
    return LeaveService(db).cancel_leave(leave_id)
