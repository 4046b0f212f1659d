"""
Esquemas Pydantic para el módulo de Nómina
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from decimal import Decimal
from typing import Optional, List, Dict, Any
from uuid import UUID
from datetime import date, datetime
import re

from app.common.validators import validate_ifsc
from app.modules.payroll.models import (
    EmployeeCategory, EmployeeStatus, PayrollStatus, AdvanceStatus,
    AdvanceTransactionType, LeaveType, LeaveStatus
)

MONTH_PATTERN = re.compile(r'^[0-9]{4}-(0[1-9]|1[0-2])$')


def _check_month(v: str) -> str:
    if not MONTH_PATTERN.match(v or ""):
        raise ValueError('Mes inválido, formato esperado YYYY-MM')
    return v


# ===== EMPLEADOS =====

class BankAccount(BaseModel):
    id: Optional[str] = None
    bank_name: str = Field(..., min_length=1, max_length=100)
    account_number: str = Field(..., min_length=4, max_length=30)
    ifsc: str = Field(..., max_length=11)
    is_default: bool = False

    @field_validator('ifsc')
    @classmethod
    def validate_bank_ifsc(cls, v):
        v = v.strip().upper()
        if not validate_ifsc(v):
            raise ValueError('IFSC inválido (ej: HDFC0001234)')
        return v


class EmployeeBase(BaseModel):
    employee_id: str = Field(..., min_length=1, max_length=30, description="Código de empleado (único)")
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    department: str = Field("", max_length=100)
    category: EmployeeCategory = EmployeeCategory.IN_OFFICE
    monthly_ctc: Decimal = Field(..., ge=0)
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    bank_accounts: List[BankAccount] = Field(default_factory=list)

    @field_validator('employee_id')
    @classmethod
    def strip_code(cls, v):
        return v.strip()


class EmployeeCreate(EmployeeBase):
    pass


class EmployeeUpdate(BaseModel):
    employee_id: Optional[str] = Field(None, min_length=1, max_length=30)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    department: Optional[str] = Field(None, max_length=100)
    category: Optional[EmployeeCategory] = None
    monthly_ctc: Optional[Decimal] = Field(None, ge=0)
    status: Optional[EmployeeStatus] = None
    bank_accounts: Optional[List[BankAccount]] = None


class EmployeeOut(EmployeeBase):
    id: UUID
    annual_ctc: Decimal
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class EmployeeList(BaseModel):
    items: List[EmployeeOut]
    total: int
    limit: int
    offset: int


# ===== CONFIGURACIÓN =====

class PayrollSettings(BaseModel):
    pf_enabled: bool = True
    pf_percentage: Decimal = Field(Decimal("12"), ge=0, le=100)
    esi_enabled: bool = True
    esi_percentage: Decimal = Field(Decimal("1.75"), ge=0, le=100)
    pt_enabled: bool = True
    pt_amount: Decimal = Field(Decimal("200"), ge=0)
    tds_enabled: bool = False
    tds_percentage: Decimal = Field(Decimal("0"), ge=0, le=100)
    tds_annual_limit: Decimal = Field(Decimal("250000"), ge=0)
    basic_percentage: Decimal = Field(Decimal("50"), ge=0, le=100)
    hra_percentage: Decimal = Field(Decimal("20"), ge=0, le=100)
    special_allowance_percentage: Decimal = Field(Decimal("30"), ge=0, le=100)
    esi_wage_limit: Decimal = Field(Decimal("21000"), ge=0)


# ===== CÁLCULO =====

class PayrollComputation(BaseModel):
    """Resultado del cálculo de salario de un mes"""
    days_present: Decimal
    overtime_hours: Decimal = Decimal("0")
    overtime_days: Decimal = Decimal("0")
    overtime_details: Optional[str] = None
    basic_pay: Decimal
    hra: Decimal
    special_allowance: Decimal
    overtime: Decimal
    gross_pay: Decimal
    pf: Decimal
    esi: Decimal
    pt: Decimal
    tds: Decimal
    advance_deduction: Decimal
    total_deductions: Decimal
    net_pay: Decimal


class PayrollDraft(PayrollComputation):
    """Borrador calculado para un empleado sin nómina en el mes"""
    employee_id: UUID
    employee_code: str
    employee_name: str
    category: EmployeeCategory
    monthly_ctc: Decimal
    advance_balance: Decimal
    remittance_account: Optional[Dict[str, Any]] = None


class PayrollPrepareResponse(BaseModel):
    payroll_month: str
    settings: PayrollSettings
    drafts: List[PayrollDraft]


class PayrollRecordInput(BaseModel):
    employee_id: UUID
    days_present: Decimal = Field(..., ge=0, le=31)
    overtime_hours: Decimal = Field(Decimal("0"), ge=0)
    overtime_days: Decimal = Field(Decimal("0"), ge=0)
    advance_deduction: Decimal = Field(Decimal("0"), ge=0)
    remittance_account_id: Optional[str] = None


class PayrollRunSave(BaseModel):
    payroll_month: str
    records: List[PayrollRecordInput] = Field(..., min_length=1)

    @field_validator('payroll_month')
    @classmethod
    def validate_month(cls, v):
        return _check_month(v)


class PayrollStatusUpdate(BaseModel):
    status: PayrollStatus


class PayrollRecordOut(PayrollComputation):
    id: UUID
    employee_id: UUID
    employee_name: str
    employee_code: str
    category: EmployeeCategory
    payroll_month: str
    status: PayrollStatus
    advance_payment_id: Optional[UUID] = None
    remittance_account: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PayrollSummary(BaseModel):
    payroll_month: str
    employee_count: int
    processed_count: int
    paid_count: int
    total_gross: Decimal
    total_deductions: Decimal
    total_net: Decimal
    total_overtime: Decimal
    highest_advance_outstanding: Decimal
    highest_deduction: Decimal


class PayrollDashboard(BaseModel):
    """Cifras agregadas de todas las nóminas, redondeadas a la decena"""
    total_employees: int
    active_employees: int
    total_gross: Decimal
    total_deductions: Decimal
    total_net: Decimal
    total_overtime: Decimal
    total_overtime_hours: Decimal
    overtime_by_category: Dict[str, Decimal]
    deductions_by_month: Dict[str, Decimal]
    highest_advance_given: Decimal
    highest_deduction_made: Decimal


# ===== ANTICIPOS =====

class AdvanceIssue(BaseModel):
    employee_id: UUID
    amount: Decimal = Field(..., gt=0)
    date_given: date = Field(default_factory=date.today)
    notes: Optional[str] = None


class AdvanceTransactionOut(BaseModel):
    id: UUID
    date: datetime
    type: AdvanceTransactionType
    amount: Decimal
    notes: Optional[str] = None
    related_doc_id: Optional[UUID] = None

    class Config:
        from_attributes = True


class AdvancePaymentOut(BaseModel):
    id: UUID
    employee_id: UUID
    amount: Decimal
    balance_amount: Decimal
    date_given: date
    status: AdvanceStatus
    notes: Optional[str] = None
    transactions: List[AdvanceTransactionOut]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ===== PERMISOS =====

class LeaveRequestCreate(BaseModel):
    employee_id: UUID
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: Optional[str] = None

    @model_validator(mode='after')
    def validate_range(self):
        if self.start_date > self.end_date:
            raise ValueError('La fecha de inicio no puede ser posterior a la fecha de fin')
        return self


class LeaveReject(BaseModel):
    rejection_reason: str = Field(..., min_length=1)


class LeaveRequestOut(BaseModel):
    id: UUID
    employee_id: UUID
    user_id: Optional[UUID] = None
    leave_type: LeaveType
    start_date: date
    end_date: date
    total_days: int
    reason: Optional[str] = None
    status: LeaveStatus
    approved_by: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
