"""
Modelos SQLAlchemy para el módulo de Nómina
"""
from app.database.database import Base
from sqlalchemy import (
    Column, String, Integer, Date, DateTime, Text, Numeric, JSON, Uuid,
    ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship
from datetime import date, datetime, timezone
from uuid import uuid4
from app.common.mixins import BaseMixin
import enum


# ===== ENUMS =====

class EmployeeCategory(str, enum.Enum):
    IN_OFFICE = "In-office Employee"
    FACTORY = "Factory Worker"
    ON_SITE = "On-site Personnel"


class EmployeeStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class PayrollStatus(str, enum.Enum):
    DRAFT = "Draft"
    PROCESSED = "Processed"
    PAID = "Paid"


class AdvanceStatus(str, enum.Enum):
    ACTIVE = "Active"
    FULLY_DEDUCTED = "Fully Deducted"


class AdvanceTransactionType(str, enum.Enum):
    ISSUED = "issued"
    TOPPED_UP = "topped-up"
    DEDUCTED = "deducted"
    REVERTED = "reverted"


class LeaveType(str, enum.Enum):
    SICK = "sick"
    CASUAL = "casual"
    EARNED = "earned"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    OTHER = "other"


class LeaveStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


# ===== MODELOS =====

class Employee(Base, BaseMixin):
    """
    Empleado

    bank_accounts: [{id, bank_name, account_number, ifsc, is_default}]
    """
    __tablename__ = "employees"

    employee_id = Column(String(30), nullable=False, unique=True, index=True)  # Código de empleado
    name = Column(String(200), nullable=False, index=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    department = Column(String(100), nullable=False, default="")
    category = Column(String(30), nullable=False, default=EmployeeCategory.IN_OFFICE.value)
    monthly_ctc = Column(Numeric(15, 2), nullable=False, default=0)
    annual_ctc = Column(Numeric(15, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False, default=EmployeeStatus.ACTIVE.value, index=True)
    bank_accounts = Column(JSON, nullable=False, default=list)

    @property
    def default_bank_account(self):
        return next((a for a in self.bank_accounts or [] if a.get("is_default")), None)


class PayrollRecord(Base, BaseMixin):
    """Liquidación mensual de un empleado (a lo sumo una por mes)"""
    __tablename__ = "payroll_records"

    employee_id = Column(Uuid, nullable=False, index=True)
    employee_name = Column(String(200), nullable=False)   # Snapshot
    employee_code = Column(String(30), nullable=False)    # Snapshot
    category = Column(String(30), nullable=False)
    payroll_month = Column(String(7), nullable=False, index=True)  # YYYY-MM
    status = Column(String(20), nullable=False, default=PayrollStatus.PROCESSED.value)

    days_present = Column(Numeric(5, 2), nullable=False, default=0)
    overtime_hours = Column(Numeric(6, 2), nullable=False, default=0)
    overtime_days = Column(Numeric(5, 2), nullable=False, default=0)
    overtime_details = Column(String(50), nullable=True)

    basic_pay = Column(Numeric(15, 2), nullable=False, default=0)
    hra = Column(Numeric(15, 2), nullable=False, default=0)
    special_allowance = Column(Numeric(15, 2), nullable=False, default=0)
    overtime = Column(Numeric(15, 2), nullable=False, default=0)
    gross_pay = Column(Numeric(15, 2), nullable=False, default=0)

    pf = Column(Numeric(15, 2), nullable=False, default=0)
    esi = Column(Numeric(15, 2), nullable=False, default=0)
    pt = Column(Numeric(15, 2), nullable=False, default=0)
    tds = Column(Numeric(15, 2), nullable=False, default=0)
    advance_deduction = Column(Numeric(15, 2), nullable=False, default=0)
    advance_payment_id = Column(Uuid, nullable=True)
    total_deductions = Column(Numeric(15, 2), nullable=False, default=0)
    net_pay = Column(Numeric(15, 2), nullable=False, default=0)

    remittance_account = Column(JSON, nullable=True)

    __table_args__ = (
        UniqueConstraint("employee_id", "payroll_month", name="uq_payroll_employee_month"),
    )


class AdvancePayment(Base, BaseMixin):
    """
    Anticipo de salario: saldo que se descuenta en nómina.
    El historial (transactions) es la fuente de verdad del libro.
    """
    __tablename__ = "advance_payments"

    employee_id = Column(Uuid, nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)           # Total entregado
    balance_amount = Column(Numeric(15, 2), nullable=False)   # Saldo pendiente
    date_given = Column(Date, nullable=False, default=date.today)
    status = Column(String(20), nullable=False, default=AdvanceStatus.ACTIVE.value, index=True)
    notes = Column(Text, nullable=True)

    transactions = relationship(
        "AdvanceTransaction",
        cascade="all, delete-orphan",
        order_by="AdvanceTransaction.date",
        lazy="selectin"
    )


class AdvanceTransaction(Base):
    __tablename__ = "advance_transactions"

    id = Column(Uuid, primary_key=True, default=uuid4)
    advance_payment_id = Column(
        Uuid, ForeignKey("advance_payments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    type = Column(String(20), nullable=False)  # AdvanceTransactionType
    amount = Column(Numeric(15, 2), nullable=False)
    notes = Column(Text, nullable=True)
    related_doc_id = Column(Uuid, nullable=True)  # payroll_record_id


class LeaveRequest(Base, BaseMixin):
    __tablename__ = "leave_requests"

    employee_id = Column(Uuid, nullable=False, index=True)
    user_id = Column(Uuid, nullable=True)
    leave_type = Column(String(20), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_days = Column(Integer, nullable=False)
    reason = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=LeaveStatus.PENDING.value, index=True)
    approved_by = Column(Uuid, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
