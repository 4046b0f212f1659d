"""
Servicios de negocio para Nómina

- EmployeeService: CRUD de empleados
- PayrollSettingsService: configuración singleton (se auto-repara)
- AdvanceService: libro de anticipos (emisión, descuento, reversión)
- PayrollService: preparación, guardado, reversión y reportes de nómina
- LeaveService: solicitudes de permiso
"""
import logging
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.common.utils import money, round_to_ten, to_decimal
from app.common.validators import normalize_flagged_list
from app.modules.settings.models import AppSetting
from app.modules.settings.service import SettingsService
from app.modules.payroll.calculator import calculate_salary, suggested_advance_deduction
from app.modules.payroll.models import (
    Employee, EmployeeStatus, EmployeeCategory, PayrollRecord, PayrollStatus,
    AdvancePayment, AdvanceTransaction, AdvanceStatus, AdvanceTransactionType,
    LeaveRequest, LeaveStatus
)
from app.modules.payroll.schemas import (
    EmployeeCreate, EmployeeUpdate, PayrollSettings, PayrollDraft,
    PayrollPrepareResponse, PayrollRunSave, PayrollSummary, PayrollDashboard,
    AdvanceIssue, LeaveRequestCreate, _check_month
)

logger = logging.getLogger(__name__)

PAYROLL_SETTINGS_KEY = "payroll_settings"

PAYROLL_TRANSITIONS = {
    PayrollStatus.DRAFT.value: {PayrollStatus.PROCESSED.value},
    PayrollStatus.PROCESSED.value: {PayrollStatus.PAID.value},
}


def _validate_month(month: str) -> str:
    try:
        return _check_month(month)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# ===== EMPLEADOS =====

class EmployeeService:
    """Servicio de empleados"""

    def __init__(self, db: Session):
        self.db = db

    def _check_code_unique(self, code: str, exclude_id: Optional[UUID] = None):
        query = self.db.query(Employee).filter(Employee.employee_id == code)
        if exclude_id:
            query = query.filter(Employee.id != exclude_id)
        if query.first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe un empleado con el código {code}"
            )

    def create_employee(self, employee_data: EmployeeCreate) -> Employee:
        try:
            self._check_code_unique(employee_data.employee_id)

            values = employee_data.model_dump(mode="json")
            values["monthly_ctc"] = employee_data.monthly_ctc
            values["annual_ctc"] = money(employee_data.monthly_ctc * 12)
            values["bank_accounts"] = normalize_flagged_list(values["bank_accounts"], "is_default")

            employee = Employee(**values)
            self.db.add(employee)
            self.db.commit()
            self.db.refresh(employee)

            logger.info(f"Employee created: {employee.employee_id} {employee.name}")
            return employee

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating employee: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error creando empleado: {str(e)}"
            )

    def get_employees(
        self,
        limit: int = 100,
        offset: int = 0,
        status_filter: Optional[EmployeeStatus] = None,
        category: Optional[EmployeeCategory] = None,
        department: Optional[str] = None,
        search: Optional[str] = None
    ) -> Tuple[List[Employee], int]:
        query = self.db.query(Employee)
        if status_filter:
            query = query.filter(Employee.status == status_filter.value)
        if category:
            query = query.filter(Employee.category == category.value)
        if department:
            query = query.filter(Employee.department == department)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Employee.name.ilike(pattern), Employee.employee_id.ilike(pattern)))

        total = query.count()
        employees = query.order_by(Employee.employee_id.asc()).offset(offset).limit(limit).all()
        return employees, total

    def get_employee(self, employee_id: UUID) -> Employee:
        employee = self.db.get(Employee, employee_id)
        if not employee:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Empleado no encontrado"
            )
        return employee

    def update_employee(self, employee_id: UUID, update_data: EmployeeUpdate) -> Employee:
        try:
            employee = self.get_employee(employee_id)
            values = update_data.model_dump(mode="json", exclude_unset=True)

            if values.get("employee_id"):
                values["employee_id"] = values["employee_id"].strip()
                self._check_code_unique(values["employee_id"], exclude_id=employee_id)
            if update_data.monthly_ctc is not None:
                values["monthly_ctc"] = update_data.monthly_ctc
                values["annual_ctc"] = money(update_data.monthly_ctc * 12)
            if "bank_accounts" in values:
                values["bank_accounts"] = normalize_flagged_list(values["bank_accounts"], "is_default")

            for field, value in values.items():
                if value is None and field not in ("email", "phone"):
                    continue
                setattr(employee, field, value)

            self.db.commit()
            self.db.refresh(employee)
            return employee

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating employee {employee_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error actualizando empleado: {str(e)}"
            )

    def delete_employee(self, employee_id: UUID) -> Dict[str, str]:
        """Eliminar empleado. Las nóminas y anticipos existentes se conservan."""
        employee = self.get_employee(employee_id)
        self.db.delete(employee)
        self.db.commit()
        logger.info(f"Employee deleted: {employee.employee_id}")
        return {"message": "Empleado eliminado exitosamente"}


# ===== CONFIGURACIÓN =====

class PayrollSettingsService:
    """Configuración de nómina; si falta se guardan los valores por defecto."""

    def __init__(self, db: Session):
        self.db = db

    def get_settings(self) -> PayrollSettings:
        settings_service = SettingsService(self.db)
        if self.db.get(AppSetting, PAYROLL_SETTINGS_KEY) is None:
            settings_service.save_document(PAYROLL_SETTINGS_KEY, PayrollSettings())
            logger.info("Payroll settings missing, defaults persisted")
        return settings_service.get_document(PAYROLL_SETTINGS_KEY, PayrollSettings)

    def update_settings(self, data: PayrollSettings) -> PayrollSettings:
        SettingsService(self.db).save_document(PAYROLL_SETTINGS_KEY, data)
        return self.get_settings()


# ===== ANTICIPOS =====

class AdvanceService:
    """Libro de anticipos de salario"""

    def __init__(self, db: Session):
        self.db = db

    def get_active_advance(self, employee_id: UUID) -> Optional[AdvancePayment]:
        return self.db.query(AdvancePayment).filter(
            AdvancePayment.employee_id == employee_id,
            AdvancePayment.status == AdvanceStatus.ACTIVE.value
        ).order_by(AdvancePayment.created_at.desc()).first()

    def get_advances(
        self,
        employee_id: Optional[UUID] = None,
        status_filter: Optional[AdvanceStatus] = None
    ) -> List[AdvancePayment]:
        query = self.db.query(AdvancePayment)
        if employee_id:
            query = query.filter(AdvancePayment.employee_id == employee_id)
        if status_filter:
            query = query.filter(AdvancePayment.status == status_filter.value)
        return query.order_by(AdvancePayment.date_given.desc(), AdvancePayment.created_at.desc()).all()

    def get_advance(self, advance_id: UUID) -> AdvancePayment:
        advance = self.db.get(AdvancePayment, advance_id)
        if not advance:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Anticipo no encontrado"
            )
        return advance

    def issue_advance(self, data: AdvanceIssue) -> AdvancePayment:
        """
        Entregar un anticipo. Si el empleado ya tiene uno activo se suma
        al mismo (topped-up); si no, se crea uno nuevo (issued).
        """
        try:
            employee = EmployeeService(self.db).get_employee(data.employee_id)
            amount = money(data.amount)
            advance = self.get_active_advance(employee.id)

            if advance is not None:
                advance.amount = money(to_decimal(advance.amount) + amount)
                advance.balance_amount = money(to_decimal(advance.balance_amount) + amount)
                advance.transactions.append(AdvanceTransaction(
                    type=AdvanceTransactionType.TOPPED_UP.value,
                    amount=amount,
                    notes=data.notes or "Additional advance given"
                ))
                logger.info(f"Advance topped up for {employee.employee_id}: +{amount}")
            else:
                advance = AdvancePayment(
                    employee_id=employee.id,
                    amount=amount,
                    balance_amount=amount,
                    date_given=data.date_given,
                    status=AdvanceStatus.ACTIVE.value,
                    notes=data.notes,
                    transactions=[AdvanceTransaction(
                        type=AdvanceTransactionType.ISSUED.value,
                        amount=amount,
                        notes=data.notes or "Initial advance"
                    )]
                )
                self.db.add(advance)
                logger.info(f"Advance issued to {employee.employee_id}: {amount}")

            self.db.commit()
            self.db.refresh(advance)
            return advance

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error issuing advance: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error registrando anticipo: {str(e)}"
            )

    def deduct(self, advance: AdvancePayment, amount: Decimal, month: str, record_id: UUID) -> None:
        """Descontar en nómina. No hace commit."""
        amount = money(amount)
        balance = to_decimal(advance.balance_amount)
        if amount <= 0 or amount > balance:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Descuento de anticipo inválido: {amount} (saldo {balance})"
            )

        advance.balance_amount = money(balance - amount)
        advance.status = (
            AdvanceStatus.FULLY_DEDUCTED.value if advance.balance_amount == 0 else AdvanceStatus.ACTIVE.value
        )
        advance.transactions.append(AdvanceTransaction(
            type=AdvanceTransactionType.DEDUCTED.value,
            amount=amount,
            notes=f"Deducted in payroll for {month}",
            related_doc_id=record_id
        ))

    def revert(self, record: PayrollRecord, run_deleted: bool = False) -> Optional[AdvancePayment]:
        """Devolver al saldo el descuento de una nómina. No hace commit."""
        amount = money(record.advance_deduction)
        if amount <= 0:
            return None

        advance = None
        if record.advance_payment_id:
            advance = self.db.get(AdvancePayment, record.advance_payment_id)
        if advance is None:
            advance = self.db.query(AdvancePayment).filter(
                AdvancePayment.employee_id == record.employee_id,
                AdvancePayment.status.in_([AdvanceStatus.ACTIVE.value, AdvanceStatus.FULLY_DEDUCTED.value])
            ).order_by(AdvancePayment.created_at.desc()).first()
        if advance is None:
            logger.warning(
                f"No advance found to revert {amount} for payroll {record.payroll_month} "
                f"of employee {record.employee_code}"
            )
            return None

        restored = to_decimal(advance.balance_amount) + amount
        advance.balance_amount = money(min(restored, to_decimal(advance.amount)))
        advance.status = AdvanceStatus.ACTIVE.value

        if run_deleted:
            notes = f"Reverted from deleted payroll for {record.payroll_month}"
        else:
            notes = f"Reverted from payroll for {record.payroll_month}"
        advance.transactions.append(AdvanceTransaction(
            type=AdvanceTransactionType.REVERTED.value,
            amount=amount,
            notes=notes,
            related_doc_id=record.id
        ))
        return advance


# ===== NÓMINA =====

class PayrollService:
    """Corridas de nómina mensuales y reportes"""

    def __init__(self, db: Session):
        self.db = db
        self.advances = AdvanceService(db)

    @staticmethod
    def _remittance_account(employee: Employee, account_id: Optional[str] = None) -> Optional[dict]:
        accounts = employee.bank_accounts or []
        if account_id:
            for account in accounts:
                if str(account.get("id")) == str(account_id):
                    return dict(account)
        account = employee.default_bank_account or (accounts[0] if accounts else None)
        return dict(account) if account else None

    def prepare_run(self, month: str) -> PayrollPrepareResponse:
        """Borradores calculados para empleados activos sin nómina en el mes"""
        month = _validate_month(month)
        settings = PayrollSettingsService(self.db).get_settings()

        processed = {
            row.employee_id for row in self.db.query(PayrollRecord.employee_id).filter(
                PayrollRecord.payroll_month == month
            ).all()
        }

        drafts = []
        employees = self.db.query(Employee).filter(
            Employee.status == EmployeeStatus.ACTIVE.value
        ).order_by(Employee.employee_id.asc()).all()

        for employee in employees:
            if employee.id in processed:
                continue
            advance = self.advances.get_active_advance(employee.id)
            balance = to_decimal(advance.balance_amount) if advance else Decimal("0")
            deduction = suggested_advance_deduction(balance, employee.monthly_ctc)

            computation = calculate_salary(
                employee.category, employee.monthly_ctc, Decimal("30"), settings,
                advance_deduction=deduction
            )
            drafts.append(PayrollDraft(
                employee_id=employee.id,
                employee_code=employee.employee_id,
                employee_name=employee.name,
                category=employee.category,
                monthly_ctc=employee.monthly_ctc,
                advance_balance=balance,
                remittance_account=self._remittance_account(employee),
                **computation.model_dump()
            ))

        return PayrollPrepareResponse(payroll_month=month, settings=settings, drafts=drafts)

    def save_run(self, run_data: PayrollRunSave) -> List[PayrollRecord]:
        """
        Guardar nóminas del mes en estado Processed.

        Los montos se recalculan en el servidor. Los descuentos de anticipo
        se aplican al libro en la misma transacción.
        """
        month = run_data.payroll_month
        try:
            settings = PayrollSettingsService(self.db).get_settings()
            existing = {
                row.employee_id for row in self.db.query(PayrollRecord.employee_id).filter(
                    PayrollRecord.payroll_month == month
                ).all()
            }

            records = []
            seen = set()
            for entry in run_data.records:
                if entry.employee_id in existing or entry.employee_id in seen:
                    raise HTTPException(
                        status_code=status.HTTP_409_CONFLICT,
                        detail=f"El empleado {entry.employee_id} ya tiene nómina para {month}"
                    )
                seen.add(entry.employee_id)

                employee = EmployeeService(self.db).get_employee(entry.employee_id)

                advance = None
                if entry.advance_deduction > 0:
                    advance = self.advances.get_active_advance(employee.id)
                    balance = to_decimal(advance.balance_amount) if advance else Decimal("0")
                    if entry.advance_deduction > balance:
                        raise HTTPException(
                            status_code=status.HTTP_400_BAD_REQUEST,
                            detail=(
                                f"El descuento de anticipo de {employee.name} ({entry.advance_deduction}) "
                                f"excede el saldo pendiente ({balance})"
                            )
                        )

                computation = calculate_salary(
                    employee.category,
                    employee.monthly_ctc,
                    entry.days_present,
                    settings,
                    overtime_hours=entry.overtime_hours,
                    overtime_days=entry.overtime_days,
                    advance_deduction=entry.advance_deduction,
                )

                record = PayrollRecord(
                    id=uuid4(),
                    employee_id=employee.id,
                    employee_name=employee.name,
                    employee_code=employee.employee_id,
                    category=employee.category,
                    payroll_month=month,
                    status=PayrollStatus.PROCESSED.value,
                    remittance_account=self._remittance_account(employee, entry.remittance_account_id),
                    **computation.model_dump()
                )
                if advance is not None:
                    self.advances.deduct(advance, computation.advance_deduction, month, record.id)
                    record.advance_payment_id = advance.id

                self.db.add(record)
                records.append(record)

            self.db.commit()
            for record in records:
                self.db.refresh(record)

            logger.info(f"Payroll {month} saved: {len(records)} records")
            return records

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error saving payroll {month}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error guardando nómina: {str(e)}"
            )

    def get_records(
        self,
        month: Optional[str] = None,
        employee_id: Optional[UUID] = None
    ) -> List[PayrollRecord]:
        query = self.db.query(PayrollRecord)
        if month:
            query = query.filter(PayrollRecord.payroll_month == _validate_month(month))
        if employee_id:
            query = query.filter(PayrollRecord.employee_id == employee_id)
        return query.order_by(PayrollRecord.payroll_month.desc(), PayrollRecord.employee_code.asc()).all()

    def get_record(self, record_id: UUID) -> PayrollRecord:
        record = self.db.get(PayrollRecord, record_id)
        if not record:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Registro de nómina no encontrado"
            )
        return record

    def change_status(self, record_id: UUID, new_status: PayrollStatus) -> PayrollRecord:
        record = self.get_record(record_id)
        if record.status == new_status.value:
            return record
        if new_status.value not in PAYROLL_TRANSITIONS.get(record.status, set()):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Transición de estado no permitida: {record.status} -> {new_status.value}"
            )
        record.status = new_status.value
        self.db.commit()
        self.db.refresh(record)
        logger.info(f"Payroll {record.payroll_month} {record.employee_code}: {new_status.value}")
        return record

    def revert_record(self, record_id: UUID) -> Dict[str, str]:
        """Eliminar una nómina devolviendo su descuento al anticipo"""
        try:
            record = self.get_record(record_id)
            self.advances.revert(record)
            self.db.delete(record)
            self.db.commit()
            logger.info(f"Payroll record reverted: {record.employee_code} {record.payroll_month}")
            return {"message": "Nómina revertida exitosamente"}

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error reverting payroll record {record_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error revirtiendo nómina: {str(e)}"
            )

    def delete_run(self, month: str) -> Dict[str, object]:
        """Revertir todas las nóminas del mes"""
        month = _validate_month(month)
        try:
            records = self.db.query(PayrollRecord).filter(PayrollRecord.payroll_month == month).all()
            if not records:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"No hay nóminas para {month}"
                )
            for record in records:
                self.advances.revert(record, run_deleted=True)
                self.db.delete(record)
            self.db.commit()

            logger.info(f"Payroll run {month} deleted ({len(records)} records)")
            return {"message": f"Nómina de {month} eliminada", "deleted": len(records)}

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting payroll run {month}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error eliminando nómina: {str(e)}"
            )

    def get_summary(self, month: str) -> PayrollSummary:
        records = self.get_records(month=month)
        highest_outstanding = self.db.query(func.max(AdvancePayment.balance_amount)).filter(
            AdvancePayment.status == AdvanceStatus.ACTIVE.value
        ).scalar()

        def total(field: str) -> Decimal:
            return money(sum((to_decimal(getattr(r, field)) for r in records), Decimal("0")))

        return PayrollSummary(
            payroll_month=month,
            employee_count=len(records),
            processed_count=sum(1 for r in records if r.status == PayrollStatus.PROCESSED.value),
            paid_count=sum(1 for r in records if r.status == PayrollStatus.PAID.value),
            total_gross=total("gross_pay"),
            total_deductions=total("total_deductions"),
            total_net=total("net_pay"),
            total_overtime=total("overtime"),
            highest_advance_outstanding=money(highest_outstanding or 0),
            highest_deduction=money(max((to_decimal(r.advance_deduction) for r in records), default=Decimal("0"))),
        )

    def get_dashboard(self) -> PayrollDashboard:
        records = self.db.query(PayrollRecord).all()
        advances = self.db.query(AdvancePayment).all()

        overtime_by_category: Dict[str, Decimal] = defaultdict(Decimal)
        deductions_by_month: Dict[str, Decimal] = defaultdict(Decimal)
        for record in records:
            overtime_by_category[record.category] += to_decimal(record.overtime)
            deductions_by_month[record.payroll_month] += to_decimal(record.total_deductions)

        def total(field: str) -> Decimal:
            return round_to_ten(sum((to_decimal(getattr(r, field)) for r in records), Decimal("0")))

        return PayrollDashboard(
            total_employees=self.db.query(Employee).count(),
            active_employees=self.db.query(Employee).filter(
                Employee.status == EmployeeStatus.ACTIVE.value
            ).count(),
            total_gross=total("gross_pay"),
            total_deductions=total("total_deductions"),
            total_net=total("net_pay"),
            total_overtime=total("overtime"),
            total_overtime_hours=sum(
                (to_decimal(r.overtime_hours) for r in records), Decimal("0")
            ).quantize(Decimal("1")),
            overtime_by_category={k: round_to_ten(v) for k, v in overtime_by_category.items()},
            deductions_by_month={k: round_to_ten(v) for k, v in sorted(deductions_by_month.items())},
            highest_advance_given=money(max((to_decimal(a.amount) for a in advances), default=Decimal("0"))),
            highest_deduction_made=money(
                max((to_decimal(r.advance_deduction) for r in records), default=Decimal("0"))
            ),
        )


# ===== PERMISOS =====

class LeaveService:
    """Solicitudes de permiso; solo las pendientes pueden cambiar de estado."""

    def __init__(self, db: Session):
        self.db = db

    def create_leave(self, data: LeaveRequestCreate, user_id: Optional[UUID] = None) -> LeaveRequest:
        EmployeeService(self.db).get_employee(data.employee_id)
        leave = LeaveRequest(
            employee_id=data.employee_id,
            user_id=user_id,
            leave_type=data.leave_type.value,
            start_date=data.start_date,
            end_date=data.end_date,
            total_days=(data.end_date - data.start_date).days + 1,
            reason=data.reason,
            status=LeaveStatus.PENDING.value
        )
        self.db.add(leave)
        self.db.commit()
        self.db.refresh(leave)
        logger.info(f"Leave request created for employee {data.employee_id}: {leave.total_days} days")
        return leave

    def get_leaves(
        self,
        employee_id: Optional[UUID] = None,
        status_filter: Optional[LeaveStatus] = None
    ) -> List[LeaveRequest]:
        query = self.db.query(LeaveRequest)
        if employee_id:
            query = query.filter(LeaveRequest.employee_id == employee_id)
        if status_filter:
            query = query.filter(LeaveRequest.status == status_filter.value)
        return query.order_by(LeaveRequest.start_date.desc()).all()

    def get_leave(self, leave_id: UUID) -> LeaveRequest:
        leave = self.db.get(LeaveRequest, leave_id)
        if not leave:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Solicitud de permiso no encontrada"
            )
        return leave

    def _get_pending(self, leave_id: UUID) -> LeaveRequest:
        leave = self.get_leave(leave_id)
        if leave.status != LeaveStatus.PENDING.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"La solicitud ya está en estado {leave.status}"
            )
        return leave

    def approve_leave(self, leave_id: UUID, approver_id: UUID) -> LeaveRequest:
        leave = self._get_pending(leave_id)
        leave.status = LeaveStatus.APPROVED.value
        leave.approved_by = approver_id
        leave.approved_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(leave)
        return leave

    def reject_leave(self, leave_id: UUID, reason: str) -> LeaveRequest:
        leave = self._get_pending(leave_id)
        leave.status = LeaveStatus.REJECTED.value
        leave.rejection_reason = reason
        self.db.commit()
        self.db.refresh(leave)
        return leave

    def cancel_leave(self, leave_id: UUID) -> LeaveRequest:
        leave = self._get_pending(leave_id)
        leave.status = LeaveStatus.CANCELLED.value
        self.db.commit()
        self.db.refresh(leave)
        return leave
