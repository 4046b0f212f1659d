"""
Cálculo de salario mensual (función pura, sin acceso a base de datos)

Mes de 30 días. Salario base según categoría:

    In-office Employee   días a descontar = max(0, (30 - presentes) - 2)
                         base = ctc × (30 - días a descontar) / 30
    Factory Worker       base = ctc/30 × presentes
                         horas extra = ctc/30/8 × horas
    On-site Personnel    base = ctc/30 × presentes
                         días extra = ctc/30 × días

Componentes: basic / HRA / special allowance como porcentaje del base.
Deducciones: PF sobre basic, ESI sobre bruto (solo bajo el límite), PT fijo,
TDS sobre bruto y el descuento de anticipo.
"""
from decimal import Decimal

from app.common.utils import money, round_rupee, to_decimal
from app.modules.payroll.models import EmployeeCategory
from app.modules.payroll.schemas import PayrollComputation, PayrollSettings

MONTH_DAYS = Decimal("30")
PAID_LEAVE_DAYS = Decimal("2")
HOURS_PER_DAY = Decimal("8")
ADVANCE_DEDUCTION_RATIO = Decimal("0.30")
HUNDRED = Decimal("100")


def _format_quantity(value: Decimal) -> str:
    value = to_decimal(value)
    return str(value.quantize(Decimal("1"))) if value == value.to_integral_value() else str(value.normalize())


def suggested_advance_deduction(balance, monthly_ctc) -> Decimal:
    """min(saldo, 30% del CTC mensual redondeado a la rupia)"""
    cap = round_rupee(to_decimal(monthly_ctc) * ADVANCE_DEDUCTION_RATIO)
    return money(min(to_decimal(balance), cap))


def calculate_salary(
    category: EmployeeCategory,
    monthly_ctc,
    days_present,
    settings: PayrollSettings,
    overtime_hours=0,
    overtime_days=0,
    advance_deduction=0,
) -> PayrollComputation:
    ctc = to_decimal(monthly_ctc)
    days = to_decimal(days_present)
    ot_hours = to_decimal(overtime_hours)
    ot_days = to_decimal(overtime_days)
    daily = ctc / MONTH_DAYS

    overtime = Decimal("0")
    details = None
    category = EmployeeCategory(category)

    if category == EmployeeCategory.IN_OFFICE:
        deduction_days = max(Decimal("0"), (MONTH_DAYS - days) - PAID_LEAVE_DAYS)
        base = ctc * (MONTH_DAYS - deduction_days) / MONTH_DAYS
        ot_hours = ot_days = Decimal("0")
    elif category == EmployeeCategory.FACTORY:
        base = daily * days
        overtime = daily / HOURS_PER_DAY * ot_hours
        details = f"{_format_quantity(ot_hours)} hrs"
        ot_days = Decimal("0")
    else:
        base = daily * days
        overtime = daily * ot_days
        details = f"{_format_quantity(ot_days)} days"
        ot_hours = Decimal("0")

    basic = money(base * to_decimal(settings.basic_percentage) / HUNDRED)
    hra = money(base * to_decimal(settings.hra_percentage) / HUNDRED)
    special = money(base * to_decimal(settings.special_allowance_percentage) / HUNDRED)
    overtime = money(overtime)
    gross = basic + hra + special + overtime

    pf = money(basic * to_decimal(settings.pf_percentage) / HUNDRED) if settings.pf_enabled else Decimal("0.00")
    esi = Decimal("0.00")
    if settings.esi_enabled and gross <= to_decimal(settings.esi_wage_limit):
        esi = money(gross * to_decimal(settings.esi_percentage) / HUNDRED)
    pt = money(settings.pt_amount) if settings.pt_enabled else Decimal("0.00")
    tds = money(gross * to_decimal(settings.tds_percentage) / HUNDRED) if settings.tds_enabled else Decimal("0.00")
    advance = money(advance_deduction)

    total_deductions = pf + esi + pt + tds + advance
    net = gross - total_deductions

    return PayrollComputation(
        days_present=days,
        overtime_hours=ot_hours,
        overtime_days=ot_days,
        overtime_details=details,
        basic_pay=basic,
        hra=hra,
        special_allowance=special,
        overtime=overtime,
        gross_pay=money(gross),
        pf=pf,
        esi=esi,
        pt=pt,
        tds=tds,
        advance_deduction=advance,
        total_deductions=money(total_deductions),
        net_pay=money(net),
    )
