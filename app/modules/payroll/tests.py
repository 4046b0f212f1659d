"""
Tests para el módulo de Nómina
"""
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from app.modules.payroll.calculator import calculate_salary, suggested_advance_deduction
from app.modules.payroll.models import AdvancePayment, EmployeeCategory, PayrollRecord
from app.modules.payroll.schemas import PayrollSettings


@pytest.fixture
def employee(client, admin_headers):
    response = client.post("/payroll/employees", headers=admin_headers, json={
        "employee_id": "EMP001",
        "name": "Suresh Patil",
        "department": "Accounts",
        "category": "In-office Employee",
        "monthly_ctc": "30000",
        "bank_accounts": [
            {"bank_name": "HDFC Bank", "account_number": "50100012345678", "ifsc": "hdfc0001234", "is_default": True},
        ],
    })
    assert response.status_code == 201
    return response.json()


def issue_advance(client, headers, employee_id, amount, notes=None):
    response = client.post("/payroll/advances", headers=headers, json={
        "employee_id": employee_id,
        "amount": amount,
        "date_given": "2024-04-20",
        "notes": notes,
    })
    assert response.status_code == 201
    return response.json()


def save_run(client, headers, employee, advance_deduction, month="2024-05"):
    response = client.post("/payroll/runs", headers=headers, json={
        "payroll_month": month,
        "records": [{"employee_id": employee["id"], "days_present": "30", "advance_deduction": advance_deduction}],
    })
    assert response.status_code == 201
    return response.json()[0]


class TestCalculator:
    """Cálculo de salario por categoría"""

    def test_in_office_full_month(self):
        result = calculate_salary(EmployeeCategory.IN_OFFICE, Decimal("30000"), Decimal("30"), PayrollSettings())
        assert result.basic_pay == Decimal("15000")
        assert result.hra == Decimal("6000")
        assert result.special_allowance == Decimal("9000")
        assert result.gross_pay == Decimal("30000")
        assert result.pf == Decimal("1800")
        assert result.esi == Decimal("0")
        assert result.pt == Decimal("200")
        assert result.net_pay == Decimal("28000")
        assert result.overtime_details is None

    def test_in_office_paid_leave_allowance(self):
        """Dos días de ausencia no se descuentan; el resto sí"""
        two_absent = calculate_salary(EmployeeCategory.IN_OFFICE, Decimal("30000"), Decimal("28"), PayrollSettings())
        assert two_absent.gross_pay == Decimal("30000")

        four_absent = calculate_salary(EmployeeCategory.IN_OFFICE, Decimal("30000"), Decimal("26"), PayrollSettings())
        assert four_absent.gross_pay == Decimal("28000")
        assert four_absent.pf == Decimal("1680")
        assert four_absent.net_pay == Decimal("26120")

    def test_in_office_ignores_overtime(self):
        result = calculate_salary(
            EmployeeCategory.IN_OFFICE, Decimal("30000"), Decimal("30"), PayrollSettings(),
            overtime_hours=Decimal("12")
        )
        assert result.overtime == Decimal("0")
        assert result.overtime_hours == Decimal("0")

    def test_factory_worker_hourly_overtime(self):
        result = calculate_salary(
            EmployeeCategory.FACTORY, Decimal("15000"), Decimal("26"), PayrollSettings(),
            overtime_hours=Decimal("10")
        )
        assert result.overtime == Decimal("625")
        assert result.gross_pay == Decimal("13625")
        assert result.esi == Decimal("238.44")
        assert result.total_deductions == Decimal("1218.44")
        assert result.net_pay == Decimal("12406.56")
        assert result.overtime_details == "10 hrs"

    def test_on_site_overtime_days(self):
        result = calculate_salary(
            EmployeeCategory.ON_SITE, Decimal("18000"), Decimal("25"), PayrollSettings(),
            overtime_days=Decimal("2")
        )
        assert result.overtime == Decimal("1200")
        assert result.gross_pay == Decimal("16200")
        assert result.esi == Decimal("283.50")
        assert result.net_pay == Decimal("14816.50")
        assert result.overtime_details == "2 days"

    def test_esi_applies_up_to_wage_limit(self):
        at_limit = calculate_salary(EmployeeCategory.IN_OFFICE, Decimal("21000"), Decimal("30"), PayrollSettings())
        assert at_limit.esi == Decimal("367.50")

        above = calculate_salary(EmployeeCategory.IN_OFFICE, Decimal("21030"), Decimal("30"), PayrollSettings())
        assert above.esi == Decimal("0")

    def test_disabled_deductions(self):
        settings = PayrollSettings(pf_enabled=False, esi_enabled=False, pt_enabled=False)
        result = calculate_salary(EmployeeCategory.FACTORY, Decimal("15000"), Decimal("30"), settings)
        assert result.total_deductions == Decimal("0")
        assert result.net_pay == result.gross_pay

    def test_advance_deduction_included(self):
        result = calculate_salary(
            EmployeeCategory.IN_OFFICE, Decimal("30000"), Decimal("30"), PayrollSettings(),
            advance_deduction=Decimal("3000")
        )
        assert result.total_deductions == Decimal("5000")
        assert result.net_pay == Decimal("25000")

    def test_suggested_advance_deduction(self):
        assert suggested_advance_deduction(Decimal("10000"), Decimal("20000")) == Decimal("6000")
        assert suggested_advance_deduction(Decimal("2500"), Decimal("20000")) == Decimal("2500")
        assert suggested_advance_deduction(Decimal("0"), Decimal("20000")) == Decimal("0")


class TestEmployees:
    """Alta y mantenimiento de empleados"""

    def test_create_employee(self, employee):
        assert employee["employee_id"] == "EMP001"
        assert Decimal(employee["annual_ctc"]) == Decimal("360000")
        assert employee["bank_accounts"][0]["ifsc"] == "HDFC0001234"
        assert employee["status"] == "Active"

    def test_duplicate_code_conflict(self, client, admin_headers, employee):
        response = client.post("/payroll/employees", headers=admin_headers, json={
            "employee_id": "EMP001",
            "name": "Otro Empleado",
            "monthly_ctc": "20000",
        })
        assert response.status_code == 409

    def test_invalid_ifsc_rejected(self, client, admin_headers):
        response = client.post("/payroll/employees", headers=admin_headers, json={
            "employee_id": "EMP009",
            "name": "Banco Malo",
            "monthly_ctc": "20000",
            "bank_accounts": [{"bank_name": "X", "account_number": "12345678", "ifsc": "1234"}],
        })
        assert response.status_code == 422

    def test_update_and_list(self, client, admin_headers, employee):
        response = client.patch(
            f"/payroll/employees/{employee['id']}",
            headers=admin_headers,
            json={"monthly_ctc": "32000", "status": "Inactive"},
        )
        assert response.status_code == 200
        assert Decimal(response.json()["annual_ctc"]) == Decimal("384000")

        listing = client.get("/payroll/employees", headers=admin_headers, params={"status": "Inactive"})
        assert listing.json()["total"] == 1

    def test_viewer_cannot_create(self, client, viewer_headers):
        response = client.post("/payroll/employees", headers=viewer_headers, json={
            "employee_id": "EMP002",
            "name": "Sin Permiso",
            "monthly_ctc": "20000",
        })
        assert response.status_code == 403


class TestPayrollSettings:
    """Configuración de deducciones"""

    def test_defaults(self, client, viewer_headers):
        response = client.get("/payroll/settings", headers=viewer_headers)
        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["pf_percentage"]) == Decimal("12")
        assert Decimal(body["esi_wage_limit"]) == Decimal("21000")
        assert body["tds_enabled"] is False

    def test_update_settings(self, client, admin_headers):
        response = client.put("/payroll/settings", headers=admin_headers, json={"pt_amount": "150"})
        assert response.status_code == 200
        assert Decimal(client.get("/payroll/settings", headers=admin_headers).json()["pt_amount"]) == Decimal("150")


class TestAdvances:
    """Libro de anticipos"""

    def test_issue_then_top_up(self, client, admin_headers, employee):
        first = issue_advance(client, admin_headers, employee["id"], "10000")
        assert first["status"] == "Active"
        assert Decimal(first["balance_amount"]) == Decimal("10000")

        second = issue_advance(client, admin_headers, employee["id"], "5000")
        assert second["id"] == first["id"]
        assert Decimal(second["amount"]) == Decimal("15000")
        assert Decimal(second["balance_amount"]) == Decimal("15000")
        assert [t["type"] for t in second["transactions"]] == ["issued", "topped-up"]

    def test_unknown_employee(self, client, admin_headers):
        response = client.post("/payroll/advances", headers=admin_headers, json={
            "employee_id": "00000000-0000-0000-0000-000000000000",
            "amount": "1000",
        })
        assert response.status_code == 404

    def test_amount_must_be_positive(self, client, admin_headers, employee):
        response = client.post("/payroll/advances", headers=admin_headers, json={
            "employee_id": employee["id"],
            "amount": "0",
        })
        assert response.status_code == 422


class TestPayrollRuns:
    """Preparar, guardar, revertir y eliminar nóminas"""

    def test_prepare_suggests_deduction(self, client, admin_headers, employee):
        issue_advance(client, admin_headers, employee["id"], "20000")
        response = client.get("/payroll/runs/prepare", headers=admin_headers, params={"month": "2024-05"})
        assert response.status_code == 200
        drafts = response.json()["drafts"]
        assert len(drafts) == 1
        assert Decimal(drafts[0]["advance_balance"]) == Decimal("20000")
        assert Decimal(drafts[0]["advance_deduction"]) == Decimal("9000")
        assert drafts[0]["remittance_account"]["bank_name"] == "HDFC Bank"

    def test_prepare_invalid_month(self, client, admin_headers):
        response = client.get("/payroll/runs/prepare", headers=admin_headers, params={"month": "2024-13"})
        assert response.status_code == 400

    def test_save_run_deducts_advance(self, client, admin_headers, employee):
        issue_advance(client, admin_headers, employee["id"], "10000")
        response = client.post("/payroll/runs", headers=admin_headers, json={
            "payroll_month": "2024-05",
            "records": [{"employee_id": employee["id"], "days_present": "30", "advance_deduction": "3000"}],
        })
        assert response.status_code == 201
        record = response.json()[0]
        assert record["status"] == "Processed"
        assert Decimal(record["net_pay"]) == Decimal("25000")
        assert record["advance_payment_id"] is not None

        advance = client.get(f"/payroll/advances/active/{employee['id']}", headers=admin_headers).json()
        assert Decimal(advance["balance_amount"]) == Decimal("7000")
        deducted = advance["transactions"][-1]
        assert deducted["type"] == "deducted"
        assert deducted["notes"] == "Deducted in payroll for 2024-05"
        assert deducted["related_doc_id"] == record["id"]

        # el empleado ya no aparece en los borradores del mes
        prepared = client.get("/payroll/runs/prepare", headers=admin_headers, params={"month": "2024-05"})
        assert prepared.json()["drafts"] == []

    def test_deduction_clearing_balance_closes_advance(self, client, admin_headers, employee):
        issue_advance(client, admin_headers, employee["id"], "2000")
        client.post("/payroll/runs", headers=admin_headers, json={
            "payroll_month": "2024-05",
            "records": [{"employee_id": employee["id"], "days_present": "30", "advance_deduction": "2000"}],
        })
        advances = client.get("/payroll/advances", headers=admin_headers).json()
        assert advances[0]["status"] == "Fully Deducted"
        assert client.get(f"/payroll/advances/active/{employee['id']}", headers=admin_headers).json() is None

    def test_deduction_above_balance_rejected(self, client, admin_headers, employee):
        issue_advance(client, admin_headers, employee["id"], "1000")
        response = client.post("/payroll/runs", headers=admin_headers, json={
            "payroll_month": "2024-05",
            "records": [{"employee_id": employee["id"], "days_present": "30", "advance_deduction": "1500"}],
        })
        assert response.status_code == 400
        assert client.get("/payroll/records", headers=admin_headers).json() == []

    def test_duplicate_month_conflict(self, client, admin_headers, employee):
        payload = {
            "payroll_month": "2024-05",
            "records": [{"employee_id": employee["id"], "days_present": "30"}],
        }
        assert client.post("/payroll/runs", headers=admin_headers, json=payload).status_code == 201
        assert client.post("/payroll/runs", headers=admin_headers, json=payload).status_code == 409

    def test_revert_record_restores_balance(self, client, admin_headers, employee):
        issue_advance(client, admin_headers, employee["id"], "10000")
        record = client.post("/payroll/runs", headers=admin_headers, json={
            "payroll_month": "2024-05",
            "records": [{"employee_id": employee["id"], "days_present": "30", "advance_deduction": "3000"}],
        }).json()[0]

        response = client.delete(f"/payroll/records/{record['id']}", headers=admin_headers)
        assert response.status_code == 200

        advance = client.get(f"/payroll/advances/active/{employee['id']}", headers=admin_headers).json()
        assert Decimal(advance["balance_amount"]) == Decimal("10000")
        assert advance["transactions"][-1]["type"] == "reverted"
        assert advance["transactions"][-1]["notes"] == "Reverted from payroll for 2024-05"

    def test_delete_run(self, client, admin_headers, employee):
        issue_advance(client, admin_headers, employee["id"], "10000")
        client.post("/payroll/runs", headers=admin_headers, json={
            "payroll_month": "2024-05",
            "records": [{"employee_id": employee["id"], "days_present": "30", "advance_deduction": "3000"}],
        })

        response = client.delete("/payroll/runs/2024-05", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["deleted"] == 1

        advance = client.get(f"/payroll/advances/active/{employee['id']}", headers=admin_headers).json()
        assert advance["transactions"][-1]["notes"] == "Reverted from deleted payroll for 2024-05"
        assert client.delete("/payroll/runs/2024-05", headers=admin_headers).status_code == 404

    def test_revert_reopens_fully_deducted_advance(self, client, admin_headers, employee):
        issue_advance(client, admin_headers, employee["id"], "2000")
        record = save_run(client, admin_headers, employee, "2000")
        assert client.get("/payroll/advances", headers=admin_headers).json()[0]["status"] == "Fully Deducted"

        client.delete(f"/payroll/records/{record['id']}", headers=admin_headers)

        advance = client.get(f"/payroll/advances/active/{employee['id']}", headers=admin_headers).json()
        assert advance["status"] == "Active"
        assert Decimal(advance["balance_amount"]) == Decimal("2000")

    @pytest.mark.parametrize("stored_id", [None, "missing"])
    def test_revert_falls_back_to_employee_advance(self, client, admin_headers, employee, db_session, stored_id):
        advance = issue_advance(client, admin_headers, employee["id"], "10000")
        record = save_run(client, admin_headers, employee, "3000")

        row = db_session.get(PayrollRecord, UUID(record["id"]))
        row.advance_payment_id = uuid4() if stored_id == "missing" else None
        db_session.commit()

        assert client.delete(f"/payroll/records/{record['id']}", headers=admin_headers).status_code == 200

        restored = client.get(f"/payroll/advances/{advance['id']}", headers=admin_headers).json()
        assert Decimal(restored["balance_amount"]) == Decimal("10000")
        assert restored["transactions"][-1]["type"] == "reverted"

    def test_revert_never_exceeds_advance_amount(self, client, admin_headers, employee, db_session):
        advance = issue_advance(client, admin_headers, employee["id"], "10000")
        record = save_run(client, admin_headers, employee, "3000")

        row = db_session.get(AdvancePayment, UUID(advance["id"]))
        row.balance_amount = Decimal("9000")
        db_session.commit()

        client.delete(f"/payroll/records/{record['id']}", headers=admin_headers)

        restored = client.get(f"/payroll/advances/{advance['id']}", headers=admin_headers).json()
        assert Decimal(restored["balance_amount"]) == Decimal("10000")
        assert Decimal(restored["amount"]) == Decimal("10000")

    def test_status_transitions(self, client, admin_headers, employee):
        record = client.post("/payroll/runs", headers=admin_headers, json={
            "payroll_month": "2024-05",
            "records": [{"employee_id": employee["id"], "days_present": "30"}],
        }).json()[0]

        paid = client.patch(f"/payroll/records/{record['id']}/status", headers=admin_headers, json={"status": "Paid"})
        assert paid.status_code == 200
        assert paid.json()["status"] == "Paid"

        back = client.patch(f"/payroll/records/{record['id']}/status", headers=admin_headers, json={"status": "Processed"})
        assert back.status_code == 400

    def test_summary(self, client, admin_headers, employee):
        client.post("/payroll/runs", headers=admin_headers, json={
            "payroll_month": "2024-05",
            "records": [{"employee_id": employee["id"], "days_present": "30"}],
        })
        summary = client.get("/payroll/summary", headers=admin_headers, params={"month": "2024-05"}).json()
        assert summary["employee_count"] == 1
        assert summary["processed_count"] == 1
        assert Decimal(summary["total_net"]) == Decimal("28000")


class TestLeaves:
    """Solicitudes de permiso"""

    def test_create_and_approve(self, client, admin_headers, employee):
        response = client.post("/payroll/leaves", headers=admin_headers, json={
            "employee_id": employee["id"],
            "leave_type": "casual",
            "start_date": "2024-05-06",
            "end_date": "2024-05-08",
            "reason": "Viaje familiar",
        })
        assert response.status_code == 201
        leave = response.json()
        assert leave["total_days"] == 3
        assert leave["status"] == "pending"

        approved = client.post(f"/payroll/leaves/{leave['id']}/approve", headers=admin_headers)
        assert approved.status_code == 200
        assert approved.json()["status"] == "approved"
        assert approved.json()["approved_by"] is not None

        # solo las pendientes cambian de estado
        assert client.post(f"/payroll/leaves/{leave['id']}/cancel", headers=admin_headers).status_code == 400

    def test_reject_requires_reason(self, client, admin_headers, employee):
        leave = client.post("/payroll/leaves", headers=admin_headers, json={
            "employee_id": employee["id"],
            "leave_type": "sick",
            "start_date": "2024-05-10",
            "end_date": "2024-05-10",
        }).json()

        assert client.post(f"/payroll/leaves/{leave['id']}/reject", headers=admin_headers, json={}).status_code == 422
        rejected = client.post(
            f"/payroll/leaves/{leave['id']}/reject",
            headers=admin_headers,
            json={"rejection_reason": "Cierre de mes"},
        )
        assert rejected.json()["status"] == "rejected"
        assert rejected.json()["rejection_reason"] == "Cierre de mes"

    def test_end_before_start_rejected(self, client, admin_headers, employee):
        response = client.post("/payroll/leaves", headers=admin_headers, json={
            "employee_id": employee["id"],
            "leave_type": "earned",
            "start_date": "2024-05-10",
            "end_date": "2024-05-01",
        })
        assert response.status_code == 422
