from datetime import date, datetime
from decimal import Decimal

import pytest

from hotelpms.core.exceptions import ConflictError, DomainError
from hotelpms.core.security import create_access_token
from hotelpms.models import (
    Attendance,
    AttendanceStatus,
    Employee,
    EmployeeStatus,
    LeaveStatus,
    LeaveType,
    PayFrequency,
    PayrollStatus,
    ReviewStatus,
    Transaction,
    TransactionSource,
    UserRole,
)
from hotelpms.services import accounting, attendance, employees, leave, payroll, performance


def test_employee_codes_are_sequential(db_session, employee):
    assert employees.next_employee_code(db_session) == "EMP002"
    second = employees.create_employee(
        db_session,
        first_name="Alan",
        last_name="Turing",
        email="alan@hotel.test",
        department="Kitchen",
        position="Chef",
        hire_date=date(2025, 6, 1),
        base_salary=Decimal("3000"),
    )
    assert second.employee_code == "EMP002"
    with pytest.raises(ConflictError):
        employees.create_employee(
            db_session,
            first_name="Dup",
            last_name="Licate",
            email="ALAN@hotel.test",
            department="Kitchen",
            position="Chef",
            hire_date=date(2025, 6, 1),
            base_salary=Decimal("1"),
        )


def test_terminate_is_soft(db_session, employee):
    employees.terminate_employee(db_session, employee)
    assert employee.status == EmployeeStatus.TERMINATED
    with pytest.raises(DomainError):
        attendance.clock_in(db_session, employee.id, datetime(2026, 3, 2, 8, 0))


def test_clock_in_out_computes_overtime(db_session, employee):
    attendance.clock_in(db_session, employee.id, datetime(2026, 3, 2, 8, 0))
    with pytest.raises(ConflictError):
        attendance.clock_in(db_session, employee.id, datetime(2026, 3, 2, 8, 5))
    record = attendance.clock_out(db_session, employee.id, datetime(2026, 3, 2, 18, 0), break_minutes=30)
    assert record.status == AttendanceStatus.PRESENT
    assert record.total_hours == Decimal("9.50")
    assert record.overtime_hours == Decimal("1.50")


def test_late_arrival_stays_late(db_session, employee):
    record = attendance.clock_in(db_session, employee.id, datetime(2026, 3, 3, 9, 0))
    assert record.status == AttendanceStatus.LATE
    record = attendance.clock_out(db_session, employee.id, datetime(2026, 3, 3, 12, 0))
    assert record.status == AttendanceStatus.LATE
    assert record.total_hours == Decimal("3.00")


def test_short_day_is_half_day(db_session, employee):
    attendance.clock_in(db_session, employee.id, datetime(2026, 3, 4, 8, 0))
    record = attendance.clock_out(db_session, employee.id, datetime(2026, 3, 4, 11, 0))
    assert record.status == AttendanceStatus.HALF_DAY


def test_clock_out_without_clock_in(db_session, employee):
    with pytest.raises(DomainError):
        attendance.clock_out(db_session, employee.id, datetime(2026, 3, 5, 17, 0))


def test_leave_approval_marks_days_and_cancel_clears_them(db_session, employee, make_user):
    hr = make_user(UserRole.HR)
    request = leave.apply(
        db_session,
        employee_id=employee.id,
        leave_type=LeaveType.ANNUAL,
        start_date=date(2026, 3, 9),
        end_date=date(2026, 3, 11),
        reason="Family visit",
    )
    assert request.total_days == 3
    with pytest.raises(ConflictError):
        leave.apply(
            db_session,
            employee_id=employee.id,
            leave_type=LeaveType.SICK,
            start_date=date(2026, 3, 11),
            end_date=date(2026, 3, 12),
            reason="Overlap",
        )

    leave.approve(db_session, request, hr.id, comments="Enjoy")
    assert request.status == LeaveStatus.APPROVED
    on_leave = db_session.query(Attendance).filter(Attendance.status == AttendanceStatus.ON_LEAVE).count()
    assert on_leave == 3

    leave.cancel(db_session, request)
    assert request.status == LeaveStatus.CANCELLED
    assert db_session.query(Attendance).count() == 0


def test_rejected_leave_cannot_be_approved(db_session, employee, make_user):
    hr = make_user(UserRole.HR)
    request = leave.apply(
        db_session,
        employee_id=employee.id,
        leave_type=LeaveType.EMERGENCY,
        start_date=date(2026, 3, 16),
        end_date=date(2026, 3, 16),
        reason="Emergency",
    )
    leave.reject(db_session, request, hr.id)
    with pytest.raises(DomainError):
        leave.approve(db_session, request, hr.id)


@pytest.fixture()
def paid_employee(db_session, employee):
    return employees.update_employee(
        db_session,
        employee,
        allowances=[{"allowance_type": "housing", "name": "Housing", "amount": Decimal("300")}],
        deductions=[{"deduction_type": "pension", "name": "Pension", "amount": Decimal("10"), "is_percentage": True}],
    )


def _march(db):
    return payroll.create_period(
        db, name="March 2026", start_date=date(2026, 3, 1), end_date=date(2026, 3, 31), pay_date=date(2026, 3, 31)
    )


def test_payroll_gross_and_net(db_session, paid_employee):
    period = payroll.run_payroll(db_session, _march(db_session))
    entry = period.entries[0]
    assert entry.working_days == 22
    assert entry.actual_days == 22
    assert entry.base_pay == Decimal("2200.00")
    assert entry.gross_pay == Decimal("2500.00")
    assert entry.total_deductions == Decimal("250.00")
    assert entry.net_pay == Decimal("2250.00")
    assert period.status == PayrollStatus.PROCESSING
    assert period.total_net == Decimal("2250.00")


def test_absence_and_overtime_change_pay(db_session, paid_employee):
    attendance.create_record(
        db_session, employee_id=paid_employee.id, day=date(2026, 3, 2), status=AttendanceStatus.ABSENT
    )
    attendance.clock_in(db_session, paid_employee.id, datetime(2026, 3, 3, 8, 0))
    attendance.clock_out(db_session, paid_employee.id, datetime(2026, 3, 3, 18, 0), break_minutes=30)

    entry = payroll.run_payroll(db_session, _march(db_session)).entries[0]
    assert entry.actual_days == 21
    assert entry.base_pay == Decimal("2100.00")
    overtime = [a for a in entry.breakdown["allowances"] if a["type"] == "overtime"]
    assert overtime[0]["amount"] == 28.13


def test_payroll_pay_posts_to_ledger(chart, paid_employee, make_user):
    manager = make_user(UserRole.MANAGER)
    period = payroll.run_payroll(chart, _march(chart))
    with pytest.raises(DomainError):
        payroll.mark_paid(chart, period)
    payroll.approve_payroll(chart, period, manager.id)
    payroll.mark_paid(chart, period, user_id=manager.id)

    assert period.status == PayrollStatus.PAID
    assert period.transaction_id is not None
    assert accounting.get_account_by_code(chart, "5001").balance == Decimal("2500.00")
    assert accounting.get_account_by_code(chart, "1002").balance == Decimal("-2250.00")
    assert accounting.get_account_by_code(chart, "2002").balance == Decimal("250.00")
    assert period.entries[0].status.value == "paid"
    slip = payroll.payslip(period.entries[0])
    assert slip["employee"]["employee_code"] == "EMP001"
    assert slip["net_pay"] == Decimal("2250.00")
    with pytest.raises(DomainError):
        payroll.delete_period(chart, period)


def test_payroll_transaction_source(chart, paid_employee, make_user):
    manager = make_user(UserRole.MANAGER)
    period = payroll.run_payroll(chart, _march(chart))
    payroll.approve_payroll(chart, period, manager.id)
    payroll.mark_paid(chart, period, payment_method="cash")
    txn = chart.get(Transaction, period.transaction_id)
    assert txn.source == TransactionSource.PAYROLL
    assert accounting.get_account_by_code(chart, "1001").balance == Decimal("-2250.00")


def test_unpaid_leave_is_prorated(db_session, paid_employee, make_user):
    hr = make_user(UserRole.HR)
    request = leave.apply(
        db_session,
        employee_id=paid_employee.id,
        leave_type=LeaveType.UNPAID,
        start_date=date(2026, 3, 7),
        end_date=date(2026, 3, 15),
        reason="Travel",
    )
    leave.approve(db_session, request, hr.id)

    entry = payroll.run_payroll(db_session, _march(db_session)).entries[0]
    # 9 calendar days, 5 of them weekdays
    assert entry.actual_days == 17
    assert entry.base_pay == Decimal("1700.00")
    assert entry.gross_pay == Decimal("2000.00")


def test_pay_frequency_converts_to_monthly():
    def salary(amount, frequency):
        return payroll.monthly_salary(Employee(base_salary=Decimal(amount), pay_frequency=frequency))

    assert salary("2200", PayFrequency.MONTHLY) == Decimal("2200.00")
    assert salary("26400", PayFrequency.ANNUALLY) == Decimal("2200.00")
    assert salary("1200", PayFrequency.BI_WEEKLY) == Decimal("2600.00")
    assert salary("600", PayFrequency.WEEKLY) == Decimal("2600.00")


def test_deductions_never_exceed_gross(chart, employee, make_user):
    employees.update_employee(
        chart,
        employee,
        deductions=[
            {"deduction_type": "loan", "name": "Staff loan", "amount": Decimal("2000")},
            {"deduction_type": "advance", "name": "Salary advance", "amount": Decimal("500")},
        ],
    )
    manager = make_user(UserRole.MANAGER)
    period = payroll.run_payroll(chart, _march(chart))
    entry = period.entries[0]
    assert entry.gross_pay == Decimal("2200.00")
    assert entry.total_deductions == Decimal("2200.00")
    assert entry.net_pay == Decimal("0.00")
    assert [line["amount"] for line in entry.breakdown["deductions"]] == [2000.0, 200.0]

    payroll.approve_payroll(chart, period, manager.id)
    payroll.mark_paid(chart, period)
    assert period.status == PayrollStatus.PAID
    assert period.transaction_id is not None
    assert accounting.get_account_by_code(chart, "5001").balance == Decimal("2200.00")
    assert accounting.get_account_by_code(chart, "2002").balance == Decimal("2200.00")
    assert accounting.get_account_by_code(chart, "1002").balance == Decimal("0.00")


def test_payroll_with_no_pay_can_still_be_settled(chart, employee, make_user):
    employees.update_employee(
        chart,
        employee,
        deductions=[{"deduction_type": "loan", "name": "Staff loan", "amount": Decimal("500")}],
    )
    hr = make_user(UserRole.HR)
    request = leave.apply(
        chart,
        employee_id=employee.id,
        leave_type=LeaveType.UNPAID,
        start_date=date(2026, 3, 1),
        end_date=date(2026, 3, 31),
        reason="Sabbatical",
    )
    leave.approve(chart, request, hr.id)

    period = payroll.run_payroll(chart, _march(chart))
    entry = period.entries[0]
    assert entry.gross_pay == Decimal("0.00")
    assert entry.total_deductions == Decimal("0.00")
    assert entry.net_pay == Decimal("0.00")

    payroll.approve_payroll(chart, period, hr.id)
    payroll.mark_paid(chart, period)
    assert period.status == PayrollStatus.PAID
    assert period.transaction_id is None


def test_review_rating_and_workflow(db_session, employee):
    review = performance.create_review(
        db_session,
        employee_id=employee.id,
        period_start=date(2026, 1, 1),
        period_end=date(2026, 6, 30),
        goals=[
            {"description": "Upsell rate", "weight": Decimal("60"), "rating": 4},
            {"description": "Guest feedback", "weight": Decimal("40"), "rating": 3},
        ],
    )
    assert review.overall_rating == Decimal("3.60")

    with pytest.raises(DomainError):
        performance.advance(db_session, review, ReviewStatus.APPROVED)
    performance.advance(db_session, review, ReviewStatus.SUBMITTED)
    assert review.submitted_at is not None
    with pytest.raises(DomainError):
        performance.update_review(db_session, review, comments="Too late")


def test_review_needs_goals_before_submit(db_session, employee):
    review = performance.create_review(
        db_session, employee_id=employee.id, period_start=date(2026, 1, 1), period_end=date(2026, 6, 30)
    )
    assert review.overall_rating is None
    with pytest.raises(DomainError):
        performance.advance(db_session, review, ReviewStatus.SUBMITTED)


def test_staff_clock_in_only_for_themselves(client, db_session, employee, make_user, auth_headers):
    user = make_user(UserRole.RECEPTIONIST, email="grace.user@hotel.test")
    employee.user_id = user.id
    db_session.commit()
    headers = {"Authorization": f"Bearer {create_access_token(user.id, user.email, user.role.value)}"}
    resp = client.post("/hr/attendance/clock-in", json={"at": "2026-03-02T08:05:00"}, headers=headers)
    assert resp.status_code == 201, resp.text
    assert resp.json()["employee_id"] == employee.id
    assert resp.json()["status"] == "present"

    other = client.post(
        "/hr/attendance/clock-in", json={"employee_id": employee.id + 1}, headers=headers
    )
    assert other.status_code == 403

    unlinked = client.post("/hr/attendance/clock-in", json={}, headers=auth_headers(UserRole.HOUSEKEEPER))
    assert unlinked.status_code == 404


def test_employee_api_masks_bank_account(client, auth_headers):
    resp = client.post(
        "/hr/employees",
        json={
            "first_name": "Katherine",
            "last_name": "Johnson",
            "email": "Katherine@Hotel.example.com",
            "department": "Finance",
            "position": "Accountant",
            "hire_date": "2025-02-01",
            "base_salary": "4100.00",
            "bank_account_number": "1234567890",
        },
        headers=auth_headers(UserRole.HR),
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["employee_code"] == "EMP001"
    assert body["email"] == "katherine@hotel.example.com"
    assert body["bank_account_number"] == "******7890"

    denied = client.get("/hr/employees", headers=auth_headers(UserRole.RECEPTIONIST))
    assert denied.status_code == 403
