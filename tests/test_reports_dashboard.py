from datetime import date
from decimal import Decimal

import pytest

from hotelpms.core.exceptions import DomainError
from hotelpms.models import HousekeepingStatus, HousekeepingTaskType, ReportType, UserRole
from hotelpms.services import accounting, dashboard, housekeeping, reports
from hotelpms.services.accounting import LedgerLine


def _post(db, day, debit_code, credit_code, amount, description="Entry"):
    return accounting.create_transaction(
        db,
        txn_date=day,
        description=description,
        lines=[
            LedgerLine(accounting.get_account_by_code(db, debit_code).id, debit=Decimal(amount)),
            LedgerLine(accounting.get_account_by_code(db, credit_code).id, credit=Decimal(amount)),
        ],
        post=True,
    )


@pytest.fixture()
def ledger(chart):
    _post(chart, date(2026, 1, 2), "1002", "3001", "10000", "Owner capital")
    _post(chart, date(2026, 3, 5), "1001", "4001", "1200", "Room sales")
    _post(chart, date(2026, 3, 9), "5002", "1002", "300", "Electricity")
    _post(chart, date(2026, 2, 14), "1001", "4002", "400", "Restaurant")
    return chart


def test_profit_and_loss(ledger):
    data, summary = reports.build_report(ledger, ReportType.PROFIT_LOSS, date(2026, 3, 1), date(2026, 3, 31))
    assert summary["total_revenue"] == 1200.0
    assert summary["total_expenses"] == 300.0
    assert summary["net_profit"] == 900.0
    assert summary["profit_margin"] == 75.0
    assert [row["code"] for row in data["revenue"]] == ["4001"]


def test_balance_sheet_balances(ledger):
    _, summary = reports.build_report(ledger, ReportType.BALANCE_SHEET, date(2026, 1, 1), date(2026, 3, 31))
    assert summary["total_assets"] == 11300.0
    assert summary["total_equity"] == 10000.0
    assert summary["current_earnings"] == 1300.0
    assert summary["balanced"] is True


def test_trial_balance_is_balanced(ledger):
    _, summary = reports.build_report(ledger, ReportType.TRIAL_BALANCE, date(2026, 1, 1), date(2026, 3, 31))
    assert summary["is_balanced"] is True
    assert summary["total_debit"] == summary["total_credit"]


def test_cash_flow_opening_and_closing(ledger):
    _, summary = reports.build_report(ledger, ReportType.CASH_FLOW, date(2026, 3, 1), date(2026, 3, 31))
    assert summary["opening_cash"] == 10400.0
    assert summary["total_inflow"] == 1200.0
    assert summary["total_outflow"] == 300.0
    assert summary["closing_cash"] == 11300.0


def test_report_period_must_be_ordered(ledger):
    with pytest.raises(DomainError):
        reports.build_report(ledger, ReportType.PROFIT_LOSS, date(2026, 4, 1), date(2026, 3, 1))


def test_generate_report_snapshot(ledger, make_user):
    user = make_user(UserRole.ACCOUNTANT)
    report = reports.generate_report(
        ledger,
        report_type=ReportType.REVENUE_ANALYSIS,
        period_start=date(2026, 1, 1),
        period_end=date(2026, 3, 31),
        generated_by_id=user.id,
    )
    assert report.name == "Revenue Analysis 2026-01-01 - 2026-03-31"
    assert report.summary["total_revenue"] == 1600.0
    assert report.data["by_category"][0]["category"] == "Uncategorized"


def test_period_bounds_wrap_years():
    (cur, prev) = dashboard.period_bounds("quarterly", 2026, 2)
    assert cur == (date(2026, 1, 1), date(2026, 3, 31))
    assert prev == (date(2025, 10, 1), date(2025, 12, 31))
    (cur, prev) = dashboard.period_bounds("monthly", 2026, 1)
    assert prev == (date(2025, 12, 1), date(2025, 12, 31))
    with pytest.raises(DomainError):
        dashboard.period_bounds("weekly", 2026, 1)


def test_accounting_dashboard_growth(ledger):
    data = dashboard.accounting_dashboard(ledger, period="monthly", year=2026, month=3)
    assert data["revenue"]["current"] == Decimal("1200.00")
    assert data["revenue"]["previous"] == Decimal("400.00")
    assert data["revenue"]["growth"] == 200.0
    assert data["expenses"]["growth"] == 0.0
    assert data["profit"]["current"] == Decimal("900.00")
    assert data["cash_position"] == Decimal("11300.00")


def test_hotel_dashboard_counts_rooms(db_session, room):
    data = dashboard.hotel_dashboard(db_session)
    assert data["total_rooms"] == 1
    assert data["available_rooms"] == 1
    assert data["occupancy_rate"] == 0.0


def test_hotel_dashboard_counts_only_pending_tasks(db_session, room):
    housekeeping.create_task(db_session, room_id=room.id, task_type=HousekeepingTaskType.INSPECTION)
    started = housekeeping.create_task(db_session, room_id=room.id, task_type=HousekeepingTaskType.CLEANING)
    housekeeping.update_task(db_session, started, status=HousekeepingStatus.IN_PROGRESS)
    done = housekeeping.create_task(db_session, room_id=room.id, task_type=HousekeepingTaskType.INSPECTION)
    housekeeping.update_task(db_session, done, status=HousekeepingStatus.COMPLETED)

    assert dashboard.hotel_dashboard(db_session)["pending_housekeeping_tasks"] == 1


def test_reports_api(client, ledger, auth_headers):
    headers = auth_headers(UserRole.ACCOUNTANT)
    preview = client.get(
        "/reports/preview/profit_loss",
        params={"start_date": "2026-03-01", "end_date": "2026-03-31"},
        headers=headers,
    )
    assert preview.status_code == 200, preview.text
    assert preview.json()["summary"]["net_profit"] == 900.0

    created = client.post(
        "/reports",
        json={"report_type": "trial_balance", "period_start": "2026-01-01", "period_end": "2026-03-31"},
        headers=headers,
    )
    assert created.status_code == 201, created.text

    listed = client.get("/reports", headers=headers)
    assert listed.json()["pagination"]["total_count"] == 1

    dash = client.get("/dashboard/accounting", params={"year": 2026, "month": 3}, headers=headers)
    assert dash.status_code == 200
    assert dash.json()["revenue"]["current"] == 1200.0

    denied = client.get("/dashboard/accounting", headers=auth_headers(UserRole.HOUSEKEEPER))
    assert denied.status_code == 403
