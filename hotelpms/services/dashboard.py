import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Dict, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from hotelpms.core.exceptions import DomainError
from hotelpms.models import (
    Account,
    AccountType,
    Bill,
    BillStatus,
    HousekeepingStatus,
    HousekeepingTask,
    Reservation,
    ReservationStatus,
    Room,
    RoomStatus,
    Transaction,
    TransactionEntry,
    TransactionStatus,
)
from hotelpms.services.reports import cash_account_filter
from hotelpms.utils.dates import month_bounds, quarter_bounds, year_bounds
from hotelpms.utils.money import ZERO, money_sum, percent_change, quantize, ratio_percent, to_decimal

logger = logging.getLogger("hotelpms.dashboard")

PERIODS = ("monthly", "quarterly", "yearly")
RECENT_DAYS = 7
RECENT_LIMIT = 10

Period = Tuple[date, date]


def period_bounds(period: str, year: int, month: int) -> Tuple[Period, Period]:
    """Current and previous period for a reference year/month."""
    if period == "monthly":
        current = month_bounds(year, month)
        prev_year, prev_month = (year - 1, 12) if month == 1 else (year, month - 1)
        return current, month_bounds(prev_year, prev_month)
    if period == "quarterly":
        quarter = (month - 1) // 3 + 1
        current = quarter_bounds(year, quarter)
        previous = quarter_bounds(year - 1, 4) if quarter == 1 else quarter_bounds(year, quarter - 1)
        return current, previous
    if period == "yearly":
        return year_bounds(year), year_bounds(year - 1)
    raise DomainError(f"Unknown period '{period}' (expected one of {', '.join(PERIODS)})")


def _side_total(db: Session, account_type: AccountType, side, start: date, end: date) -> Decimal:
    total = (
        db.query(func.coalesce(func.sum(side), 0))
        .select_from(TransactionEntry)
        .join(Transaction, TransactionEntry.transaction_id == Transaction.id)
        .join(Account, TransactionEntry.account_id == Account.id)
        .filter(
            Transaction.status == TransactionStatus.POSTED,
            Transaction.date >= start,
            Transaction.date <= end,
            Account.account_type == account_type,
        )
        .scalar()
    )
    return quantize(total)


def revenue_between(db: Session, start: date, end: date) -> Decimal:
    return _side_total(db, AccountType.REVENUE, TransactionEntry.credit, start, end)


def expenses_between(db: Session, start: date, end: date) -> Decimal:
    return _side_total(db, AccountType.EXPENSE, TransactionEntry.debit, start, end)


def cash_position(db: Session) -> Decimal:
    balances = (
        db.query(Account.balance)
        .filter(cash_account_filter(), Account.is_active == True)  # noqa: E712
        .all()
    )
    return money_sum(b for (b,) in balances)


def recent_activity(db: Session, today: Optional[date] = None):
    today = today or date.today()
    return (
        db.query(Transaction)
        .filter(
            Transaction.status == TransactionStatus.POSTED,
            Transaction.date >= today - timedelta(days=RECENT_DAYS),
        )
        .order_by(Transaction.date.desc(), Transaction.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )


def accounting_dashboard(
    db: Session,
    period: str = "monthly",
    year: Optional[int] = None,
    month: Optional[int] = None,
) -> Dict:
    today = date.today()
    year = year or today.year
    month = month or today.month
    if not 1 <= month <= 12:
        raise DomainError("Month must be between 1 and 12")
    (cur_start, cur_end), (prev_start, prev_end) = period_bounds(period, year, month)

    revenue = revenue_between(db, cur_start, cur_end)
    expenses = expenses_between(db, cur_start, cur_end)
    prev_revenue = revenue_between(db, prev_start, prev_end)
    prev_expenses = expenses_between(db, prev_start, prev_end)
    profit = quantize(revenue - expenses)
    prev_profit = quantize(prev_revenue - prev_expenses)

    return {
        "period": {
            "type": period,
            "start": cur_start.isoformat(),
            "end": cur_end.isoformat(),
            "previous_start": prev_start.isoformat(),
            "previous_end": prev_end.isoformat(),
        },
        "revenue": {
            "current": revenue,
            "previous": prev_revenue,
            "growth": percent_change(revenue, prev_revenue),
        },
        "expenses": {
            "current": expenses,
            "previous": prev_expenses,
            "growth": percent_change(expenses, prev_expenses),
        },
        "profit": {
            "current": profit,
            "previous": prev_profit,
            "growth": percent_change(profit, prev_profit),
            "margin": ratio_percent(profit, revenue),
        },
        "cash_position": cash_position(db),
        "recent_activity": [
            {
                "id": t.id,
                "transaction_number": t.transaction_number,
                "date": t.date.isoformat(),
                "description": t.description,
                "total_amount": t.total_amount,
                "source": t.source.value,
            }
            for t in recent_activity(db, today)
        ],
    }


def hotel_dashboard(db: Session, today: Optional[date] = None) -> Dict:
    """Front-office KPIs for the landing page."""
    today = today or date.today()
    total_rooms = db.query(func.count(Room.id)).scalar() or 0
    status_counts = dict(
        db.query(Room.status, func.count(Room.id)).group_by(Room.status).all()
    )
    occupied = status_counts.get(RoomStatus.OCCUPIED, 0)
    available = status_counts.get(RoomStatus.AVAILABLE, 0)

    bookings_today = (
        db.query(func.count(Reservation.id))
        .filter(Reservation.created_at >= _day_start(today), Reservation.created_at < _day_start(today + timedelta(days=1)))
        .scalar()
    )
    check_ins_today = (
        db.query(func.count(Reservation.id))
        .filter(
            Reservation.check_in_date == today,
            Reservation.status.in_((ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN)),
        )
        .scalar()
    )
    check_outs_today = (
        db.query(func.count(Reservation.id))
        .filter(
            Reservation.check_out_date == today,
            Reservation.status.in_((ReservationStatus.CHECKED_IN, ReservationStatus.CHECKED_OUT)),
        )
        .scalar()
    )
    revenue_today = (
        db.query(func.coalesce(func.sum(Bill.total), 0))
        .filter(
            Bill.status == BillStatus.PAID,
            Bill.paid_at >= _day_start(today),
            Bill.paid_at < _day_start(today + timedelta(days=1)),
        )
        .scalar()
    )

    in_house = db.query(Reservation).filter(Reservation.status == ReservationStatus.CHECKED_IN).all()
    nightly_rates = [
        to_decimal(r.total_amount) / max(1, (r.check_out_date - r.check_in_date).days)
        for r in in_house
    ]
    adr = quantize(sum(nightly_rates, ZERO) / len(nightly_rates)) if nightly_rates else ZERO

    pending_tasks = (
        db.query(func.count(HousekeepingTask.id))
        .filter(HousekeepingTask.status == HousekeepingStatus.PENDING)
        .scalar()
    )

    return {
        "date": today.isoformat(),
        "total_rooms": total_rooms,
        "available_rooms": available,
        "occupied_rooms": occupied,
        "rooms_by_status": {s.value: status_counts.get(s, 0) for s in RoomStatus},
        "occupancy_rate": ratio_percent(occupied, total_rooms),
        "todays_bookings": bookings_today or 0,
        "check_ins_today": check_ins_today or 0,
        "check_outs_today": check_outs_today or 0,
        "revenue_today": quantize(revenue_today),
        "average_daily_rate": adr,
        "pending_housekeeping_tasks": pending_tasks or 0,
    }


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)
