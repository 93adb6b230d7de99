"""Periodic front-office and accounting sweeps run by the worker."""

import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from hotelpms.core.db import SessionLocal
from hotelpms.models import Reservation, ReservationStatus
from hotelpms.services import billing, tax

logger = logging.getLogger("hotelpms.jobs")

NO_SHOW_GRACE_DAYS = 1


def run_overdue_sweep(today: Optional[date] = None) -> dict:
    """
    Flip pending bills and open tax records past their due date to overdue.

    Returns:
        dict with stats: {"bills_overdue": int, "tax_records_overdue": int, "errors": int}
    """
    db: Session = SessionLocal()
    stats = {"bills_overdue": 0, "tax_records_overdue": 0, "errors": 0}
    try:
        stats["bills_overdue"] = billing.mark_overdue(db, today)
        stats["tax_records_overdue"] = tax.refresh_overdue(db, today)
    except Exception as e:
        db.rollback()
        logger.error("[OVERDUE-SWEEP] Fatal error: %s", e, exc_info=True)
        stats["errors"] += 1
    finally:
        db.close()
    return stats


def run_expired_stay_check(today: Optional[date] = None) -> dict:
    """
    Report checked-in reservations whose checkout date has passed.

    Checkout settles billing and housekeeping, so these are only logged for the
    front desk, never closed automatically.
    """
    db: Session = SessionLocal()
    stats = {"expired_stays": 0, "errors": 0}
    try:
        today = today or date.today()
        expired = (
            db.query(Reservation)
            .filter(
                Reservation.status == ReservationStatus.CHECKED_IN,
                Reservation.check_out_date < today,
            )
            .all()
        )
        for reservation in expired:
            logger.warning(
                "[STAY-CHECK] Reservation %s (room %s) still checked in; checkout was %s",
                reservation.id,
                reservation.room.number,
                reservation.check_out_date,
            )
        stats["expired_stays"] = len(expired)
    except Exception as e:
        logger.error("[STAY-CHECK] Fatal error: %s", e, exc_info=True)
        stats["errors"] += 1
    finally:
        db.close()
    return stats


def run_no_show_sweep(today: Optional[date] = None) -> dict:
    """Cancel confirmed reservations whose check-in date passed more than a day ago."""
    db: Session = SessionLocal()
    stats = {"no_shows_cancelled": 0, "errors": 0}
    try:
        today = today or date.today()
        cutoff = today - timedelta(days=NO_SHOW_GRACE_DAYS)
        no_shows = (
            db.query(Reservation)
            .filter(
                Reservation.status == ReservationStatus.CONFIRMED,
                Reservation.check_in_date < cutoff,
            )
            .all()
        )
        for reservation in no_shows:
            logger.info(
                "[NO-SHOW] Cancelling reservation %s (check-in %s)",
                reservation.id,
                reservation.check_in_date,
            )
            reservation.status = ReservationStatus.CANCELLED
            db.add(reservation)
            stats["no_shows_cancelled"] += 1
        if no_shows:
            db.commit()
    except Exception as e:
        db.rollback()
        logger.error("[NO-SHOW] Fatal error: %s", e, exc_info=True)
        stats["errors"] += 1
    finally:
        db.close()
    return stats
