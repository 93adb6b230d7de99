import logging
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from hotelpms.core.exceptions import DomainError, NotFoundError
from hotelpms.models import Employee, PerformanceGoal, PerformanceReview, ReviewStatus
from hotelpms.utils.dates import utcnow
from hotelpms.utils.money import ZERO, to_decimal

logger = logging.getLogger("hotelpms.performance")

NEXT_STATUS = {
    ReviewStatus.DRAFT: ReviewStatus.SUBMITTED,
    ReviewStatus.SUBMITTED: ReviewStatus.REVIEWED,
    ReviewStatus.REVIEWED: ReviewStatus.APPROVED,
}
RATING = Decimal("0.01")


def overall_rating(goals: List[PerformanceGoal]) -> Optional[Decimal]:
    """Weighted mean of goal ratings; plain mean when no weights are given."""
    rated = [g for g in goals if g.rating is not None]
    if not rated:
        return None
    total_weight = sum((to_decimal(g.weight) for g in rated), ZERO)
    if total_weight > 0:
        score = sum((to_decimal(g.rating) * to_decimal(g.weight) for g in rated), ZERO) / total_weight
    else:
        score = sum((to_decimal(g.rating) for g in rated), ZERO) / len(rated)
    return score.quantize(RATING)


def _goals(rows: List[Dict]) -> List[PerformanceGoal]:
    goals = []
    for row in rows:
        rating = row.get("rating")
        if rating is not None and not 1 <= rating <= 5:
            raise DomainError("Goal ratings must be between 1 and 5")
        goals.append(
            PerformanceGoal(
                description=row["description"],
                target_date=row.get("target_date"),
                weight=to_decimal(row.get("weight") or 0),
                achievement=to_decimal(row.get("achievement") or 0),
                rating=rating,
                comments=row.get("comments"),
            )
        )
    return goals


def create_review(
    db: Session,
    *,
    employee_id: int,
    goals: Optional[List[Dict]] = None,
    reviewer_id: Optional[int] = None,
    **fields,
) -> PerformanceReview:
    if not db.query(Employee.id).filter(Employee.id == employee_id).first():
        raise NotFoundError("Employee not found")
    if fields["period_end"] < fields["period_start"]:
        raise DomainError("Review period end cannot be before start")
    review = PerformanceReview(
        employee_id=employee_id, reviewer_id=reviewer_id, status=ReviewStatus.DRAFT, **fields
    )
    review.goals = _goals(goals or [])
    review.overall_rating = overall_rating(review.goals)
    db.add(review)
    db.commit()
    db.refresh(review)
    logger.info("Performance review %s created for employee %s", review.id, employee_id)
    return review


def update_review(
    db: Session,
    review: PerformanceReview,
    *,
    goals: Optional[List[Dict]] = None,
    **changes,
) -> PerformanceReview:
    if review.status != ReviewStatus.DRAFT:
        raise DomainError("Only draft reviews can be edited")
    for field, value in changes.items():
        setattr(review, field, value)
    if review.period_end < review.period_start:
        raise DomainError("Review period end cannot be before start")
    if goals is not None:
        review.goals = _goals(goals)
    review.overall_rating = overall_rating(review.goals)
    db.add(review)
    db.commit()
    db.refresh(review)
    return review


def advance(db: Session, review: PerformanceReview, target: ReviewStatus) -> PerformanceReview:
    """Move one step along draft -> submitted -> reviewed -> approved."""
    expected = NEXT_STATUS.get(review.status)
    if expected is None or target != expected:
        raise DomainError(f"Cannot move review from {review.status.value} to {target.value}")
    if target == ReviewStatus.SUBMITTED and not review.goals:
        raise DomainError("Add at least one goal before submitting")
    now = utcnow()
    if target == ReviewStatus.SUBMITTED:
        review.submitted_at = now
    elif target == ReviewStatus.REVIEWED:
        review.reviewed_at = now
    else:
        review.approved_at = now
    review.status = target
    db.add(review)
    db.commit()
    db.refresh(review)
    return review


def delete_review(db: Session, review: PerformanceReview) -> None:
    if review.status != ReviewStatus.DRAFT:
        raise DomainError("Only draft reviews can be deleted")
    db.delete(review)
    db.commit()
