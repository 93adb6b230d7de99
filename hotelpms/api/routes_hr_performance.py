from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, constr
from sqlalchemy.orm import Session

from hotelpms.api.deps import HR_ROLES, Pagination, get_or_404, require_roles
from hotelpms.core.db import get_db
from hotelpms.models import PerformanceReview, ReviewStatus, User
from hotelpms.services import performance as performance_service

router = APIRouter(prefix="/hr/performance", tags=["hr"])
require_hr = require_roles(*HR_ROLES)


class GoalIn(BaseModel):
    description: constr(strip_whitespace=True, min_length=1)
    target_date: Optional[date] = None
    weight: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    achievement: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comments: Optional[str] = None


class ReviewCreate(BaseModel):
    employee_id: int
    period_start: date
    period_end: date
    strengths: Optional[str] = None
    areas_for_improvement: Optional[str] = None
    development_plan: Optional[str] = None
    comments: Optional[str] = None
    goals: List[GoalIn] = []


class ReviewUpdate(BaseModel):
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    strengths: Optional[str] = None
    areas_for_improvement: Optional[str] = None
    development_plan: Optional[str] = None
    comments: Optional[str] = None
    goals: Optional[List[GoalIn]] = None


class StatusChange(BaseModel):
    status: ReviewStatus


def serialize_review(review: PerformanceReview) -> dict:
    return {
        "id": review.id,
        "employee_id": review.employee_id,
        "employee_name": review.employee.full_name,
        "reviewer": review.reviewer.email if review.reviewer else None,
        "period_start": review.period_start,
        "period_end": review.period_end,
        "overall_rating": review.overall_rating,
        "strengths": review.strengths,
        "areas_for_improvement": review.areas_for_improvement,
        "development_plan": review.development_plan,
        "comments": review.comments,
        "status": review.status.value,
        "submitted_at": review.submitted_at.isoformat() if review.submitted_at else None,
        "reviewed_at": review.reviewed_at.isoformat() if review.reviewed_at else None,
        "approved_at": review.approved_at.isoformat() if review.approved_at else None,
        "goals": [
            {
                "id": g.id,
                "description": g.description,
                "target_date": g.target_date,
                "weight": g.weight,
                "achievement": g.achievement,
                "rating": g.rating,
                "comments": g.comments,
            }
            for g in review.goals
        ],
    }


@router.get("")
def list_reviews(
    employee_id: Optional[int] = None,
    status: Optional[ReviewStatus] = None,
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    _user: User = Depends(require_hr),
):
    query = db.query(PerformanceReview)
    if employee_id:
        query = query.filter(PerformanceReview.employee_id == employee_id)
    if status:
        query = query.filter(PerformanceReview.status == status)
    reviews, meta = pagination.apply(
        query.order_by(PerformanceReview.period_end.desc(), PerformanceReview.id.desc())
    )
    return {"reviews": [serialize_review(r) for r in reviews], "pagination": meta}


@router.get("/{review_id}")
def get_review(review_id: int, db: Session = Depends(get_db), _user: User = Depends(require_hr)):
    return serialize_review(get_or_404(db, PerformanceReview, review_id, "Review"))


@router.post("", status_code=201)
def create_review(payload: ReviewCreate, db: Session = Depends(get_db), user: User = Depends(require_hr)):
    review = performance_service.create_review(db, reviewer_id=user.id, **payload.model_dump())
    return serialize_review(review)


@router.put("/{review_id}")
def update_review(
    review_id: int,
    payload: ReviewUpdate,
    db: Session = Depends(get_db),
    _user: User = Depends(require_hr),
):
    review = get_or_404(db, PerformanceReview, review_id, "Review")
    review = performance_service.update_review(db, review, **payload.model_dump(exclude_unset=True))
    return serialize_review(review)


@router.post("/{review_id}/status")
def change_status(
    review_id: int,
    payload: StatusChange,
    db: Session = Depends(get_db),
    _user: User = Depends(require_hr),
):
    review = get_or_404(db, PerformanceReview, review_id, "Review")
    return serialize_review(performance_service.advance(db, review, payload.status))


@router.delete("/{review_id}")
def delete_review(review_id: int, db: Session = Depends(get_db), _user: User = Depends(require_hr)):
    review = get_or_404(db, PerformanceReview, review_id, "Review")
    performance_service.delete_review(db, review)
    return {"success": True}
