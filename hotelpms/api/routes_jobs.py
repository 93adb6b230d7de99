from fastapi import APIRouter, Depends, HTTPException
from redis.exceptions import RedisError

from hotelpms.api.deps import require_roles
from hotelpms.core.logging import logger
from hotelpms.models import User, UserRole
from hotelpms.workers import queue

router = APIRouter(prefix="/jobs", tags=["jobs"])
require_manager = require_roles(UserRole.ADMIN, UserRole.MANAGER)

ENQUEUERS = {
    "overdue-sweep": queue.enqueue_overdue_sweep,
    "no-show-sweep": queue.enqueue_no_show_sweep,
}


@router.post("/{job_name}", status_code=202)
def trigger_job(job_name: str, user: User = Depends(require_manager)):
    """Queue a sweep on the worker instead of waiting for its schedule."""
    enqueue = ENQUEUERS.get(job_name)
    if enqueue is None:
        raise HTTPException(status_code=404, detail="Unknown job")
    try:
        job = enqueue()
    except RedisError as e:
        logger.error("Failed to enqueue %s for %s: %s", job_name, user.email, e)
        raise HTTPException(status_code=503, detail="Job queue unavailable")
    return {"job_id": job.id, "job": job_name, "status": "queued"}
