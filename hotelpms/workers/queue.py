import logging

import redis
from rq import Queue

from hotelpms.core.config import get_settings

settings = get_settings()
logger = logging.getLogger("hotelpms.queue")

redis_conn = redis.from_url(settings.redis_url, socket_connect_timeout=1)


def get_queue(name: str = "default") -> Queue:
    return Queue(name, connection=redis_conn)


def enqueue_overdue_sweep():
    from hotelpms.workers.jobs import run_overdue_sweep

    job = get_queue().enqueue(run_overdue_sweep)
    logger.info("Overdue sweep enqueued as job %s", job.id)
    return job


def enqueue_no_show_sweep():
    from hotelpms.workers.jobs import run_no_show_sweep

    job = get_queue().enqueue(run_no_show_sweep)
    logger.info("No-show sweep enqueued as job %s", job.id)
    return job
