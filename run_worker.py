#!/usr/bin/env python
"""
Production RQ worker entrypoint.

- Loads environment (.env)
- Imports worker modules so queued jobs can be deserialized
- Starts the periodic sweep scheduler threads

Run with: python run_worker.py
"""

import logging
import platform
import threading
import time

from dotenv import load_dotenv
from redis import Redis
from rq import Queue, SimpleWorker, Worker

load_dotenv(override=True)

import sentry_sdk  # noqa: E402

from hotelpms.core.config import get_settings  # noqa: E402
from hotelpms.core.logging import setup_logging  # noqa: E402
from hotelpms.workers import jobs  # noqa: E402

# Initialize Sentry for worker error monitoring
_settings = get_settings()
if _settings.sentry_dsn:
    sentry_sdk.init(
        dsn=_settings.sentry_dsn,
        send_default_pii=False,
        environment=_settings.environment,
    )

logger = logging.getLogger("hotelpms.worker")


def _start_scheduler(name: str, job, initial_delay: int, interval: int) -> None:
    """Background thread that runs ``job`` every ``interval`` seconds."""
    settings = get_settings()

    def _loop():
        time.sleep(initial_delay)
        while True:
            try:
                stats = job()
                logger.info("[SCHEDULER] %s completed: %s", name, stats)
            except Exception as exc:
                logger.exception("[SCHEDULER] %s error: %s", name, exc)
            time.sleep(interval)

    if settings.environment != "test":
        t = threading.Thread(target=_loop, daemon=True, name=f"{name}-Scheduler")
        t.start()
        logger.info("[SCHEDULER] %s scheduler started (interval=%ss)", name, interval)


def main() -> None:
    setup_logging("INFO")
    settings = get_settings()
    redis_conn = Redis.from_url(settings.redis_url)

    _start_scheduler("Overdue", jobs.run_overdue_sweep, initial_delay=60, interval=3600)
    _start_scheduler("StayCheck", jobs.run_expired_stay_check, initial_delay=120, interval=1800)
    _start_scheduler("NoShow", jobs.run_no_show_sweep, initial_delay=300, interval=21600)

    # Use SimpleWorker on macOS to avoid fork() issues
    queue = Queue("default", connection=redis_conn)
    if platform.system() == "Darwin":
        worker = SimpleWorker([queue], connection=redis_conn)
        logger.info("RQ SimpleWorker started on queue 'default' (macOS no-fork mode)")
    else:
        worker = Worker([queue], connection=redis_conn)
        logger.info("RQ Worker started on queue 'default'")
    worker.work(with_scheduler=True)


if __name__ == "__main__":
    main()
