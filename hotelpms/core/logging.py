import logging
import sys

logger = logging.getLogger("hotelpms")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure the ``hotelpms`` logger hierarchy once per process."""
    root = logging.getLogger("hotelpms")
    root.setLevel(level.upper())
    if not any(getattr(h, "_hotelpms", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._hotelpms = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.propagate = False

    # uvicorn access logs are noisy behind the UI polling
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
