import logging
import time
from contextlib import contextmanager
from typing import Iterator

from app.core.config import settings

logger = logging.getLogger(__name__)


@contextmanager
def log_slow_operation(name: str, threshold_seconds: float | None = None) -> Iterator[None]:
    """Log a warning when the wrapped block runs longer than the threshold."""
    threshold = (
        threshold_seconds
        if threshold_seconds is not None
        else settings.slow_operation_threshold_seconds
    )
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - started
        if elapsed > threshold:
            logger.warning(
                "Slow operation %s took %.3fs (threshold %.3fs)", name, elapsed, threshold
            )
