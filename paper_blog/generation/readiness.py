from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from .errors import IndexingTimeout
from .models import IndexStatus
from .providers import ContentIndex

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[IndexStatus], None]


class ReadinessPoller:
    """
    Blocks until the content index reports no files in progress.

    Fixed interval between attempts, no backoff. Runs until the index is
    ready or `max_attempts` is used up.
    """

    def __init__(
        self,
        index: ContentIndex,
        max_attempts: int = 120,
        interval_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.index = index
        self.max_attempts = max_attempts
        self.interval_seconds = interval_seconds
        self._sleep = sleep

    def wait_until_ready(self, index_id: str, on_progress: Optional[ProgressCallback] = None) -> IndexStatus:
        for attempt in range(1, self.max_attempts + 1):
            status = self.index.status(index_id)
            if status.in_progress == 0:
                logger.info("Content index %s ready (%s files indexed)", index_id, status.completed)
                return status

            logger.info(
                "Content index %s: %s files in progress (attempt %s/%s)",
                index_id,
                status.in_progress,
                attempt,
                self.max_attempts,
            )
            if on_progress is not None:
                on_progress(status)
            if attempt < self.max_attempts:
                self._sleep(self.interval_seconds)

        waited = self.max_attempts * self.interval_seconds
        raise IndexingTimeout(f"Content index {index_id} indexing timed out after {waited:g} seconds")
