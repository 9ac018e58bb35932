"""Bounded worker pool for independent per-country work.

Per-country economics have no cross-country dependency, so a turn fans
them out to a thread pool and joins the results before trade planning.
The pool caps concurrency and can stagger submissions by a fixed delay,
which is how callers pace work that hits a rate-limited collaborator.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, TypeVar

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


class TaskPool:
    """Run a function over many inputs with limited concurrency.

    Args:
        max_workers: Maximum tasks running at once
        delay: Seconds to wait between task submissions
    """

    def __init__(self, max_workers: int = 4, delay: float = 0.0):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.max_workers = max_workers
        self.delay = max(0.0, delay)

    def map(self, fn: Callable[[T], R], items: Iterable[T]) -> list[R]:
        """Apply ``fn`` to every item and return results in input order.

        The first exception raised by any task propagates once all
        submitted tasks have finished.
        """
        inputs = list(items)
        if not inputs:
            return []

        results: list[R | None] = [None] * len(inputs)
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {}
            for index, item in enumerate(inputs):
                if index and self.delay:
                    time.sleep(self.delay)
                futures[executor.submit(fn, item)] = index

            for future in as_completed(futures):
                results[futures[future]] = future.result()

        logger.debug(f"TaskPool finished {len(inputs)} tasks with {self.max_workers} workers")
        return results
