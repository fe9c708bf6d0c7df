"""Bounded worker pool for running many independent probes."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def _guarded(fn: Callable[[T], R], item: T, default: R) -> R:
    try:
        return fn(item)
    except Exception:
        log.debug("Pool task failed for %r", item, exc_info=True)
        return default


class BoundedPool:
    """
    Run a queue of independent tasks with a fixed maximum concurrency.

    Tasks start in submission order; completion order is unconstrained.
    A task that raises yields ``default`` instead of failing the batch.
    """

    def __init__(self, max_workers: int = 8):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.max_workers = max_workers

    def map(self, fn: Callable[[T], R], items: Iterable[T], default: R = None) -> list[R]:
        """
        Apply fn to every item.

        Args:
            fn: Function to call for each item
            items: Inputs, consumed eagerly
            default: Value used for items whose call raised

        Returns:
            Results in the same order as items
        """
        queue = list(items)
        if not queue:
            return []

        workers = min(self.max_workers, len(queue))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="shed-pool") as executor:
            futures = [executor.submit(_guarded, fn, item, default) for item in queue]
            return [future.result() for future in futures]


def bounded_map(
    fn: Callable[[T], R],
    items: Iterable[T],
    max_workers: int = 8,
    default: R = None,
) -> list[R]:
    """Shortcut for ``BoundedPool(max_workers).map(fn, items, default)``."""
    return BoundedPool(max_workers).map(fn, items, default)
