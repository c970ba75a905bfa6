"""Background execution of persistence calls.

The timer never waits on the data store. Writes are queued here and run on a
single worker thread, in the order they were submitted, so a later write can
rely on an earlier one having finished.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


class Dispatcher:
    """Serial job queue returning futures."""

    def __init__(self) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="pomoplan-io"
        )

    def submit(
        self, fn: Callable[..., T], *args: Any, description: str = "job"
    ) -> Future[T]:
        """Queue *fn* and return its future. Failures are logged, not raised."""
        future = self._executor.submit(fn, *args)

        def _report(done: Future[T]) -> None:
            exc = done.exception()
            if exc is not None:
                log.error("%s failed: %s", description, exc, exc_info=exc)

        future.add_done_callback(_report)
        return future

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting jobs; by default wait for queued ones to finish."""
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> Dispatcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown(wait=True)
