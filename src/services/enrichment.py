"""
Enrichment Runner

Runs best-effort text enrichment off the request path.

A task's result only reaches on_result when it is not None; task
exceptions are logged here and go no further. Nothing in the
deterministic path ever waits on a task.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class EnrichmentRunner:
    """
    Detached, cancellable background tasks on a small thread pool.

    USAGE:
        runner = EnrichmentRunner()
        future = runner.submit(enhance_tip, tip, on_result=cache_tip)
        future.cancel()  # if the caller no longer cares
    """

    def __init__(self, max_workers: int = 2):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="enrichment")

    def submit(
        self,
        fn: Callable[..., Any],
        *args,
        on_result: Optional[Callable[[Any], None]] = None,
    ) -> Future:
        """Schedule fn(*args); return its Future."""
        return self._executor.submit(self._run, fn, args, on_result)

    def shutdown(self, wait: bool = False):
        """Stop accepting work and cancel anything not yet started."""
        self._executor.shutdown(wait=wait, cancel_futures=True)

    @staticmethod
    def _run(fn, args, on_result):
        try:
            result = fn(*args)
            if result is not None and on_result is not None:
                on_result(result)
            return result
        except Exception as e:
            logger.warning(f"Enrichment task {getattr(fn, '__name__', fn)} failed: {e}")
            return None


class SynchronousRunner(EnrichmentRunner):
    """Runs tasks inline. Used in tests and scripts."""

    def __init__(self):
        pass

    def submit(self, fn, *args, on_result=None) -> Future:
        future: Future = Future()
        future.set_result(self._run(fn, args, on_result))
        return future

    def shutdown(self, wait: bool = False):
        pass
