"""
Per-session serialization of asynchronous calls.

One python-ldap connection must not run two operations at once, so every
session gets its own single-threaded FIFO worker.  Calls submitted to one
worker run strictly in submission order; workers of different sessions run
independently of each other.
"""

import itertools
import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from .typing import Completion

logger = logging.getLogger(__name__)

_counter = itertools.count(1)


class SerialWorker:
    """
    A single-worker task queue.

    Submitted work cannot be cancelled once queued, and there is no timeout at
    this level: a call runs until the library call inside it returns.

    Keyword Args:
        name: prefix for the worker thread's name

    """

    def __init__(self, name: str | None = None) -> None:
        self.name: str = name or f"ldapsession-{next(_counter)}"
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=self.name)
        self._thread: threading.Thread | None = None

    def submit(
        self,
        func: Callable[..., Any],
        *args: Any,
        completion: Completion | None = None,
        **kwargs: Any,
    ) -> Future:
        """
        Queue ``func(*args, **kwargs)``.

        Args:
            func: the blocking call to run
            *args: positional arguments for ``func``

        Keyword Args:
            completion: called as ``completion(result, None)`` on success or
                ``completion(None, error)`` on failure, on the worker thread,
                before the next queued call starts
            **kwargs: keyword arguments for ``func``

        Raises:
            RuntimeError: the worker has been shut down

        Returns:
            A future for ``func``'s return value.

        """
        return self._executor.submit(self._run, func, args, kwargs, completion)

    def _run(
        self,
        func: Callable[..., Any],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
        completion: Completion | None,
    ) -> Any:
        self._thread = threading.current_thread()
        try:
            result = func(*args, **kwargs)
        except Exception as exc:
            self._complete(completion, None, exc)
            raise
        self._complete(completion, result, None)
        return result

    def _complete(
        self, completion: Completion | None, result: Any, error: BaseException | None
    ) -> None:
        if completion is None:
            return
        try:
            completion(result, error)
        except Exception:
            logger.exception("worker.completion.failed worker=%s", self.name)

    def in_worker(self) -> bool:
        """Whether the caller is running on this worker's thread."""
        return self._thread is threading.current_thread()

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work; with ``wait``, finish what is already queued."""
        self._executor.shutdown(wait=wait)
