from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

from .aggregate_service import QueryCancelledError
from .schemas import AggregateRecord

logger = logging.getLogger(__name__)

RunQueryFn = Callable[[str, threading.Event], AggregateRecord]


class AreaQueryRunner:
    """Runs one ZIP query at a time off the caller's thread.

    Submitting a new query supersedes the previous one through its event.
    Whether it was still queued or already running, its future resolves with
    ``QueryCancelledError`` instead of a record.
    """

    def __init__(self, run_query: RunQueryFn):
        self._run_query = run_query
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="area-query")
        self._lock = threading.Lock()
        self._current: tuple[Future[AggregateRecord], threading.Event] | None = None

    def submit(self, zip_code: str) -> Future[AggregateRecord]:
        with self._lock:
            if self._current is not None:
                previous, previous_event = self._current
                if not previous.done():
                    previous_event.set()
                    logger.info("Superseding previous query with ZIP %s", zip_code)

            cancel_event = threading.Event()
            future = self._executor.submit(self._run, zip_code, cancel_event)
            self._current = (future, cancel_event)
            return future

    def _run(self, zip_code: str, cancel_event: threading.Event) -> AggregateRecord:
        if cancel_event.is_set():
            raise QueryCancelledError(f"Query for ZIP {zip_code} was superseded.")
        record = self._run_query(zip_code, cancel_event)
        if cancel_event.is_set():
            raise QueryCancelledError(f"Query for ZIP {zip_code} was superseded.")
        return record

    def shutdown(self, *, cancel_pending: bool = True) -> None:
        with self._lock:
            if cancel_pending and self._current is not None:
                self._current[1].set()
            self._current = None
        self._executor.shutdown(wait=True)
