"""
Save Worker
===========

Background thread writing map snapshots to the backend.

Threading:
    - submit() runs on the owner thread and only enqueues an immutable snapshot
    - The worker thread performs the PUTs and resolves the returned Future
    - No retries; failures are logged and set on the Future
"""

import queue
import threading
from concurrent.futures import Future
from typing import Optional, Tuple

from pathcal_zone import MapSnapshot
from ..logging import StructuredLogger, LogEvent
from .repository import MapRepository, PersistenceError


class SaveWorker:
    """
    Serializes saves of one map on a dedicated thread.

    Example:
        >>> worker = SaveWorker(repository, logger)
        >>> worker.start()
        >>> future = worker.submit(model.snapshot())
        >>> future.result(timeout=10)
        >>> worker.stop()
    """

    def __init__(
        self,
        repository: MapRepository,
        logger: StructuredLogger,
        max_pending: int = 8
    ):
        self.repository = repository
        self.logger = logger
        self._queue: "queue.Queue[Optional[Tuple[MapSnapshot, Future]]]" = queue.Queue(maxsize=max_pending)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="pathcal-save", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Finish queued saves, then stop the thread."""
        if self._thread is None:
            return
        self._stop_event.set()
        self._queue.put(None)
        self._thread.join(timeout=timeout)
        self._thread = None

    def submit(self, snapshot: MapSnapshot) -> "Future[None]":
        """
        Queue a snapshot for saving.

        Raises:
            RuntimeError: If the worker is not running
            queue.Full: If too many saves are pending
        """
        if self._thread is None or self._stop_event.is_set():
            raise RuntimeError("SaveWorker is not running")

        future: "Future[None]" = Future()
        self._queue.put_nowait((snapshot, future))
        self.logger.info(
            event=LogEvent.PERSISTENCE_SAVE_QUEUED,
            message="Snapshot queued for saving",
            metadata={'map_id': self.repository.map_id, 'pending': self._queue.qsize()}
        )
        return future

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is None:
                break
            snapshot, future = item
            if not future.set_running_or_notify_cancel():
                continue
            try:
                self.repository.save_snapshot(snapshot)
            except PersistenceError as e:
                self.logger.error(
                    event=LogEvent.PERSISTENCE_SAVE_FAILED,
                    message="Snapshot not saved",
                    exc_info=e,
                    metadata={'map_id': self.repository.map_id}
                )
                future.set_exception(e)
            except Exception as e:
                # Keep the thread alive; the caller sees the error on the future
                self.logger.error(
                    event=LogEvent.PERSISTENCE_SAVE_FAILED,
                    message="Unexpected error while saving snapshot",
                    exc_info=e,
                    metadata={'map_id': self.repository.map_id}
                )
                future.set_exception(e)
            else:
                future.set_result(None)
