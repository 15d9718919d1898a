"""Server lifecycle: draining flag and the set of live connection workers."""

import threading
import time

from fileshare.domain.correlation_id import component_logger

LIFECYCLE_LOGGER = component_logger("lifecycle")


class ServerLifecycle:
    """Tracks connection workers so shutdown can wait for them to finish."""

    def __init__(self) -> None:
        self._workers_changed = threading.Condition()
        self._draining_event = threading.Event()
        self._workers: set[threading.Thread] = set()

    def should_stop(self) -> bool:
        """Check if the accept loop should stop accepting new connections."""
        return self._draining_event.is_set()

    def is_draining(self) -> bool:
        return self._draining_event.is_set()

    def register_worker(self, thread: threading.Thread) -> None:
        with self._workers_changed:
            self._workers.add(thread)

    def cleanup_worker(self, thread: threading.Thread) -> None:
        with self._workers_changed:
            self._workers.discard(thread)
            self._workers_changed.notify_all()

    def active_worker_count(self) -> int:
        with self._workers_changed:
            return len(self._workers)

    def begin_draining(self) -> None:
        """Signal the server to begin graceful shutdown."""
        self._draining_event.set()
        LIFECYCLE_LOGGER.info(
            "Beginning graceful shutdown", extra={"event": "draining_started"}
        )

    def wait_for_workers(self, timeout: float) -> bool:
        """Block until every worker has finished or ``timeout`` seconds pass."""
        deadline = time.monotonic() + timeout
        with self._workers_changed:
            while True:
                self._workers = {w for w in self._workers if w.is_alive()}
                if not self._workers:
                    return True
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    LIFECYCLE_LOGGER.warning(
                        "Shutdown timeout exceeded",
                        extra={
                            "event": "shutdown_timeout",
                            "remaining_workers": len(self._workers),
                        },
                    )
                    return False
                self._workers_changed.wait(timeout=min(0.1, remaining))
