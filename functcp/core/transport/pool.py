import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor

from functcp.core.transport.worker import Worker


class WorkerPool:
    """
    Fixed-size pool of threads executing Worker loops.

    The pool admits at most `limit` workers at a time, counting both the
    ones running on a thread and the ones waiting for a free thread.
    `submit()` refuses a worker once the limit is reached; the caller is
    expected to drop the corresponding connection. This caps memory and
    file descriptors held by queued connections when clients connect
    faster than the pool can serve them.

    `shutdown()` stops admitting new work. Workers already admitted keep
    running until their connection is done; nothing is cancelled.
    """

    def __init__(self, size: int, limit: int, name: str = "functcp-worker") -> None:
        if size < 1:
            raise ValueError(f"Pool size must be a positive integer, got {size}")
        if limit < size:
            raise ValueError(f"Admission limit ({limit}) must be at least the pool size ({size})")

        self.size = size
        self.limit = limit
        self._executor = ThreadPoolExecutor(max_workers=size, thread_name_prefix=name)
        self._admitted = 0
        self._lock = threading.Lock()
        self._stopped = False
        self._logger = logging.getLogger("core.transport.pool")

    @property
    def admitted(self) -> int:
        """Number of workers queued or running."""
        return self._admitted

    @property
    def stopped(self) -> bool:
        return self._stopped

    def submit(self, worker: Worker) -> bool:
        """
        Schedule a worker if the admission limit allows it.

        Return False, without scheduling anything, when the pool is full
        or has been shut down.
        """
        with self._lock:
            if self._stopped or self._admitted >= self.limit:
                return False
            self._admitted += 1

        try:
            future = self._executor.submit(worker.run)
        except RuntimeError:
            # Executor shut down between the check and the submit
            self._release()
            return False

        future.add_done_callback(self.on_done)
        return True

    def on_done(self, future: Future) -> None:
        """
        Callback executed when a worker completes.

        Worker.run() handles its own failures; anything that still
        escapes is logged here so it is never lost silently.
        """
        if not future.cancelled() and (ex := future.exception()):
            self._logger.error(f"Unhandled error in worker: {ex}", exc_info=ex)

        self._release()

    def shutdown(self, wait: bool = False) -> None:
        with self._lock:
            self._stopped = True

        self._executor.shutdown(wait=wait)

    def _release(self) -> None:
        with self._lock:
            self._admitted -= 1
