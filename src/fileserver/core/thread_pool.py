"""
=============================================================================
THREAD POOL
=============================================================================

Optional concurrent dispatch: each accepted connection becomes a task
that one of a fixed number of worker threads picks up.

=============================================================================
WHY THIS IS SAFE WITHOUT LOCKS
=============================================================================

A request needs the Server Root (read-only after startup) and its own
connection. Nothing else is shared between requests, so workers never
coordinate beyond taking tasks from the queue:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         ThreadPool                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   accept thread                                                      │
    │        │ submit(handle_connection, conn)                             │
    │        ▼                                                             │
    │   ┌──────────────────────────────┐                                   │
    │   │ queue.Queue(maxsize)         │  full → submit() returns False    │
    │   └──────────────┬───────────────┘                                   │
    │        ┌─────────┼─────────┐                                         │
    │        ▼         ▼         ▼                                         │
    │    Worker-0  Worker-1  Worker-N   each: get() → run → task_done()   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Shutdown uses "poison pills": one None per worker. A worker that takes
None from the queue exits its loop.

=============================================================================
"""

import time
import queue
import logging
import threading
from enum import Enum
from dataclasses import dataclass, field
from typing import Callable, Optional, Any


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    """Worker thread states, for monitoring."""
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """
    A deferred function call.

    Attributes:
        func: The function to execute.
        args: Positional arguments for the function.
        submitted_at: Time the task was queued.
    """
    func: Callable[..., Any]
    args: tuple = ()
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """
    Worker thread that processes tasks from the queue.

    An exception raised by a task is logged and the worker carries on
    with the next task.
    """

    def __init__(self, task_queue: queue.Queue, worker_id: int):
        # daemon=True: a stuck client cannot keep the process alive on exit
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.task_queue = task_queue
        self.worker_id = worker_id
        self.state = WorkerState.IDLE

        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            task = self.task_queue.get()
            try:
                if task is None:
                    break
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        self.state = WorkerState.BUSY
        start_time = time.time()

        try:
            task.func(*task.args)
            self.tasks_completed += 1
            logger.debug(
                f"Worker {self.worker_id} completed task in {time.time() - start_time:.3f}s "
                f"(queued {start_time - task.submitted_at:.3f}s)"
            )
        except Exception as e:
            self.tasks_failed += 1
            logger.exception(f"Worker {self.worker_id} task failed: {e}")
        finally:
            self.state = WorkerState.IDLE


class ThreadPool:
    """
    Fixed-size thread pool.

    Usage:
        pool = ThreadPool(workers=4)
        pool.start()
        if not pool.submit(handle_connection, args=(conn,)):
            ...  # queue full, reject
        pool.shutdown(wait=True)
    """

    def __init__(self, workers: int = 4, queue_size: int = 100):
        """
        Args:
            workers: Number of worker threads.
            queue_size: Maximum number of tasks waiting for a worker.
        """
        self.workers = workers
        self.queue_size = queue_size

        self._task_queue: queue.Queue = queue.Queue(maxsize=queue_size)
        self._workers: list = []
        self._started = False
        self._shutdown = False

    def start(self):
        """Create and start the worker threads."""
        if self._started:
            return

        logger.info(f"Starting thread pool with {self.workers} workers")

        for worker_id in range(self.workers):
            worker = Worker(self._task_queue, worker_id)
            self._workers.append(worker)
            worker.start()

        self._started = True
        self._shutdown = False

    def submit(self, func: Callable[..., Any], args: tuple = ()) -> bool:
        """
        Queue a task without blocking.

        Returns:
            True if the task was queued, False if the queue is full.

        Raises:
            RuntimeError: If the pool is not running.
        """
        if not self._started or self._shutdown:
            raise RuntimeError("Thread pool is not running")

        try:
            self._task_queue.put_nowait(Task(func=func, args=args))
            return True
        except queue.Full:
            return False

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop the pool.

        Args:
            wait: Let queued tasks finish before the workers exit.
                  If False, tasks still in the queue are dropped.
            timeout: Maximum seconds to wait for each worker to exit.
        """
        if not self._started:
            return

        logger.info("Shutting down thread pool...")
        self._shutdown = True

        if not wait:
            while True:
                try:
                    self._task_queue.get_nowait()
                    self._task_queue.task_done()
                except queue.Empty:
                    break

        # Poison pills go behind any remaining tasks
        for _ in self._workers:
            self._task_queue.put(None)

        for worker in self._workers:
            worker.join(timeout=timeout)

        self._workers.clear()
        self._started = False
        logger.info("Thread pool shutdown complete")

    @property
    def busy_workers(self) -> int:
        """Get count of busy workers."""
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def queue_size_now(self) -> int:
        """Get current task queue size."""
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        """Worker and task counts, for logging."""
        return {
            "workers": len(self._workers),
            "busy": self.busy_workers,
            "queued": self._task_queue.qsize(),
            "completed": sum(w.tasks_completed for w in self._workers),
            "failed": sum(w.tasks_failed for w in self._workers),
        }
