"""
=============================================================================
THREAD POOL FOR CONCURRENT CONNECTIONS
=============================================================================

Each accepted connection is a task: one worker runs its whole lifecycle
(read → parse → route → respond → close). A slow client ties up one
worker, not the accept loop.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         ThreadPool                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   accept loop                                                        │
    │       │ submit(process, args=(conn,), block=False)                   │
    │       ▼                                                              │
    │   ┌──────────────────────────────┐                                   │
    │   │ Task Queue (bounded)         │ ── full → submit() returns False  │
    │   │ [conn] [conn] [conn] ...     │          (server answers 503)     │
    │   └──────────────┬───────────────┘                                   │
    │                  │ get()                                             │
    │     ┌────────────┼────────────┐                                      │
    │     ▼            ▼            ▼                                      │
    │  Worker 0     Worker 1  ...  Worker N     (min_workers at start,     │
    │                                            grows to max_workers)     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
SHUTDOWN: POISON PILLS
=============================================================================

shutdown() optionally waits for the queue to drain, then puts one None
per worker. A worker that gets None exits its loop.

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Callable, Optional, Any
from dataclasses import dataclass, field
from enum import Enum


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """
    A deferred call: "run func(*args, **kwargs) later".

    Attributes:
        func: The function to execute.
        args: Positional arguments.
        kwargs: Keyword arguments.
        submitted_at: Submission time, for the queue-wait debug log.
    """
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """
    Worker thread pulling tasks off the shared queue.

        loop:
            task = queue.get()        (wakes every idle_timeout to check
            None?  → exit              the shutdown flag)
            run task, log failures
            queue.task_done()
    """

    def __init__(
        self,
        task_queue: "queue.Queue[Optional[Task]]",
        worker_id: int,
        idle_timeout: float = 1.0,
    ):
        super().__init__(name=f"minihttp-worker-{worker_id}", daemon=True)

        self.task_queue = task_queue
        self.worker_id = worker_id
        self.idle_timeout = idle_timeout

        self.state = WorkerState.IDLE
        self._shutdown = threading.Event()

        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while not self._shutdown.is_set():
            try:
                task = self.task_queue.get(timeout=self.idle_timeout)
            except queue.Empty:
                continue

            try:
                if task is None:
                    break
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        """
        Run one task. An exception is logged with its traceback and
        counted; it never kills the worker.
        """
        self.state = WorkerState.BUSY
        start_time = time.time()
        logger.debug(
            f"Worker {self.worker_id} picked up task after "
            f"{start_time - task.submitted_at:.3f}s in queue"
        )

        try:
            task.func(*task.args, **task.kwargs)
            self.tasks_completed += 1
        except Exception as e:
            elapsed = time.time() - start_time
            logger.exception(
                f"Worker {self.worker_id} task failed after {elapsed:.3f}s: {e}"
            )
            self.tasks_failed += 1
        finally:
            self.state = WorkerState.IDLE

    def shutdown(self):
        """Signal the worker to stop."""
        self._shutdown.set()


class ThreadPool:
    """
    Bounded pool of worker threads.

    Usage:
        pool = ThreadPool(min_workers=4, max_workers=16, queue_size=100)
        pool.start()

        if not pool.submit(handle, args=(conn,), block=False):
            ...  # queue full

        pool.shutdown(wait=True)
    """

    def __init__(
        self,
        min_workers: int = 4,
        max_workers: int = 16,
        queue_size: int = 100,
        idle_timeout: float = 1.0,
    ):
        """
        Args:
            min_workers: Threads created by start().
            max_workers: Upper bound reached by scaling up under load.
            queue_size: Capacity of the task queue; a full queue makes
                        non-blocking submits fail.
            idle_timeout: How often an idle worker re-checks for shutdown.
        """
        if min_workers < 1 or max_workers < min_workers:
            raise ValueError(
                f"Invalid worker bounds: min={min_workers}, max={max_workers}"
            )

        self.min_workers = min_workers
        self.max_workers = max_workers
        self.max_queue_size = queue_size
        self.idle_timeout = idle_timeout

        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)

        self._workers: list[Worker] = []
        self._lock = threading.Lock()  # Protects _workers
        self._started = False
        self._shutdown = False
        self._next_worker_id = 0

    def start(self):
        """Create the initial min_workers threads. Idempotent."""
        if self._started:
            return

        logger.info(f"Starting thread pool with {self.min_workers} workers")

        with self._lock:
            for _ in range(self.min_workers):
                self._add_worker_locked()

        self._started = True
        self._shutdown = False

    def _add_worker_locked(self) -> Worker:
        """Start one more worker. Caller holds self._lock."""
        worker = Worker(
            task_queue=self._task_queue,
            worker_id=self._next_worker_id,
            idle_timeout=self.idle_timeout,
        )
        self._next_worker_id += 1
        self._workers.append(worker)
        worker.start()
        return worker

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[dict] = None,
        block: bool = True,
        queue_timeout: Optional[float] = None,
    ) -> bool:
        """
        Queue a task.

        Args:
            func: The function to execute.
            args: Positional arguments for func.
            kwargs: Keyword arguments for func.
            block: Wait for queue space when full.
            queue_timeout: Upper bound on that wait.

        Returns:
            True if queued, False if the queue was full.

        Raises:
            RuntimeError: Pool not started or shutting down.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")

        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        task = Task(func=func, args=args, kwargs=kwargs or {})

        try:
            self._task_queue.put(task, block=block, timeout=queue_timeout)
        except queue.Full:
            return False

        self._maybe_scale_up()
        return True

    def _maybe_scale_up(self):
        """Add a worker when every worker is busy and tasks are waiting."""
        with self._lock:
            if len(self._workers) >= self.max_workers:
                return

            busy = sum(1 for w in self._workers if w.state == WorkerState.BUSY)
            if busy == len(self._workers) and self._task_queue.qsize() > 0:
                logger.debug(
                    f"Scaling up: {len(self._workers)} -> {len(self._workers) + 1} workers"
                )
                self._add_worker_locked()

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop the pool.

        Args:
            wait: Let queued tasks finish first.
            timeout: Upper bound on that wait, in seconds.
        """
        if not self._started:
            return

        logger.info("Shutting down thread pool...")
        self._shutdown = True

        if wait:
            deadline = time.time() + timeout if timeout else None
            while self._task_queue.unfinished_tasks:
                if deadline is not None and time.time() > deadline:
                    logger.warning("Shutdown timeout, forcing stop")
                    break
                time.sleep(0.05)

        with self._lock:
            workers = list(self._workers)
            self._workers.clear()

        for _ in workers:
            try:
                self._task_queue.put(None, block=False)
            except queue.Full:
                pass  # Workers also stop on the shutdown flag

        for worker in workers:
            worker.shutdown()
            worker.join(timeout=2.0)

        self._started = False
        logger.info("Thread pool shutdown complete")

    # =========================================================================
    # STATISTICS
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._started and not self._shutdown

    @property
    def worker_count(self) -> int:
        return len(self._workers)

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def pending(self) -> int:
        """Tasks waiting in the queue."""
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        return {
            "workers": {
                "total": len(self._workers),
                "busy": self.busy_workers,
            },
            "tasks": {
                "queued": self.pending,
                "completed": sum(w.tasks_completed for w in self._workers),
                "failed": sum(w.tasks_failed for w in self._workers),
            },
        }
