"""
=============================================================================
THREAD POOL
=============================================================================

A pool of worker threads, one job per accepted connection. A worker runs
the whole exchange on it (read, look up, write, close) and then waits for
the next one.

=============================================================================
HOW IT FITS
=============================================================================

    ┌──────────────┐   submit()   ┌─────────────────┐   get()   ┌──────────┐
    │ Accept loop  │ ───────────► │    Job queue    │ ────────► │ Worker 0 │
    │              │              │                 │ ────────► │ Worker 1 │
    └──────────────┘              └─────────────────┘ ────────► │   ...    │
                                                                 └──────────┘

Every submitted job is matched with a waiting worker before it is queued:

    - an idle worker is reserved for it, or
    - a new worker is started for it.

So a job never waits behind busy workers. A client that never finishes
its request ties up its own worker and nothing else.

    - min_workers threads start with the pool and are kept.
    - Extra workers exit after idle_timeout seconds without a job.
    - max_workers=None (the default) means no ceiling. With a ceiling,
      submit() returns False once every worker is busy and the ceiling
      is reached; the caller rejects the job.

=============================================================================
SHUTDOWN
=============================================================================

    1. Refuse new jobs
    2. Optionally wait for queued and running jobs to finish
    3. Put one None ("poison pill") per worker on the queue
    4. Join the workers

=============================================================================
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional


logger = logging.getLogger(__name__)


@dataclass
class Job:
    """One queued call: func(*args, **kwargs)."""
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    queued_at: float = field(default_factory=time.monotonic)

    def run(self):
        self.func(*self.args, **self.kwargs)


class Worker(threading.Thread):
    """
    Pulls jobs off the pool's queue until it gets the poison pill or the
    pool retires it for being idle.
    """

    def __init__(self, pool: "ThreadPool", number: int):
        # daemon: a client that never sends its request must not keep the
        # process alive after shutdown gave up on joining
        super().__init__(name=f"staticserver-worker-{number}", daemon=True)

        self.pool = pool
        self.number = number

        self.busy = False
        self.handled = 0
        self.failed = 0

    def run(self):
        logger.debug(f"{self.name} up")

        while True:
            try:
                job = self.pool._jobs.get(timeout=self.pool.idle_timeout)
            except queue.Empty:
                if self.pool._retire(self):
                    break
                continue

            if job is None:
                self.pool._jobs.task_done()
                break

            try:
                self._run_job(job)
            finally:
                self.pool._release(self)
                self.pool._jobs.task_done()

        logger.debug(f"{self.name} exiting after {self.handled} jobs")

    def _run_job(self, job: Job):
        self.busy = True
        waited = time.monotonic() - job.queued_at

        try:
            job.run()
            self.handled += 1
        except Exception as e:
            self.failed += 1
            logger.exception(f"{self.name}: job failed after {waited:.3f}s in queue: {e}")
        finally:
            self.busy = False


class ThreadPool:
    """
    Pool of connection workers.

    Usage:
        pool = ThreadPool(min_workers=4)
        pool.start()
        if not pool.submit(server.handle, args=(conn,)):
            conn.close()  # only with a max_workers ceiling
        ...
        pool.shutdown(wait=True)
    """

    def __init__(
        self,
        min_workers: int = 4,
        max_workers: Optional[int] = None,
        idle_timeout: float = 5.0,
    ):
        """
        Args:
            min_workers: Threads started by start() and never retired.
            max_workers: Ceiling on threads, i.e. on connections served at
                         once. None for no ceiling.
            idle_timeout: Seconds an extra worker waits for a job before
                          exiting.
        """
        self.min_workers = min_workers
        self.max_workers = max_workers
        self.idle_timeout = idle_timeout

        self._jobs: "queue.Queue[Optional[Job]]" = queue.Queue()
        self._workers: List[Worker] = []
        self._lock = threading.Lock()  # Guards _workers, _idle and _spawned

        # Workers waiting for a job that no submitted job has claimed yet.
        # Invariant: _idle + queued jobs == workers waiting on the queue.
        self._idle = 0
        self._spawned = 0
        self._accepting = False

    def start(self):
        with self._lock:
            if self._accepting:
                return
            for _ in range(self.min_workers):
                self._spawn_locked()
            self._idle = self.min_workers
            self._accepting = True

        ceiling = self.max_workers if self.max_workers is not None else "unlimited"
        logger.info(f"Thread pool started: {self.min_workers} workers, max {ceiling}")

    def _spawn_locked(self) -> Worker:
        """Start one more worker. Caller holds self._lock."""
        worker = Worker(self, self._spawned)
        self._spawned += 1
        self._workers.append(worker)
        worker.start()
        return worker

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[dict] = None,
    ) -> bool:
        """
        Hand func(*args, **kwargs) to a worker.

        Returns:
            True once a worker is committed to the job. False if every
            worker is busy and max_workers is reached; nothing is queued.

        Raises:
            RuntimeError: If the pool is not running.
        """
        with self._lock:
            if not self._accepting:
                raise RuntimeError("Thread pool is not accepting jobs")

            if self._idle > 0:
                self._idle -= 1
            elif self.max_workers is None or len(self._workers) < self.max_workers:
                logger.debug(f"All {len(self._workers)} workers busy, adding one")
                self._spawn_locked()
            else:
                return False

            self._jobs.put(Job(func, args, kwargs or {}))

        return True

    def _release(self, worker: Worker):
        """A worker finished its job and is waiting again."""
        with self._lock:
            self._idle += 1

    def _retire(self, worker: Worker) -> bool:
        """
        Called when a worker timed out waiting. Returns True if it should
        exit, which happens only for workers above min_workers.
        """
        with self._lock:
            if not self._accepting:
                return False  # The poison pill is on its way
            if self._idle == 0 or len(self._workers) <= self.min_workers:
                return False
            self._idle -= 1
            self._workers.remove(worker)
            return True

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop the pool. Safe to call on a pool that never started.

        Args:
            wait: Let queued and running jobs finish first.
            timeout: Upper bound on that wait, None for no limit.
        """
        with self._lock:
            if not self._accepting:
                return
            self._accepting = False
            workers = self._workers
            self._workers = []

        logger.info("Stopping thread pool...")

        if wait:
            deadline = None if timeout is None else time.monotonic() + timeout
            while self._jobs.unfinished_tasks:
                if deadline is not None and time.monotonic() > deadline:
                    logger.warning(f"{self._jobs.unfinished_tasks} jobs still running, not waiting")
                    break
                time.sleep(0.05)

        for _ in workers:
            self._jobs.put(None)

        for worker in workers:
            worker.join(timeout=2.0)

        logger.info("Thread pool stopped")

    @property
    def worker_count(self) -> int:
        with self._lock:
            return len(self._workers)

    @property
    def busy_workers(self) -> int:
        with self._lock:
            return sum(1 for w in self._workers if w.busy)

    @property
    def idle_workers(self) -> int:
        """Workers not claimed by any submitted job."""
        with self._lock:
            return self._idle
