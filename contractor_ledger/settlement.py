"""
settlement.py - Deferred settlement of pending withdrawals

Settlement of a withdrawal is modeled as a deferred work item with a due
time, not as a free-running timer:

1. SettlementTask: Immutable "complete withdrawal X at time T"
2. SettlementScheduler: Heap-ordered queue of tasks; get_due() hands out the
   tasks whose time has come, cancel() drops a task before it fires
3. SettlementWorker: Optional background thread that drains the scheduler
   on the system clock

Tests never need the worker. They advance a ManualClock and drain the
scheduler themselves. Completion in the store is idempotent, so a task that
fires late or twice does no harm.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from threading import Event, Lock, Thread
from typing import Callable, Dict, List, Optional, TYPE_CHECKING
import heapq
import logging

if TYPE_CHECKING:
    from .withdrawals import WithdrawalProcessor

logger = logging.getLogger("contractor_ledger.settlement")


# ============================================================================
# TASK DATA STRUCTURE
# ============================================================================

@dataclass(frozen=True, slots=True)
class SettlementTask:
    """
    Immutable scheduled completion of one withdrawal.

    Sorting: by due_time, then withdrawal_id.
    """
    due_time: datetime
    withdrawal_id: str

    def __lt__(self, other: 'SettlementTask') -> bool:
        if self.due_time != other.due_time:
            return self.due_time < other.due_time
        return self.withdrawal_id < other.withdrawal_id

    @property
    def task_id(self) -> str:
        return settlement_task_id(self.withdrawal_id)


def settlement_task_id(withdrawal_id: str) -> str:
    """Deterministic task ID; one settlement per withdrawal."""
    return f"settle:{withdrawal_id}"


# Handler type: task -> True if the withdrawal was completed by this call
SettlementHandler = Callable[[SettlementTask], bool]


# ============================================================================
# SCHEDULER
# ============================================================================

class SettlementScheduler:
    """
    Priority queue of settlement tasks.

    At most one task is queued per withdrawal; scheduling again replaces it.
    Only queued tasks are tracked, so memory is bounded by the number of
    withdrawals still waiting to settle.

    Safe to use from several threads: withdrawals are admitted concurrently,
    and a SettlementWorker may be draining the queue at the same time.
    """

    def __init__(self):
        self._heap: List[SettlementTask] = []
        # task_id -> queued task
        self._queued: Dict[str, SettlementTask] = {}
        self._lock = Lock()

    def _remove(self, task_id: str) -> None:
        del self._queued[task_id]
        self._heap = [t for t in self._heap if t.task_id != task_id]
        heapq.heapify(self._heap)

    def schedule(self, withdrawal_id: str, due_time: datetime) -> str:
        """
        Add a settlement task to the queue, replacing any queued task for
        the same withdrawal.

        Returns the task_id.
        """
        task = SettlementTask(due_time=due_time, withdrawal_id=withdrawal_id)
        with self._lock:
            if task.task_id in self._queued:
                self._remove(task.task_id)
            self._queued[task.task_id] = task
            heapq.heappush(self._heap, task)
        return task.task_id

    def cancel(self, task_id: str) -> bool:
        """
        Drop a task that has not fired yet.

        Returns False if the task is unknown or has already fired.
        """
        with self._lock:
            if task_id not in self._queued:
                return False
            self._remove(task_id)
            return True

    def get_due(self, as_of: datetime) -> List[SettlementTask]:
        """
        Get and remove tasks due for execution.

        Returns tasks with due_time <= as_of, in execution order.
        """
        due = []
        with self._lock:
            while self._heap and self._heap[0].due_time <= as_of:
                task = heapq.heappop(self._heap)
                del self._queued[task.task_id]
                due.append(task)
        return due

    def requeue(self, tasks: List[SettlementTask]) -> None:
        """
        Put tasks taken by get_due() back on the queue.

        A task whose withdrawal was rescheduled in the meantime is dropped in
        favour of the newer one.
        """
        with self._lock:
            for task in tasks:
                if task.task_id in self._queued:
                    continue
                self._queued[task.task_id] = task
                heapq.heappush(self._heap, task)

    def step(self, as_of: datetime, handler: SettlementHandler) -> List[str]:
        """
        Run every due task through handler.

        Returns the withdrawal ids the handler reported as completed.
        If the handler raises, the failing task and every task not yet run
        go back on the queue for the next step, and the exception propagates.
        """
        completed = []
        due = self.get_due(as_of)
        for position, task in enumerate(due):
            try:
                done = handler(task)
            except Exception:
                self.requeue(due[position:])
                raise
            if done:
                completed.append(task.withdrawal_id)
        return completed

    def pending_count(self) -> int:
        """Number of tasks still waiting."""
        with self._lock:
            return len(self._heap)

    def peek_next(self) -> Optional[SettlementTask]:
        """Peek at the next task without removing it."""
        with self._lock:
            return self._heap[0] if self._heap else None


# ============================================================================
# BACKGROUND WORKER
# ============================================================================

class SettlementWorker:
    """
    Daemon thread that completes due withdrawals on the processor's clock.

    Example:
        with SettlementWorker(processor, poll_interval=0.25):
            serve_requests()
    """

    def __init__(self, processor: 'WithdrawalProcessor', poll_interval: float = 0.25):
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {poll_interval}")
        self.processor = processor
        self.poll_interval = poll_interval
        self._stop = Event()
        self._thread: Optional[Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = Thread(target=self._run, name="settlement-worker", daemon=True)
        self._thread.start()
        logger.info("settlement worker started (poll every %.2fs)", self.poll_interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("settlement worker stopped")

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.processor.process_settlements()
            except Exception:
                # The failed task was requeued by step() and is retried next pass
                logger.exception("settlement pass failed")
            self._stop.wait(self.poll_interval)

    def __enter__(self) -> 'SettlementWorker':
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
