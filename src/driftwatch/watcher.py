# src/driftwatch/watcher.py: Git drift polling scheduler.
# This module keeps an arbitrary number of repository pairs under watch, each
# on its own polling interval. A single background thread owns the only
# pending deadline, always that of the pair due soonest; when it expires the
# pair is drift-checked, the result is reported, and the pair is rescheduled.
# Checks never overlap, and a failing pair never affects the others.

import copy
import heapq
import itertools
import queue
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple

from .conditions import ConditionReporter
from .drift import DriftDetector
from .util.errors import DriftwatchError, WatcherError
from .util.log import get_logger, pattern_context

logger = get_logger(__name__)

_UPDATE = object()
_STOP = object()

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class RepositoryPair:
    """One watched origin/target relationship, keyed by its pattern."""

    def __init__(self, name: str, namespace: str, interval: timedelta, next_check: datetime):
        self.name = name
        self.namespace = namespace
        self.interval = interval
        self.last_check: Optional[datetime] = None
        self.next_check = next_check

    @property
    def key(self) -> Tuple[str, str]:
        return (self.name, self.namespace)

    def __repr__(self):
        return (
            f"RepositoryPair({self.namespace}/{self.name}, interval={self.interval}, "
            f"next_check={self.next_check.isoformat()})"
        )

class RepositoryPairQueue:
    """
    Min-heap of repository pairs ordered by next check time.

    Entries are (next_check, sequence, pair); the sequence number is unique
    and increasing, so pairs due at the same instant keep insertion order and
    pairs themselves are never compared. At most one entry exists per key.
    """

    def __init__(self):
        self._heap: List[tuple] = []
        self._index: Dict[Tuple[str, str], RepositoryPair] = {}
        self._sequence = itertools.count()

    def __len__(self) -> int:
        return len(self._heap)

    def __contains__(self, key: Tuple[str, str]) -> bool:
        return key in self._index

    def push(self, pair: RepositoryPair) -> None:
        if pair.key in self._index:
            raise WatcherError(f"duplicate repository pair {pair.namespace}/{pair.name}")
        self._index[pair.key] = pair
        heapq.heappush(self._heap, (pair.next_check, next(self._sequence), pair))

    def head(self) -> Optional[RepositoryPair]:
        return self._heap[0][2] if self._heap else None

    def find(self, name: str, namespace: str) -> Optional[RepositoryPair]:
        return self._index.get((name, namespace))

    def remove(self, name: str, namespace: str) -> Optional[RepositoryPair]:
        pair = self._index.pop((name, namespace), None)
        if pair is not None:
            self._heap = [entry for entry in self._heap if entry[2] is not pair]
            heapq.heapify(self._heap)
        return pair

    def reschedule(self, pair: RepositoryPair, next_check: datetime, requeue: bool = False) -> None:
        """
        Move a pair to a new next check time.

        With requeue the pair also goes behind every other pair due at the
        same instant, as if it had been removed and added again.
        """
        for i, (_, sequence, entry) in enumerate(self._heap):
            if entry is pair:
                break
        else:
            raise WatcherError(f"repository pair {pair.namespace}/{pair.name} is not queued")
        pair.next_check = next_check
        if requeue:
            sequence = next(self._sequence)
        self._heap[i] = (next_check, sequence, pair)
        heapq.heapify(self._heap)

    def ordered(self) -> List[RepositoryPair]:
        return [entry[2] for entry in sorted(self._heap, key=lambda e: (e[0], e[1]))]

class WatchHandle:
    """Returned by DriftWatcher.watch(); stopping it shuts the scheduler down."""

    def __init__(self, watcher: "DriftWatcher"):
        self._watcher = watcher
        self._stopped = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._watcher._shutdown(self, timeout)

    close = stop

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the handle is stopped; returns False on timeout."""
        return self._stopped.wait(timeout)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

class DriftWatcher:
    """
    Schedules drift checks for repository pairs.

    add(), remove(), update_interval() and is_watching() are safe to call from
    any thread. They share one lock with the check handler; the collection of
    pairs is never touched without it. Every mutation bumps a generation
    counter and notifies the background thread, which recomputes its deadline
    from the current head of the queue. A deadline computed under an older
    generation is stale and is discarded instead of fired.
    """

    def __init__(
        self,
        detector: DriftDetector,
        reporter: ConditionReporter,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.detector = detector
        self.reporter = reporter
        self._clock = clock
        self._lock = threading.Lock()
        self._pairs = RepositoryPairQueue()
        self._generation = 0
        self._updates: "queue.Queue" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._handle: Optional[WatchHandle] = None

    # --- Lifecycle ---

    def watch(self) -> WatchHandle:
        """
        Start the background scheduler. Calling it while running returns the
        same handle. After a stop, a check the previous thread was still
        running is waited for before a new thread starts.
        """
        with self._lock:
            if self._running():
                return self._handle
            previous = self._thread
        if previous is not None and previous is not threading.current_thread():
            previous.join()

        with self._lock:
            if self._running():
                return self._handle
            self._updates = queue.Queue()
            self._handle = WatchHandle(self)
            self._thread = threading.Thread(
                target=self._run,
                args=(self._handle, self._updates),
                name="driftwatch-scheduler",
                daemon=True,
            )
            self._thread.start()
            logger.info("Git drift watcher started.")
            return self._handle

    def _shutdown(self, handle: WatchHandle, timeout: Optional[float]) -> None:
        with self._lock:
            if handle.stopped:
                return
            handle._stopped.set()
            self._generation += 1
            thread = self._thread if handle is self._handle else None
            updates = self._updates
        updates.put(_STOP)
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        logger.info("Git drift watcher stopped.")

    def _running(self) -> bool:
        return self._handle is not None and not self._handle.stopped

    def _ensure_running(self) -> None:
        if not self._running():
            raise WatcherError("git drift watcher has not been started")

    def _notify(self) -> None:
        self._updates.put(_UPDATE)

    # --- Public Operations ---

    def add(self, name: str, namespace: str, interval: int) -> None:
        """
        Start watching a pattern, first checking it one interval from now.

        Raises:
            WatcherError: If the watcher is not running, the interval is
                negative, or the pattern is already watched.
        """
        if interval < 0:
            raise WatcherError(
                f"refusing to watch pattern {name} in namespace {namespace} with negative interval {interval}"
            )
        with self._lock:
            self._ensure_running()
            if (name, namespace) in self._pairs:
                raise WatcherError(f"pattern {name} in namespace {namespace} is already being watched")
            period = timedelta(seconds=interval)
            self._pairs.push(RepositoryPair(name, namespace, period, self._clock() + period))
            self._generation += 1
        logger.info(f"Watching pattern {namespace}/{name} every {interval}s")
        self._notify()

    def remove(self, name: str, namespace: str) -> None:
        """
        Stop watching a pattern. A check already running for it still
        completes, but the pair is not rescheduled.
        """
        with self._lock:
            self._ensure_running()
            if self._pairs.remove(name, namespace) is None:
                raise WatcherError(
                    f"unable to find git remote pair for pattern {name} in namespace {namespace}"
                )
            self._generation += 1
        logger.info(f"Stopped watching pattern {namespace}/{name}")
        self._notify()

    def update_interval(self, name: str, namespace: str, interval: int) -> None:
        """
        Change a pattern's polling interval; the next check moves to one new
        interval from now. Unchanged intervals are ignored and a negative
        interval stops watching the pattern.
        """
        if interval < 0:
            self.remove(name, namespace)
            return
        with self._lock:
            self._ensure_running()
            pair = self._pairs.find(name, namespace)
            if pair is None:
                raise WatcherError(
                    f"unable to find git remote pair for pattern {name} in namespace {namespace}"
                )
            period = timedelta(seconds=interval)
            if pair.interval == period:
                return
            pair.interval = period
            self._pairs.reschedule(pair, self._clock() + period)
            self._generation += 1
        logger.info(f"Polling interval for pattern {namespace}/{name} is now {interval}s")
        self._notify()

    def is_watching(self, name: str, namespace: str) -> bool:
        with self._lock:
            return (name, namespace) in self._pairs

    def pairs(self) -> List[RepositoryPair]:
        """Snapshot of the watched pairs, soonest due first."""
        with self._lock:
            return [copy.copy(pair) for pair in self._pairs.ordered()]

    # --- Background Scheduling ---

    def _run(self, handle: WatchHandle, updates: "queue.Queue") -> None:
        while True:
            with self._lock:
                generation = self._generation
                head = self._pairs.head()
                if head is None:
                    timeout = None
                else:
                    timeout = max(0.0, (head.next_check - self._clock()).total_seconds())
            try:
                message = updates.get(timeout=timeout)
            except queue.Empty:
                self._fire(handle, generation)
                continue
            if message is _STOP:
                return

    def _fire(self, handle: WatchHandle, generation: int) -> None:
        with self._lock:
            if handle.stopped or generation != self._generation:
                logger.debug("Discarding stale drift check deadline.")
                return
            pair = self._pairs.head()
            if pair is None or pair.next_check > self._clock():
                return
        self._check(pair)

    def _check(self, pair: RepositoryPair) -> None:
        name, namespace = pair.name, pair.namespace
        token = pattern_context.set(f"{namespace}/{name}")
        try:
            try:
                drifted = self.detector.has_drifted(name, namespace)
            except DriftwatchError as e:
                logger.error(f"Drift check failed: {e}")
            except Exception as e:
                logger.error(f"Unexpected error during drift check: {e}", exc_info=True)
            else:
                try:
                    self.reporter.report(name, namespace, drifted, self._clock())
                except Exception as e:
                    logger.error(f"Failed to report drift condition: {e}", exc_info=True)
        finally:
            checked_at = self._clock()
            with self._lock:
                if self._pairs.find(name, namespace) is pair:
                    pair.last_check = checked_at
                    self._pairs.reschedule(pair, checked_at + pair.interval, requeue=True)
                    self._generation += 1
            pattern_context.reset(token)
