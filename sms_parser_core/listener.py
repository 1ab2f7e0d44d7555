import logging
import queue
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from .events import TransactionEvents, TransactionSaved
from .persistence import PersistenceBridge, UpsertStatus
from .pipeline import MessageOutcome, TransactionPipeline
from .raw_message import RawMessage
from .sources import MessageSource, Subscription

logger = logging.getLogger(__name__)

_STOP = object()


class ListenerState(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    ACTIVE = "active"


@dataclass(frozen=True)
class ListenerStartResult:
    started: bool
    reason: Optional[str] = None


@dataclass
class ListenerStats:
    received: int = 0
    noise: int = 0
    unparsed: int = 0
    saved: int = 0
    duplicates: int = 0
    failed: int = 0


class RealtimeListener:
    """
    Long-lived subscription to incoming SMS.

    Each delivered message is queued and handled to completion by a single worker
    thread (classify, extract, key, persist, notify) before the next one is taken,
    so dedupe lookups never race each other. At most one listener is active per
    process.
    """

    # Process-wide: held by whichever listener is currently started.
    _active_slot = threading.Lock()

    def __init__(
        self,
        source: MessageSource,
        bridge: PersistenceBridge,
        events: Optional[TransactionEvents] = None,
        pipeline: Optional[TransactionPipeline] = None,
    ):
        self.source = source
        self.bridge = bridge
        self.events = events or TransactionEvents()
        self.pipeline = pipeline or TransactionPipeline()

        self._lock = threading.Lock()
        self._state = ListenerState.STOPPED
        self._holds_slot = False
        self._subscription: Optional[Subscription] = None
        self._queue: Optional[queue.Queue] = None
        self._stopping: Optional[threading.Event] = None
        self._worker: Optional[threading.Thread] = None
        self._stats = ListenerStats()
        self._stats_lock = threading.Lock()

    @classmethod
    def any_active(cls) -> bool:
        """True while some listener in this process holds the realtime subscription."""
        return cls._active_slot.locked()

    @property
    def state(self) -> ListenerState:
        return self._state

    @property
    def stats(self) -> ListenerStats:
        with self._stats_lock:
            return replace(self._stats)

    def is_active(self) -> bool:
        return self._state == ListenerState.ACTIVE

    # ---- start ----
    def start(self, owner_id: str) -> ListenerStartResult:
        """
        Subscribes to incoming messages for owner_id.

        Returns:
            ListenerStartResult; started=False with reason "already-active",
            "permission-denied" or the subscription error text
        """
        with self._lock:
            if self._state != ListenerState.STOPPED:
                return ListenerStartResult(False, "already-active")
            if not RealtimeListener._active_slot.acquire(blocking=False):
                return ListenerStartResult(False, "already-active")
            self._holds_slot = True
            self._state = ListenerState.STARTING
        with self._stats_lock:
            self._stats = ListenerStats()

        try:
            granted = self.source.request_messaging_permission()
        except Exception as e:
            logger.warning("Permission request failed: %s", e)
            self._abort_start()
            return ListenerStartResult(False, str(e))
        if not granted:
            logger.warning("SMS permission denied, realtime listener not started")
            self._abort_start()
            return ListenerStartResult(False, "permission-denied")

        work_queue: queue.Queue = queue.Queue()
        stopping = threading.Event()
        worker = threading.Thread(
            target=self._run,
            args=(owner_id, work_queue, stopping),
            name="sms-realtime-listener",
            daemon=True,
        )
        with self._lock:
            if self._state != ListenerState.STARTING:
                return ListenerStartResult(False, "stopped")
            self._queue = work_queue
            self._stopping = stopping
            self._worker = worker
        worker.start()

        try:
            subscription = self.source.subscribe(self._on_message)
        except Exception as e:
            logger.warning("Could not subscribe to incoming SMS: %s", e)
            self.stop()
            return ListenerStartResult(False, str(e) or "subscription-failed")

        with self._lock:
            if self._state != ListenerState.STARTING:
                # stop() ran while the subscription was being set up
                subscription.remove()
                return ListenerStartResult(False, "stopped")
            self._subscription = subscription
            self._state = ListenerState.ACTIVE

        logger.info("Realtime SMS listener active")
        return ListenerStartResult(True)

    def _abort_start(self) -> None:
        with self._lock:
            self._state = ListenerState.STOPPED
            self._release_slot()

    def _release_slot(self) -> None:
        if self._holds_slot:
            self._holds_slot = False
            RealtimeListener._active_slot.release()

    # ---- stop ----
    def stop(self) -> None:
        """Unsubscribes and stops the worker. Safe to call repeatedly and from any thread."""
        with self._lock:
            if self._state == ListenerState.STOPPED:
                return
            self._state = ListenerState.STOPPED
            subscription, self._subscription = self._subscription, None
            work_queue, self._queue = self._queue, None
            stopping, self._stopping = self._stopping, None
            worker, self._worker = self._worker, None

        if subscription is not None:
            try:
                subscription.remove()
            except Exception:
                logger.warning("Removing the SMS subscription failed", exc_info=True)

        if work_queue is not None:
            work_queue.put(_STOP)
        if stopping is not None:
            stopping.set()
        if worker is not None and worker is not threading.current_thread():
            worker.join()

        with self._lock:
            self._release_slot()
        logger.info("Realtime SMS listener stopped")

    def wait_idle(self) -> None:
        """Blocks until every message queued so far has been handled."""
        work_queue = self._queue
        if work_queue is not None:
            work_queue.join()

    # ---- message handling ----
    def _on_message(self, message: RawMessage) -> None:
        with self._lock:
            work_queue = self._queue
            if self._state == ListenerState.STOPPED or work_queue is None:
                return
            work_queue.put(message)

    def _run(self, owner_id: str, work_queue: queue.Queue, stopping: threading.Event) -> None:
        while True:
            message = work_queue.get()
            try:
                if message is _STOP or stopping.is_set():
                    break
                self._handle(owner_id, message)
            except Exception:
                logger.exception("Unexpected error while handling an incoming SMS")
            finally:
                work_queue.task_done()
        self._discard(work_queue)

    @staticmethod
    def _discard(work_queue: queue.Queue) -> None:
        # Releases anyone blocked in wait_idle(); messages left after stop are dropped.
        while True:
            try:
                work_queue.get_nowait()
            except queue.Empty:
                return
            work_queue.task_done()

    def _count(self, field_name: str) -> None:
        with self._stats_lock:
            setattr(self._stats, field_name, getattr(self._stats, field_name) + 1)

    def _handle(self, owner_id: str, message: RawMessage) -> None:
        self._count("received")
        recognition = self.pipeline.recognize(message)

        if recognition.outcome == MessageOutcome.NOISE:
            self._count("noise")
            logger.debug("Noise message dropped")
            return
        if recognition.outcome == MessageOutcome.IRRELEVANT:
            return
        if recognition.outcome == MessageOutcome.UNPARSED:
            self._count("unparsed")
            return

        transaction = recognition.transaction
        result = self.bridge.upsert(owner_id, transaction)
        if result.status == UpsertStatus.SAVED:
            self._count("saved")
            logger.info("Saved realtime transaction %s", result.id)
            self.events.publish(TransactionSaved(owner_id, transaction, result))
        elif result.status == UpsertStatus.DUPLICATE:
            self._count("duplicates")
        else:
            self._count("failed")
            logger.warning("Realtime transaction not saved: %s", result.reason)
