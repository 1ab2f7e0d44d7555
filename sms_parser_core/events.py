import logging
import threading
from dataclasses import dataclass
from typing import Callable, List

from .parsed_transaction import ParsedTransaction
from .persistence import UpsertResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionSaved:
    owner_id: str
    transaction: ParsedTransaction
    result: UpsertResult


class TransactionEvents:
    """
    One-way notification channel for transactions saved by the realtime listener.

    A failing subscriber is logged and skipped; it never affects the transaction
    that was already persisted or the other subscribers.
    """

    def __init__(self):
        self._subscribers: List[Callable[[TransactionSaved], None]] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[TransactionSaved], None]) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, event: TransactionSaved) -> int:
        """Delivers the event to every subscriber and returns how many succeeded."""
        with self._lock:
            subscribers = list(self._subscribers)
        delivered = 0
        for callback in subscribers:
            try:
                callback(event)
                delivered += 1
            except Exception:
                logger.warning("Transaction notification subscriber failed", exc_info=True)
        return delivered
