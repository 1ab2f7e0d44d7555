import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, List, Optional

import pandas as pd

from .raw_message import RawMessage

logger = logging.getLogger(__name__)

BODY_COLUMNS = ["body", "message", "text"]
SENDER_COLUMNS = ["address", "sender_id", "sender"]
ID_COLUMNS = ["_id", "id", "message_id"]


class Subscription:
    """Handle for a live message subscription. remove() may be called more than once."""

    def __init__(self, on_remove: Callable[[], None]):
        self._on_remove = on_remove
        self._removed = False
        self._lock = threading.Lock()

    def remove(self) -> None:
        with self._lock:
            if self._removed:
                return
            self._removed = True
        self._on_remove()

    @property
    def removed(self) -> bool:
        return self._removed


class MessageSource(ABC):
    @abstractmethod
    def request_messaging_permission(self) -> bool:
        """Asks for access to the message store; False when refused."""
        ...

    @abstractmethod
    def list_inbox(self, min_date: Optional[datetime], max_count: int) -> List[RawMessage]:
        """Returns up to max_count inbox messages received at or after min_date, newest first."""
        ...

    @abstractmethod
    def subscribe(self, on_message: Callable[[RawMessage], None]) -> Subscription:
        """Registers a callback for every newly arriving message."""
        ...


class InMemoryMessageSource(MessageSource):
    def __init__(self, messages: Optional[List[RawMessage]] = None, permission_granted: bool = True):
        self.permission_granted = permission_granted
        self._messages: List[RawMessage] = list(messages or [])
        self._subscribers: List[Callable[[RawMessage], None]] = []
        self._lock = threading.Lock()

    def request_messaging_permission(self) -> bool:
        return self.permission_granted

    def list_inbox(self, min_date: Optional[datetime], max_count: int) -> List[RawMessage]:
        with self._lock:
            messages = list(self._messages)
        if min_date is not None:
            messages = [m for m in messages if m.received_at >= min_date]
        messages.sort(key=lambda m: m.received_at, reverse=True)
        return messages[:max_count]

    def subscribe(self, on_message: Callable[[RawMessage], None]) -> Subscription:
        with self._lock:
            self._subscribers.append(on_message)

        def _remove():
            with self._lock:
                if on_message in self._subscribers:
                    self._subscribers.remove(on_message)

        return Subscription(_remove)

    def deliver(self, message: RawMessage) -> None:
        """Simulates an incoming SMS: stores it in the inbox and notifies subscribers."""
        with self._lock:
            self._messages.append(message)
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(message)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)


def _find_column(df: pd.DataFrame, candidates: List[str]) -> Optional[str]:
    for col in df.columns:
        if str(col).lower() in candidates:
            return col
    return None


def _message_id(value) -> Optional[str]:
    if pd.isna(value):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def load_sms_csv(path: str) -> List[RawMessage]:
    """
    Reads an SMS inbox export (``_id``, ``address``, ``body``, ``date`` in epoch ms).
    Rows without a body or with an unreadable date are skipped.
    """
    df = pd.read_csv(path, low_memory=False)

    body_col = _find_column(df, BODY_COLUMNS)
    if body_col is None:
        raise ValueError(f"Could not find SMS body column in {path}")
    sender_col = _find_column(df, SENDER_COLUMNS)
    id_col = _find_column(df, ID_COLUMNS)

    if "date" in df.columns:
        received = pd.to_datetime(df["date"], unit="ms", errors="coerce", utc=True)
    else:
        received = pd.Series(pd.NaT, index=df.index)

    messages = []
    for idx, row in df.iterrows():
        body = row[body_col]
        ts = received.loc[idx]
        if not isinstance(body, str) or pd.isna(ts):
            continue
        sender = row[sender_col] if sender_col else None
        messages.append(RawMessage(
            body=body,
            sender="" if sender is None or pd.isna(sender) else str(sender),
            received_at=ts.to_pydatetime(),
            message_id=_message_id(row[id_col]) if id_col else None,
        ))

    skipped = len(df) - len(messages)
    if skipped:
        logger.info("Skipped %d rows without a body or a readable date", skipped)
    return messages


class CsvMessageSource(InMemoryMessageSource):
    """Message source backed by an SMS inbox CSV export."""

    def __init__(self, path: str, permission_granted: bool = True):
        super().__init__(load_sms_csv(path), permission_granted=permission_granted)
        self.path = path
