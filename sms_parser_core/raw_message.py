from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class RawMessage:
    """A single SMS exactly as the message source reported it.

    A naive received_at is read as local wall-clock time and made aware, so
    messages from different sources always compare.
    """

    body: str
    sender: str
    received_at: datetime
    message_id: Optional[str] = None

    def __post_init__(self):
        if self.received_at.tzinfo is None:
            object.__setattr__(self, "received_at", self.received_at.astimezone())

    @property
    def received_at_ms(self) -> int:
        return int(self.received_at.timestamp() * 1000)
