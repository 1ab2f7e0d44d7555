import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from .config import Settings
from .errors import PermissionDeniedError
from .parsed_transaction import ParsedTransaction
from .persistence import PersistenceBridge, UpsertStatus
from .pipeline import MessageOutcome, TransactionPipeline
from .raw_message import RawMessage
from .sources import MessageSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanResult:
    success: bool
    message: Optional[str] = None
    scanned: int = 0
    transactional: int = 0
    noise: int = 0
    parsed: int = 0
    unparsed: int = 0
    saved: int = 0
    duplicates: int = 0
    failed: int = 0
    transactions: Tuple[ParsedTransaction, ...] = ()
    errors: Tuple[Dict[str, Any], ...] = ()

    @classmethod
    def failure(cls, message: str) -> "ScanResult":
        return cls(success=False, message=message)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["transactions"] = [t.to_dict() for t in self.transactions]
        data["errors"] = [dict(e) for e in self.errors]
        return data

    def to_frame(self) -> pd.DataFrame:
        """Parsed transactions as a DataFrame, newest first."""
        return pd.DataFrame([t.to_dict() for t in self.transactions])


class InboxScanner:
    """
    One-shot historical scan of the SMS inbox.

    The scanner keeps no memory between runs; re-running it over the same window
    is safe because the persistence bridge suppresses already stored events.
    """

    def __init__(
        self,
        source: MessageSource,
        bridge: Optional[PersistenceBridge] = None,
        pipeline: Optional[TransactionPipeline] = None,
        settings: Optional[Settings] = None,
    ):
        self.source = source
        self.bridge = bridge
        self.pipeline = pipeline or TransactionPipeline()
        self.settings = settings or Settings()

    def scan(self, owner_id: str, lookback_days: Optional[int] = None) -> ScanResult:
        """
        Reads the inbox window, recognises transactions and persists them.

        Args:
            owner_id: Identity the transactions belong to
            lookback_days: Size of the window; None uses the configured default, 0 scans everything

        Returns:
            ScanResult with per-stage counts; success=False when the inbox could not be read
        """
        try:
            messages = self._read_inbox(lookback_days)
        except PermissionDeniedError:
            logger.warning("SMS permission denied, scan aborted")
            return ScanResult.failure("permission-denied")
        except Exception as e:
            logger.exception("Reading the SMS inbox failed")
            return ScanResult.failure(str(e))

        counts = {"transactional": 0, "noise": 0, "unparsed": 0}
        transactions: List[ParsedTransaction] = []
        for message in messages:
            recognition = self.pipeline.recognize(message)
            if recognition.outcome == MessageOutcome.NOISE:
                counts["noise"] += 1
                continue
            if recognition.outcome == MessageOutcome.IRRELEVANT:
                continue
            counts["transactional"] += 1
            if recognition.outcome == MessageOutcome.UNPARSED:
                counts["unparsed"] += 1
                continue
            transactions.append(recognition.transaction)

        transactions.sort(key=lambda t: t.received_at, reverse=True)

        saved = duplicates = failed = 0
        errors: List[Dict[str, Any]] = []
        if self.bridge is not None:
            for txn in transactions:
                result = self.bridge.upsert(owner_id, txn)
                if result.status == UpsertStatus.SAVED:
                    saved += 1
                elif result.status == UpsertStatus.DUPLICATE:
                    duplicates += 1
                else:
                    failed += 1
                    errors.append({"id": txn.transaction_id, "reason": result.reason})

        logger.info(
            "Parsed %d transactions from %d SMS (saved=%d, duplicates=%d, failed=%d)",
            len(transactions), len(messages), saved, duplicates, failed,
        )
        return ScanResult(
            success=True,
            scanned=len(messages),
            transactional=counts["transactional"],
            noise=counts["noise"],
            parsed=len(transactions),
            unparsed=counts["unparsed"],
            saved=saved,
            duplicates=duplicates,
            failed=failed,
            transactions=tuple(transactions),
            errors=tuple(errors),
        )

    def _read_inbox(self, lookback_days: Optional[int]) -> List[RawMessage]:
        if not self.source.request_messaging_permission():
            raise PermissionDeniedError("SMS permission denied")

        days = self.settings.lookback_days if lookback_days is None else lookback_days
        min_date = datetime.now(timezone.utc) - timedelta(days=days) if days > 0 else None
        return self.source.list_inbox(min_date, self.settings.max_messages)
