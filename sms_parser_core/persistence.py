import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .constants import Constants
from .dedupe import build_dedupe_key
from .errors import DuplicateKeyError, StoreError
from .parsed_transaction import ParsedTransaction
from .stores import TransactionStore

logger = logging.getLogger(__name__)


class UpsertStatus(str, Enum):
    SAVED = "saved"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass(frozen=True)
class UpsertResult:
    status: UpsertStatus
    id: Optional[str] = None
    reason: Optional[str] = None
    dedupe_key: Optional[str] = None


def to_store_record(owner_id: str, record: ParsedTransaction, dedupe_key: str) -> Dict[str, Any]:
    """Shapes a parsed transaction into the flat record kept by the store."""
    return {
        "id": record.transaction_id,
        "owner_id": owner_id,
        "amount": float(record.amount),
        "type": record.direction.value,
        "category": record.category.value,
        "merchant": record.display_merchant,
        "description": record.description,
        "date": record.transaction_date.isoformat(),
        "timestamp": record.received_at.isoformat(),
        "currency": record.currency,
        "bank": record.bank_hint or Constants.Parsing.UNKNOWN_BANK,
        "account_tail": record.account_tail,
        "channel": record.channel.value if record.channel else None,
        "reference": record.reference,
        "sender": record.sender,
        "dedupe_key": dedupe_key,
    }


class PersistenceBridge:
    """
    Boundary between the parsing pipeline and the transaction store.

    upsert() never raises for store problems: duplicates and failures come back
    as statuses so a batch can keep going.
    """

    def __init__(
        self,
        store: TransactionStore,
        key_builder: Callable[[str, ParsedTransaction], str] = build_dedupe_key,
    ):
        self.store = store
        self.key_builder = key_builder

    def upsert(self, owner_id: str, record: ParsedTransaction) -> UpsertResult:
        if not record.is_valid():
            return UpsertResult(UpsertStatus.FAILED, reason="invalid-record")

        dedupe_key = self.key_builder(owner_id, record)
        try:
            existing = self.store.find_by_dedupe_key(owner_id, dedupe_key)
            if existing is not None:
                logger.debug("Duplicate transaction skipped (dedupe key match)")
                return UpsertResult(UpsertStatus.DUPLICATE, id=existing.get("id"), dedupe_key=dedupe_key)

            new_id = self.store.insert(owner_id, to_store_record(owner_id, record, dedupe_key))
        except DuplicateKeyError:
            # Lost an insert race against another writer for the same event.
            return self._resolve_race(owner_id, dedupe_key)
        except (StoreError, OSError) as e:
            logger.warning("Store failure while saving transaction: %s", e)
            return UpsertResult(UpsertStatus.FAILED, reason=str(e), dedupe_key=dedupe_key)
        except Exception as e:
            logger.error("Unexpected store error while saving transaction", exc_info=True)
            return UpsertResult(UpsertStatus.FAILED, reason=str(e) or type(e).__name__, dedupe_key=dedupe_key)

        return UpsertResult(UpsertStatus.SAVED, id=new_id, dedupe_key=dedupe_key)

    def _resolve_race(self, owner_id: str, dedupe_key: str) -> UpsertResult:
        try:
            existing = self.store.find_by_dedupe_key(owner_id, dedupe_key)
        except Exception as e:
            logger.warning("Store failure while resolving duplicate: %s", e)
            return UpsertResult(UpsertStatus.DUPLICATE, dedupe_key=dedupe_key)
        return UpsertResult(
            UpsertStatus.DUPLICATE,
            id=existing.get("id") if existing else None,
            dedupe_key=dedupe_key,
        )
