import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .classifier import MessageClassifier
from .extractor import TransactionExtractor
from .parsed_transaction import ParsedTransaction
from .raw_message import RawMessage

logger = logging.getLogger(__name__)


class MessageOutcome(str, Enum):
    NOISE = "noise"
    IRRELEVANT = "irrelevant"
    UNPARSED = "unparsed"
    PARSED = "parsed"


@dataclass(frozen=True)
class Recognition:
    outcome: MessageOutcome
    transaction: Optional[ParsedTransaction] = None


def new_transaction_id(message: RawMessage) -> str:
    """Store identifier for a recognised SMS; independent of the dedupe key."""
    source_id = message.message_id or str(message.received_at_ms)
    return f"sms_{source_id}_{uuid.uuid4().hex[:9]}"


class TransactionPipeline:
    """Classify then extract; shared by the inbox scanner and the realtime listener."""

    def __init__(self, classifier: MessageClassifier = None, extractor: TransactionExtractor = None):
        self.classifier = classifier or MessageClassifier()
        self.extractor = extractor or TransactionExtractor()

    def recognize(self, message: RawMessage) -> Recognition:
        classification = self.classifier.classify(message.body, message.sender)
        if classification.is_noise:
            return Recognition(MessageOutcome.NOISE)
        if not classification.is_transactional:
            return Recognition(MessageOutcome.IRRELEVANT)

        parsed = self.extractor.extract(message.body, message.sender, message.received_at)
        if not parsed.is_valid():
            logger.debug("Transactional message without direction or amount dropped")
            return Recognition(MessageOutcome.UNPARSED, parsed)

        parsed.transaction_id = new_transaction_id(message)
        return Recognition(MessageOutcome.PARSED, parsed)
