from .classifier import Classification, MessageClassifier
from .compiled_patterns import CompiledPatterns
from .constants import Constants
from .dedupe import build_dedupe_key
from .events import TransactionEvents, TransactionSaved
from .extractor import TransactionExtractor
from .listener import ListenerStartResult, ListenerState, ListenerStats, RealtimeListener
from .parsed_transaction import ParsedTransaction
from .persistence import PersistenceBridge, UpsertResult, UpsertStatus
from .pipeline import TransactionPipeline
from .raw_message import RawMessage
from .scanner import InboxScanner, ScanResult
from .sources import CsvMessageSource, InMemoryMessageSource, MessageSource
from .stores import InMemoryTransactionStore, SqlTransactionStore, TransactionStore
from .transaction_type import Category, Channel, TransactionType

__version__ = "1.0.0"
