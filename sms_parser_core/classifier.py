from dataclasses import dataclass
from typing import Optional

from .banks import BankRegistry
from .compiled_patterns import CompiledPatterns


@dataclass(frozen=True)
class Classification:
    is_transactional: bool
    is_noise: bool


class MessageClassifier:
    """
    Decides whether an SMS is a transaction notification, OTP/promotional noise,
    or unrelated text.

    Noise markers always win. A known bank/PSP sender can rescue a message that
    has no transaction keywords, but never one that carries a noise marker.
    """

    def __init__(self, bank_registry: BankRegistry = None):
        self.bank_registry = bank_registry or BankRegistry()

    def classify(self, body: str, sender: Optional[str] = None) -> Classification:
        if not isinstance(body, str) or not body.strip():
            return Classification(is_transactional=False, is_noise=False)

        if self.is_noise(body):
            return Classification(is_transactional=False, is_noise=True)

        if self.has_transaction_keyword(body):
            return Classification(is_transactional=True, is_noise=False)

        return Classification(
            is_transactional=self.bank_registry.is_known_sender(sender),
            is_noise=False,
        )

    def is_noise(self, body: str) -> bool:
        return any(p.search(body) for p in CompiledPatterns.Noise.ALL_PATTERNS)

    def has_transaction_keyword(self, body: str) -> bool:
        if CompiledPatterns.Intent.DEBIT.search(body) or CompiledPatterns.Intent.CREDIT.search(body):
            return True
        return any(p.search(body) for p in CompiledPatterns.Transactional.BANK_KEYWORDS)
