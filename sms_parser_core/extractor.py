from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional

from .banks import BankRegistry
from .categorizer import categorize_transaction
from .compiled_patterns import CompiledPatterns
from .constants import Constants
from .date_parser import find_transaction_date
from .parsed_transaction import ParsedTransaction
from .transaction_type import Channel, TransactionType


@dataclass(frozen=True)
class IntentMatch:
    direction: TransactionType
    start: int


def normalize_amount(raw: Optional[str]) -> Optional[Decimal]:
    """Parses an amount string such as ``1,00,000.50``; rejects zero, negative and absurd values."""
    if not raw:
        return None
    try:
        value = Decimal(raw.replace(",", ""))
    except InvalidOperation:
        return None
    if not value.is_finite() or value <= 0 or value >= Constants.Parsing.MAX_AMOUNT:
        return None
    return value


class TransactionExtractor:
    """
    Extracts a structured transaction candidate from a bank SMS body.

    Extraction never raises: each field degrades to None independently and the
    caller decides validity through ParsedTransaction.is_valid().
    """

    def __init__(self, bank_registry: BankRegistry = None, currency: str = Constants.Parsing.DEFAULT_CURRENCY):
        self.bank_registry = bank_registry or BankRegistry()
        self.currency = currency

        # Priority chains; the first strategy returning a value wins.
        self.amount_strategies: List[Callable[[str, Optional[IntentMatch]], Optional[Decimal]]] = [
            self._amount_anchored_to_intent,
            self._amount_nearest_currency_in_window,
            self._amount_before_keyword,
            self._amount_first_currency,
        ]
        self.merchant_strategies: List[Callable[[str], Optional[str]]] = [
            self._merchant_from_upi_id,
            self._merchant_from_person_name,
            self._merchant_from_phrase,
            self._merchant_from_vpa,
        ]

    def extract(
        self,
        body: str,
        sender_hint: Optional[str] = None,
        received_at: Optional[datetime] = None,
    ) -> ParsedTransaction:
        received_at = received_at or datetime.now(timezone.utc)

        if not isinstance(body, str) or not body.strip():
            return ParsedTransaction(
                direction=TransactionType.UNKNOWN,
                amount=None,
                transaction_date=received_at.date(),
                received_at=received_at,
                raw_body=body if isinstance(body, str) else "",
                currency=self.currency,
                sender=sender_hint,
            )

        message = CompiledPatterns.Cleaning.FORWARD_PREFIX.sub("", body.strip())

        intent = self.extract_intent(message)
        direction = intent.direction if intent else TransactionType.UNKNOWN
        merchant = self.extract_merchant(message)

        return ParsedTransaction(
            direction=direction,
            amount=self.extract_amount(message, intent),
            transaction_date=self.extract_transaction_date(message) or received_at.date(),
            received_at=received_at,
            raw_body=body,
            merchant=merchant,
            category=categorize_transaction(merchant, message),
            account_tail=self.extract_account_tail(message),
            channel=self.extract_channel(message),
            reference=self.extract_reference(message),
            bank_hint=self.extract_bank_hint(message),
            balance=self.extract_balance(message),
            currency=self.currency,
            sender=sender_hint,
        )

    # -------------------------------------------------------------------------
    # extract_intent
    # -------------------------------------------------------------------------
    def extract_intent(self, message: str) -> Optional[IntentMatch]:
        # Debit takes precedence when both intents appear in the same message.
        # This is a heuristic carried over from observed inboxes, not a banking rule.
        m = CompiledPatterns.Intent.DEBIT.search(message)
        if m:
            return IntentMatch(TransactionType.DEBIT, m.start())
        m = CompiledPatterns.Intent.CREDIT.search(message)
        if m:
            return IntentMatch(TransactionType.CREDIT, m.start())
        return None

    def extract_direction(self, message: str) -> TransactionType:
        intent = self.extract_intent(message)
        return intent.direction if intent else TransactionType.UNKNOWN

    # -------------------------------------------------------------------------
    # extract_amount
    # -------------------------------------------------------------------------
    def extract_amount(self, message: str, intent: Optional[IntentMatch] = None) -> Optional[Decimal]:
        for strategy in self.amount_strategies:
            amount = strategy(message, intent)
            if amount is not None:
                return amount
        return None

    def proximity_window(self, message: str, intent: Optional[IntentMatch]):
        """Returns the text around the intent keyword and the keyword offset inside it."""
        if intent is None:
            return message, 0
        start = max(0, intent.start - Constants.Parsing.WINDOW_BEFORE)
        end = min(len(message), intent.start + Constants.Parsing.WINDOW_AFTER)
        return message[start:end], intent.start - start

    def _amount_anchored_to_intent(self, message: str, intent: Optional[IntentMatch]) -> Optional[Decimal]:
        if intent is None:
            return None
        if intent.direction == TransactionType.DEBIT:
            pattern = CompiledPatterns.Amount.AFTER_DEBITED
        else:
            pattern = CompiledPatterns.Amount.AFTER_CREDITED
        window, _ = self.proximity_window(message, intent)
        m = pattern.search(window)
        return normalize_amount(m.group(1)) if m else None

    def _amount_nearest_currency_in_window(self, message: str, intent: Optional[IntentMatch]) -> Optional[Decimal]:
        window, offset = self.proximity_window(message, intent)
        candidates = sorted(
            self._currency_amounts(window),
            key=lambda m: abs(m.start() - offset),
        )
        for m in candidates:
            amount = normalize_amount(m.group(1))
            if amount is not None:
                return amount
        return None

    def _amount_before_keyword(self, message: str, intent: Optional[IntentMatch]) -> Optional[Decimal]:
        m = CompiledPatterns.Amount.BEFORE_KEYWORD.search(message)
        return normalize_amount(m.group(1)) if m else None

    def _amount_first_currency(self, message: str, intent: Optional[IntentMatch]) -> Optional[Decimal]:
        if intent is None:
            return None
        for m in self._currency_amounts(message):
            amount = normalize_amount(m.group(1))
            if amount is not None:
                return amount
        return None

    def _currency_amounts(self, text: str):
        """Currency-marked amounts that are not labelled as a balance or limit."""
        label = CompiledPatterns.Amount.BALANCE_LABEL
        return [
            m for m in CompiledPatterns.Amount.GENERIC.finditer(text)
            if not label.search(text[max(0, m.start() - 20):m.start()])
        ]

    # -------------------------------------------------------------------------
    # extract_bank_hint
    # -------------------------------------------------------------------------
    def extract_bank_hint(self, message: str) -> Optional[str]:
        # Content only. Aggregator short codes relay several banks' messages,
        # so the sender address is never used here.
        return self.bank_registry.find_in_content(message)

    # -------------------------------------------------------------------------
    # extract_account_tail
    # -------------------------------------------------------------------------
    def extract_account_tail(self, message: str) -> Optional[str]:
        m = CompiledPatterns.Account.MASKED_TAIL.search(message)
        return m.group(1) if m else None

    # -------------------------------------------------------------------------
    # extract_transaction_date
    # -------------------------------------------------------------------------
    def extract_transaction_date(self, message: str) -> Optional[date]:
        return find_transaction_date(message)

    # -------------------------------------------------------------------------
    # extract_merchant
    # -------------------------------------------------------------------------
    def extract_merchant(self, message: str) -> Optional[str]:
        for strategy in self.merchant_strategies:
            merchant = strategy(message)
            if merchant:
                return merchant
        return None

    def _merchant_from_upi_id(self, message: str) -> Optional[str]:
        m = CompiledPatterns.Merchant.UPI_ID.search(message)
        return self._accept_merchant(m.group(1)) if m else None

    def _merchant_from_person_name(self, message: str) -> Optional[str]:
        for pattern in (CompiledPatterns.Merchant.PERSON_CREDITED, CompiledPatterns.Merchant.PERSON_FROM_UPI):
            m = pattern.search(message)
            if m:
                merchant = self._accept_merchant(m.group(1))
                if merchant:
                    return merchant
        return None

    def _merchant_from_phrase(self, message: str) -> Optional[str]:
        for pattern in (CompiledPatterns.Merchant.AT_PATTERN, CompiledPatterns.Merchant.TO_FROM_PATTERN):
            for m in pattern.finditer(message):
                merchant = self._accept_merchant(m.group(1))
                if merchant:
                    return merchant
        return None

    def _merchant_from_vpa(self, message: str) -> Optional[str]:
        m = CompiledPatterns.Merchant.VPA_PATTERN.search(message)
        return self._accept_merchant(m.group(1)) if m else None

    def _accept_merchant(self, raw: str) -> Optional[str]:
        merchant = self.clean_merchant_name(raw)
        return merchant if self.is_valid_merchant_name(merchant) else None

    def clean_merchant_name(self, merchant: str) -> str:
        result = merchant.strip()
        result = CompiledPatterns.Cleaning.TRAILING_CLAUSE.sub("", result)
        result = CompiledPatterns.Cleaning.TRAILING_PARENTHESES.sub("", result)
        result = CompiledPatterns.Cleaning.TRAILING_DASH.sub("", result)
        result = CompiledPatterns.Cleaning.PVT_LTD.sub("", result)
        result = CompiledPatterns.Cleaning.SPECIAL_CHARACTERS.sub("", result)
        result = CompiledPatterns.Cleaning.WHITESPACE.sub(" ", result).strip()
        return result[: Constants.Parsing.MAX_MERCHANT_NAME_LENGTH].strip()

    def is_valid_merchant_name(self, name: str) -> bool:
        common_words = {
            "USING", "VIA", "THROUGH", "BY", "WITH", "FOR", "TO", "FROM", "AT", "THE",
            "YOUR", "DEAR", "CUSTOMER", "BENEFICIARY",
        }
        words = name.upper().split()
        return (
            len(name) >= Constants.Parsing.MIN_MERCHANT_NAME_LENGTH
            and any(c.isalpha() for c in name)
            and bool(words)
            and words[0] not in common_words
            and not CompiledPatterns.Cleaning.ACCOUNT_REFERENCE.match(name)
            and not CompiledPatterns.Cleaning.MASKED_NUMBER.match(name)
        )

    # -------------------------------------------------------------------------
    # auxiliary fields
    # -------------------------------------------------------------------------
    def extract_reference(self, message: str) -> Optional[str]:
        m = CompiledPatterns.Reference.GENERIC.search(message)
        return m.group(1).strip() if m else None

    def extract_balance(self, message: str) -> Optional[Decimal]:
        m = CompiledPatterns.Balance.AVAILABLE.search(message)
        return normalize_amount(m.group(1)) if m else None

    def extract_channel(self, message: str) -> Optional[Channel]:
        m = CompiledPatterns.Channel.TOKEN.search(message)
        return Channel.from_token(m.group(1)) if m else None
