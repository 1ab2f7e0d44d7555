from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from .constants import Constants
from .transaction_type import Category, Channel, TransactionType


class ParsedTransaction:
    def __init__(
        self,
        direction: TransactionType,
        amount: Optional[Decimal],
        transaction_date: date,
        received_at: datetime,
        raw_body: str,
        merchant: Optional[str] = None,
        category: Category = Category.OTHER,
        account_tail: Optional[str] = None,
        channel: Optional[Channel] = None,
        reference: Optional[str] = None,
        bank_hint: Optional[str] = None,
        balance: Optional[Decimal] = None,
        currency: str = Constants.Parsing.DEFAULT_CURRENCY,
        sender: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ):
        self.direction = direction
        self.amount = amount
        self.transaction_date = transaction_date
        self.received_at = received_at
        self.raw_body = raw_body
        self.merchant = merchant
        self.category = category
        self.account_tail = account_tail
        self.channel = channel
        self.reference = reference
        self.bank_hint = bank_hint
        self.balance = balance
        self.currency = currency
        self.sender = sender
        self.transaction_id = transaction_id

    def is_valid(self) -> bool:
        """Only records with a known direction and a positive amount are persistable."""
        return (
            self.direction != TransactionType.UNKNOWN
            and self.amount is not None
            and self.amount > 0
        )

    @property
    def display_merchant(self) -> str:
        return self.merchant or Constants.Parsing.UNKNOWN_MERCHANT

    @property
    def description(self) -> str:
        return self.raw_body[: Constants.Parsing.DESCRIPTION_LENGTH]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.transaction_id,
            "type": self.direction.value,
            "amount": float(self.amount) if self.amount is not None else None,
            "merchant": self.merchant,
            "category": self.category.value,
            "date": self.transaction_date.isoformat(),
            "timestamp": self.received_at.isoformat(),
            "account_tail": self.account_tail,
            "channel": self.channel.value if self.channel else None,
            "reference": self.reference,
            "bank_hint": self.bank_hint,
            "balance": float(self.balance) if self.balance is not None else None,
            "currency": self.currency,
            "sender": self.sender,
            "raw": self.raw_body,
        }

    def __repr__(self) -> str:
        return (
            f"<ParsedTransaction(type='{self.direction.value}', amount={self.amount}, "
            f"merchant='{self.merchant}', date={self.transaction_date})>"
        )
