from decimal import Decimal, ROUND_HALF_UP

from .constants import Constants
from .parsed_transaction import ParsedTransaction


def _clean(value) -> str:
    return str(value).strip() if value is not None else ""


def format_amount(amount) -> str:
    if amount is None:
        amount = Decimal("0")
    return str(Decimal(str(amount)).quantize(Decimal("0.00"), rounding=ROUND_HALF_UP))


def build_dedupe_key(owner_id: str, record: ParsedTransaction) -> str:
    """
    Builds the identity key of the financial event behind a parsed SMS.

    Only economically identifying fields take part, so two templates of the same
    debit, or the same SMS scanned twice, map to the same key regardless of the
    raw text or the receive time.
    """
    placeholders = Constants.Dedupe
    parts = [
        _clean(owner_id),
        record.transaction_date.isoformat(),
        format_amount(record.amount),
        record.direction.value.lower(),
        _clean(record.reference).lower() or placeholders.NO_REFERENCE,
        _clean(record.merchant).lower() or placeholders.NO_MERCHANT,
        _clean(record.account_tail) or placeholders.NO_ACCOUNT_TAIL,
    ]
    return placeholders.DELIMITER.join(parts)
