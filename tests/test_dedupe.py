"""Tests for the dedupe key builder."""

from datetime import date, datetime, timezone
from decimal import Decimal

from sms_parser_core.dedupe import build_dedupe_key, format_amount
from sms_parser_core.parsed_transaction import ParsedTransaction
from sms_parser_core.transaction_type import TransactionType


def _txn(**overrides):
    values = dict(
        direction=TransactionType.DEBIT,
        amount=Decimal("250"),
        transaction_date=date(2025, 12, 7),
        received_at=datetime(2025, 12, 7, 10, 0, tzinfo=timezone.utc),
        raw_body="Rs.250.00 debited from A/c XX1234 on 07-12-25 at AMAZON.",
        merchant="AMAZON",
        account_tail="1234",
    )
    values.update(overrides)
    return ParsedTransaction(**values)


def test_key_layout():
    key = build_dedupe_key("owner-1", _txn(reference="AB12CD34"))
    assert key == "owner-1|2025-12-07|250.00|debit|ab12cd34|amazon|1234"


def test_placeholders_for_missing_fields():
    key = build_dedupe_key("owner-1", _txn(merchant=None, account_tail=None))
    assert key == "owner-1|2025-12-07|250.00|debit|noref|nomerch|notail"


def test_key_is_stable_across_calls():
    txn = _txn()
    assert build_dedupe_key("owner-1", txn) == build_dedupe_key("owner-1", txn)


def test_raw_text_and_receive_time_do_not_matter():
    first = _txn()
    second = _txn(
        raw_body="Dear Customer, INR 250 has been debited from A/c XX1234 at AMAZON on 07-12-25",
        received_at=datetime(2025, 12, 8, 18, 45, tzinfo=timezone.utc),
    )
    assert build_dedupe_key("owner-1", first) == build_dedupe_key("owner-1", second)


def test_case_and_whitespace_of_merchant_and_reference_are_normalised():
    first = _txn(merchant="Amazon", reference=" ab12cd34 ")
    second = _txn(merchant="AMAZON", reference="AB12CD34")
    assert build_dedupe_key("owner-1", first) == build_dedupe_key("owner-1", second)


def test_identifying_fields_change_the_key():
    base = build_dedupe_key("owner-1", _txn())
    assert build_dedupe_key("owner-2", _txn()) != base
    assert build_dedupe_key("owner-1", _txn(amount=Decimal("250.01"))) != base
    assert build_dedupe_key("owner-1", _txn(direction=TransactionType.CREDIT)) != base
    assert build_dedupe_key("owner-1", _txn(transaction_date=date(2025, 12, 8))) != base
    assert build_dedupe_key("owner-1", _txn(account_tail="9999")) != base


def test_format_amount():
    assert format_amount(Decimal("5000")) == "5000.00"
    assert format_amount(Decimal("0.125")) == "0.13"
    assert format_amount(None) == "0.00"
