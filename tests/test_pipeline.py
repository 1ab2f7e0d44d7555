"""Tests for the shared classify-then-extract pipeline."""

import re
from datetime import datetime, timezone

import pytest

from sms_parser_core.pipeline import MessageOutcome, TransactionPipeline, new_transaction_id
from sms_parser_core.raw_message import RawMessage

RECEIVED_AT = datetime(2025, 12, 7, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def pipeline():
    return TransactionPipeline()


@pytest.mark.parametrize("body, outcome", [
    ("Rs.250.00 debited from A/c XX1234 on 07-12-25 at AMAZON. Avl Bal Rs.10,500.00", MessageOutcome.PARSED),
    ("Rs 500 debited. OTP is 123456", MessageOutcome.NOISE),
    ("Your account has been debited", MessageOutcome.UNPARSED),
    ("See you at the station at 6", MessageOutcome.IRRELEVANT),
])
def test_outcomes(pipeline, body, outcome):
    recognition = pipeline.recognize(RawMessage(body, "+919800000000", RECEIVED_AT))
    assert recognition.outcome == outcome


def test_parsed_transaction_carries_sender_and_id(pipeline):
    message = RawMessage("You received Rs 5000 from RAHUL SHARMA. UPI Ref 123456789012",
                         "VM-SBIINB", RECEIVED_AT, message_id="77")
    txn = pipeline.recognize(message).transaction
    assert txn.sender == "VM-SBIINB"
    assert txn.received_at == RECEIVED_AT
    assert txn.transaction_id.startswith("sms_77_")


def test_transaction_id_format():
    with_id = new_transaction_id(RawMessage("x", "y", RECEIVED_AT, message_id="12"))
    without_id = new_transaction_id(RawMessage("x", "y", RECEIVED_AT))

    assert re.fullmatch(r"sms_12_[0-9a-f]{9}", with_id)
    assert re.fullmatch(rf"sms_{int(RECEIVED_AT.timestamp() * 1000)}_[0-9a-f]{{9}}", without_id)
    assert new_transaction_id(RawMessage("x", "y", RECEIVED_AT)) != without_id
