"""Tests for message sources."""

from datetime import datetime, timedelta, timezone

import pandas as pd
import pytest

from sms_parser_core.raw_message import RawMessage
from sms_parser_core.sources import CsvMessageSource, InMemoryMessageSource, Subscription, load_sms_csv


def _ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


@pytest.fixture
def inbox_csv(tmp_path):
    older = datetime(2025, 12, 7, 10, 0, tzinfo=timezone.utc)
    newer = datetime(2025, 12, 8, 9, 15, tzinfo=timezone.utc)
    df = pd.DataFrame([
        {"_id": 101, "address": "VM-HDFCBK", "date": _ms(older),
         "body": "Rs.250.00 debited from A/c XX1234 on 07-12-25 at AMAZON. Avl Bal Rs.10,500.00"},
        {"_id": 102, "address": "VM-SBIINB", "date": _ms(newer),
         "body": "You received Rs 5000 from RAHUL SHARMA. UPI Ref 123456789012"},
        {"_id": 103, "address": "VM-HDFCBK", "date": _ms(newer), "body": None},
    ])
    path = tmp_path / "sms_inbox.csv"
    df.to_csv(path, index=False)
    return path


def test_load_sms_csv(inbox_csv):
    messages = load_sms_csv(str(inbox_csv))

    assert len(messages) == 2
    first = messages[0]
    assert first.message_id == "101"
    assert first.sender == "VM-HDFCBK"
    assert first.received_at == datetime(2025, 12, 7, 10, 0, tzinfo=timezone.utc)
    assert first.body.startswith("Rs.250.00 debited")


def test_csv_without_body_column(tmp_path):
    path = tmp_path / "bad.csv"
    pd.DataFrame([{"address": "VM-HDFCBK", "date": 0}]).to_csv(path, index=False)
    with pytest.raises(ValueError):
        load_sms_csv(str(path))


def test_csv_source_lists_newest_first(inbox_csv):
    source = CsvMessageSource(str(inbox_csv))
    messages = source.list_inbox(None, 10)
    assert [m.message_id for m in messages] == ["102", "101"]


def test_list_inbox_window_and_bound():
    now = datetime.now(timezone.utc)
    messages = [RawMessage(f"msg {i}", "VM-HDFCBK", now - timedelta(days=i)) for i in range(5)]
    source = InMemoryMessageSource(messages)

    assert len(source.list_inbox(now - timedelta(days=2, hours=1), 10)) == 3
    assert [m.body for m in source.list_inbox(None, 2)] == ["msg 0", "msg 1"]


def test_subscription_delivery_and_removal():
    source = InMemoryMessageSource()
    seen = []
    subscription = source.subscribe(seen.append)

    message = RawMessage("hello", "VM-HDFCBK", datetime.now(timezone.utc))
    source.deliver(message)
    assert seen == [message]

    subscription.remove()
    subscription.remove()
    assert subscription.removed
    source.deliver(message)
    assert seen == [message]
    assert source.subscriber_count == 0
    assert len(source.list_inbox(None, 10)) == 2


def test_subscription_remove_runs_once():
    calls = []
    subscription = Subscription(lambda: calls.append(1))
    subscription.remove()
    subscription.remove()
    assert calls == [1]


def test_naive_received_at_is_made_aware():
    local = datetime(2025, 12, 7, 10, 0)
    message = RawMessage("hello", "VM-HDFCBK", local)
    assert message.received_at.tzinfo is not None
    assert message.received_at.replace(tzinfo=None) == local
    assert message.received_at >= datetime(2025, 12, 6, tzinfo=timezone.utc)
