from datetime import datetime, timedelta, timezone

import pytest

from sms_parser_core.listener import RealtimeListener
from sms_parser_core.persistence import PersistenceBridge
from sms_parser_core.raw_message import RawMessage
from sms_parser_core.stores import InMemoryTransactionStore, SqlTransactionStore


@pytest.fixture
def now():
    return datetime.now(timezone.utc).replace(microsecond=0)


@pytest.fixture
def make_message(now):
    counter = {"n": 0}

    def _make(body, sender="VM-HDFCBK", age=timedelta(hours=1), message_id=None):
        counter["n"] += 1
        return RawMessage(
            body=body,
            sender=sender,
            received_at=now - age,
            message_id=message_id or str(counter["n"]),
        )

    return _make


@pytest.fixture
def memory_store():
    return InMemoryTransactionStore()


@pytest.fixture
def bridge(memory_store):
    return PersistenceBridge(memory_store)


@pytest.fixture(params=["memory", "sql"])
def any_store(request):
    if request.param == "memory":
        return InMemoryTransactionStore()
    return SqlTransactionStore("sqlite://")


@pytest.fixture
def listeners():
    """Collects listeners created by a test and stops them afterwards so the process slot is freed."""
    created = []
    yield created
    for listener in created:
        listener.stop()
    assert not RealtimeListener.any_active()
