"""Tests for the realtime listener lifecycle and message handling."""

import threading

import pytest

from sms_parser_core.errors import SubscriptionError
from sms_parser_core.events import TransactionEvents
from sms_parser_core.listener import ListenerState, RealtimeListener
from sms_parser_core.persistence import UpsertStatus
from sms_parser_core.sources import InMemoryMessageSource

AMAZON_DEBIT = "Rs.250.00 debited from A/c XX1234 on 07-12-25 at AMAZON. Avl Bal Rs.10,500.00"
UPI_CREDIT = "You received Rs 5000 from RAHUL SHARMA. UPI Ref 123456789012"


class RefusingSource(InMemoryMessageSource):
    def subscribe(self, on_message):
        raise SubscriptionError("receiver registration failed")


@pytest.fixture
def source():
    return InMemoryMessageSource()


@pytest.fixture
def events():
    return TransactionEvents()


@pytest.fixture
def listener(source, bridge, events, listeners):
    instance = RealtimeListener(source, bridge, events=events)
    listeners.append(instance)
    return instance


def test_start_and_stop(listener, source):
    assert listener.state == ListenerState.STOPPED

    result = listener.start("owner-1")
    assert result.started
    assert listener.is_active()
    assert RealtimeListener.any_active()
    assert source.subscriber_count == 1

    listener.stop()
    assert listener.state == ListenerState.STOPPED
    assert not RealtimeListener.any_active()
    assert source.subscriber_count == 0


def test_stop_is_idempotent(listener):
    listener.stop()
    listener.start("owner-1")
    listener.stop()
    listener.stop()
    assert not listener.is_active()


def test_second_start_is_rejected(listener, source, bridge, listeners):
    assert listener.start("owner-1").started

    again = listener.start("owner-1")
    assert not again.started
    assert again.reason == "already-active"

    other = RealtimeListener(source, bridge)
    listeners.append(other)
    result = other.start("owner-2")
    assert not result.started
    assert result.reason == "already-active"
    assert source.subscriber_count == 1


def test_slot_is_free_after_stop(listener, source, bridge, listeners):
    listener.start("owner-1")
    listener.stop()

    other = RealtimeListener(source, bridge)
    listeners.append(other)
    assert other.start("owner-1").started


def test_permission_denied(bridge, listeners):
    source = InMemoryMessageSource(permission_granted=False)
    listener = RealtimeListener(source, bridge)
    listeners.append(listener)

    result = listener.start("owner-1")
    assert not result.started
    assert result.reason == "permission-denied"
    assert listener.state == ListenerState.STOPPED
    assert not RealtimeListener.any_active()


def test_subscription_failure(bridge, listeners):
    listener = RealtimeListener(RefusingSource(), bridge)
    listeners.append(listener)

    result = listener.start("owner-1")
    assert not result.started
    assert "receiver registration failed" in result.reason
    assert listener.state == ListenerState.STOPPED
    assert not RealtimeListener.any_active()


def test_messages_are_saved_and_published(listener, source, events, memory_store, make_message):
    received = []
    events.subscribe(received.append)
    listener.start("owner-1")

    source.deliver(make_message(AMAZON_DEBIT))
    source.deliver(make_message(UPI_CREDIT))
    listener.wait_idle()

    assert len(memory_store) == 2
    assert [e.transaction.merchant for e in received] == ["AMAZON", "RAHUL SHARMA"]
    assert all(e.owner_id == "owner-1" for e in received)
    assert all(e.result.status == UpsertStatus.SAVED for e in received)
    assert listener.stats.saved == 2


def test_noise_unparsed_and_duplicates_are_dropped_quietly(listener, source, events, memory_store, make_message):
    received = []
    events.subscribe(received.append)
    listener.start("owner-1")

    source.deliver(make_message(AMAZON_DEBIT))
    source.deliver(make_message(AMAZON_DEBIT))
    source.deliver(make_message("Rs 500 debited. OTP is 123456"))
    source.deliver(make_message("Your account has been debited"))
    listener.wait_idle()

    stats = listener.stats
    assert stats.received == 4
    assert stats.saved == 1
    assert stats.duplicates == 1
    assert stats.noise == 1
    assert stats.unparsed == 1
    assert stats.failed == 0
    assert len(received) == 1
    assert len(memory_store) == 1


def test_failing_subscriber_does_not_undo_the_save(listener, source, events, memory_store, make_message):
    def broken(event):
        raise RuntimeError("view refresh failed")

    received = []
    events.subscribe(broken)
    events.subscribe(received.append)
    listener.start("owner-1")

    source.deliver(make_message(AMAZON_DEBIT))
    listener.wait_idle()

    assert len(memory_store) == 1
    assert len(received) == 1
    assert listener.stats.saved == 1


def test_nothing_is_admitted_after_stop(listener, source, memory_store, make_message):
    listener.start("owner-1")
    listener.stop()

    source.deliver(make_message(AMAZON_DEBIT))
    assert len(memory_store) == 0
    assert listener.stats.received == 0


def test_stop_from_another_thread(listener, source, memory_store, make_message):
    listener.start("owner-1")
    source.deliver(make_message(AMAZON_DEBIT))
    listener.wait_idle()

    stopper = threading.Thread(target=listener.stop)
    stopper.start()
    stopper.join(timeout=5)

    assert not stopper.is_alive()
    assert not listener.is_active()
    assert len(memory_store) == 1


def test_stop_from_a_subscriber(listener, source, events, memory_store, make_message):
    events.subscribe(lambda event: listener.stop())
    listener.start("owner-1")

    source.deliver(make_message(AMAZON_DEBIT))
    source.deliver(make_message(UPI_CREDIT))
    listener.wait_idle()

    assert not listener.is_active()
    assert len(memory_store) == 1


def test_stats_start_fresh_on_restart(listener, source, make_message):
    listener.start("owner-1")
    source.deliver(make_message(AMAZON_DEBIT))
    listener.wait_idle()
    listener.stop()
    assert listener.stats.saved == 1

    listener.start("owner-1")
    assert listener.stats.received == 0

    source.deliver(make_message(UPI_CREDIT))
    listener.wait_idle()
    assert listener.stats.received == 1
    assert listener.stats.saved == 1
