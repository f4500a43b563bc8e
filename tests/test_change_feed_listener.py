"""Tests for the change feed bridge into the order store"""

import asyncio

import pytest

from kitchen_console.application.change_feed_listener import ChangeFeedListener, ListenerState
from kitchen_console.application.order_store import IngestOutcome
from kitchen_console.domain.models import ChangeEvent, OrderStatus
from conftest import FakeChangeFeed, make_order, wait_until


@pytest.fixture
def feed():
    return FakeChangeFeed()


@pytest.fixture
async def listener(feed, store, alerts):
    listener = ChangeFeedListener(feed, store, alerts, start_delay=0)
    yield listener
    await listener.stop()


async def subscribed(listener):
    listener.start()
    await wait_until(lambda: listener.state == ListenerState.SUBSCRIBED)


@pytest.mark.asyncio
async def test_created_event_prepends_and_alerts_once(listener, feed, store, alerts):
    """Scenario: a new order lands at the front of the snapshot with one alert"""
    store.replace_all([make_order("1")])
    raised = []
    alerts.subscribe(lambda alert: alert and raised.append(alert.order.id))
    await subscribed(listener)

    feed.push("created", make_order("2"))
    await feed.drained()

    assert [o.id for o in store.all()] == ["2", "1"]
    assert raised == ["2"]
    assert alerts.current.order.id == "2"


@pytest.mark.asyncio
async def test_duplicate_created_event_does_not_alert_again(listener, feed, store, alerts):
    raised = []
    alerts.subscribe(lambda alert: alert and raised.append(alert.order.id))
    await subscribed(listener)

    feed.push("created", make_order("2"))
    feed.push("created", make_order("2"))
    await feed.drained()

    assert [o.id for o in store.all()] == ["2"]
    assert raised == ["2"]


@pytest.mark.asyncio
async def test_created_event_for_known_id_with_new_data_is_an_update(listener, store, alerts):
    store.replace_all([make_order("2")])

    outcome = await listener.handle(ChangeEvent(event="created", record=make_order("2", total=75)))

    assert outcome == IngestOutcome.UPDATED
    assert alerts.current is None
    assert store.get("2").total == 75


@pytest.mark.asyncio
async def test_updated_event_replaces_in_place_without_alert(listener, feed, store, alerts):
    store.replace_all([make_order("3"), make_order("2"), make_order("1")])
    await subscribed(listener)

    feed.push("updated", make_order("2", status=OrderStatus.PAID))
    await feed.drained()

    assert [o.id for o in store.all()] == ["3", "2", "1"]
    assert store.get("2").status == OrderStatus.PAID
    assert alerts.current is None


@pytest.mark.asyncio
async def test_subscription_start_is_deferred(feed, store, alerts):
    listener = ChangeFeedListener(feed, store, alerts, start_delay=0.2)
    listener.start()
    await asyncio.sleep(0.05)

    assert listener.state == ListenerState.WAITING
    assert feed.started == 0

    await wait_until(lambda: feed.started == 1)
    await listener.stop()
    assert feed.stopped == 1


@pytest.mark.asyncio
async def test_stop_before_delay_cancels_subscription(feed, store, alerts):
    listener = ChangeFeedListener(feed, store, alerts, start_delay=5)
    listener.start()
    await asyncio.sleep(0)

    await listener.stop()

    assert feed.started == 0
    assert feed.stopped == 0
    assert listener.state == ListenerState.CLOSED


@pytest.mark.asyncio
async def test_stop_always_unsubscribes(listener, feed):
    await subscribed(listener)

    await listener.stop()
    await listener.stop()

    assert feed.stopped == 1
    assert listener.state == ListenerState.CLOSED


@pytest.mark.asyncio
async def test_feed_failure_degrades_without_retry(store, alerts):
    feed = FakeChangeFeed(fail_start=True)
    listener = ChangeFeedListener(feed, store, alerts, start_delay=0)

    listener.start()
    await wait_until(lambda: listener.state == ListenerState.DEGRADED)
    await asyncio.sleep(0.05)

    assert feed.started == 0
    assert listener.state == ListenerState.DEGRADED
    await listener.stop()


@pytest.mark.asyncio
async def test_bad_event_does_not_stop_ingestion(listener, feed, store, alerts):
    await subscribed(listener)
    original_raise = alerts.raise_alert
    calls = []

    def flaky_raise(order):
        calls.append(order.id)
        if len(calls) == 1:
            raise RuntimeError("alert failed")
        return original_raise(order)

    alerts.raise_alert = flaky_raise

    feed.push("created", make_order("1"))
    feed.push("created", make_order("2"))
    await feed.drained()

    assert [o.id for o in store.all()] == ["2", "1"]
    assert calls == ["1", "2"]
    assert listener.state == ListenerState.SUBSCRIBED


@pytest.mark.asyncio
async def test_read_error_resumes_with_later_events(feed, store, alerts):
    listener = ChangeFeedListener(feed, store, alerts, start_delay=0, resume_delay=0)
    await subscribed(listener)

    feed.push("created", make_order("1"))
    feed.push_error(RuntimeError("message could not be read"))
    feed.push("created", make_order("2"))
    await feed.drained()

    assert [o.id for o in store.all()] == ["2", "1"]
    assert alerts.current.order.id == "2"
    assert listener.state == ListenerState.SUBSCRIBED
    assert feed.stopped == 0
    await listener.stop()


@pytest.mark.asyncio
async def test_repeated_read_errors_degrade_and_unsubscribe(feed, store, alerts):
    listener = ChangeFeedListener(feed, store, alerts, start_delay=0, max_read_errors=3, resume_delay=0)
    await subscribed(listener)

    for _ in range(3):
        feed.push_error(RuntimeError("broker connection lost"))
    await wait_until(lambda: listener.state == ListenerState.DEGRADED)

    assert feed.stopped == 1
    await listener.stop()
    assert feed.stopped == 1
