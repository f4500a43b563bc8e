"""Tests for the in-memory order store"""

from kitchen_console.application.order_store import IngestOutcome, OrderStore
from kitchen_console.domain.models import OrderStatus
from conftest import make_order


def test_ingest_new_order_is_prepended(store):
    store.ingest(make_order("1"))
    outcome = store.ingest(make_order("2"))

    assert outcome == IngestOutcome.INSERTED
    assert [o.id for o in store.all()] == ["2", "1"]


def test_ingest_update_keeps_position(store):
    store.replace_all([make_order("3"), make_order("2"), make_order("1")])

    outcome = store.ingest(make_order("2", status=OrderStatus.PAID))

    assert outcome == IngestOutcome.UPDATED
    assert [o.id for o in store.all()] == ["3", "2", "1"]
    assert store.get("2").status == OrderStatus.PAID


def test_ingest_is_idempotent(store):
    order = make_order("1")
    once = OrderStore()
    once.ingest(order)

    store.ingest(order)
    outcome = store.ingest(make_order("1"))

    assert outcome == IngestOutcome.UNCHANGED
    assert store.all() == once.all()


def test_replace_all_keeps_given_order_and_first_duplicate(store):
    store.ingest(make_order("old"))
    store.replace_all([make_order("b"), make_order("a"), make_order("b", total=99)])

    assert [o.id for o in store.all()] == ["b", "a"]
    assert store.get("b").total == 50
    assert store.get("old") is None


def test_snapshot_is_detached_from_later_mutations(store):
    store.ingest(make_order("1"))
    snapshot = store.all()

    store.ingest(make_order("2"))

    assert isinstance(snapshot, tuple)
    assert len(snapshot) == 1
    assert len(store) == 2


def test_listeners_receive_snapshot_on_effective_changes(store):
    seen = []
    store.subscribe(lambda snapshot: seen.append([o.id for o in snapshot]))

    store.ingest(make_order("1"))
    store.ingest(make_order("1"))
    store.ingest(make_order("1", status=OrderStatus.PAID))
    store.replace_all([])

    assert seen == [["1"], ["1"], []]


def test_unsubscribe_stops_notifications(store):
    seen = []
    unsubscribe = store.subscribe(seen.append)
    unsubscribe()

    store.ingest(make_order("1"))

    assert seen == []


def test_failing_listener_does_not_break_ingest(store):
    seen = []

    def broken(_):
        raise RuntimeError("render failed")

    store.subscribe(broken)
    store.subscribe(seen.append)

    assert store.ingest(make_order("1")) == IngestOutcome.INSERTED
    assert len(seen) == 1
