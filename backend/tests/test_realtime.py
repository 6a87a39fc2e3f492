import pytest
from sqlmodel import select

from tailorshop.db.realtime import ChangeFeed
from tailorshop.models import Customer, Fabric


def _customer(name="Meera"):
    return Customer(name=name, phone="9000000000", email=f"{name.lower()}@example.com")


def test_subscribe_requires_tables():
    with pytest.raises(ValueError):
        ChangeFeed().subscribe([], lambda tables: None)


def test_publish_reaches_matching_subscribers_only():
    feed = ChangeFeed()
    seen = []
    feed.subscribe(["fabrics"], lambda tables: seen.append(("fabrics", tables)))
    feed.subscribe(["orders", "customers"], lambda tables: seen.append(("orders", tables)))

    assert feed.publish(["customers"]) == 1
    assert seen == [("orders", frozenset({"customers"}))]


def test_unsubscribe_stops_delivery():
    feed = ChangeFeed()
    seen = []
    sub = feed.subscribe(["fabrics"], seen.append)
    sub.unsubscribe()
    sub.unsubscribe()
    assert feed.publish(["fabrics"]) == 0
    assert seen == []
    assert feed.subscriber_count == 0


def test_subscription_context_manager():
    feed = ChangeFeed()
    with feed.subscribe(["fabrics"], lambda tables: None) as sub:
        assert sub.active
        assert feed.subscriber_count == 1
    assert not sub.active
    assert feed.subscriber_count == 0


def test_failing_callback_does_not_block_others():
    feed = ChangeFeed()
    seen = []

    def broken(tables):
        raise RuntimeError("boom")

    feed.subscribe(["fabrics"], broken)
    feed.subscribe(["fabrics"], seen.append)
    assert feed.publish(["fabrics"]) == 2
    assert seen == [frozenset({"fabrics"})]


def test_commit_publishes_once(backend):
    seen = []
    backend.feed.subscribe(["customers", "fabrics"], seen.append)

    with backend.session() as s:
        s.add(_customer("Meera"))
        s.flush()
        s.add(_customer("Kiran"))
        s.add(Fabric(name="Linen", material="Linen", color="White", price_per_meter=900, stock=10))
        s.commit()

    assert seen == [frozenset({"customers", "fabrics"})]


def test_rollback_publishes_nothing(backend):
    seen = []
    backend.feed.subscribe(["customers"], seen.append)

    with backend.session() as s:
        s.add(_customer())
        s.flush()
        s.rollback()

    assert seen == []
    with backend.session() as s:
        assert s.exec(select(Customer)).all() == []


def test_read_only_session_publishes_nothing(backend):
    seen = []
    backend.feed.subscribe(["customers"], seen.append)
    with backend.session() as s:
        s.exec(select(Customer)).all()
        s.commit()
    assert seen == []
