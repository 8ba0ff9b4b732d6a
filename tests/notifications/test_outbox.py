import threading

from src.attendance_engine.attendance_engine.notifications.outbox import DomainEvent, Outbox


def test_drain_delivers_to_subscribers_in_order():
    outbox = Outbox()
    seen = []
    outbox.subscribe("a", lambda e: seen.append(("first", e.payload["n"])))
    outbox.subscribe("a", lambda e: seen.append(("second", e.payload["n"])))

    outbox.publish(DomainEvent("a", {"n": 1}))
    outbox.publish(DomainEvent("b", {"n": 2}))

    assert outbox.pending == 2
    assert outbox.drain() == 2
    assert seen == [("first", 1), ("second", 1)]
    assert outbox.pending == 0


def test_handler_failure_is_contained():
    outbox = Outbox()
    seen = []

    def boom(_event):
        raise ValueError("nope")

    outbox.subscribe("a", boom)
    outbox.subscribe("a", seen.append)
    outbox.publish(DomainEvent("a"))

    assert outbox.drain() == 1
    assert len(seen) == 1


def test_background_worker_delivers_events():
    outbox = Outbox()
    delivered = threading.Event()
    outbox.subscribe("a", lambda _e: delivered.set())

    outbox.start()
    try:
        outbox.publish(DomainEvent("a"))
        assert delivered.wait(timeout=5)
    finally:
        outbox.stop()
