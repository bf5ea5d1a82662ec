"""
Tests de la difusión en vivo de cambios de asientos
"""
import asyncio

from app.services.change_feed import ChangeFeed
from app.services import seat_service


def test_publish_reaches_subscribers_of_the_event():
    feed = ChangeFeed()

    async def scenario():
        queue = feed.subscribe(1)
        other = feed.subscribe(2)
        delivered = feed.publish_assignment(1, "R8-L-3", {"seat_id": "R8-L-3"})
        event = await asyncio.wait_for(queue.get(), timeout=1)
        return delivered, event, other.empty()

    delivered, event, other_empty = asyncio.run(scenario())
    assert delivered == 1
    assert event == {
        "type": "assignment",
        "action": "upsert",
        "seat_id": "R8-L-3",
        "row": {"seat_id": "R8-L-3"},
    }
    assert other_empty


def test_unsubscribe():
    feed = ChangeFeed()

    async def scenario():
        queue = feed.subscribe(1)
        assert feed.subscriber_count(1) == 1
        feed.unsubscribe(1, queue)
        return feed.publish_assignment(1, "R8-L-3", None)

    assert asyncio.run(scenario()) == 0
    assert feed.subscriber_count(1) == 0


def test_closed_loop_subscriber_is_dropped():
    feed = ChangeFeed()

    async def scenario():
        feed.subscribe(1)

    asyncio.run(scenario())
    # el loop del suscriptor ya terminó
    assert feed.publish(1, {"type": "ping"}) == 0
    assert feed.subscriber_count(1) == 0


def test_websocket_receives_release(client, db, sample_template, invitado):
    """
    Test: Un cliente conectado al canal del evento recibe la liberación del asiento
    """
    seat_service.claim_seat(db, invitado, "R8-L-3", sample_template.id)

    with client.websocket_connect("/ws/templates/1") as websocket:
        seat_service.release_seat(db, invitado, "R8-L-3", sample_template.id)
        event = websocket.receive_json()

    assert event["action"] == "delete"
    assert event["seat_id"] == "R8-L-3"
    assert event["row"] is None
