import asyncio
from unittest.mock import AsyncMock

from alert_monitor.services.event_bus import EventBus
from alert_monitor.services.events import NewAlert
from alert_monitor.services.websocket_manager import ConnectionManager

ALERT = {"id": "A_1", "location": "A", "time": "08:00", "timestamp": "2026-10-16T08:00:00.000+00:00", "date": "2026-10-16"}


def _socket(fail: bool = False) -> AsyncMock:
    ws = AsyncMock()
    if fail:
        ws.send_json.side_effect = RuntimeError("closed")
    return ws


def test_broadcast_reaches_every_client():
    manager = ConnectionManager()
    first, second = _socket(), _socket()

    async def scenario():
        await manager.connect(first)
        await manager.connect(second)
        return await manager.broadcast({"event": "newAlert", "data": ALERT})

    assert asyncio.run(scenario()) == 2
    first.accept.assert_awaited_once()
    first.send_json.assert_awaited_once_with({"event": "newAlert", "data": ALERT})
    second.send_json.assert_awaited_once()


def test_failed_client_is_dropped():
    manager = ConnectionManager()
    good, dead = _socket(), _socket(fail=True)

    async def scenario():
        await manager.connect(good)
        await manager.connect(dead)
        sent = await manager.broadcast({"event": "ping"})
        return sent

    assert asyncio.run(scenario()) == 1
    assert manager.connection_count == 1


def test_event_bus_delivers_new_alert_to_clients():
    manager = ConnectionManager()
    ws = _socket()
    bus = EventBus()
    bus.subscribe(manager.handle_event)

    async def scenario():
        await manager.connect(ws)
        return await bus.publish(NewAlert(alert=ALERT))

    assert asyncio.run(scenario()) == 1
    ws.send_json.assert_awaited_once_with({"event": "newAlert", "data": ALERT})


def test_event_bus_isolates_failing_handlers():
    bus = EventBus()
    seen = []

    async def broken(event):
        raise ValueError("boom")

    async def working(event):
        seen.append(event)

    bus.subscribe(broken)
    bus.subscribe(working)

    delivered = asyncio.run(bus.publish(NewAlert(alert=ALERT)))

    assert delivered == 1
    assert len(seen) == 1

    bus.unsubscribe(broken)
    assert bus.handler_count == 1


def test_publish_without_subscribers_is_noop():
    assert asyncio.run(EventBus().publish(NewAlert(alert=ALERT))) == 0
