"""
Event bus, notification gateways and the dispatcher loop.
"""

import asyncio
import json

import httpx
import pytest
from unittest.mock import AsyncMock

from salonbook.services.events import EventBus, build_event
from salonbook.services.notifications import (
    LoggingNotificationGateway,
    NotificationDispatcher,
    WebhookNotificationGateway,
)

PAYLOAD = {"appointment_id": 7, "user_id": 3, "starts_at": "2024-01-15T10:00:00"}


def recording_gateway():
    gateway = AsyncMock()
    gateway.notify_confirmation = AsyncMock()
    gateway.notify_cancellation = AsyncMock()
    gateway.notify_reminder = AsyncMock()
    return gateway


@pytest.mark.unit
class TestEvents:

    def test_envelope_fields(self):
        event = build_event("appointment.confirmed", PAYLOAD)
        assert set(event) == {"event_id", "event_type", "occurred_at", "data"}
        assert event["event_type"] == "appointment.confirmed"
        assert event["data"] == PAYLOAD

    def test_full_queue_drops_event(self):
        bus = EventBus(maxsize=1)
        assert bus.publish("appointment.confirmed", PAYLOAD) is not None
        assert bus.publish("appointment.confirmed", PAYLOAD) is None
        assert bus.pending() == 1


class TestDispatcher:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("event_type,method", [
        ("appointment.confirmed", "notify_confirmation"),
        ("appointment.cancelled", "notify_cancellation"),
        ("appointment.reminder", "notify_reminder"),
    ])
    async def test_routes_by_type(self, event_type, method):
        gateway = recording_gateway()
        dispatcher = NotificationDispatcher(EventBus(), gateway)

        assert await dispatcher.handle(build_event(event_type, PAYLOAD)) is True
        getattr(gateway, method).assert_awaited_once_with(PAYLOAD)

    @pytest.mark.asyncio
    async def test_unknown_type_ignored(self):
        gateway = recording_gateway()
        dispatcher = NotificationDispatcher(EventBus(), gateway)
        assert await dispatcher.handle(build_event("something.else", PAYLOAD)) is False

    @pytest.mark.asyncio
    async def test_gateway_failure_is_swallowed(self):
        gateway = recording_gateway()
        gateway.notify_confirmation.side_effect = RuntimeError("smtp down")
        dispatcher = NotificationDispatcher(EventBus(), gateway)

        assert await dispatcher.handle(build_event("appointment.confirmed", PAYLOAD)) is False

    @pytest.mark.asyncio
    async def test_run_drains_queue_until_stopped(self):
        bus = EventBus()
        gateway = recording_gateway()
        dispatcher = NotificationDispatcher(bus, gateway, poll_timeout=0.01)
        stop = asyncio.Event()

        bus.publish("appointment.confirmed", PAYLOAD)
        bus.publish("appointment.reminder", PAYLOAD)
        task = asyncio.create_task(dispatcher.run(stop))
        await asyncio.wait_for(bus.queue.join(), timeout=2.0)
        stop.set()
        await asyncio.wait_for(task, timeout=2.0)

        gateway.notify_confirmation.assert_awaited_once()
        gateway.notify_reminder.assert_awaited_once()
        assert bus.pending() == 0


class TestGateways:

    @pytest.mark.asyncio
    async def test_logging_gateway_accepts_all(self):
        gateway = LoggingNotificationGateway()
        await gateway.notify_confirmation(PAYLOAD)
        await gateway.notify_cancellation(PAYLOAD)
        await gateway.notify_reminder(PAYLOAD)

    @pytest.mark.asyncio
    async def test_webhook_posts_envelope(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(204)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            gateway = WebhookNotificationGateway("https://hooks.example.com/salon", client=client)
            await gateway.notify_cancellation(PAYLOAD)

        assert seen[0]["event_type"] == "appointment.cancelled"
        assert seen[0]["data"] == PAYLOAD

    @pytest.mark.asyncio
    async def test_webhook_error_status_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500))
        async with httpx.AsyncClient(transport=transport) as client:
            gateway = WebhookNotificationGateway("https://hooks.example.com/salon", client=client)
            with pytest.raises(httpx.HTTPStatusError):
                await gateway.notify_reminder(PAYLOAD)
