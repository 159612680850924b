# salonbook/services/notifications.py
"""
Notification gateways and the background consumer that feeds them from the event bus.
"""
from __future__ import annotations

import asyncio
from typing import Optional, Protocol

import httpx

from salonbook.core.config import Settings
from salonbook.core.errors import ErrorSeverity, log_error
from salonbook.core.logging import get_logger
from salonbook.services.events import (
    APPOINTMENT_CANCELLED,
    APPOINTMENT_CONFIRMED,
    APPOINTMENT_REMINDER,
    EventBus,
    build_event,
)

logger = get_logger(__name__)


class NotificationGateway(Protocol):
    async def notify_confirmation(self, data: dict) -> None: ...
    async def notify_cancellation(self, data: dict) -> None: ...
    async def notify_reminder(self, data: dict) -> None: ...


class LoggingNotificationGateway:
    """Default gateway: records each notification in the structured log."""

    async def notify_confirmation(self, data: dict) -> None:
        logger.info("notify_confirmation", appointment_id=data.get("appointment_id"),
                    user_id=data.get("user_id"), starts_at=data.get("starts_at"))

    async def notify_cancellation(self, data: dict) -> None:
        logger.info("notify_cancellation", appointment_id=data.get("appointment_id"),
                    user_id=data.get("user_id"), starts_at=data.get("starts_at"))

    async def notify_reminder(self, data: dict) -> None:
        logger.info("notify_reminder", appointment_id=data.get("appointment_id"),
                    user_id=data.get("user_id"), kind=data.get("kind"))


class WebhookNotificationGateway:
    """POSTs an event envelope per notification to an external endpoint."""

    def __init__(self, url: str, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self.url = url
        self.timeout = timeout
        self._client = client

    async def _post(self, event_type: str, data: dict) -> None:
        payload = build_event(event_type, data)
        if self._client is not None:
            response = await self._client.post(self.url, json=payload)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, json=payload)
        response.raise_for_status()
        logger.debug("webhook_delivered", event_type=event_type, status_code=response.status_code)

    async def notify_confirmation(self, data: dict) -> None:
        await self._post(APPOINTMENT_CONFIRMED, data)

    async def notify_cancellation(self, data: dict) -> None:
        await self._post(APPOINTMENT_CANCELLED, data)

    async def notify_reminder(self, data: dict) -> None:
        await self._post(APPOINTMENT_REMINDER, data)


def gateway_from_settings(settings: Settings) -> NotificationGateway:
    if settings.NOTIFICATION_WEBHOOK_URL:
        return WebhookNotificationGateway(settings.NOTIFICATION_WEBHOOK_URL, settings.NOTIFICATION_TIMEOUT)
    return LoggingNotificationGateway()


class NotificationDispatcher:
    """Drains the event bus and hands each event to the gateway."""

    def __init__(self, bus: EventBus, gateway: NotificationGateway, poll_timeout: float = 1.0):
        self.bus = bus
        self.gateway = gateway
        self.poll_timeout = poll_timeout

    async def handle(self, event: dict) -> bool:
        """Deliver one event. Returns False when it was skipped or delivery failed."""
        event_type = event.get("event_type")
        data = event.get("data") or {}

        if event_type == APPOINTMENT_CONFIRMED:
            send = self.gateway.notify_confirmation
        elif event_type == APPOINTMENT_CANCELLED:
            send = self.gateway.notify_cancellation
        elif event_type == APPOINTMENT_REMINDER:
            send = self.gateway.notify_reminder
        else:
            logger.warning("event_ignored", event_type=event_type)
            return False

        try:
            await send(data)
        except Exception as e:
            log_error(e, {"component": "notification_dispatcher", "method": event_type,
                          "appointment_id": data.get("appointment_id")}, ErrorSeverity.MEDIUM)
            return False
        return True

    async def run(self, stop_event: asyncio.Event) -> None:
        logger.info("dispatcher_started")
        while not stop_event.is_set():
            event = await self.bus.next_event(self.poll_timeout)
            if event is None:
                continue
            try:
                await self.handle(event)
            finally:
                self.bus.task_done()
        logger.info("dispatcher_stopped", pending=self.bus.pending())
