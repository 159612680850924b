# salonbook/services/events.py
"""
In-process domain events. The lifecycle publishes, the notification dispatcher consumes.
"""
from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any

from salonbook.core.config import settings
from salonbook.core.logging import get_logger

logger = get_logger(__name__)

APPOINTMENT_CONFIRMED = "appointment.confirmed"
APPOINTMENT_CANCELLED = "appointment.cancelled"
APPOINTMENT_REMINDER = "appointment.reminder"


def build_event(event_type: str, data: dict) -> dict:
    return {
        "event_id": str(uuid.uuid4()),
        "event_type": event_type,
        "occurred_at": datetime.now(timezone.utc).isoformat(),
        "data": data,
    }


class EventBus:
    """Bounded queue of event envelopes. Publishing never blocks the caller."""

    def __init__(self, maxsize: int = 1000):
        self.queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=maxsize)

    def publish(self, event_type: str, data: dict) -> dict | None:
        event = build_event(event_type, data)
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("event_dropped", event_type=event_type, reason="queue_full",
                           queue_size=self.queue.qsize())
            return None
        logger.debug("event_published", event_type=event_type, event_id=event["event_id"])
        return event

    async def next_event(self, timeout: float) -> dict | None:
        try:
            return await asyncio.wait_for(self.queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    def task_done(self) -> None:
        self.queue.task_done()

    def pending(self) -> int:
        return self.queue.qsize()


# Singleton shared by the API and the dispatcher task
event_bus = EventBus(maxsize=settings.EVENT_QUEUE_SIZE)


def get_event_bus() -> EventBus:
    return event_bus
