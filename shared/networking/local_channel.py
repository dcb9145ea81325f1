"""
In-process violation channel (broker publish/subscribe per guru)
"""
import itertools
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from shared.context import EventCallback, LostCallback
from shared.errors import SubscriptionError
from shared.notifications.models import ViolationEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubscriptionHandle:
    """Handle subscription, dimiliki eksklusif oleh satu subscriber"""
    subscription_id: int
    teacher_id: str


class LocalViolationChannel:
    """
    Broker violation dalam satu proses

    Delivery at-most-once per publish, hanya ke subscriber dengan teacher_id
    yang sama dengan event.
    """

    def __init__(self):
        self._subscribers: Dict[int, tuple] = {}  # subscription_id -> (teacher_id, on_event, on_lost)
        self._ids = itertools.count(1)
        self.closed = False

    async def subscribe(self, teacher_id: str, on_event: EventCallback,
                        on_lost: Optional[LostCallback] = None) -> SubscriptionHandle:
        if self.closed:
            raise SubscriptionError("Violation channel is closed")
        if not teacher_id:
            raise SubscriptionError("teacher_id is required to subscribe")

        handle = SubscriptionHandle(next(self._ids), teacher_id)
        self._subscribers[handle.subscription_id] = (teacher_id, on_event, on_lost)
        logger.debug("Teacher %s subscribed (#%d)", teacher_id, handle.subscription_id)
        return handle

    async def unsubscribe(self, handle: SubscriptionHandle):
        self._subscribers.pop(handle.subscription_id, None)

    async def publish(self, event: ViolationEvent) -> int:
        """
        Kirim event ke semua subscriber milik guru yang sama

        Returns:
            Jumlah subscriber yang menerima event
        """
        delivered = 0
        for teacher_id, on_event, _ in list(self._subscribers.values()):
            if teacher_id != event.teacher_id:
                continue
            try:
                on_event(event)
                delivered += 1
            except Exception as e:
                logger.error("Error delivering violation to teacher %s: %s", teacher_id, e)
        return delivered

    def subscriber_count(self, teacher_id: str = None) -> int:
        if teacher_id is None:
            return len(self._subscribers)
        return sum(1 for entry in self._subscribers.values() if entry[0] == teacher_id)

    def close(self):
        """Tutup channel; subscriber yang masih aktif diberi tahu lewat on_lost"""
        if self.closed:
            return
        self.closed = True
        subscribers, self._subscribers = list(self._subscribers.values()), {}

        for teacher_id, _, on_lost in subscribers:
            if on_lost is None:
                continue
            try:
                on_lost(SubscriptionError("Violation channel closed"))
            except Exception as e:
                logger.error("Error reporting closed channel to teacher %s: %s", teacher_id, e)
