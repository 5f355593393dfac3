"""
Mock Staff Alert Service

Logs alerts instead of sending them and keeps them in ``sent`` so local
tools and tests can inspect what staff would have received.
"""

import asyncio
import logging
import random
import uuid

from bhavan.services.notifications.base import BaseNotificationService, Delivery

logger = logging.getLogger(__name__)


class MockNotificationService(BaseNotificationService):

    def __init__(self, failure_rate: float = 0.05, latency: float = 0.1):
        self.failure_rate = failure_rate
        self.latency = latency
        self.sent: list[Delivery] = []
        logger.info(f"MockNotificationService initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def _deliver(self, channel: str, recipient: str, summary: str) -> Delivery:
        if self.latency:
            await asyncio.sleep(self.latency)

        if random.random() < self.failure_rate:
            logger.warning(f"Mock {channel} to {recipient} failed (simulated)")
            return Delivery(channel, recipient, success=False, error_message=f"Simulated {channel} failure")

        delivery = Delivery(channel, recipient, success=True, reference=f"{channel}_mock_{uuid.uuid4().hex[:12]}")
        self.sent.append(delivery)
        logger.info(f"📨 Mock {channel} to {recipient}: {summary[:60]}")
        return delivery

    async def send_sms(self, to_phone: str, text: str) -> Delivery:
        return await self._deliver("sms", to_phone, text)

    async def send_email(self, to_email: str, subject: str, html: str, text: str) -> Delivery:
        return await self._deliver("email", to_email, subject)

    async def health_check(self) -> bool:
        return True
