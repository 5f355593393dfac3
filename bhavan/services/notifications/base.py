"""
Staff Alert Service

Tells the restaurant about a new order over SMS and email, next to the
realtime alert on the admin channel. A Mock implementation logs instead of
sending; the real one uses Twilio and SendGrid.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from html import escape
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StaffAlert:
    """One new-order alert, rendered per channel."""
    title: str
    body: str

    @property
    def text(self) -> str:
        return f"{self.title}\n{self.body}"

    @property
    def html(self) -> str:
        return f"<h3>{escape(self.title)}</h3><p>{escape(self.body)}</p>"


@dataclass
class Delivery:
    """Outcome of sending on one channel."""
    channel: str
    recipient: str
    success: bool
    reference: Optional[str] = None
    error_message: Optional[str] = None


@dataclass
class NotificationResult:
    """
    Outcome of alerting staff. Succeeds when at least one channel
    delivered.
    """
    deliveries: list[Delivery] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return any(d.success for d in self.deliveries)

    @property
    def error_message(self) -> Optional[str]:
        if not self.deliveries:
            return "No staff contact configured"
        if self.success:
            return None
        return self.deliveries[0].error_message


class BaseNotificationService(ABC):

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    async def send_sms(self, to_phone: str, text: str) -> Delivery:
        pass

    @abstractmethod
    async def send_email(self, to_email: str, subject: str, html: str, text: str) -> Delivery:
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        pass

    async def alert_staff(
        self,
        alert: StaffAlert,
        phone: Optional[str] = None,
        email: Optional[str] = None,
    ) -> NotificationResult:
        """
        Send ``alert`` on every channel that has a contact, concurrently.

        A channel that raises is reported as a failed ``Delivery`` and does
        not stop the others.
        """
        targets = []
        sends = []
        if phone:
            targets.append(("sms", phone))
            sends.append(self.send_sms(phone, alert.text))
        if email:
            targets.append(("email", email))
            sends.append(self.send_email(email, alert.title, alert.html, alert.text))

        deliveries = []
        for (channel, recipient), outcome in zip(targets, await asyncio.gather(*sends, return_exceptions=True)):
            if isinstance(outcome, Exception):
                logger.error(f"{channel} alert to {recipient} raised: {outcome!r}")
                outcome = Delivery(channel=channel, recipient=recipient, success=False, error_message=str(outcome))
            elif isinstance(outcome, BaseException):
                raise outcome
            deliveries.append(outcome)
        return NotificationResult(deliveries=deliveries)
