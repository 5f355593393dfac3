"""
Twilio / SendGrid Staff Alert Service

SMS goes through Twilio and email through SendGrid. Either channel may be
left unconfigured; a missing channel reports a failed delivery instead of
raising. Both SDKs are blocking, so sends run in worker threads.
"""

import asyncio
import logging
from typing import Optional

from python_http_client.exceptions import HTTPError
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail
from twilio.base.exceptions import TwilioException
from twilio.rest import Client as TwilioClient

from bhavan.core.config import Settings, get_settings
from bhavan.services.notifications.base import BaseNotificationService, Delivery

logger = logging.getLogger(__name__)

ACCEPTED_STATUSES = (200, 201, 202)


class RealNotificationService(BaseNotificationService):

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.sms_sender = settings.twilio_phone_number
        self.email_sender = settings.sendgrid_from_email

        self.twilio = None
        if settings.twilio_account_sid and settings.twilio_auth_token:
            self.twilio = TwilioClient(settings.twilio_account_sid, settings.twilio_auth_token)

        self.sendgrid = SendGridAPIClient(settings.sendgrid_api_key) if settings.sendgrid_api_key else None

        channels = [name for name, client in (("sms", self.twilio), ("email", self.sendgrid)) if client]
        logger.info(f"RealNotificationService initialized (channels: {', '.join(channels) or 'none'})")

    @property
    def provider_name(self) -> str:
        return "twilio+sendgrid"

    async def send_sms(self, to_phone: str, text: str) -> Delivery:
        if self.twilio is None:
            return Delivery("sms", to_phone, success=False, error_message="Twilio not configured")

        try:
            message = await asyncio.to_thread(
                self.twilio.messages.create, body=text, from_=self.sms_sender, to=to_phone
            )
        except TwilioException as e:
            logger.error(f"❌ Twilio SMS to {to_phone} failed: {e}")
            return Delivery("sms", to_phone, success=False, error_message=str(e))

        logger.info(f"📨 SMS to {to_phone} queued ({message.sid})")
        return Delivery("sms", to_phone, success=True, reference=message.sid)

    async def send_email(self, to_email: str, subject: str, html: str, text: str) -> Delivery:
        if self.sendgrid is None:
            return Delivery("email", to_email, success=False, error_message="SendGrid not configured")

        mail = Mail(
            from_email=self.email_sender,
            to_emails=to_email,
            subject=subject,
            html_content=html,
            plain_text_content=text,
        )
        try:
            response = await asyncio.to_thread(self.sendgrid.send, mail)
        except HTTPError as e:
            logger.error(f"❌ SendGrid email to {to_email} failed: {e}")
            return Delivery("email", to_email, success=False, error_message=str(e))

        if response.status_code not in ACCEPTED_STATUSES:
            return Delivery("email", to_email, success=False, error_message=f"SendGrid returned {response.status_code}")

        logger.info(f"📨 Email to {to_email} accepted")
        return Delivery("email", to_email, success=True, reference=response.headers.get("X-Message-Id"))

    async def health_check(self) -> bool:
        return self.twilio is not None or self.sendgrid is not None
