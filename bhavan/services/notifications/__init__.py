"""
Staff Alert Service Factory

MockNotificationService in development, RealNotificationService otherwise.
"""

import logging
from functools import lru_cache

from bhavan.core.config import get_settings
from bhavan.services.notifications.base import (
    BaseNotificationService,
    Delivery,
    NotificationResult,
    StaffAlert,
)
from bhavan.services.notifications.mock import MockNotificationService
from bhavan.services.notifications.real import RealNotificationService

logger = logging.getLogger(__name__)


@lru_cache()
def get_notification_service() -> BaseNotificationService:
    settings = get_settings()
    if settings.is_development:
        logger.info("Notification Service: Using MockNotificationService (development mode)")
        return MockNotificationService()
    logger.info(f"Notification Service: Using RealNotificationService ({settings.env_mode.value} mode)")
    return RealNotificationService(settings)


def reset_notification_service() -> None:
    get_notification_service.cache_clear()


__all__ = [
    "get_notification_service",
    "reset_notification_service",
    "BaseNotificationService",
    "Delivery",
    "NotificationResult",
    "StaffAlert",
    "MockNotificationService",
    "RealNotificationService",
]
