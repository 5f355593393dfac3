"""
Printer Service Factory

Returns the spooling mock printer in development and the ESC/POS network
printer otherwise.
"""

import logging
from functools import lru_cache

from bhavan.core.config import get_settings
from bhavan.services.printing.base import BasePrinterService, PrintResult
from bhavan.services.printing.mock import MockPrinterService

logger = logging.getLogger(__name__)


@lru_cache()
def get_printer_service() -> BasePrinterService:
    """Get the configured printer service."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Printer Service: Using MockPrinterService (development mode)")
        return MockPrinterService()

    from bhavan.services.printing.network import EscposPrinterService

    logger.info(f"Printer Service: Using EscposPrinterService ({settings.env_mode.value} mode)")
    return EscposPrinterService()


def reset_printer_service() -> None:
    """Clear the cached service instance."""
    get_printer_service.cache_clear()


__all__ = [
    "get_printer_service",
    "reset_printer_service",
    "BasePrinterService",
    "PrintResult",
    "MockPrinterService",
]
