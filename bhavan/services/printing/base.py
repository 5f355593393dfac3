"""
Printer Service Abstract Base Class

Sends the receipt of a new order to the kitchen printer. Called from the
background pipeline, so implementations are synchronous.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from bhavan.services.receipts import ReceiptOrder


@dataclass
class PrintResult:
    """Result from submitting a receipt to the printer."""
    success: bool
    job_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


class BasePrinterService(ABC):
    """Abstract base class for printer services."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    def print_receipt(self, order: ReceiptOrder) -> PrintResult:
        """Print the receipt for one order."""
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """Check the printer is reachable."""
        pass
