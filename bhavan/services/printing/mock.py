"""
Mock Printer Service

Writes the print-formatted HTML receipt to a spool directory instead of
driving a physical printer. Used in development.
"""

import logging
from pathlib import Path
from typing import Optional

from bhavan.core.config import Settings, get_settings
from bhavan.services.printing.base import BasePrinterService, PrintResult
from bhavan.services.receipts import ReceiptOrder, receipt_filename, render_print_receipt

logger = logging.getLogger(__name__)


class MockPrinterService(BasePrinterService):
    """Spools HTML receipts to disk."""

    def __init__(self, spool_directory: Optional[str] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.spool_directory = Path(spool_directory or self.settings.print_spool_directory)
        logger.info(f"MockPrinterService initialized (spool={self.spool_directory})")

    @property
    def provider_name(self) -> str:
        return "mock"

    def print_receipt(self, order: ReceiptOrder) -> PrintResult:
        self.spool_directory.mkdir(parents=True, exist_ok=True)
        filename = receipt_filename(order, self.settings).replace(".txt", ".html")
        path = self.spool_directory / filename
        path.write_text(render_print_receipt(order, self.settings), encoding="utf-8")

        logger.info(f"🖨️ Mock print spooled: {path}")
        return PrintResult(success=True, job_id=str(path), provider="mock")

    def health_check(self) -> bool:
        return True
