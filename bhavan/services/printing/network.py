"""
ESC/POS Printer Service

Production implementation driving a networked thermal printer with
python-escpos. The printer gets the plain-text rendering; HTML is for
browser printing only.

Requirements:
    - PRINTER_HOST (and optionally PRINTER_PORT) must be set
"""

import logging
import uuid

from escpos.exceptions import Error as EscposError
from escpos.printer import Network

from bhavan.core.config import get_settings
from bhavan.services.printing.base import BasePrinterService, PrintResult
from bhavan.services.receipts import ReceiptOrder, render_text_receipt

logger = logging.getLogger(__name__)


class EscposPrinterService(BasePrinterService):
    """Prints receipts on an ESC/POS network printer."""

    def __init__(self):
        settings = get_settings()

        if not settings.printer_host:
            raise ValueError(
                "PRINTER_HOST is required for production mode. "
                "Set it in your .env file or environment variables."
            )

        self.settings = settings
        self.host = settings.printer_host
        self.port = settings.printer_port
        logger.info(f"EscposPrinterService initialized ({self.host}:{self.port})")

    @property
    def provider_name(self) -> str:
        return "escpos"

    def _connect(self) -> Network:
        return Network(self.host, port=self.port, timeout=10)

    def print_receipt(self, order: ReceiptOrder) -> PrintResult:
        text = render_text_receipt(order, self.settings)

        try:
            printer = self._connect()
            try:
                printer.text(text)
                printer.cut()
            finally:
                printer.close()
        except (EscposError, OSError) as e:
            logger.error(f"Printer error for order {order.short_id}: {e}")
            return PrintResult(success=False, error_message=str(e), provider="escpos")

        job_id = f"escpos_{uuid.uuid4().hex[:12]}"
        logger.info(f"🖨️ Receipt printed for order {order.short_id} (job {job_id})")
        return PrintResult(success=True, job_id=job_id, provider="escpos")

    def health_check(self) -> bool:
        try:
            printer = self._connect()
            printer.close()
            return True
        except (EscposError, OSError) as e:
            logger.error(f"Printer health check failed: {e}")
            return False
