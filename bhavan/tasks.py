"""
Celery Tasks
The new-order pipeline. Each handler re-fetches the order, works on its own
snapshot and retries on its own; one failing never blocks the others.

    announce_new_order   realtime alert for admin consoles
    notify_staff         staff SMS/email, when contacts are configured
    save_text_receipt    writes the .txt receipt (after a short delay)
    print_receipt        sends the receipt to the printer (after a longer delay)
"""

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path

from kombu.exceptions import OperationalError
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from bhavan.celery_worker import celery_app
from bhavan.core.config import get_settings
from bhavan.database import sync_session_maker
from bhavan.models import Order
from bhavan.services.notifications import StaffAlert, get_notification_service
from bhavan.services.printing import get_printer_service
from bhavan.services.realtime import order_alert, publish_alert
from bhavan.services.receipts import ReceiptOrder, receipt_filename, render_text_receipt

logger = logging.getLogger(__name__)

RETRY_OPTIONS = dict(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(Exception,),
    retry_backoff=True,
)


class OrderNotFound(LookupError):
    pass


def load_order_snapshot(order_id: str) -> ReceiptOrder:
    """Read the order with its items and detach it as an immutable snapshot."""
    with sync_session_maker() as session:
        order = session.execute(
            select(Order).options(selectinload(Order.items)).where(Order.id == order_id)
        ).scalar_one_or_none()
        if order is None:
            raise OrderNotFound(order_id)
        return ReceiptOrder.from_model(order)


def run_coroutine(coro):
    """
    Run ``coro`` to completion from task code.

    Eager tasks can be called from inside a running event loop, where
    ``asyncio.run`` refuses to start; the coroutine then gets its own loop
    on a worker thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    with ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result()


@celery_app.task(**RETRY_OPTIONS)
def announce_new_order(self, order_id: str) -> dict:
    """Publish the realtime alert that admin consoles react to."""
    task_id = self.request.id
    settings = get_settings()
    order = load_order_snapshot(order_id)

    listeners = publish_alert(order_alert(order, settings), settings)

    logger.info(f"🔔 Task {task_id}: order {order.short_id} announced to {listeners} console(s)")
    return {"order_id": order_id, "listeners": listeners}


@celery_app.task(**RETRY_OPTIONS)
def notify_staff(self, order_id: str) -> dict:
    """
    Send the new-order alert to the staff phone and inbox.

    Retries only when every channel failed, so a delivered SMS is not sent
    again because the email bounced.
    """
    task_id = self.request.id
    settings = get_settings()
    if not (settings.staff_phone or settings.staff_email):
        return {"order_id": order_id, "staff_notified": False}

    order = load_order_snapshot(order_id)
    alert = order_alert(order, settings)
    staff_alert = StaffAlert(
        title=alert["title"],
        body=f"{alert['description']} - #{order.short_id}, {settings.currency_symbol}{order.total_amount:.2f}",
    )
    result = run_coroutine(get_notification_service().alert_staff(
        staff_alert,
        phone=settings.staff_phone,
        email=settings.staff_email,
    ))
    if not result.success:
        raise RuntimeError(f"Staff alert failed for order {order.short_id}: {result.error_message}")

    for delivery in result.deliveries:
        if not delivery.success:
            logger.warning(f"⚠️ Task {task_id}: {delivery.channel} alert for {order.short_id} failed - {delivery.error_message}")

    logger.info(f"📣 Task {task_id}: staff notified about order {order.short_id}")
    return {"order_id": order_id, "staff_notified": True}

@celery_app.task(**RETRY_OPTIONS)
def save_text_receipt(self, order_id: str) -> dict:
    """Write the plain-text receipt into the receipts directory."""
    task_id = self.request.id
    settings = get_settings()
    start_time = time.time()
    order = load_order_snapshot(order_id)

    directory = Path(settings.receipts_directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / receipt_filename(order, settings)
    path.write_text(render_text_receipt(order, settings), encoding="utf-8")

    elapsed = round(time.time() - start_time, 3)
    logger.info(f"✅ Task {task_id}: receipt saved to {path} in {elapsed}s")
    return {"order_id": order_id, "path": str(path)}


@celery_app.task(**RETRY_OPTIONS)
def print_receipt(self, order_id: str) -> dict:
    """Hand the receipt to the printer service."""
    task_id = self.request.id
    order = load_order_snapshot(order_id)

    result = get_printer_service().print_receipt(order)
    if not result.success:
        # Raising hands the job back to autoretry
        raise RuntimeError(f"Print failed for order {order.short_id}: {result.error_message}")

    logger.info(f"🖨️ Task {task_id}: order {order.short_id} printed ({result.job_id})")
    return {"order_id": order_id, "job_id": result.job_id}


def publish_order_created(order_id: str) -> bool:
    """
    Queue every pipeline handler for a new order.

    A broker outage is logged, never raised: the order is already committed
    and the admin console still shows it on its next refresh.
    """
    settings = get_settings()
    try:
        announce_new_order.apply_async(args=[order_id])
        notify_staff.apply_async(args=[order_id])
        save_text_receipt.apply_async(args=[order_id], countdown=settings.text_receipt_delay_seconds)
        print_receipt.apply_async(args=[order_id], countdown=settings.print_receipt_delay_seconds)
    except OperationalError as e:
        logger.error(f"❌ Could not queue pipeline for order {order_id}: {e}")
        return False
    return True


@celery_app.task
def health_check() -> dict:
    """
    Simple health check task to verify Celery is working.
    """
    return {
        'status': 'healthy',
        'worker': 'celery',
        'timestamp': datetime.now().isoformat()
    }
