from pathlib import Path

import pytest
from kombu.exceptions import OperationalError

from bhavan import main as main_module
from bhavan import tasks
from bhavan.celery_worker import celery_app
from bhavan.core.config import Settings
from bhavan.services.notifications import MockNotificationService
from bhavan.services.printing.base import PrintResult
from tests.helpers import RECEIPT_ORDER_ID, checkout_payload, make_receipt_order


class RecordingPrinter:
    def __init__(self, result):
        self.result = result
        self.printed = []

    def print_receipt(self, order):
        self.printed.append(order.id)
        return self.result


@pytest.fixture
def settings(tmp_path):
    return Settings(
        receipts_directory=str(tmp_path / "receipts"),
        receipt_timezone="Asia/Kolkata",
        staff_phone="+919800000000",
        staff_email="kitchen@bhavan.example",
    )


@pytest.fixture
def snapshot(monkeypatch, settings):
    order = make_receipt_order()
    monkeypatch.setattr(tasks, "load_order_snapshot", lambda order_id: order)
    monkeypatch.setattr(tasks, "get_settings", lambda: settings)
    return order


@pytest.fixture
def alerts(monkeypatch):
    published = []

    def fake_publish(message, settings=None):
        published.append(message)
        return 1

    monkeypatch.setattr(tasks, "publish_alert", fake_publish)
    return published


@pytest.fixture
def notifier(monkeypatch):
    service = MockNotificationService(failure_rate=0, latency=0)
    monkeypatch.setattr(tasks, "get_notification_service", lambda: service)
    return service


@pytest.fixture
def eager(monkeypatch, settings, notifier):
    """Run the pipeline inline, the way CELERY_TASK_ALWAYS_EAGER does."""
    monkeypatch.setattr(celery_app.conf, "task_always_eager", True)
    monkeypatch.setattr(tasks, "get_settings", lambda: settings)
    printer = RecordingPrinter(PrintResult(success=True, job_id="job-1", provider="test"))
    monkeypatch.setattr(tasks, "get_printer_service", lambda: printer)
    return printer


def sms_outage(notifier, monkeypatch):
    async def unreachable(to_phone, text):
        raise ConnectionError("SMS gateway unreachable")

    monkeypatch.setattr(notifier, "send_sms", unreachable)


# =============================================================================
# HANDLERS
# =============================================================================

def test_announce_publishes_alert(snapshot, alerts, notifier):
    result = tasks.announce_new_order(RECEIPT_ORDER_ID)

    assert result == {"order_id": RECEIPT_ORDER_ID, "listeners": 1}
    assert alerts[0]["type"] == "order_created"
    assert alerts[0]["title"] == "🔔 New Order Received!"
    assert alerts[0]["description"] == "Order from Asha Rao"
    assert notifier.sent == []


def test_notify_staff_uses_sms_and_email(snapshot, alerts, notifier):
    result = tasks.notify_staff(RECEIPT_ORDER_ID)

    assert result == {"order_id": RECEIPT_ORDER_ID, "staff_notified": True}
    assert [d.channel for d in notifier.sent] == ["sms", "email"]
    assert [d.recipient for d in notifier.sent] == ["+919800000000", "kitchen@bhavan.example"]
    assert alerts == []


def test_notify_staff_without_contacts_sends_nothing(snapshot, notifier, settings):
    settings.staff_phone = None
    settings.staff_email = None

    result = tasks.notify_staff(RECEIPT_ORDER_ID)

    assert result["staff_notified"] is False
    assert notifier.sent == []


def test_notify_staff_keeps_going_when_one_channel_raises(monkeypatch, snapshot, notifier):
    sms_outage(notifier, monkeypatch)

    result = tasks.notify_staff(RECEIPT_ORDER_ID)

    assert result["staff_notified"] is True
    assert [d.channel for d in notifier.sent] == ["email"]


def test_notify_staff_raises_for_retry_when_every_channel_fails(snapshot, monkeypatch):
    monkeypatch.setattr(tasks, "get_notification_service", lambda: MockNotificationService(failure_rate=1, latency=0))

    with pytest.raises(RuntimeError, match="Simulated sms failure"):
        tasks.notify_staff(RECEIPT_ORDER_ID)


async def test_notify_staff_runs_inside_an_event_loop(snapshot, notifier):
    result = tasks.notify_staff(RECEIPT_ORDER_ID)

    assert result["staff_notified"] is True
    assert [d.channel for d in notifier.sent] == ["sms", "email"]


def test_save_text_receipt_writes_file(snapshot, settings, tmp_path):
    result = tasks.save_text_receipt(RECEIPT_ORDER_ID)

    path = tmp_path / "receipts" / "Order_3FA85F64_20240305_134530.txt"
    assert result["path"] == str(path)
    assert "STATUS: PENDING" in path.read_text(encoding="utf-8")


def test_print_receipt_hands_order_to_printer(monkeypatch, snapshot):
    printer = RecordingPrinter(PrintResult(success=True, job_id="job-1", provider="test"))
    monkeypatch.setattr(tasks, "get_printer_service", lambda: printer)

    assert tasks.print_receipt(RECEIPT_ORDER_ID) == {"order_id": RECEIPT_ORDER_ID, "job_id": "job-1"}
    assert printer.printed == [RECEIPT_ORDER_ID]


def test_print_failure_raises_for_retry(monkeypatch, snapshot):
    printer = RecordingPrinter(PrintResult(success=False, error_message="Paper out", provider="test"))
    monkeypatch.setattr(tasks, "get_printer_service", lambda: printer)

    with pytest.raises(RuntimeError, match="Paper out"):
        tasks.print_receipt(RECEIPT_ORDER_ID)


def test_missing_order_is_reported():
    with pytest.raises(tasks.OrderNotFound):
        tasks.load_order_snapshot("00000000-0000-0000-0000-000000000000")


def test_publish_queues_every_handler(monkeypatch, settings):
    monkeypatch.setattr(tasks, "get_settings", lambda: settings)
    queued = []
    for task in (tasks.announce_new_order, tasks.notify_staff, tasks.save_text_receipt, tasks.print_receipt):
        monkeypatch.setattr(
            task, "apply_async",
            lambda args, countdown=None, name=task.name: queued.append((name, args, countdown)),
        )

    assert tasks.publish_order_created(RECEIPT_ORDER_ID) is True
    assert [(name.rsplit(".", 1)[-1], countdown) for name, _, countdown in queued] == [
        ("announce_new_order", None),
        ("notify_staff", None),
        ("save_text_receipt", settings.text_receipt_delay_seconds),
        ("print_receipt", settings.print_receipt_delay_seconds),
    ]


def test_publish_survives_broker_outage(monkeypatch):
    def unreachable(*args, **kwargs):
        raise OperationalError("Connection refused")

    monkeypatch.setattr(tasks.announce_new_order, "apply_async", unreachable)

    assert tasks.publish_order_created(RECEIPT_ORDER_ID) is False


# =============================================================================
# EAGER PIPELINE
# =============================================================================

async def test_eager_pipeline_alerts_once_when_sms_raises(monkeypatch, snapshot, alerts, notifier, eager, tmp_path):
    sms_outage(notifier, monkeypatch)

    assert tasks.publish_order_created(RECEIPT_ORDER_ID) is True

    assert len(alerts) == 1
    assert [d.channel for d in notifier.sent] == ["email"]
    assert eager.printed == [RECEIPT_ORDER_ID]
    assert (tmp_path / "receipts" / "Order_3FA85F64_20240305_134530.txt").exists()


async def test_checkout_runs_eager_pipeline_with_staff_contacts(
    monkeypatch, client, customer, make_item, alerts, notifier, eager, settings,
):
    monkeypatch.setattr(main_module, "publish_order_created", tasks.publish_order_created)
    dosa, _ = await make_item("Dosa", "80")

    response = await client.post(
        "/api/orders",
        json=checkout_payload([{"menu_item_id": dosa.id, "quantity": 2}]),
        headers=customer["headers"],
    )

    assert response.status_code == 200
    order_id = response.json()["order"]["id"]
    assert [a["order_id"] for a in alerts] == [order_id]
    assert [d.channel for d in notifier.sent] == ["sms", "email"]
    assert eager.printed == [order_id]
    assert len(list(Path(settings.receipts_directory).glob("Order_*.txt"))) == 1
