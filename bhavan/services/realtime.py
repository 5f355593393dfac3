"""
Realtime Admin Channel

New-order alerts travel over Redis pub/sub. Pipeline workers publish; the
API relays each message to connected admin websockets.

Message shape:
    {"type": "order_created", "order_id": ..., "title": ...,
     "description": ..., "sound": ...}
"""

import asyncio
import json
import logging
from typing import AsyncIterator, Optional

import redis
import redis.asyncio as aioredis

from bhavan.core.config import Settings, get_settings
from bhavan.services.receipts import ReceiptOrder

logger = logging.getLogger(__name__)

NEW_ORDER_TITLE = "🔔 New Order Received!"


def order_alert(order: ReceiptOrder, settings: Optional[Settings] = None) -> dict:
    """Build the transient staff alert for a new order."""
    settings = settings or get_settings()
    return {
        "type": "order_created",
        "order_id": order.id,
        "short_id": order.short_id,
        "title": NEW_ORDER_TITLE,
        "description": f"Order from {order.customer_name}",
        "sound": settings.alert_sound_url,
    }


def publish_alert(message: dict, settings: Optional[Settings] = None) -> int:
    """
    Publish one alert on the admin channel.

    Returns:
        int: Number of subscribers that received it
    """
    settings = settings or get_settings()
    client = redis.Redis.from_url(settings.redis_url, socket_timeout=2)
    try:
        receivers = client.publish(settings.order_alerts_channel, json.dumps(message))
    finally:
        client.close()

    logger.info(f"📣 Alert published on {settings.order_alerts_channel} ({receivers} listener(s))")
    return receivers


async def subscribe_alerts(settings: Optional[Settings] = None) -> AsyncIterator[dict]:
    """Yield alerts from the admin channel until the caller stops iterating."""
    settings = settings or get_settings()
    client = aioredis.Redis.from_url(settings.redis_url)
    pubsub = client.pubsub()
    await pubsub.subscribe(settings.order_alerts_channel)
    try:
        async for raw in pubsub.listen():
            if raw.get("type") != "message":
                continue
            try:
                yield json.loads(raw["data"])
            except (TypeError, ValueError):
                logger.warning(f"Dropping malformed alert: {raw['data']!r}")
    finally:
        await pubsub.unsubscribe(settings.order_alerts_channel)
        await pubsub.aclose()
        await client.aclose()


async def relay_alerts(websocket, alerts: AsyncIterator[dict]) -> None:
    """
    Forward ``alerts`` to ``websocket`` until the client goes away.

    The socket is read while no alert is due, so a closed console gives
    its subscription back right away instead of on the next order.
    """
    async def forward():
        async for message in alerts:
            await websocket.send_json(message)

    async def watch():
        while (await websocket.receive())["type"] != "websocket.disconnect":
            pass

    forwarding = asyncio.create_task(forward())
    watching = asyncio.create_task(watch())
    try:
        done, _ = await asyncio.wait({forwarding, watching}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (forwarding, watching):
            task.cancel()
        # Results of the cancelled side are moot once the client is gone
        await asyncio.gather(forwarding, watching, return_exceptions=True)
        await alerts.aclose()

    if watching not in done:
        forwarding.result()
