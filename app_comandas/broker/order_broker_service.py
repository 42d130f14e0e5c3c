# -*- coding: utf-8 -*-
"""Publishes order lifecycle events for downstream services."""
import json
import logging

from aio_pika import DeliveryMode, Message

from app_comandas.broker.setup_rabbitmq import declare_exchange, get_channel

logger = logging.getLogger(__name__)

ORDER_CREATED = "order.created"
ORDER_CLAIMED = "order.claimed"
ORDER_STATE_CHANGED = "order.state_changed"


def order_payload(order) -> dict:
    state = getattr(order.state, "value", order.state)
    return {
        "order_id": order.id,
        "store_id": order.store_id,
        "courier_id": order.courier_id,
        "state": state,
        "total": str(order.total),
        "failure_note": order.failure_note,
        "updated_at": order.updated_at.isoformat() if order.updated_at else None,
    }


class OrderEventPublisher:
    """Best-effort publisher: failures are logged and never reach the caller.

    With no ``url`` configured every publish is skipped.
    """

    def __init__(self, url: str = None, exchange_name: str = "comandas"):
        self.url = url
        self.exchange_name = exchange_name

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    async def order_created(self, order):
        await self.publish(ORDER_CREATED, order_payload(order))

    async def order_claimed(self, order, previous_state=None):
        await self.publish(ORDER_CLAIMED, order_payload(order))

    async def order_state_changed(self, order, previous_state):
        payload = order_payload(order)
        payload["previous_state"] = getattr(previous_state, "value", previous_state)
        await self.publish(ORDER_STATE_CHANGED, payload)

    async def publish(self, routing_key: str, payload: dict):
        if not self.enabled:
            logger.debug("Broker not configured; skipping %s for order %s",
                         routing_key, payload.get("order_id"))
            return

        connection = None
        try:
            connection, channel = await get_channel(self.url)
            exchange = await declare_exchange(channel, self.exchange_name)
            await exchange.publish(
                Message(
                    body=json.dumps(payload).encode(),
                    content_type="application/json",
                    delivery_mode=DeliveryMode.PERSISTENT,
                ),
                routing_key=routing_key,
            )
            logger.info("Published %s for order %s", routing_key, payload.get("order_id"))
        except Exception as exc:
            logger.error("Error publishing %s for order %s: %s",
                         routing_key, payload.get("order_id"), exc, exc_info=True)
        finally:
            if connection:
                await connection.close()
