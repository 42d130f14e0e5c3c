# -*- coding: utf-8 -*-
"""RabbitMQ connection helpers."""
import logging

import aio_pika
from aio_pika import ExchangeType

logger = logging.getLogger(__name__)


async def get_channel(url: str):
    """Open a connection and a channel on it. The caller closes the connection."""
    connection = await aio_pika.connect_robust(url)
    channel = await connection.channel()
    return connection, channel


async def declare_exchange(channel, name: str):
    """Durable topic exchange that carries every order event."""
    return await channel.declare_exchange(name, ExchangeType.TOPIC, durable=True)


async def setup_rabbitmq(url: str, exchange_name: str):
    connection, channel = await get_channel(url)
    try:
        await declare_exchange(channel, exchange_name)
        logger.info("RabbitMQ exchange '%s' ready", exchange_name)
    finally:
        await connection.close()
