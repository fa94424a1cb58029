# docvault/infrastructure/messaging/rabbitmq_publisher.py

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aio_pika

UPLOAD_RECEIVED = "document.upload_received"


def upload_received_message(document_id: str, filename: str, sender: str) -> Dict[str, Any]:
    return {
        "event": UPLOAD_RECEIVED,
        "document_id": document_id,
        "filename": filename,
        "recipient": sender,
    }


class RabbitMQPublisher:
    def __init__(self, rabbitmq_url: str, exchange_name: str):
        self._url = rabbitmq_url
        self._exchange_name = exchange_name
        self._connection = None
        self._channel = None
        self._exchange = None
        self._connect_lock = asyncio.Lock()

    async def connect(self):
        # Concurrent first publishes share one connection.
        async with self._connect_lock:
            if self._exchange is not None:
                return
            connection = await aio_pika.connect_robust(self._url)
            try:
                channel = await connection.channel()
                exchange = await channel.declare_exchange(
                    self._exchange_name,
                    aio_pika.ExchangeType.TOPIC,
                    durable=True,
                )
            except BaseException:
                await connection.close()
                raise
            self._connection, self._channel, self._exchange = connection, channel, exchange

    async def publish(
        self,
        routing_key: str,
        message: dict,
        idempotency_key: str,
    ):
        if self._exchange is None:
            await self.connect()

        msg = aio_pika.Message(
            body=json.dumps(message).encode(),
            content_type="application/json",
            delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
            headers={
                "idempotency_key": idempotency_key,
            },
        )

        await self._exchange.publish(msg, routing_key=routing_key)

    async def publish_upload_received(
        self, document_id: str, filename: str, sender: str, correlation_id: Optional[str] = None
    ) -> None:
        await self.publish(
            routing_key=UPLOAD_RECEIVED,
            message=upload_received_message(document_id, filename, sender),
            idempotency_key=f"{UPLOAD_RECEIVED}:{document_id}",
        )

    async def close(self) -> None:
        async with self._connect_lock:
            if self._connection is not None:
                await self._connection.close()
            self._connection = self._channel = self._exchange = None


class LoggingNotifier:
    """Used when no broker is configured: the message is logged and dropped."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    async def publish_upload_received(
        self, document_id: str, filename: str, sender: str, correlation_id: Optional[str] = None
    ) -> None:
        self._logger.info(
            "notification_not_sent",
            extra={
                "notification": upload_received_message(document_id, filename, sender),
                "reason": "no broker configured",
            },
        )

    async def close(self) -> None:
        return None
