"""Kafka transport for claim change messages."""

from typing import AsyncIterator, Optional

from aiokafka import AIOKafkaConsumer

from phoenix.cdc.consumer import CDCMessage
from phoenix.core.config import CDCSettings
from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)


class KafkaClaimSource:
    """Reads the Debezium claims topic with an aiokafka consumer group."""

    def __init__(self, cdc_settings: CDCSettings):
        self.topic = cdc_settings.topic
        self.bootstrap_servers = cdc_settings.bootstrap_servers
        self.group_id = cdc_settings.group_id
        self._consumer: Optional[AIOKafkaConsumer] = None

    async def start(self) -> None:
        self._consumer = AIOKafkaConsumer(
            self.topic,
            bootstrap_servers=self.bootstrap_servers,
            group_id=self.group_id,
            auto_offset_reset="earliest",
            enable_auto_commit=True,
        )
        await self._consumer.start()
        LOGGER.info(
            f"Kafka consumer subscribed to '{self.topic}'",
            extra={"bootstrap_servers": self.bootstrap_servers, "group_id": self.group_id},
        )

    async def stop(self) -> None:
        if self._consumer is None:
            return
        try:
            await self._consumer.stop()
            LOGGER.info("Kafka consumer stopped")
        finally:
            self._consumer = None

    async def __aiter__(self) -> AsyncIterator[CDCMessage]:
        if self._consumer is None:
            raise RuntimeError("KafkaClaimSource.start() must be called before iterating")
        async for record in self._consumer:
            key = record.key.decode("utf-8", errors="replace") if record.key is not None else None
            yield CDCMessage(key=key, value=record.value, headers=tuple(record.headers or ()))
