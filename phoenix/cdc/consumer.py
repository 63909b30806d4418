"""CDC ingestion loop: read, decode, dispatch one enrichment task per claim."""

import asyncio
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional, Protocol, Sequence, Set, Tuple

from phoenix.cdc.decoder import decode_claim_event
from phoenix.core.exceptions import MessageDecodeError
from phoenix.core.tracing import extract_context
from phoenix.schemas.claims import ClaimChangeEvent
from phoenix.services.enrichment.orchestrator import ClaimEnrichmentOrchestrator
from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class CDCMessage:
    """Transport-neutral view of one change message."""

    key: Optional[str]
    value: Optional[bytes]
    headers: Sequence[Tuple[str, bytes]] = field(default_factory=tuple)


class MessageSource(Protocol):
    async def start(self) -> None:
        ...

    async def stop(self) -> None:
        ...

    def __aiter__(self) -> AsyncIterator[CDCMessage]:
        ...


class ClaimIngestionLoop:
    """Single sequential reader dispatching claims to the orchestrator.

    Each decoded event becomes its own asyncio task. A semaphore of
    ``max_in_flight`` permits is acquired by the reader before a task is
    created, so a slow LLM backend throttles consumption instead of piling
    up connections. ``max_in_flight=0`` removes the bound.

    A failing message never stops the loop. On shutdown the reader stops and
    in-flight claims run to completion.
    """

    def __init__(
        self,
        source: MessageSource,
        orchestrator: ClaimEnrichmentOrchestrator,
        max_in_flight: int = 16,
    ):
        self.source = source
        self.orchestrator = orchestrator
        self.max_in_flight = max_in_flight
        self._semaphore: Optional[asyncio.Semaphore] = (
            asyncio.Semaphore(max_in_flight) if max_in_flight > 0 else None
        )
        self._tasks: Set[asyncio.Task] = set()
        self.running = False
        self.claims_dispatched = 0
        self.claims_failed = 0
        self.messages_skipped = 0
        self.decode_errors = 0

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def run(self) -> None:
        """Consume until the source is exhausted or the task is cancelled."""
        await self.source.start()
        self.running = True
        LOGGER.info(
            "CDC ingestion loop started",
            extra={"max_in_flight": self.max_in_flight or "unbounded"},
        )
        try:
            async for message in self.source:
                if not self.running:
                    break
                try:
                    await self.handle_message(message)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    LOGGER.error(f"Unexpected error handling CDC message: {e}", exc_info=True)
        except asyncio.CancelledError:
            LOGGER.info("CDC ingestion loop received cancellation signal")
            raise
        finally:
            self.running = False
            await self.drain()
            await self.source.stop()
            LOGGER.info(
                "CDC ingestion loop stopped. "
                f"Dispatched: {self.claims_dispatched}, Failed: {self.claims_failed}, "
                f"Skipped: {self.messages_skipped}, Decode errors: {self.decode_errors}"
            )

    def stop(self) -> None:
        """Stop reading after the current message."""
        self.running = False

    async def handle_message(self, message: CDCMessage) -> Optional[asyncio.Task]:
        """Decode one message and dispatch it.

        Returns:
            The enrichment task, or None when the message was skipped
        """
        try:
            event = decode_claim_event(message.value)
        except MessageDecodeError as e:
            self.decode_errors += 1
            LOGGER.error(
                f"Skipping undecodable CDC message: {e}",
                extra={"key": message.key, "raw_preview": e.raw[:200]},
            )
            return None

        if event is None:
            self.messages_skipped += 1
            LOGGER.debug(f"Ignoring CDC message without row image (key={message.key})")
            return None

        if event.already_summarized:
            self.messages_skipped += 1
            LOGGER.debug(f"Claim {event.claim_id} already has a summary. Skipping.")
            return None

        return await self._dispatch(event, message)

    async def drain(self) -> None:
        """Wait for every in-flight enrichment task to finish."""
        if not self._tasks:
            return
        LOGGER.info(f"Waiting for {len(self._tasks)} in-flight claims to finish")
        await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _dispatch(self, event: ClaimChangeEvent, message: CDCMessage) -> asyncio.Task:
        parent_context = extract_context(message.headers)

        if self._semaphore is not None:
            await self._semaphore.acquire()
        try:
            task = asyncio.create_task(
                self._enrich(event, parent_context),
                name=f"claim-enrichment-{event.claim_id}",
            )
        except Exception:
            # The done callback owns the permit only once a task exists
            if self._semaphore is not None:
                self._semaphore.release()
            raise
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        self.claims_dispatched += 1
        LOGGER.info(f"Dispatched enrichment for claim ID: {event.claim_id}")
        return task

    async def _enrich(self, event: ClaimChangeEvent, parent_context) -> None:
        try:
            outcome = await self.orchestrator.enrich(event, parent_context=parent_context)
            if outcome.error is not None:
                self.claims_failed += 1
        except Exception as e:
            self.claims_failed += 1
            LOGGER.error(f"Enrichment task for claim {event.claim_id} failed: {e}", exc_info=True)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if self._semaphore is not None:
            self._semaphore.release()
