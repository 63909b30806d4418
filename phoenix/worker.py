"""Standalone CDC worker: runs the ingestion loop without the HTTP surface.

Usage:
    python -m phoenix.worker
"""

import asyncio
import signal

from phoenix.core.config import settings
from phoenix.core.database import async_session_maker, close_database, init_database
from phoenix.core.tracing import configure_tracing, shutdown_tracing
from phoenix.services.enrichment.factory import build_ingestion_loop, build_pipeline
from phoenix.utils.logging import get_logger, quiet_third_party_loggers

logger = get_logger(__name__, level=settings.log_level)


async def run_worker() -> None:
    """Consume claim changes until SIGINT/SIGTERM, then drain in-flight claims."""
    quiet_third_party_loggers()
    configure_tracing(settings)
    await init_database()

    pipeline = build_pipeline(settings, async_session_maker)
    ingestion_loop = build_ingestion_loop(pipeline, settings)
    ingestion_task = asyncio.create_task(ingestion_loop.run(), name="cdc-ingestion")

    def shutdown_handler(signum: int) -> None:
        logger.info(f"Received signal {signum}, shutting down...")
        ingestion_task.cancel()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown_handler, sig)

    try:
        await ingestion_task
    except asyncio.CancelledError:
        logger.info("CDC worker stopped")
    finally:
        await close_database()
        shutdown_tracing()


def main() -> None:
    asyncio.run(run_worker())


if __name__ == "__main__":
    main()
