"""
Aggregator Background Worker.

Runs the aggregation scheduler outside the FastAPI web server, so periodic
ingestion survives web restarts and scale-to-zero.  Only one process should
run the scheduler: either this worker or the web app with
``AGGREGATOR_ENABLE_SCHEDULER=true``.

Run locally:
  cd backend
  python -m app.worker

Run a single cycle and exit:
  python -m app.worker --once
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal

from dotenv import load_dotenv

from app.aggregator_service import AggregatorService
from app.config import get_settings
from app.database import (
    async_session_factory,
    create_tables,
    dispose_engine,
    ensure_indexes,
)
from app.opportunity_store import SqlOpportunityStore
from app.scheduler import AggregatorScheduler

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


class AggregatorWorker:
    def __init__(self, scheduler: AggregatorScheduler) -> None:
        self.scheduler = scheduler
        self._stop_event = asyncio.Event()

    def request_stop(self) -> None:
        self._stop_event.set()

    async def run(self) -> None:
        logger.info("Worker starting (cron: '%s')", self.scheduler.cron)
        self.scheduler.start()
        try:
            await self._stop_event.wait()
        finally:
            await self.scheduler.shutdown()
            logger.info("Worker stopping")


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Run the opportunity aggregator.")
    p.add_argument("--once", action="store_true", help="Run one cycle and exit.")
    p.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables/indexes before starting.",
    )
    return p.parse_args()


async def _main(args: argparse.Namespace) -> int:
    if async_session_factory is None:
        logger.error("Database not configured: set DATABASE_URL")
        return 1

    try:
        if args.create_tables:
            await create_tables()
        else:
            await ensure_indexes()

        settings = get_settings()
        service = AggregatorService(SqlOpportunityStore(async_session_factory), settings=settings)

        if args.once:
            summary = await service.run_cycle(trigger="manual")
            logger.info("Cycle summary: %s", summary.to_dict())
            return 0

        worker = AggregatorWorker(AggregatorScheduler(service, settings=settings))
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, worker.request_stop)
            except NotImplementedError:
                # Windows: rely on KeyboardInterrupt
                pass

        await worker.run()
        return 0
    finally:
        await dispose_engine()


def main() -> None:
    raise SystemExit(asyncio.run(_main(parse_args())))


if __name__ == "__main__":
    main()
