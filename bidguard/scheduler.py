import asyncio, logging, time
from datetime import datetime, timezone

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from bidguard.core import Credentials, MarketplaceError
from bidguard.db import record_action
from bidguard.document import ParseError
from bidguard.marketplace import Marketplace
from bidguard.settings import Settings, load_credentials, load_settings

log = logging.getLogger("bidguard")

JOB_ID = "block-and-cancel"


class JobState:
    def __init__(self):
        self.passes: int = 0
        self.failures: int = 0
        self.last_success: float | None = None


async def _poll_once(mp: Marketplace, state: JobState):
    state.passes += 1
    log.info("%s checking", datetime.now(timezone.utc).isoformat(timespec="seconds"))
    try:
        outcomes = await mp.actions.block_and_cancel(on_outcome=record_action)
    except MarketplaceError as exc:
        state.failures += 1
        log.warning("Pass %d failed: %s", state.passes, exc)
        log.debug("Failure details: %r", exc.details())
        return
    except (httpx.HTTPError, ParseError) as exc:
        # transport trouble; the next scheduled pass simply tries again
        state.failures += 1
        log.warning("Pass %d failed: %s", state.passes, exc)
        return

    state.last_success = time.time()
    if outcomes:
        log.info("Pass %d took %d console actions", state.passes, len(outcomes))


async def _schedule(settings: Settings, credentials: Credentials):
    scheduler = AsyncIOScheduler(timezone="UTC")
    state = JobState()

    async with Marketplace(settings, credentials) as mp:
        scheduler.add_job(
            _poll_once,
            "interval",
            args=[mp, state],
            seconds=settings.polling.interval_seconds,
            jitter=settings.polling.jitter_seconds or None,
            next_run_time=datetime.now(timezone.utc),
            id=JOB_ID,
            coalesce=True,
            max_instances=1,
            misfire_grace_time=30,
        )
        scheduler.start()
        print("bidguard started – Ctrl+C to quit")
        try:
            await asyncio.Event().wait()
        except (KeyboardInterrupt, SystemExit, asyncio.CancelledError):
            pass
        finally:
            scheduler.shutdown(wait=False)


def main():
    settings = load_settings()
    credentials = load_credentials(settings)
    asyncio.run(_schedule(settings, credentials))
