"""
Expired OTP sweeper

Periodically deletes OTP challenges whose expiry has passed. Lookups
already ignore expired rows, so the sweeper only keeps the table small.

Run a single sweep by hand:
    python -m app.jobs.otp_sweeper
"""
import asyncio
import logging
import sys
from contextlib import contextmanager
from typing import Optional

from app.db import SessionLocal
from app.services.otp_ledger import OTPLedger

logger = logging.getLogger(__name__)


@contextmanager
def get_db_session():
    """Context manager for database sessions"""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def sweep_expired_challenges() -> int:
    """Delete expired challenges. Returns the number of rows removed."""
    with get_db_session() as db:
        deleted = OTPLedger(db).purge_expired()
    if deleted:
        logger.info(f"[OTP][Sweeper] Purged {deleted} expired challenge(s)")
    return deleted


class OTPSweeper:
    """Asyncio task that runs sweep_expired_challenges every `interval` seconds"""

    def __init__(self, interval: int = 60):
        self.interval = interval
        self.running = False
        self.task: Optional[asyncio.Task] = None

    async def start(self):
        if self.running:
            logger.warning("[OTP][Sweeper] Already running")
            return
        if self.interval <= 0:
            logger.info("[OTP][Sweeper] Not started (OTP_SWEEP_INTERVAL_SECONDS=0)")
            return

        self.running = True
        self.task = asyncio.create_task(self._run())
        logger.info(f"[OTP][Sweeper] Started (interval={self.interval}s)")

    async def stop(self):
        if not self.running:
            return

        self.running = False
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
        logger.info("[OTP][Sweeper] Stopped")

    async def run_once(self) -> int:
        # Blocking DB work stays off the event loop
        return await asyncio.to_thread(sweep_expired_challenges)

    async def _run(self):
        while self.running:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"[OTP][Sweeper] Sweep failed: {e}", exc_info=True)
            await asyncio.sleep(self.interval)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(levelname)s: %(message)s"
    )
    try:
        count = sweep_expired_challenges()
        print(f"Purged {count} expired OTP challenge(s)")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Sweep failed: {e}", exc_info=True)
        sys.exit(1)
