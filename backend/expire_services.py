"""
CleanConnect Expiry Job

Expires pending cleaning services whose first requested visit has passed and
refunds their escrow to the requesting users. Meant to be run from cron:

    */15 * * * * cd backend && python expire_services.py
"""

import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from cleanconnect.cleaning.services import BookingService  # noqa: E402
from cleanconnect.core.logging import init_logging  # noqa: E402
from cleanconnect.database.session import engine, session_scope  # noqa: E402

logger = logging.getLogger("cleanconnect.expiry")


async def run() -> int:
    try:
        async with session_scope() as db:
            return await BookingService(db).expire_overdue_services()
    finally:
        await engine.dispose()


if __name__ == "__main__":
    init_logging()
    count = asyncio.run(run())
    logger.info(f"[EXPIRY] Job finished, {count} service(s) expired")
