#!/usr/bin/env python3
"""
cron_reprice.py: refresh current prices and P/L for every open pair.

Meant for a scheduler (cron, Railway cron, ...), e.g. weekdays after the close:
  - Schedule: 10 15 * * 1-5   (Asia/Tokyo)
  - Command:  python cron_reprice.py

Settled pairs are never touched.
"""
import asyncio
import logging
import sys

from config.logging_config import configure_logging
from database import Base, SessionLocal, engine
import models  # noqa: F401
from services.profit_loss_service import recalculate_profit_loss

logger = logging.getLogger("cron_reprice")


async def run() -> dict:
    db = SessionLocal()
    try:
        return await recalculate_profit_loss(db)
    finally:
        db.close()


def main() -> int:
    configure_logging()
    Base.metadata.create_all(bind=engine)
    try:
        summary = asyncio.run(run())
    except Exception:
        logger.exception("Re-pricing run failed")
        return 1

    logger.info(
        "Re-pricing done: processed=%d success=%d errors=%d",
        summary["total_processed"], summary["success_count"], summary["error_count"],
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
