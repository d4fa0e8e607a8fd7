#!/usr/bin/env python3
"""
Deactivate access links whose expiry has passed.

Meant to run hourly from cron:
    0 * * * * cd /srv/docshare && python scripts/expire_access_links.py
"""

import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from docshare.database import AsyncSessionLocal, close_db
from docshare.core.logging_config import setup_logging
from docshare.services.access_link_service import AccessLinkService

logger = logging.getLogger("docshare.scripts.expire_access_links")


async def main() -> int:
    setup_logging()
    async with AsyncSessionLocal() as session:
        expired = await AccessLinkService.expire_links(session)
    await close_db()
    logger.info(f"Expiry run finished, {expired} link(s) deactivated")
    return expired


if __name__ == "__main__":
    asyncio.run(main())
