"""
Run the schema bootstrap once against the configured database.

Usage:
    python -m app.bootstrap

Exit status is 1 only on a fatal failure.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from app.bootstrap.errors import BootstrapError
from app.bootstrap.readiness import await_bootstrap
from app.core.config import settings
from app.core.database import close_pool, open_pool
from app.core.logging import setup_logging

logger = logging.getLogger("app.bootstrap")


async def _main() -> int:
    engine = open_pool(settings)
    try:
        report = await await_bootstrap(engine, settings)
    except BootstrapError as exc:
        logger.error("Bootstrap failed: %s", exc)
        return 1
    finally:
        await close_pool(engine)
    for result in report.phases:
        logger.info(
            "%-22s %-8s statements=%d already_applied=%d",
            result.name,
            result.status.value,
            result.statements,
            result.tolerated,
        )
    return 0


def main() -> None:
    setup_logging(settings.LOG_LEVEL)
    sys.exit(asyncio.run(_main()))


if __name__ == "__main__":
    main()
