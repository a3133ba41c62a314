"""One-time script: create the chat tables from the ORM metadata."""
from __future__ import annotations

import asyncio
import logging

from classroom_chat.infrastructure.db import models  # noqa: F401  registers tables
from classroom_chat.infrastructure.db.base import Base
from classroom_chat.infrastructure.db.session import dispose_engine, engine

logger = logging.getLogger(__name__)


async def create_tables() -> None:
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Created tables: %s", ", ".join(sorted(Base.metadata.tables)))
    finally:
        await dispose_engine()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(create_tables())


if __name__ == "__main__":
    main()
