import asyncio

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine

from app.db.models.database import Base


async def init_db(engine: AsyncEngine, drop: bool = False) -> None:
    """Create every table from the ORM metadata."""
    async with engine.begin() as conn:  # begin() commits or rolls back
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def _main() -> None:
    from app.db.sesson import engine

    await init_db(engine)
    await engine.dispose()
    logger.success("🎉 Database schema created")


if __name__ == "__main__":
    asyncio.run(_main())
