import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from models.db_models import Base


class Database:
    """Owns the pooled async engine shared by the repository and the webhook"""

    def __init__(self, url: str, **engine_kwargs: Any):
        engine_kwargs.setdefault("pool_pre_ping", True)
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    async def initialize(self):
        """Create all tables if they don't exist"""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logging.info(f"Database initialized ({self.dialect})")
        except Exception as e:
            logging.error(f"Failed to initialize database: {e}")
            raise

    async def close(self):
        await self.engine.dispose()
        logging.info("Database connections closed")
