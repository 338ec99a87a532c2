import asyncpg
import logging
from pathlib import Path
from typing import Optional


logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("schema.sql")


class DatabasePool:
    """Owns the asyncpg pool shared by every repository in one process.

    Pipeline runs borrow connections per operation; nothing holds a
    connection across an OCR call.
    """

    def __init__(self, dsn: Optional[str] = None, *, min_size: int = 2, max_size: int = 10):
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self._pool: Optional[asyncpg.Pool] = None

    async def initialize(self) -> None:
        """Create the connection pool. Safe to call more than once."""
        if self._pool is not None:
            return
        if not self.dsn:
            raise RuntimeError("No database DSN configured (set DATABASE_URL)")
        self._pool = await asyncpg.create_pool(
            dsn=self.dsn, min_size=self.min_size, max_size=self.max_size,
        )
        logger.info("Database pool ready (min=%d, max=%d)", self.min_size, self.max_size)

    async def close(self) -> None:
        if self._pool:
            await self._pool.close()
            self._pool = None

    @property
    def pool(self) -> asyncpg.Pool:
        """Get the pool, raising if not initialized."""
        if self._pool is None:
            raise RuntimeError(
                "Database pool not initialized. Call await db.initialize() first."
            )
        return self._pool

    async def apply_schema(self, path: Path = SCHEMA_PATH) -> None:
        """Run schema.sql (idempotent CREATE ... IF NOT EXISTS statements)."""
        async with self.pool.acquire() as conn:
            await conn.execute(path.read_text())

    async def health_check(self) -> bool:
        try:
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            return True
        except (asyncpg.PostgresError, OSError, RuntimeError) as e:
            logger.warning("Database health check failed: %s", e)
            return False
