"""
Database connection and pool management
"""

import json
import asyncpg
import logging
from config.settings import DATABASE_URL
from database.schema import ensure_schema

logger = logging.getLogger(__name__)

# Global database pool
db_pool = None


async def _init_connection(conn):
    """Register JSON codecs so JSONB columns round-trip as Python objects"""
    for type_name in ("json", "jsonb"):
        await conn.set_type_codec(
            type_name,
            encoder=json.dumps,
            decoder=json.loads,
            schema="pg_catalog"
        )


async def init_database():
    """Initialize database connection pool"""
    global db_pool
    db_pool = await asyncpg.create_pool(
        DATABASE_URL,
        min_size=2,
        max_size=10,
        command_timeout=60,
        statement_cache_size=0,  # Fix for pgbouncer compatibility
        init=_init_connection
    )

    # Test connection and make sure tables exist
    async with db_pool.acquire() as conn:
        await conn.fetchval("SELECT 1")
        await ensure_schema(conn)

    logger.info("Database initialized successfully")


async def close_database():
    """Close database connection pool"""
    global db_pool
    if db_pool:
        await db_pool.close()
    logger.info("Database connections closed")


def get_db_pool():
    """Get the database pool instance"""
    return db_pool
