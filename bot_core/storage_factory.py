import logging

from botbuilder.core import MemoryStorage, Storage  # type: ignore

from config import AppSettings
from .redis_storage import RedisStorage
from .sqlite_storage import SQLiteStorage

logger = logging.getLogger(__name__)


def create_storage(settings: AppSettings) -> Storage:
    """Pick the state storage backend named by MEMORY_TYPE."""
    if settings.memory_type == "redis":
        logger.info(f"Using Redis for bot state. Configured URL: {settings.redis_url}, Host: {settings.redis_host}, Port: {settings.redis_port}")
        return RedisStorage(app_settings=settings)
    if settings.memory_type == "sqlite":
        logger.info(f"Using SQLite database for bot state at: {settings.state_db_path}")
        return SQLiteStorage(db_path=settings.state_db_path)
    logger.warning("Using in-memory bot state; conversations are lost on restart.")
    return MemoryStorage()


async def close_storage(storage: Storage) -> None:
    if isinstance(storage, RedisStorage):
        await storage.close()
    elif isinstance(storage, SQLiteStorage):
        storage.close()
