import logging
from typing import List, Dict, Any, Optional

import jsonpickle
import redis
import redis.asyncio as aioredis
from botbuilder.core import Storage  # type: ignore

from config import AppSettings

log = logging.getLogger(__name__)


class RedisStorageError(Exception):
    """Custom exception for RedisStorage errors."""
    pass


class RedisStorage(Storage):
    """
    A Storage provider that uses an asynchronous Redis client for state persistence.
    It stores bot state data as jsonpickle strings in Redis.
    """

    def __init__(self, app_settings: AppSettings, client: Optional[aioredis.Redis] = None):
        """
        Args:
            app_settings: The application settings containing Redis configuration.
            client: An already-built client; when omitted one is created on first use.
        """
        super().__init__()
        self._app_settings = app_settings
        self._redis_client: Optional[aioredis.Redis] = client
        self._redis_prefix = self._app_settings.redis_prefix

    async def _ensure_client_initialized(self):
        """Establishes a connection to the Redis server using settings from AppSettings."""
        if self._redis_client is not None:
            return

        log.info("Initializing Redis client...")
        settings = self._app_settings
        try:
            if settings.redis_url:
                log.info(f"Connecting to Redis using URL: {settings.redis_url}")
                client = aioredis.from_url(str(settings.redis_url), encoding="utf-8", decode_responses=True)
            else:
                log.info(f"Connecting to Redis using host: {settings.redis_host}, port: {settings.redis_port}, DB: {settings.redis_db}")
                client = aioredis.Redis(
                    host=settings.redis_host,
                    port=settings.redis_port or 6379,
                    password=settings.redis_password,
                    db=settings.redis_db or 0,
                    ssl=settings.redis_ssl_enabled or False,
                    encoding="utf-8",
                    decode_responses=True,
                )
            await client.ping()
            self._redis_client = client
            log.info("Successfully connected to Redis and pinged server.")
        except redis.exceptions.RedisError as e:
            log.error(f"Redis connection failed: {e}", exc_info=True)
            raise RedisStorageError(f"Failed to connect to Redis: {e}") from e

    def _prefixed(self, key: str) -> str:
        return self._redis_prefix + key

    async def read(self, keys: List[str]) -> Dict[str, Any]:
        """
        Reads specific StoreItems from Redis.

        Args:
            keys: A list of keys for the StoreItems to read.

        Returns:
            A dictionary of StoreItems, with keys matching the input. Missing keys are left out.
        """
        if not keys:
            return {}

        await self._ensure_client_initialized()
        state: Dict[str, Any] = {}
        prefixed_keys = [self._prefixed(key) for key in keys]
        try:
            log.debug(f"Reading prefixed keys from Redis: {prefixed_keys}")
            values = await self._redis_client.mget(prefixed_keys)
        except redis.exceptions.RedisError as e:
            log.error(f"Redis read operation failed: {e}", exc_info=True)
            raise RedisStorageError(f"Redis read failed: {e}") from e

        for original_key, value in zip(keys, values):
            if value is None:
                log.debug(f"Key '{original_key}' not found in Redis.")
                continue
            try:
                deserialized_item = jsonpickle.decode(value)
            except ValueError as e:
                log.error(f"Failed to deserialize JSON for key '{original_key}'. Value: '{value[:500]}'. Error: {e}")
                continue
            if not isinstance(deserialized_item, dict):
                log.warning(f"Deserialized item for key '{original_key}' is not a dict, skipping. Value: {value[:200]}")
                continue
            state[original_key] = deserialized_item
        log.debug(f"Successfully read {len(state)} items from Redis.")
        return state

    async def write(self, changes: Dict[str, Any]):
        """
        Writes StoreItems to Redis in one transactional pipeline.

        Redis has no native eTags, so writes are last-writer-wins. Turns for the
        same conversation are serialized by the channel, which keeps that safe.
        """
        if not changes:
            return

        await self._ensure_client_initialized()
        try:
            async with self._redis_client.pipeline(transaction=True) as pipe:
                for key, store_item_data in changes.items():
                    pipe.set(self._prefixed(key), jsonpickle.encode(store_item_data))
                await pipe.execute()
            log.debug(f"Successfully wrote {len(changes)} items to Redis.")
        except redis.exceptions.RedisError as e:
            log.error(f"Redis write operation failed: {e}", exc_info=True)
            raise RedisStorageError(f"Redis write failed: {e}") from e

    async def delete(self, keys: List[str]):
        """Deletes StoreItems from Redis."""
        if not keys:
            return

        await self._ensure_client_initialized()
        prefixed_keys = [self._prefixed(key) for key in keys]
        try:
            deleted_count = await self._redis_client.delete(*prefixed_keys)
            log.info(f"Deleted {deleted_count} keys from Redis.")
        except redis.exceptions.RedisError as e:
            log.error(f"Redis delete operation failed: {e}", exc_info=True)
            raise RedisStorageError(f"Redis delete failed: {e}") from e

    async def close(self):
        """Closes the Redis client connection if it's open."""
        if self._redis_client:
            log.info("Closing Redis client connection...")
            try:
                await self._redis_client.aclose()
                log.info("Redis client connection closed successfully.")
            except redis.exceptions.RedisError as e:
                log.error(f"Error closing Redis connection: {e}", exc_info=True)
            finally:
                self._redis_client = None
