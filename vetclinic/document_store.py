"""
Redis-backed document store for appointment clinical details
One JSON document per appointment, keyed by the relational appointment id
"""

import asyncio
import json
import logging
from typing import Any, Iterable, Optional

import redis.asyncio as redis

from .config import (
    DOCUMENT_KEY_PREFIX,
    REDIS_DB,
    REDIS_HOST,
    REDIS_PASSWORD,
    REDIS_PORT,
    REDIS_SSL,
    REDIS_URL,
)

logger = logging.getLogger(__name__)

# Redis connection
redis_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    """
    Get or create the Redis client
    Supports both a connection URL and individual host settings
    """
    global redis_client

    if redis_client is None:
        logger.info("🔄 Initializing Redis connection for appointment details...")

        if REDIS_URL:
            # Mask password in URL for logging
            if "@" in REDIS_URL:
                url_parts = REDIS_URL.split("@")
                protocol = url_parts[0].split(":")[0]
                masked_url = f"{protocol}:****@{url_parts[1]}"
            else:
                masked_url = "****"
            logger.info(f"📡 Using Redis URL connection: {masked_url}")

            redis_client = redis.from_url(
                REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=15,
                socket_timeout=30,
                health_check_interval=30,
                max_connections=20,
            )
        else:
            logger.info("📡 Using individual Redis configuration:")
            logger.info(f"   Host: {REDIS_HOST}")
            logger.info(f"   Port: {REDIS_PORT}")
            logger.info(f"   Database: {REDIS_DB}")
            logger.info(f"   SSL: {'Enabled' if REDIS_SSL else 'Disabled'}")
            logger.info(f"   Password: {'Set' if REDIS_PASSWORD else 'Not set'}")

            redis_client = redis.Redis(
                host=REDIS_HOST,
                port=REDIS_PORT,
                password=REDIS_PASSWORD,
                db=REDIS_DB,
                ssl=REDIS_SSL,
                decode_responses=True,
                socket_connect_timeout=15,
                socket_timeout=30,
                health_check_interval=30,
                max_connections=20,
            )

    return redis_client


async def close_redis_client() -> None:
    """Close the shared client on shutdown"""
    global redis_client

    if redis_client is not None:
        await redis_client.aclose()
        redis_client = None


class AppointmentDetailStore:
    """Document operations for appointment details with automatic serialization"""

    def __init__(self, client, key_prefix: str = DOCUMENT_KEY_PREFIX):
        self.client = client
        self.key_prefix = key_prefix

    def _key(self, appointment_id) -> str:
        return f"{self.key_prefix}{appointment_id}"

    async def find_one(self, appointment_id) -> Optional[dict[str, Any]]:
        """Get the document for an appointment, None when it does not exist"""
        value = await self.client.get(self._key(appointment_id))
        if value is None:
            logger.debug(f"❌ Detail MISS: {appointment_id}")
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            logger.error(f"❌ Detail document for appointment {appointment_id} is not valid JSON: {e}")
            return None

    async def find_many(self, appointment_ids: Iterable) -> list[Optional[dict[str, Any]]]:
        """Fetch several documents concurrently; results follow the order of the ids given"""
        return await asyncio.gather(*(self.find_one(i) for i in appointment_ids))

    async def insert_one(self, document: dict[str, Any]) -> None:
        """Store a new document keyed by its idCitaSql"""
        await self.client.set(self._key(document["idCitaSql"]), json.dumps(document))
        logger.debug(f"✅ Detail SET: {document['idCitaSql']}")

    async def replace_one(self, appointment_id, document: dict[str, Any]) -> None:
        """Overwrite the whole document for an appointment"""
        await self.client.set(self._key(appointment_id), json.dumps(document))

    async def update_one(self, appointment_id, fields: dict[str, Any]) -> bool:
        """
        Set the given fields on an existing document.
        Returns False (and writes nothing) when no document matches.
        """
        document = await self.find_one(appointment_id)
        if document is None:
            return False
        document.update(fields)
        await self.replace_one(appointment_id, document)
        logger.debug(f"✅ Detail UPDATE: {appointment_id} ({', '.join(fields)})")
        return True

    async def delete_one(self, appointment_id) -> bool:
        """Delete a document, returns whether one existed"""
        deleted = await self.client.delete(self._key(appointment_id))
        return bool(deleted)


def get_detail_store() -> AppointmentDetailStore:
    """Dependency injection for the appointment detail store"""
    return AppointmentDetailStore(get_redis_client())
