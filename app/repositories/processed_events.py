"""
Repository for tracking consumed events so redelivered messages are handled once
"""

from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import IndexModel, ASCENDING
from pymongo.errors import DuplicateKeyError

from app.core.logger import logger

RETENTION_SECONDS = 2592000  # 30 days


class ProcessedEventRepository:
    """Repository for managing processed events"""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection
        self._indexes_created = False

    async def ensure_indexes(self):
        """Create indexes for processed events collection"""
        if self._indexes_created:
            return

        indexes = [
            IndexModel([("event_id", ASCENDING)], unique=True, name="event_id_unique"),
            IndexModel([("event_type", ASCENDING)], name="event_type_idx"),
            IndexModel([("processed_at", ASCENDING)], expireAfterSeconds=RETENTION_SECONDS, name="ttl_idx"),
        ]

        await self.collection.create_indexes(indexes)
        self._indexes_created = True
        logger.info("Processed events indexes created")

    async def claim(self, event_id: str, event_type: str, metadata: Optional[dict] = None) -> bool:
        """
        Record an event as being handled.

        Returns:
            True if this call claimed the event, False if it was already claimed
        """
        document = {
            "event_id": event_id,
            "event_type": event_type,
            "processed_at": datetime.now(timezone.utc),
            "metadata": metadata or {},
        }

        try:
            await self.collection.insert_one(document)
        except DuplicateKeyError:
            logger.warning(
                f"Event {event_id} already processed",
                metadata={"event": "duplicate_event", "event_id": event_id}
            )
            return False
        return True

    async def release(self, event_id: str) -> None:
        """Forget a claim so a redelivery of the event is handled again"""
        await self.collection.delete_one({"event_id": event_id})
