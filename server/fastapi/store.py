"""
Location Store

Saved coordinate records in a MongoDB collection, keyed by a generated
locationId. Works against pymongo's asyncio collection API.
"""

import logging
import uuid

from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from errors import NotFoundError, UpstreamError
from models import Location

logger = logging.getLogger(__name__)

# Mongo's own key never leaves the store
PROJECTION = {"_id": 0}


def new_location_id() -> str:
    return str(uuid.uuid4())


class LocationStore:
    def __init__(self, collection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        await self.collection.create_index("locationId", unique=True)

    async def create(self, latitude: float, longitude: float) -> Location:
        location = Location(locationId=new_location_id(), latitude=latitude, longitude=longitude)
        try:
            await self.collection.insert_one(location.model_dump(by_alias=True))
        except PyMongoError as e:
            logger.exception("Location save failed: %s", e)
            raise UpstreamError("Failed to save location") from e
        return location

    async def list_all(self) -> list[Location]:
        """Return every saved location, sorted by locationId descending."""
        try:
            cursor = self.collection.find({}, PROJECTION).sort("locationId", DESCENDING)
            docs = await cursor.to_list()
        except PyMongoError as e:
            logger.exception("Location fetch failed: %s", e)
            raise UpstreamError("Failed to fetch locations") from e
        return [Location.model_validate(doc) for doc in docs]

    async def delete(self, location_id: str) -> Location:
        try:
            doc = await self.collection.find_one_and_delete(
                {"locationId": location_id}, projection=PROJECTION
            )
        except PyMongoError as e:
            logger.exception("Location delete failed: %s", e)
            raise UpstreamError("Failed to delete location") from e

        if doc is None:
            raise NotFoundError("Location not found")
        return Location.model_validate(doc)
