import os
import logging
from typing import Any
from fastapi import HTTPException
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

logger = logging.getLogger(__name__)

# Never leak the store's internal identity to callers
PROJECTION = {"_id": 0}

NAME_FIELDS = ("name.english", "name.french", "name.japanese", "name.chinese")

# Raised for any store failure the caller cannot fix (connectivity, server errors)
class StoreError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=500, detail=f"Store error: {detail}")

# Raised when a write would duplicate the domain `id`
class DuplicatePokemonError(HTTPException):
    def __init__(self, pokemon_id: int):
        super().__init__(status_code=409, detail=f"Pokemon with id {pokemon_id} already exists")

class PokemonRepository:
    DEFAULT_URL = "mongodb://localhost:27017"
    DEFAULT_DB = "pokedex"
    DEFAULT_COLLECTION = "pokemon"

    def __init__(self, collection: AsyncIOMotorCollection, client: Any = None):
        self.collection = collection
        self._client = client
        self._indexes_ready = False

    @classmethod
    def from_url(cls, url: str = None, db_name: str = None, collection_name: str = None) -> "PokemonRepository":
        """Builds a repository on a new motor client, falling back to environment settings."""
        if url is None:
            url = os.getenv("MONGO_URL", cls.DEFAULT_URL)
        db_name = db_name or os.getenv("MONGO_DB", cls.DEFAULT_DB)
        collection_name = collection_name or os.getenv("MONGO_COLLECTION", cls.DEFAULT_COLLECTION)
        client = AsyncIOMotorClient(url)
        return cls(client[db_name][collection_name], client=client)

    async def ensure_indexes(self):
        """Creates the unique index on the domain `id` (idempotent)."""
        if self._indexes_ready:
            return
        try:
            await self.collection.create_index([("id", ASCENDING)], unique=True)
        except PyMongoError as e:
            logger.error(f"Could not create index on 'id': {e}")
            raise StoreError(str(e))
        self._indexes_ready = True

    async def _find_many(self, query: dict, skip: int = 0, limit: int = 0) -> list[dict]:
        try:
            cursor = self.collection.find(query, PROJECTION)
            if skip:
                cursor = cursor.skip(skip)
            if limit:
                cursor = cursor.limit(limit)
            return await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error(f"find failed for query {query}: {e}")
            raise StoreError(str(e))

    async def find_all(self) -> list[dict]:
        return await self._find_many({})

    async def find_page(self, skip: int, limit: int) -> list[dict]:
        return await self._find_many({}, skip=skip, limit=limit)

    async def search_names(self, pattern: str) -> list[dict]:
        """Case-insensitive regex match against every localized name field."""
        regex = {"$regex": pattern, "$options": "i"}
        return await self._find_many({"$or": [{field: regex} for field in NAME_FIELDS]})

    async def find_by_id(self, pokemon_id: int) -> dict | None:
        try:
            return await self.collection.find_one({"id": pokemon_id}, PROJECTION)
        except PyMongoError as e:
            logger.error(f"find_one failed for id {pokemon_id}: {e}")
            raise StoreError(str(e))

    async def insert(self, document: dict) -> dict:
        await self.ensure_indexes()
        # insert_one adds `_id` to the dict it is given
        to_store = dict(document)
        try:
            await self.collection.insert_one(to_store)
        except DuplicateKeyError:
            raise DuplicatePokemonError(document["id"])
        except PyMongoError as e:
            logger.error(f"insert failed for id {document.get('id')}: {e}")
            raise StoreError(str(e))
        to_store.pop("_id", None)
        return to_store

    async def update_by_id(self, pokemon_id: int, fields: dict) -> dict | None:
        """Applies `fields` with $set and returns the document after the update, or None."""
        try:
            return await self.collection.find_one_and_update(
                {"id": pokemon_id},
                {"$set": fields},
                projection=PROJECTION,
                return_document=ReturnDocument.AFTER,
                upsert=False,
            )
        except PyMongoError as e:
            logger.error(f"update failed for id {pokemon_id}: {e}")
            raise StoreError(str(e))

    async def delete_by_id(self, pokemon_id: int) -> dict | None:
        try:
            return await self.collection.find_one_and_delete({"id": pokemon_id}, projection=PROJECTION)
        except PyMongoError as e:
            logger.error(f"delete failed for id {pokemon_id}: {e}")
            raise StoreError(str(e))

    def close(self):
        """Close the motor client (call on app shutdown)."""
        if self._client is not None:
            self._client.close()
