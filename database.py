"""
MongoDB connection used by the Mongo-backed record client.

`db` is None unless both DATABASE_URL and DATABASE_NAME are set.
"""
import os

from pymongo import MongoClient, ReturnDocument

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

_client = MongoClient(DATABASE_URL) if DATABASE_URL and DATABASE_NAME else None
db = _client[DATABASE_NAME] if _client is not None else None


def next_id(mongo_db, table_name: str) -> int:
    """Allocate the next integer record id for a table."""
    counter = mongo_db["counters"].find_one_and_update(
        {"_id": table_name},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return counter["seq"]
