"""
MongoDB access for the boutique API.

The connection is opened once at import time from DATABASE_URL / DATABASE_NAME.
Routes receive the database through the ``get_db`` dependency so it can be
swapped out (tests use an in-memory client).
"""
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient, ReturnDocument

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

_client = None
db = None

if DATABASE_URL and DATABASE_NAME:
    _client = MongoClient(DATABASE_URL)
    db = _client[DATABASE_NAME]


def get_db():
    if db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return db


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_document(database, collection_name: str, data: Union[BaseModel, dict]) -> str:
    """Insert a document, stamping created_at/updated_at. Returns the new id."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = dict(data)
    now = utcnow()
    data_dict["created_at"] = now
    data_dict["updated_at"] = now
    result = database[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(database, collection_name: str, filter_dict: Optional[dict] = None,
                  limit: Optional[int] = None, sort: Optional[list] = None) -> List[dict]:
    cursor = database[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def next_sequence(database, name: str) -> int:
    """Auto-increment counter kept in the ``counter`` collection."""
    counter = database["counter"].find_one_and_update(
        {"_id": name},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return counter["seq"]


def to_public(doc: Optional[Dict[str, Any]]):
    if not doc:
        return doc
    doc["id"] = str(doc.pop("_id"))
    return doc


def object_id(id_str: str) -> ObjectId:
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail="Invalid id format")


def maybe_object_id(id_str: str) -> Optional[ObjectId]:
    if ObjectId.is_valid(id_str):
        return ObjectId(id_str)
    return None


def ensure_indexes(database):
    database["inventory"].create_index([("inventoryID", ASCENDING)], unique=True)
    database["retrievedinventory"].create_index([("inventoryID", ASCENDING)])
    database["user"].create_index([("email", ASCENDING)], unique=True)
    database["user"].create_index([("userID", ASCENDING)], unique=True)
    database["order"].create_index([("orderId", ASCENDING)], unique=True)
    database["order"].create_index([("userId", ASCENDING)])
    database["promotion"].create_index([("promotionID", ASCENDING)], unique=True)
    database["promotion"].create_index([("promoCode", ASCENDING)], unique=True)
    database["feedback"].create_index([("feedbackID", ASCENDING)], unique=True)
    logger.info("Indexes ensured on %s", database.name)
