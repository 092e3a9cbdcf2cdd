"""
MongoDB helpers.

Every helper takes the `Database` handle explicitly; the app opens one in its
lifespan and hands it to routes through `get_db`. pymongo failures are
re-raised as StoreError.
"""

import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi import Request
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from errors import StoreError

logger = logging.getLogger(__name__)


def connect(url: str, name: str) -> Database:
    client = MongoClient(url)
    logger.info(f"connected to document store database {name}")
    return client[name]


def get_db(request: Request) -> Database:
    """FastAPI dependency returning the database opened at startup."""
    return request.app.state.db


def drop_database(db: Database) -> None:
    """Delete every collection in the database. Used between test cases."""
    logger.warning(f"Deleting database {db.name}")
    db.client.drop_database(db.name)


def to_object_id(document_id: str) -> Optional[ObjectId]:
    """Parse a hex id, returning None when it can't name any document."""
    if not ObjectId.is_valid(document_id):
        return None
    return ObjectId(document_id)


def create_document(db: Database, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Insert one document and return it with its generated `_id`."""
    doc = dict(data)
    try:
        inserted_id = db[collection].insert_one(doc).inserted_id
    except PyMongoError as e:
        logger.error(f"insert failed: {e}", extra={"collection": collection})
        raise StoreError("insert", collection) from e
    doc["_id"] = inserted_id
    return doc


def get_documents(db: Database, collection: str, filter_dict: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    try:
        return list(db[collection].find(filter_dict or {}))
    except PyMongoError as e:
        logger.error(f"find failed: {e}", extra={"collection": collection})
        raise StoreError("find", collection) from e


def find_document(db: Database, collection: str, filter_dict: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """First document matching the filter, or None."""
    try:
        return db[collection].find_one(filter_dict)
    except PyMongoError as e:
        logger.error(f"find_one failed: {e}", extra={"collection": collection})
        raise StoreError("find", collection) from e


def get_document(db: Database, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
    oid = to_object_id(document_id)
    if oid is None:
        return None
    try:
        return db[collection].find_one({"_id": oid})
    except PyMongoError as e:
        logger.error(f"find_one failed: {e}", extra={"collection": collection})
        raise StoreError("find", collection) from e


def update_document(db: Database, collection: str, document_id: str, fields: Dict[str, Any]) -> bool:
    """Set the given fields on one document. Returns False if nothing matched."""
    oid = to_object_id(document_id)
    if oid is None:
        return False
    try:
        result = db[collection].update_one({"_id": oid}, {"$set": fields})
    except PyMongoError as e:
        logger.error(f"update failed: {e}", extra={"collection": collection})
        raise StoreError("update", collection) from e
    return result.matched_count == 1


def delete_document(db: Database, collection: str, document_id: str) -> bool:
    """Remove one document. Returns False if nothing matched."""
    oid = to_object_id(document_id)
    if oid is None:
        return False
    try:
        result = db[collection].delete_one({"_id": oid})
    except PyMongoError as e:
        logger.error(f"delete failed: {e}", extra={"collection": collection})
        raise StoreError("delete", collection) from e
    return result.deleted_count == 1


def count_documents(db: Database, collection: str, filter_dict: Optional[Dict[str, Any]] = None) -> int:
    try:
        return db[collection].count_documents(filter_dict or {})
    except PyMongoError as e:
        logger.error(f"count failed: {e}", extra={"collection": collection})
        raise StoreError("count", collection) from e
