"""
MongoDB Connection Utility

MongoDB stores uploaded files through GridFS:
- profile images
- certificates
- generated resumes

Each storage bucket maps to its own GridFS bucket, files are addressed by
their path (the GridFS filename) inside that bucket.
"""
import logging

from gridfs import GridFSBucket
from pymongo import MongoClient
from pymongo.database import Database
from placement_hub.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None
_buckets: dict = {}


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri)
    return _client


def get_mongo_db() -> Database:
    """Get the file storage database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[settings.mongodb_db]
    return _db


def get_bucket(name: str) -> GridFSBucket:
    """Get (and cache) the GridFS bucket for a storage bucket name."""
    if name not in _buckets:
        _buckets[name] = GridFSBucket(get_mongo_db(), bucket_name=name)
    return _buckets[name]


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        # ping command checks connection
        client.admin.command('ping')
        return True
    except Exception as e:
        logger.warning(f"MongoDB connection failed: {e}")
        return False


def init_mongo_indexes():
    """
    Create indexes for path lookups.
    Call this once during app startup.
    """
    db = get_mongo_db()

    for bucket in settings.buckets:
        db[f"{bucket}.files"].create_index([("filename", 1), ("uploadDate", -1)])

    logger.info("MongoDB indexes created successfully")
