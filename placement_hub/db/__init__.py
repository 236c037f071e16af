"""
Database module - PostgreSQL rows and MongoDB GridFS files.
"""
from placement_hub.db.postgres import get_db_session, test_postgres_connection
from placement_hub.db.mongodb import get_bucket, test_mongo_connection

__all__ = [
    "get_db_session",
    "test_postgres_connection",
    "get_bucket",
    "test_mongo_connection"
]
