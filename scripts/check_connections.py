#!/usr/bin/env python3
"""
Connection Check Script

Verifies that PostgreSQL, MongoDB and DeepSeek are reachable, and with
--init also applies the database schema and the GridFS indexes.

Usage: python scripts/check_connections.py [--init]
"""
import argparse

from placement_hub.core.config import get_settings
from placement_hub.db.mongodb import init_mongo_indexes, test_mongo_connection
from placement_hub.db.postgres import apply_schema, test_postgres_connection
from placement_hub.services.deepseek_client import get_deepseek_client


def main():
    parser = argparse.ArgumentParser(description="Check Placement Hub backing services")
    parser.add_argument("--init", action="store_true", help="apply schema.sql and create GridFS indexes")
    args = parser.parse_args()

    settings = get_settings()
    print("=" * 50)
    print("PLACEMENT HUB - CONNECTION CHECK")
    print("=" * 50)

    print("\n[1] PostgreSQL")
    print(f"    URL: postgresql://{settings.postgres_user}:****@{settings.postgres_host}:{settings.postgres_port}/{settings.postgres_db}")
    postgres_ok = test_postgres_connection()
    print(f"    {'CONNECTED' if postgres_ok else 'FAILED'}")

    print("\n[2] MongoDB")
    print(f"    URI: {settings.mongodb_uri}  database: {settings.mongodb_db}")
    print(f"    Buckets: {', '.join(settings.buckets)}")
    mongo_ok = test_mongo_connection()
    print(f"    {'CONNECTED' if mongo_ok else 'FAILED'}")

    print("\n[3] DeepSeek API (generate-resume)")
    if settings.deepseek_api_key:
        print(f"    Base URL: {settings.deepseek_base_url}")
        print(f"    {'CONNECTED' if get_deepseek_client().test_connection() else 'FAILED'}")
    else:
        print("    API key not configured, resume generation will fail")

    if args.init:
        print("\n[4] Initializing storage")
        if postgres_ok:
            apply_schema()
            print("    schema.sql applied")
        if mongo_ok:
            init_mongo_indexes()
            print("    GridFS indexes created")

    print("\n" + "=" * 50)


if __name__ == "__main__":
    main()
