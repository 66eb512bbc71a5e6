"""
Database Initialization Script for FarmLog API

This script creates the database schema required by the FastAPI backend.
The API also creates missing tables on startup; run this to prepare a
database ahead of time or to check connectivity.

Usage:
    python init_database.py
"""

import asyncio
import sys
from pathlib import Path

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from sqlalchemy import inspect, text
from farmlog.api.core.database import engine, Base
from farmlog.api.models.user import User
from farmlog.api.models.task import Task


async def init_database():
    """Initialize database schema"""
    print("=" * 60)
    print("FarmLog Database Initialization")
    print("=" * 60)
    print()

    # Test database connection
    print("1. Testing database connection...")
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            print(f"   ✓ Connected to {engine.url.get_backend_name()}")
    except Exception as e:
        print(f"   ✗ Database connection failed: {e}")
        print()
        print("Please ensure:")
        print("  1. DATABASE_URL points at a reachable database")
        print("  2. Your .env file is configured correctly")
        return False

    print()

    # Create tables
    print("2. Creating database tables...")
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            print("   ✓ Created tables:")
            print(f"      - {User.__tablename__}")
            print(f"      - {Task.__tablename__}")
    except Exception as e:
        print(f"   ✗ Failed to create tables: {e}")
        return False

    print()

    # Verify tables
    print("3. Verifying tables...")
    try:
        async with engine.begin() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
            print(f"   ✓ Found {len(tables)} tables:")
            for table in tables:
                print(f"      - {table}")
    except Exception as e:
        print(f"   ✗ Failed to verify tables: {e}")
        return False
    finally:
        await engine.dispose()

    print()
    print("=" * 60)
    print("Database initialization completed successfully!")
    print("=" * 60)
    print()
    print("Next steps:")
    print("  1. Start the API server: uvicorn farmlog.api.main:app --reload")
    print("  2. Run tests: pytest")
    print()

    return True


if __name__ == "__main__":
    result = asyncio.run(init_database())
    sys.exit(0 if result else 1)
