#!/usr/bin/env python3
"""
Script to set up local storage for development.
Creates the notes table in DATABASE_URL and the attachments bucket in the
configured S3 endpoint (e.g. MinIO or LocalStack).
"""

import asyncio
import sys

from botocore.exceptions import ClientError

from app.core.config import settings
from app.core.database import Base, engine
from app.core.s3 import get_s3_client
from app import models  # noqa: F401


async def setup_database():
    """Create all database tables."""
    print(f"Setting up database: {settings.DATABASE_URL}")

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        print("Created all database tables")
    except Exception as e:
        print(f"❌ Error setting up database: {e}")
        return False
    finally:
        await engine.dispose()

    return True


def setup_bucket():
    """Create the attachments bucket if it doesn't exist."""
    bucket = settings.NOTES_BUCKET_NAME
    client = get_s3_client()
    print(f"Setting up bucket: {bucket}")

    try:
        client.head_bucket(Bucket=bucket)
        print(f"Bucket already exists: {bucket}")
        return True
    except ClientError as e:
        if e.response["Error"]["Code"] not in ("404", "NoSuchBucket"):
            print(f"❌ Error checking bucket {bucket}: {e}")
            return False

    try:
        if settings.AWS_REGION == "us-east-1":
            client.create_bucket(Bucket=bucket)
        else:
            client.create_bucket(
                Bucket=bucket,
                CreateBucketConfiguration={"LocationConstraint": settings.AWS_REGION},
            )
        print(f"✅ Created bucket: {bucket}")
    except ClientError as e:
        print(f"❌ Failed to create bucket {bucket}: {e}")
        return False

    return True


async def cleanup_database():
    """Drop all database tables."""
    print(f"Cleaning up database: {settings.DATABASE_URL}")

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        print("✅ Dropped all database tables")
    except Exception as e:
        print(f"❌ Error cleaning up database: {e}")
        return False
    finally:
        await engine.dispose()

    return True


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "cleanup":
        ok = asyncio.run(cleanup_database())
    else:
        ok = asyncio.run(setup_database()) and setup_bucket()
    sys.exit(0 if ok else 1)
