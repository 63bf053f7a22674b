#!/usr/bin/env python3
"""
Seed script: creates a demo inspector profile with an API key and one sample
assessment seeded from the question template.
Run after migrations: python scripts/seed.py
"""

import asyncio
import os
import sys
from datetime import datetime, timezone
from uuid import uuid4

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import text

from safecheck.auth.middleware import hash_api_key
from safecheck.config import settings
from safecheck.database import async_session_maker
from safecheck.engine.manager import AssessmentManager
from safecheck.engine.template import load_template
from safecheck.storage.objects import ObjectStorage
from safecheck.storage.repositories import SqlAssessmentStore


API_KEY = "sk_demo_safecheck_12345"  # Demo API key - print this for user


async def seed():
    async with async_session_maker() as session:
        profile_id = str(uuid4())
        api_key_hash = hash_api_key(API_KEY)
        now = datetime.now(timezone.utc)

        # Check if profile exists
        result = await session.execute(
            text("SELECT id FROM profiles WHERE api_key_hash = :hash"),
            {"hash": api_key_hash},
        )
        row = result.fetchone()
        if row:
            profile_id = str(row[0])
            print("Profile already exists, using existing.")
        else:
            await session.execute(
                text("""
                    INSERT INTO profiles (id, name, role, api_key_hash, created_at)
                    VALUES (:pid, :name, 'user', :hash, :now)
                """),
                {"pid": profile_id, "name": "Demo Inspector", "hash": api_key_hash, "now": now},
            )
            await session.commit()

        result = await session.execute(
            text("SELECT count(*) FROM assessments WHERE user_id = :pid"),
            {"pid": profile_id},
        )
        if result.scalar_one():
            print("Sample assessment already exists.")
        else:
            manager = AssessmentManager(
                store=SqlAssessmentStore(session),
                objects=ObjectStorage.from_settings(),
                template=load_template(settings.question_template_path),
            )
            assessment = await manager.create("Demo Warehouse", profile_id)
            print(f"Created assessment {assessment.id} with {len(assessment.questions)} questions.")

    print()
    print("Seed complete.")
    print(f"API key: {API_KEY}")
    print(f"Use: Authorization: Bearer {API_KEY}")


if __name__ == "__main__":
    asyncio.run(seed())
