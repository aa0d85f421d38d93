# app/db/seed_indexes.py
"""
Idempotent index seeding for the journal collections.

- Private logs: unique (ownerId, day), the same key as the `Day-{day}` document id.
- Public daily status: day, then owner, for the accountability feed.
- `create_index` is a no-op when an identical index already exists.
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING

from app.db.mongodb import namespaced
from app.shared.constants import CHALLENGE_LOGS_COLLECTION, DAILY_STATUS_COLLECTION

KeySpec = List[Tuple[str, int]]

INDEXES: Dict[str, List[Tuple[KeySpec, Dict[str, Any]]]] = {
    CHALLENGE_LOGS_COLLECTION: [
        ([("ownerId", ASCENDING), ("day", ASCENDING)], {"unique": True, "name": "owner_day_unique"}),
    ],
    DAILY_STATUS_COLLECTION: [
        ([("day", ASCENDING), ("ownerId", ASCENDING)], {"name": "day_owner"}),
    ],
}


async def ensure_indexes(db: AsyncIOMotorDatabase, app_id: str | None = None) -> list[str]:
    """Create the journal indexes if missing; returns the index names ensured."""
    ensured: list[str] = []
    for name, specs in INDEXES.items():
        coll = db[namespaced(name, app_id)]
        for keys, options in specs:
            ensured.append(await coll.create_index(keys, **options))
    return ensured
