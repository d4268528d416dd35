from __future__ import annotations

from motor.motor_asyncio import AsyncIOMotorDatabase


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    await db["reports"].create_index([("user_id", 1), ("created_at", -1)])
    await db["reports"].create_index([("status", 1), ("created_at", -1)])
    await db["cleanups"].create_index([("cleaner_id", 1), ("created_at", -1)])
    await db["badges"].create_index("name", unique=True)
    await db["user_badges"].create_index([("user_id", 1), ("badge_id", 1)], unique=True)
    await db["points_log"].create_index([("user_id", 1), ("created_at", -1)])
    await db["points_log"].create_index("created_at")
    await db["rewards"].create_index([("is_active", 1), ("points_required", 1)])
    await db["redemptions"].create_index([("user_id", 1), ("redeemed_at", -1)])
