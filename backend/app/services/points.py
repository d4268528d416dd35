from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone
from typing import Literal

from motor.motor_asyncio import AsyncIOMotorDatabase

POINTS_LOG_COL = "points_log"
USERS_COL = "users"

LeaderboardPeriod = Literal["weekly", "monthly", "all-time"]


async def get_balance(db: AsyncIOMotorDatabase, user_id: str) -> int:
    """가장 최근 원장 항목의 balance_snapshot (항목이 없으면 0)"""
    doc = await db[POINTS_LOG_COL].find_one(
        {"user_id": user_id}, sort=[("created_at", -1), ("_id", -1)]
    )
    if not doc:
        return 0
    return int(doc.get("balance_snapshot") or 0)


async def add_points(
    db: AsyncIOMotorDatabase,
    user_id: str,
    points: int,
    *,
    activity_type: str,
    description: str = "",
) -> dict:
    """포인트 원장에 증감 항목을 추가하고 새 잔액 스냅샷을 기록"""
    balance = await get_balance(db, user_id)
    doc = {
        "user_id": user_id,
        "points": points,
        "activity_type": activity_type,
        "description": description,
        "balance_snapshot": balance + points,
        "created_at": datetime.now(timezone.utc),
    }
    result = await db[POINTS_LOG_COL].insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


async def list_points_history(db: AsyncIOMotorDatabase, user_id: str, limit: int = 50) -> list[dict]:
    cursor = db[POINTS_LOG_COL].find({"user_id": user_id}).sort("created_at", -1).limit(limit)
    items: list[dict] = []
    async for doc in cursor:
        doc = {**doc}
        doc["id"] = str(doc.pop("_id"))
        items.append(doc)
    return items


def _one_month_ago(now: datetime) -> datetime:
    if now.month == 1:
        year, month = now.year - 1, 12
    else:
        year, month = now.year, now.month - 1
    # 말일 보정 (3/31 -> 2/28)
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


def period_start(period: LeaderboardPeriod, now: datetime | None = None) -> datetime | None:
    now = now or datetime.now(timezone.utc)
    if period == "weekly":
        return now - timedelta(days=7)
    if period == "monthly":
        return _one_month_ago(now)
    return None


async def get_leaderboard(
    db: AsyncIOMotorDatabase,
    period: LeaderboardPeriod = "all-time",
    *,
    limit: int = 50,
    now: datetime | None = None,
) -> list[dict]:
    """
    포인트 리더보드

    - all-time: 사용자별 최신 balance_snapshot
    - weekly / monthly: 기간 내 적립/차감 포인트 합계
    """
    query: dict = {}
    start = period_start(period, now)
    if start is not None:
        query["created_at"] = {"$gte": start}

    totals: dict[str, int] = {}
    cursor = db[POINTS_LOG_COL].find(query).sort([("created_at", -1), ("_id", -1)])
    async for entry in cursor:
        user_id = entry.get("user_id")
        if not user_id:
            continue
        if period == "all-time":
            # 최신 항목이 먼저 오므로 처음 본 값만 사용
            totals.setdefault(user_id, int(entry.get("balance_snapshot") or 0))
        else:
            totals[user_id] = totals.get(user_id, 0) + int(entry.get("points") or 0)

    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)[:limit]

    users: dict[str, dict] = {}
    if ranked:
        user_cursor = db[USERS_COL].find({"_id": {"$in": [user_id for user_id, _ in ranked]}})
        users = {str(doc["_id"]): doc async for doc in user_cursor}

    leaderboard: list[dict] = []
    for rank, (user_id, total) in enumerate(ranked, start=1):
        user_doc = users.get(user_id, {})
        leaderboard.append(
            {
                "rank": rank,
                "user_id": user_id,
                "name": user_doc.get("name"),
                "avatar_url": user_doc.get("avatar_url"),
                "total_points": total,
            }
        )
    return leaderboard
