from __future__ import annotations

import logging
import secrets
import string
import time
from datetime import datetime, timezone

from bson import ObjectId
from fastapi import HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from redis.asyncio import Redis

from .points import add_points, get_balance
from .realtime import publish_change

logger = logging.getLogger(__name__)

REWARDS_COL = "rewards"
REDEMPTIONS_COL = "redemptions"

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_redemption_code(now_ms: int | None = None) -> str:
    """ECO-<epoch ms>-<대문자/숫자 6자리> 형식 교환 코드"""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(6))
    return f"ECO-{now_ms}-{suffix}"


def _normalize_reward(doc: dict) -> dict:
    doc = {**doc}
    doc["id"] = str(doc.pop("_id"))
    return doc


async def list_rewards(db: AsyncIOMotorDatabase, category: str | None = None) -> list[dict]:
    query: dict = {"is_active": True}
    if category and category != "all":
        query["category"] = category
    cursor = db[REWARDS_COL].find(query).sort("points_required", 1)
    return [_normalize_reward(doc) async for doc in cursor]


async def redeem_reward(
    db: AsyncIOMotorDatabase, redis: Redis | None, user_id: str, reward_id: str
) -> dict:
    """
    포인트로 리워드 교환

    1. 잔액/재고 확인
    2. redemptions에 교환 내역 저장 (status=pending)
    3. 포인트 원장에 차감 항목 기록
    4. 재고 1 감소 (실패해도 교환 자체는 유지)
    """
    try:
        reward_obj_id = ObjectId(reward_id)
    except Exception as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="잘못된 리워드 ID") from exc

    reward = await db[REWARDS_COL].find_one({"_id": reward_obj_id})
    if not reward or not reward.get("is_active", True):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="리워드를 찾을 수 없습니다.")

    cost = int(reward.get("points_required", 0))
    balance = await get_balance(db, user_id)
    if balance < cost:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="포인트가 부족합니다.")
    if int(reward.get("stock_available", 0)) <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="리워드 재고가 없습니다.")

    redemption_code = generate_redemption_code()
    redemption = {
        "user_id": user_id,
        "reward_id": reward_obj_id,
        "points_spent": cost,
        "status": "pending",
        "redemption_code": redemption_code,
        "redeemed_at": datetime.now(timezone.utc),
    }
    await db[REDEMPTIONS_COL].insert_one(redemption)

    entry = await add_points(
        db,
        user_id,
        -cost,
        activity_type="redemption",
        description=f"Redeemed: {reward.get('name', '')}",
    )

    try:
        result = await db[REWARDS_COL].update_one(
            {"_id": reward_obj_id, "stock_available": {"$gt": 0}},
            {"$inc": {"stock_available": -1}},
        )
        if result.modified_count == 0:
            logger.warning("리워드 재고 차감 실패 (reward_id=%s): 재고 없음", reward_id)
    except Exception as exc:
        logger.error("리워드 재고 업데이트 실패 (reward_id=%s): %s", reward_id, exc)

    await publish_change(redis, REDEMPTIONS_COL, "INSERT", {"user_id": user_id, "reward_id": reward_id})
    return {
        "redemption_code": redemption_code,
        "points_spent": cost,
        "balance": entry["balance_snapshot"],
    }


async def list_redemptions(db: AsyncIOMotorDatabase, user_id: str) -> list[dict]:
    cursor = db[REDEMPTIONS_COL].find({"user_id": user_id}).sort("redeemed_at", -1)
    docs = [doc async for doc in cursor]

    reward_ids = list({doc["reward_id"] for doc in docs})
    rewards: dict[str, dict] = {}
    if reward_ids:
        reward_cursor = db[REWARDS_COL].find({"_id": {"$in": reward_ids}})
        rewards = {str(doc["_id"]): _normalize_reward(doc) async for doc in reward_cursor}

    items: list[dict] = []
    for doc in docs:
        item = {**doc}
        item["id"] = str(item.pop("_id"))
        item["reward_id"] = str(item["reward_id"])
        item["reward"] = rewards.get(item["reward_id"])
        items.append(item)
    return items
