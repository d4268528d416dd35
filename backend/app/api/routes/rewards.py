from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from redis.asyncio import Redis

from ...dependencies import get_mongo_db, get_redis
from ...schemas import RedeemRequest, RedemptionOut, RedemptionResult, RewardOut
from ...services import rewards as reward_service

router = APIRouter()


@router.get("", response_model=list[RewardOut])
async def list_rewards(
    category: str | None = Query(default=None),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> list[RewardOut]:
    docs = await reward_service.list_rewards(db, category)
    return [RewardOut(**doc) for doc in docs]


@router.post("/{reward_id}/redeem", response_model=RedemptionResult)
async def redeem_reward(
    reward_id: str,
    payload: RedeemRequest,
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    redis: Redis = Depends(get_redis),
) -> RedemptionResult:
    result = await reward_service.redeem_reward(db, redis, payload.user_id, reward_id)
    return RedemptionResult(**result)


@router.get("/redemptions/{user_id}", response_model=list[RedemptionOut])
async def list_redemptions(user_id: str, db: AsyncIOMotorDatabase = Depends(get_mongo_db)) -> list[RedemptionOut]:
    items = await reward_service.list_redemptions(db, user_id)
    return [RedemptionOut(**item) for item in items]
