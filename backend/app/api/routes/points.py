from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from ...dependencies import get_mongo_db
from ...schemas import LeaderboardEntry, PointsBalance, PointsEntry
from ...services import points as points_service

router = APIRouter()


@router.get("/points/{user_id}", response_model=PointsBalance)
async def get_points(user_id: str, db: AsyncIOMotorDatabase = Depends(get_mongo_db)) -> PointsBalance:
    balance = await points_service.get_balance(db, user_id)
    return PointsBalance(user_id=user_id, points=balance)


@router.get("/points/{user_id}/history", response_model=list[PointsEntry])
async def get_points_history(
    user_id: str,
    limit: int = Query(default=50, ge=1, le=200),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> list[PointsEntry]:
    items = await points_service.list_points_history(db, user_id, limit)
    return [PointsEntry(**item) for item in items]


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
async def get_leaderboard(
    period: points_service.LeaderboardPeriod = Query(default="all-time"),
    limit: int = Query(default=50, ge=1, le=200),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> list[LeaderboardEntry]:
    entries = await points_service.get_leaderboard(db, period, limit=limit)
    return [LeaderboardEntry(**entry) for entry in entries]
