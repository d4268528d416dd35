from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from ...dependencies import get_mongo_db
from ...schemas import BadgeDefinition, BadgeEvaluationResponse, UserBadge
from ...services import badges as badge_service

router = APIRouter()


@router.get("", response_model=list[BadgeDefinition])
async def list_badges(db: AsyncIOMotorDatabase = Depends(get_mongo_db)) -> list[BadgeDefinition]:
    return await badge_service.list_badges(db)


@router.get("/users/{user_id}", response_model=list[UserBadge])
async def list_user_badges(user_id: str, db: AsyncIOMotorDatabase = Depends(get_mongo_db)) -> list[UserBadge]:
    return await badge_service.list_user_badges(db, user_id)


@router.post("/users/{user_id}/evaluate", response_model=BadgeEvaluationResponse)
async def evaluate_user_badges(
    user_id: str, db: AsyncIOMotorDatabase = Depends(get_mongo_db)
) -> BadgeEvaluationResponse:
    new_badges = await badge_service.check_and_award_badges(db, user_id)
    return BadgeEvaluationResponse(user_id=user_id, new_badges=new_badges)
