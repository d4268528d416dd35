from datetime import datetime

from pydantic import BaseModel


class PointsBalance(BaseModel):
    user_id: str
    points: int


class PointsEntry(BaseModel):
    id: str
    user_id: str
    points: int
    activity_type: str
    description: str = ""
    balance_snapshot: int
    created_at: datetime


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: str
    name: str | None = None
    avatar_url: str | None = None
    total_points: int
