from datetime import datetime

from pydantic import BaseModel, Field


class RewardOut(BaseModel):
    id: str
    name: str
    description: str | None = None
    category: str | None = None
    points_required: int
    stock_available: int = 0
    is_active: bool = True
    logo_url: str | None = None


class RedeemRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


class RedemptionResult(BaseModel):
    redemption_code: str
    points_spent: int
    balance: int


class RedemptionOut(BaseModel):
    id: str
    user_id: str
    reward_id: str
    points_spent: int
    status: str = "pending"
    redemption_code: str
    redeemed_at: datetime
    reward: RewardOut | None = None
