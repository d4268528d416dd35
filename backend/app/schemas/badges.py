from datetime import datetime

from pydantic import BaseModel, Field


class BadgeDefinition(BaseModel):
    id: str
    name: str = Field(..., description="배지 규칙 조회 키로도 사용되는 표시 이름")
    description: str | None = None
    icon_url: str | None = None


class ReportActivity(BaseModel):
    """배지 판정에 필요한 제보 1건의 메타데이터"""

    category: str | None = None
    severity: int | None = None
    photo_count: int = 0
    description_length: int = 0
    created_at: datetime | None = None


class UserActivityAggregate(BaseModel):
    report_count: int = 0
    cleanup_count: int = 0
    points: int = 0
    reports: list[ReportActivity] = Field(default_factory=list)


class BadgeGrantOutcome(BaseModel):
    badge: BadgeDefinition
    granted: bool
    error: str | None = None


class UserBadge(BaseModel):
    badge: BadgeDefinition
    awarded_at: datetime | None = None


class BadgeEvaluationResponse(BaseModel):
    user_id: str
    new_badges: list[BadgeDefinition]
