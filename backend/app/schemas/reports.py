from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from .badges import BadgeDefinition

ReportCategory = Literal["trash", "oil", "plastic", "vegetation", "animal", "other"]
ReportStatus = Literal["submitted", "verified", "assigned", "in_progress", "cleaned", "closed", "rejected"]


class ReportCreate(BaseModel):
    user_id: str = Field(..., min_length=1, description="제보자 ID (인증은 호스팅 백엔드에서 처리)")
    lake_id: str | None = None
    lake_name: str | None = None
    category: ReportCategory
    severity: int = Field(..., ge=1, le=5)
    description: str = Field(default="", max_length=2000)
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    photo_urls: list[str] = Field(default_factory=list)


class ReportOut(BaseModel):
    id: str
    user_id: str | None = None
    lake_id: str | None = None
    lake_name: str | None = None
    description: str | None = None
    category: ReportCategory | None = None
    severity: int | None = None
    photos: list[str] = Field(default_factory=list)
    lat: float
    lng: float
    status: ReportStatus = "submitted"
    priority_score: int | None = None
    assigned_cleaner_id: str | None = None
    volunteer_proof_photos: list[str] = Field(default_factory=list)
    volunteer_notes: str | None = None
    volunteer_completed_at: datetime | None = None
    created_at: datetime | None = None


class ReportSubmitResponse(BaseModel):
    report: ReportOut
    points_earned: int
    new_badges: list[BadgeDefinition] = Field(default_factory=list)


class ReportAssignRequest(BaseModel):
    cleaner_id: str = Field(..., min_length=1)


class ReportStatusUpdate(BaseModel):
    status: ReportStatus


class CleanupComplete(BaseModel):
    cleaner_id: str = Field(..., min_length=1)
    proof_photos: list[str] = Field(default_factory=list)
    notes: str = ""


class CleanupResponse(BaseModel):
    report: ReportOut
    points_earned: int
    new_badges: list[BadgeDefinition] = Field(default_factory=list)
