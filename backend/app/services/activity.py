from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from ..schemas.badges import ReportActivity, UserActivityAggregate
from .points import get_balance

REPORTS_COL = "reports"
CLEANUPS_COL = "cleanups"


def _as_utc(value: Any) -> Any:
    # MongoDB는 UTC naive datetime을 돌려준다
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def report_to_activity(doc: dict) -> ReportActivity:
    return ReportActivity(
        category=doc.get("category"),
        severity=doc.get("severity"),
        photo_count=len(doc.get("photos") or []),
        description_length=len(doc.get("description") or ""),
        created_at=_as_utc(doc.get("created_at")),
    )


async def build_activity_aggregate(db: AsyncIOMotorDatabase, user_id: str) -> UserActivityAggregate:
    """
    배지 판정용 사용자 활동 집계

    데이터 출처:
    - reports: 사용자가 작성한 제보 (user_id)
    - cleanups: 사용자가 완료한 정화 작업 (cleaner_id)
    - points_log: 최신 잔액 스냅샷
    """
    reports = [report_to_activity(doc) async for doc in db[REPORTS_COL].find({"user_id": user_id})]
    cleanup_count = await db[CLEANUPS_COL].count_documents({"cleaner_id": user_id})
    points = await get_balance(db, user_id)
    return UserActivityAggregate(
        report_count=len(reports),
        cleanup_count=cleanup_count,
        points=points,
        reports=reports,
    )
