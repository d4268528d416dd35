from __future__ import annotations

import logging
from datetime import datetime, timezone

from bson import ObjectId
from fastapi import HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from redis.asyncio import Redis

from ..schemas.reports import CleanupComplete, ReportCreate
from .badges import check_and_award_badges
from .points import add_points
from .realtime import publish_change

logger = logging.getLogger(__name__)

REPORTS_COL = "reports"
CLEANUPS_COL = "cleanups"

CLAIMABLE_STATUSES = ("submitted", "verified", "assigned")


def report_points(severity: int) -> int:
    """제보 1건당 적립 포인트"""
    return 10 + severity * 2


def cleanup_points(severity: int | None) -> int:
    """정화 완료 시 적립 포인트 (심각도 1~5 -> 10~50점)"""
    return (severity or 1) * 10


def _object_id(report_id: str) -> ObjectId:
    try:
        return ObjectId(report_id)
    except Exception as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="잘못된 제보 ID") from exc


def normalize_report(doc: dict) -> dict:
    doc = {**doc}
    doc["id"] = str(doc.pop("_id"))
    doc["photos"] = doc.get("photos") or []
    doc["volunteer_proof_photos"] = doc.get("volunteer_proof_photos") or []
    return doc


async def get_report(db: AsyncIOMotorDatabase, report_id: str) -> dict:
    doc = await db[REPORTS_COL].find_one({"_id": _object_id(report_id)})
    if not doc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="제보를 찾을 수 없습니다.")
    return doc


async def list_reports(
    db: AsyncIOMotorDatabase, status_filter: str | None = None, limit: int = 100
) -> list[dict]:
    query: dict = {}
    if status_filter and status_filter != "all":
        query["status"] = status_filter
    cursor = db[REPORTS_COL].find(query).sort("created_at", -1).limit(limit)
    return [normalize_report(doc) async for doc in cursor]


async def submit_report(db: AsyncIOMotorDatabase, redis: Redis | None, payload: ReportCreate) -> dict:
    """
    오염 제보 등록

    1. reports에 status=submitted, priority_score=severity*20 으로 저장
    2. 포인트 원장에 10 + severity*2 점 적립
    3. 변경 알림 발행
    4. 갱신된 활동 집계로 배지 판정
    """
    lake_name = payload.lake_name or "Unknown Lake"
    doc = {
        "user_id": payload.user_id,
        "lake_id": payload.lake_id,
        "lake_name": lake_name,
        "category": payload.category,
        "severity": payload.severity,
        "description": payload.description,
        "lat": payload.lat,
        "lng": payload.lng,
        "photos": payload.photo_urls,
        "status": "submitted",
        "priority_score": payload.severity * 20,
        "assigned_cleaner_id": None,
        "created_at": datetime.now(timezone.utc),
    }
    result = await db[REPORTS_COL].insert_one(doc)
    doc["_id"] = result.inserted_id
    report = normalize_report(doc)

    points_earned = report_points(payload.severity)
    await add_points(
        db,
        payload.user_id,
        points_earned,
        activity_type="report",
        description=f"Report submitted: {lake_name}",
    )
    await publish_change(redis, REPORTS_COL, "INSERT", report)

    new_badges = await check_and_award_badges(db, payload.user_id)
    if new_badges:
        logger.info("사용자 %s 신규 배지 %d개 획득", payload.user_id, len(new_badges))
    return {"report": report, "points_earned": points_earned, "new_badges": new_badges}


async def _update_report(
    db: AsyncIOMotorDatabase, redis: Redis | None, report_id: str, update: dict
) -> dict:
    doc = await db[REPORTS_COL].find_one_and_update(
        {"_id": _object_id(report_id)},
        {"$set": update},
        return_document=ReturnDocument.AFTER,
    )
    if not doc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="제보를 찾을 수 없습니다.")
    report = normalize_report(doc)
    await publish_change(redis, REPORTS_COL, "UPDATE", report)
    return report


async def assign_report(
    db: AsyncIOMotorDatabase, redis: Redis | None, report_id: str, cleaner_id: str
) -> dict:
    """관리자가 제보를 봉사자에게 배정"""
    return await _update_report(
        db, redis, report_id, {"assigned_cleaner_id": cleaner_id, "status": "assigned"}
    )


async def claim_report(
    db: AsyncIOMotorDatabase, redis: Redis | None, report_id: str, cleaner_id: str
) -> dict:
    """봉사자가 제보를 직접 맡아 정화 작업 시작"""
    doc = await get_report(db, report_id)
    if doc.get("status") not in CLAIMABLE_STATUSES:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="이미 처리 중이거나 종료된 제보입니다.")
    assigned = doc.get("assigned_cleaner_id")
    if assigned and assigned != cleaner_id:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="다른 봉사자에게 배정된 제보입니다.")
    return await _update_report(
        db, redis, report_id, {"assigned_cleaner_id": cleaner_id, "status": "in_progress"}
    )


async def update_report_status(
    db: AsyncIOMotorDatabase, redis: Redis | None, report_id: str, new_status: str
) -> dict:
    return await _update_report(db, redis, report_id, {"status": new_status})


async def complete_cleanup(
    db: AsyncIOMotorDatabase, redis: Redis | None, report_id: str, payload: CleanupComplete
) -> dict:
    """
    정화 작업 완료 제출

    인증 사진이 1장 이상 있어야 하며, 해당 제보를 맡은 봉사자만 완료할 수 있다.
    완료 시 severity*10 점을 적립하고 봉사자의 배지를 판정한다.
    """
    if not payload.proof_photos:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="인증 사진을 1장 이상 업로드해주세요.")

    doc = await get_report(db, report_id)
    if doc.get("status") == "cleaned":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="이미 정화가 완료된 제보입니다.")
    if doc.get("assigned_cleaner_id") != payload.cleaner_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="배정받은 제보만 완료할 수 있습니다.")

    now = datetime.now(timezone.utc)
    report = await _update_report(
        db,
        redis,
        report_id,
        {
            "status": "cleaned",
            "volunteer_proof_photos": payload.proof_photos,
            "volunteer_notes": payload.notes,
            "volunteer_completed_at": now,
        },
    )

    points_earned = cleanup_points(doc.get("severity"))
    cleanup_doc = {
        "report_id": doc["_id"],
        "cleaner_id": payload.cleaner_id,
        "after_photos": payload.proof_photos,
        "notes": payload.notes,
        "points_awarded": points_earned,
        "created_at": now,
    }
    await db[CLEANUPS_COL].insert_one(cleanup_doc)
    await add_points(
        db,
        payload.cleaner_id,
        points_earned,
        activity_type="cleanup",
        description=f"Cleanup completed: {doc.get('lake_name') or 'Unknown Lake'}",
    )
    await publish_change(redis, CLEANUPS_COL, "INSERT", {"report_id": report["id"], "cleaner_id": payload.cleaner_id})

    new_badges = await check_and_award_badges(db, payload.cleaner_id)
    return {"report": report, "points_earned": points_earned, "new_badges": new_badges}


async def delete_report(db: AsyncIOMotorDatabase, redis: Redis | None, report_id: str) -> None:
    result = await db[REPORTS_COL].delete_one({"_id": _object_id(report_id)})
    if result.deleted_count == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="제보를 찾을 수 없습니다.")
    await publish_change(redis, REPORTS_COL, "DELETE", {"id": report_id})
