from fastapi import APIRouter, Depends, Query, Response, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from redis.asyncio import Redis

from ...dependencies import get_mongo_db, get_redis
from ...schemas import (
    CleanupComplete,
    CleanupResponse,
    ReportAssignRequest,
    ReportCreate,
    ReportOut,
    ReportStatusUpdate,
    ReportSubmitResponse,
)
from ...services import reports as report_service

router = APIRouter()


@router.get("", response_model=list[ReportOut])
async def list_reports(
    status_filter: str | None = Query(default=None, alias="status"),
    limit: int = Query(default=100, ge=1, le=500),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> list[ReportOut]:
    docs = await report_service.list_reports(db, status_filter, limit)
    return [ReportOut(**doc) for doc in docs]


@router.post("", response_model=ReportSubmitResponse, status_code=status.HTTP_201_CREATED)
async def submit_report(
    payload: ReportCreate,
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    redis: Redis = Depends(get_redis),
) -> ReportSubmitResponse:
    result = await report_service.submit_report(db, redis, payload)
    return ReportSubmitResponse(**result)


@router.get("/{report_id}", response_model=ReportOut)
async def get_report(report_id: str, db: AsyncIOMotorDatabase = Depends(get_mongo_db)) -> ReportOut:
    doc = await report_service.get_report(db, report_id)
    return ReportOut(**report_service.normalize_report(doc))


@router.post("/{report_id}/assign", response_model=ReportOut)
async def assign_report(
    report_id: str,
    payload: ReportAssignRequest,
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    redis: Redis = Depends(get_redis),
) -> ReportOut:
    report = await report_service.assign_report(db, redis, report_id, payload.cleaner_id)
    return ReportOut(**report)


@router.post("/{report_id}/claim", response_model=ReportOut)
async def claim_report(
    report_id: str,
    payload: ReportAssignRequest,
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    redis: Redis = Depends(get_redis),
) -> ReportOut:
    report = await report_service.claim_report(db, redis, report_id, payload.cleaner_id)
    return ReportOut(**report)


@router.patch("/{report_id}/status", response_model=ReportOut)
async def update_status(
    report_id: str,
    payload: ReportStatusUpdate,
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    redis: Redis = Depends(get_redis),
) -> ReportOut:
    report = await report_service.update_report_status(db, redis, report_id, payload.status)
    return ReportOut(**report)


@router.post("/{report_id}/complete", response_model=CleanupResponse)
async def complete_cleanup(
    report_id: str,
    payload: CleanupComplete,
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    redis: Redis = Depends(get_redis),
) -> CleanupResponse:
    result = await report_service.complete_cleanup(db, redis, report_id, payload)
    return CleanupResponse(**result)


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_report(
    report_id: str,
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    redis: Redis = Depends(get_redis),
) -> Response:
    await report_service.delete_report(db, redis, report_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
