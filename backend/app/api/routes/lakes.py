from fastapi import APIRouter, Depends, Query

from ...core.config import settings
from ...dependencies import get_lake_resolver
from ...schemas import Coordinate, LakeSearchResponse
from ...services.lakes import LakeResolver

router = APIRouter()


@router.get("/nearby", response_model=LakeSearchResponse, summary="주변 호수/저수지 검색")
async def nearby_lakes(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(default=settings.lake_default_radius_km, gt=0, le=200),
    resolver: LakeResolver = Depends(get_lake_resolver),
) -> LakeSearchResponse:
    result = await resolver.search(Coordinate(latitude=latitude, longitude=longitude), radius_km)
    return LakeSearchResponse(
        status=result.status,
        lakes=result.lakes,
        latitude=latitude,
        longitude=longitude,
        radius_km=radius_km,
    )
