from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Coordinate(BaseModel):
    """단말 위치 제공자가 넘겨주는 WGS84 좌표 (불변)"""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., description="위도")
    longitude: float = Field(..., description="경도")
    accuracy: float | None = None
    altitude: float | None = None
    heading: float | None = None
    speed: float | None = None


class NearbyWaterBody(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="osm-<type>-<id> 형식 식별자")
    name: str
    lat: float
    lng: float
    distance: float | None = Field(default=None, description="검색 지점으로부터의 거리 (km)")
    type: str = Field(default="lake", description="lake, reservoir, pond, basin 등")


class LakeSearchResult(BaseModel):
    """
    호수 검색 결과

    status:
        ok     - Overpass 조회 성공 (lakes가 비어 있으면 실제로 수역이 없음)
        cached - 캐시 적중
        failed - 조회 실패 (lakes는 항상 비어 있음)
    """

    status: Literal["ok", "cached", "failed"]
    lakes: list[NearbyWaterBody] = Field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.status == "failed"


class LakeSearchResponse(LakeSearchResult):
    latitude: float
    longitude: float
    radius_km: float
