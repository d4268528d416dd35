"""OpenStreetMap(Overpass API) 기반 주변 호수 검색 서비스"""
from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Iterable
from typing import Any

import httpx

from ..core.errors import InvalidArgument
from ..schemas.lakes import Coordinate, LakeSearchResult, NearbyWaterBody
from .geolocation import distance_km, is_valid_coordinate

logger = logging.getLogger(__name__)

UNNAMED_WATER_BODY = "Unnamed Water Body"
DEFAULT_CACHE_TTL_SECONDS = 10 * 60
DEFAULT_QUERY_TIMEOUT_SECONDS = 30


def _format_number(value: float) -> str:
    """정수 값은 소수점 없이 (50.0 -> "50"), 나머지는 최단 표현으로 (12.5 -> "12.5")"""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def cache_key(latitude: float, longitude: float, radius_km: float) -> str:
    """
    좌표를 소수점 3자리(약 110m)로 반올림한 캐시 키

    반올림은 float의 실제 이진 값을 기준으로 한다 (format(".3f")).
    예: cache_key(12.34567, 77.12345, 50) == "12.346,77.123,50"
    """
    return f"{latitude:.3f},{longitude:.3f},{_format_number(radius_km)}"


class LakeSearchCache:
    """
    호수 검색 결과 인메모리 캐시

    항목은 (저장 시각, 결과 튜플) 스냅샷이며 같은 키에 대한 쓰기는 항목 전체를 교체한다.
    TTL이 지난 항목은 없는 것으로 취급한다.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, tuple[NearbyWaterBody, ...]]] = {}

    def get(self, key: str) -> list[NearbyWaterBody] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, lakes = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return list(lakes)

    def set(self, key: str, lakes: Iterable[NearbyWaterBody]) -> None:
        self._entries[key] = (self._clock(), tuple(lakes))

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def build_overpass_query(
    latitude: float,
    longitude: float,
    radius_km: float,
    timeout_seconds: int = DEFAULT_QUERY_TIMEOUT_SECONDS,
) -> str:
    """
    수역 검색용 Overpass QL 쿼리 생성

    OSM 태깅이 일관되지 않으므로 여러 패턴을 union으로 묶는다.
    - natural=water + water=lake|reservoir|pond
    - 이름이 있는 natural=water (세부 유형 무관)
    - landuse=reservoir
    - water=lake|reservoir|pond|basin 태그가 있는 모든 요소
    """
    around = f"(around:{_format_number(radius_km * 1000)},{latitude},{longitude})"
    return (
        f"[out:json][timeout:{timeout_seconds}];\n"
        "(\n"
        f'  way["natural"="water"]["water"~"lake|reservoir|pond"]{around};\n'
        f'  relation["natural"="water"]["water"~"lake|reservoir|pond"]{around};\n'
        f'  way["natural"="water"]["name"]{around};\n'
        f'  relation["natural"="water"]["name"]{around};\n'
        f'  way["landuse"="reservoir"]{around};\n'
        f'  relation["landuse"="reservoir"]{around};\n'
        f'  nwr["water"~"lake|reservoir|pond|basin"]{around};\n'
        ");\n"
        "out center;"
    )


def _as_coordinate_value(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def _representative_point(element: dict[str, Any]) -> tuple[float, float] | None:
    """way/relation은 중심점(center)을 우선 사용하고, 없으면 요소 자체의 lat/lon"""
    center = element.get("center")
    if isinstance(center, dict):
        lat = _as_coordinate_value(center.get("lat"))
        lon = _as_coordinate_value(center.get("lon"))
        if lat is not None and lon is not None:
            return lat, lon
    lat = _as_coordinate_value(element.get("lat"))
    lon = _as_coordinate_value(element.get("lon"))
    if lat is None or lon is None:
        return None
    return lat, lon


def _water_type(tags: dict[str, Any]) -> str:
    water = tags.get("water")
    if isinstance(water, str) and water:
        return water
    if tags.get("landuse") == "reservoir":
        return "reservoir"
    return "lake"


def parse_overpass_elements(
    elements: Iterable[Any], origin_lat: float, origin_lng: float
) -> list[NearbyWaterBody]:
    """
    Overpass 응답 요소를 거리순 NearbyWaterBody 목록으로 변환

    - 좌표를 얻을 수 없는 요소는 개별적으로 건너뛴다.
    - 이름(대소문자 무시)이 이미 나온 요소는 건너뛴다. 단, 이름 없는 수역은 서로 비교할 수
      없으므로 모두 유지한다.
    """
    seen_names: set[str] = set()
    lakes: list[NearbyWaterBody] = []

    for element in elements:
        if not isinstance(element, dict):
            continue
        point = _representative_point(element)
        if point is None:
            continue

        tags = element.get("tags")
        if not isinstance(tags, dict):
            tags = {}
        raw_name = tags.get("name")
        name = raw_name.strip() if isinstance(raw_name, str) else ""
        name = name or UNNAMED_WATER_BODY

        if name != UNNAMED_WATER_BODY:
            name_key = name.casefold()
            if name_key in seen_names:
                continue
            seen_names.add(name_key)

        lat, lng = point
        lakes.append(
            NearbyWaterBody(
                id=f"osm-{element.get('type', 'element')}-{element.get('id')}",
                name=name,
                lat=lat,
                lng=lng,
                distance=distance_km(origin_lat, origin_lng, lat, lng),
                type=_water_type(tags),
            )
        )

    lakes.sort(key=lambda lake: lake.distance or 0.0)
    return lakes


class LakeResolver:
    """
    주변 수역 검색기

    애플리케이션 시작 시 프로세스당 하나를 생성해 공유한다. 캐시와 HTTP 클라이언트를 소유한다.
    네트워크/서비스 오류는 예외로 전파하지 않고 status="failed" 결과로 반환한다.
    """

    def __init__(
        self,
        *,
        endpoint: str,
        timeout_seconds: int = DEFAULT_QUERY_TIMEOUT_SECONDS,
        cache: LakeSearchCache | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout_seconds = timeout_seconds
        self.cache = cache if cache is not None else LakeSearchCache()
        # 서버 측 타임아웃보다 약간 길게 대기
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds + 5.0)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def search(self, coordinate: Coordinate, radius_km: float) -> LakeSearchResult:
        latitude, longitude = coordinate.latitude, coordinate.longitude
        if not is_valid_coordinate(latitude, longitude):
            raise InvalidArgument(f"잘못된 좌표입니다: ({latitude}, {longitude})")
        if not math.isfinite(radius_km) or radius_km <= 0:
            raise InvalidArgument(f"검색 반경은 0보다 큰 유한한 값이어야 합니다: {radius_km}")

        key = cache_key(latitude, longitude, radius_km)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info("호수 검색 캐시 사용: %s (%d건)", key, len(cached))
            return LakeSearchResult(status="cached", lakes=cached)

        elements = await self._fetch_elements(latitude, longitude, radius_km)
        if elements is None:
            return LakeSearchResult(status="failed", lakes=[])

        lakes = parse_overpass_elements(elements, latitude, longitude)
        # 결과가 비어 있어도 캐싱 (수역이 없는 지역에 대한 반복 조회 방지)
        self.cache.set(key, lakes)
        logger.info("주변 수역 %d건 조회 완료: %s", len(lakes), key)
        return LakeSearchResult(status="ok", lakes=lakes)

    async def resolve_nearby_lakes(
        self, coordinate: Coordinate, radius_km: float = 50
    ) -> list[NearbyWaterBody]:
        """거리순 수역 목록만 반환 (실패 시 빈 목록)"""
        result = await self.search(coordinate, radius_km)
        return result.lakes

    async def _fetch_elements(
        self, latitude: float, longitude: float, radius_km: float
    ) -> list[Any] | None:
        query = build_overpass_query(latitude, longitude, radius_km, self.timeout_seconds)
        try:
            # data= 로 전달하면 application/x-www-form-urlencoded 본문으로 전송된다
            response = await self._client.post(self.endpoint, data={"data": query})
        except httpx.HTTPError as exc:
            logger.warning("Overpass API 호출 실패: %s", exc)
            return None

        if not response.is_success:
            logger.warning("Overpass API 오류: %s", response.status_code)
            return None

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("Overpass API 응답 파싱 실패: %s", exc)
            return None

        elements = payload.get("elements") if isinstance(payload, dict) else None
        if not isinstance(elements, list):
            logger.warning("Overpass API 응답에 elements 배열이 없음")
            return None
        return elements
