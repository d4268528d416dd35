from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    project_name: str = "EcoLake"
    api_prefix: str = "/api"

    mongodb_uri: str = Field(default="mongodb://mongo:27017")
    mongodb_db: str = Field(default="ecolake")

    redis_url: str = Field(default="redis://redis:6379/0")

    cors_origins: str = Field(default="http://localhost:8081,http://localhost:19006,http://localhost")

    # Overpass API (OpenStreetMap 수역 검색)
    overpass_url: str = Field(default="https://overpass-api.de/api/interpreter")
    overpass_timeout_seconds: int = Field(default=30, description="Overpass 서버 측 쿼리 타임아웃 (초)")
    lake_cache_ttl_seconds: float = Field(default=600, description="호수 검색 캐시 유효 시간 (초)")
    lake_default_radius_km: float = Field(default=50)

    # 배지 판정 시 "현지 시각" 기준 타임존 (빈 값이면 서버 로컬 시각)
    badge_timezone: str = Field(default="")

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
