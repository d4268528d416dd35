from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import api_router
from .core.config import settings
from .core.errors import InvalidArgument, invalid_argument_handler
from .db import init
from .db.mongo import MongoConnectionManager
from .db.redis import RedisConnectionManager
from .services.lakes import LakeResolver, LakeSearchCache

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 애플리케이션 시작 시 커넥션 미리 생성
    try:
        MongoConnectionManager.get_client()
        RedisConnectionManager.get_client()
        await init.ensure_indexes(MongoConnectionManager.get_database())
        logger.info("데이터베이스/Redis 커넥션 초기화 완료")
    except Exception as exc:  # pragma: no cover - 초기 연결 실패 로깅
        logger.warning("초기 커넥션 생성 중 오류 발생: %s", exc)

    # 프로세스당 하나의 호수 검색기 (캐시 공유)
    app.state.lake_resolver = LakeResolver(
        endpoint=settings.overpass_url,
        timeout_seconds=settings.overpass_timeout_seconds,
        cache=LakeSearchCache(ttl_seconds=settings.lake_cache_ttl_seconds),
    )
    yield
    # 종료 시 커넥션 정리
    await app.state.lake_resolver.aclose()
    await RedisConnectionManager.close()
    await MongoConnectionManager.close()


app = FastAPI(title=settings.project_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(InvalidArgument, invalid_argument_handler)

app.include_router(api_router, prefix=settings.api_prefix)
