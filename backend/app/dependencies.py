from collections.abc import AsyncGenerator

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorDatabase
from redis.asyncio import Redis

from .db.mongo import MongoConnectionManager
from .db.redis import RedisConnectionManager
from .services.lakes import LakeResolver


async def get_mongo_db() -> AsyncGenerator[AsyncIOMotorDatabase, None]:
    db = MongoConnectionManager.get_database()
    yield db


async def get_redis() -> AsyncGenerator[Redis, None]:
    client = RedisConnectionManager.get_client()
    try:
        yield client
    finally:
        # 싱글톤으로 유지하므로 종료하지 않음
        pass


def get_lake_resolver(request: Request) -> LakeResolver:
    """애플리케이션 시작 시 생성된 프로세스 단일 LakeResolver"""
    return request.app.state.lake_resolver
