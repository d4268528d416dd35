"""Redis pub/sub 기반 변경 알림 (클라이언트는 메시지를 받으면 다시 조회한다)"""
from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from redis.asyncio import Redis

logger = logging.getLogger(__name__)

CHANNEL_PREFIX = "changes:"
WATCHED_TABLES = ("reports", "cleanups", "points_log", "user_badges", "rewards", "redemptions")


def channel_name(table: str) -> str:
    return f"{CHANNEL_PREFIX}{table}"


async def publish_change(redis: Redis | None, table: str, event: str, record: dict[str, Any]) -> None:
    """변경 이벤트 발행. 발행 실패는 쓰기 작업을 실패시키지 않는다."""
    if redis is None:
        return
    message = json.dumps({"table": table, "event": event, "record": record}, default=str)
    try:
        await redis.publish(channel_name(table), message)
    except Exception as exc:
        logger.warning("변경 알림 발행 실패 (%s/%s): %s", table, event, exc)


async def subscribe_changes(redis: Redis, table: str) -> AsyncIterator[dict[str, Any]]:
    pubsub = redis.pubsub()
    await pubsub.subscribe(channel_name(table))
    try:
        async for message in pubsub.listen():
            if message.get("type") != "message":
                continue
            try:
                yield json.loads(message["data"])
            except (TypeError, ValueError) as exc:
                logger.warning("변경 알림 메시지 파싱 실패: %s", exc)
    finally:
        await pubsub.unsubscribe(channel_name(table))
        await pubsub.aclose()
