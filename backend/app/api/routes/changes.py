from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from ...db.redis import RedisConnectionManager
from ...services.realtime import WATCHED_TABLES, subscribe_changes

router = APIRouter()


@router.websocket("/{table}")
async def stream_changes(websocket: WebSocket, table: str) -> None:
    """테이블 변경 알림 스트림 (클라이언트는 메시지 수신 시 목록을 다시 조회)"""
    if table not in WATCHED_TABLES:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    await websocket.accept()
    redis = RedisConnectionManager.get_client()
    try:
        async for change in subscribe_changes(redis, table):
            await websocket.send_json(change)
    except WebSocketDisconnect:
        pass
