"""SSE 事件流路由

GET    /api/stream: SSE 推送所有广播事件以及已加入 room 的定向事件。
       首个事件为 connected（携带 connection_id），之后按心跳间隔保活。
POST   /api/stream/{connection_id}/rooms: 加入 room（SSE 是单向通道，需另开请求）
DELETE /api/stream/{connection_id}/rooms/{room}: 离开 room

不支持断线重放：断开期间的事件不会补发，重连后需重新加入 room。
连接因队列积压被 hub 移除时事件流随即结束，EventSource 客户端会自动重连。
"""

import json

import structlog
from ausdauer.core.config import SSE_HEARTBEAT_INTERVAL
from ausdauer.core.errors import NotFound
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sse_starlette.sse import EventSourceResponse

from ..deps import get_hub
from ..services.hub import ConnectionHub

log = structlog.get_logger()

router = APIRouter()


class RoomRequest(BaseModel):
    """加入 room 请求体"""

    room: str


@router.get("/api/stream")
async def stream_events(hub: ConnectionHub = Depends(get_hub)):
    """SSE 事件流端点"""

    async def event_generator():
        connection = await hub.connect()
        try:
            yield {
                "event": "connected",
                "data": json.dumps({"connection_id": connection.connection_id}),
            }
            while True:
                try:
                    # 等待新事件（带心跳超时）
                    event = await connection.next_event(timeout=SSE_HEARTBEAT_INTERVAL)
                except TimeoutError:
                    # 心跳保活
                    yield {"comment": "heartbeat"}
                    continue
                if event is None:
                    log.warning(
                        "sse_connection_dropped",
                        connection_id=connection.connection_id,
                    )
                    break
                yield {
                    "id": event.event_id,
                    "event": event.type.value,
                    "data": json.dumps(event.to_wire(), ensure_ascii=False),
                }
        finally:
            await hub.disconnect(connection)

    return EventSourceResponse(event_generator())


@router.post("/api/stream/{connection_id}/rooms")
async def join_room(
    connection_id: str,
    body: RoomRequest,
    hub: ConnectionHub = Depends(get_hub),
):
    if not await hub.join(connection_id, body.room):
        raise NotFound(f"Connection {connection_id} does not exist")
    return {"connection_id": connection_id, "rooms": sorted(hub.rooms_of(connection_id))}


@router.delete("/api/stream/{connection_id}/rooms/{room}")
async def leave_room(
    connection_id: str,
    room: str,
    hub: ConnectionHub = Depends(get_hub),
):
    if not await hub.leave(connection_id, room):
        raise NotFound(f"Connection {connection_id} does not exist")
    return {"connection_id": connection_id, "rooms": sorted(hub.rooms_of(connection_id))}
