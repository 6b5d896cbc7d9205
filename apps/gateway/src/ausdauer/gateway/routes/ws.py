"""WebSocket 路由 -- 双向通道，客户端可直接发送 room 命令

WS /ws
  服务端首条消息: {"type": "connected", "connection_id": ...}
  客户端命令:
    {"action": "join_room", "room": id}  -> {"type": "joined", "room": id}
    {"action": "leave_room", "room": id} -> {"type": "left", "room": id}
    "ping" -> "pong"
  服务端推送事件: {"event": name, "event_id", "ts", "data": {...}}

连接因队列积压被 hub 移除时，服务端以 1013 关闭 socket，客户端应重连并重新加入 room。
"""

import asyncio
import contextlib
import json

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..services.hub import Connection, ConnectionHub

log = structlog.get_logger()

router = APIRouter()

# Try Again Later
DROPPED_CLOSE_CODE = 1013


async def _pump_events(websocket: WebSocket, connection: Connection) -> None:
    """转发事件，连接被关闭时返回"""
    while True:
        event = await connection.next_event()
        if event is None:
            return
        await websocket.send_json(event.to_wire())


async def _receive_commands(
    websocket: WebSocket, hub: ConnectionHub, connection: Connection
) -> None:
    while True:
        raw = await websocket.receive_text()
        reply = await _handle_command(hub, connection, raw)
        if isinstance(reply, str):
            await websocket.send_text(reply)
        else:
            await websocket.send_json(reply)


async def _handle_command(
    hub: ConnectionHub, connection: Connection, raw: str
) -> dict | str:
    if raw == "ping":
        return "pong"
    try:
        message = json.loads(raw)
    except json.JSONDecodeError:
        return {"type": "error", "message": "Malformed message"}
    if not isinstance(message, dict):
        return {"type": "error", "message": "Malformed message"}

    action = message.get("action")
    room = message.get("room")
    if action in ("join_room", "leave_room") and (not isinstance(room, str) or not room):
        return {"type": "error", "message": "Missing room"}

    if action == "join_room":
        if not await hub.join(connection.connection_id, room):
            return {"type": "error", "message": "Connection closed"}
        return {"type": "joined", "room": room}
    if action == "leave_room":
        if not await hub.leave(connection.connection_id, room):
            return {"type": "error", "message": "Connection closed"}
        return {"type": "left", "room": room}
    return {"type": "error", "message": f"Unknown action: {action}"}


@router.websocket("/ws")
async def ws_events(websocket: WebSocket) -> None:
    hub: ConnectionHub = websocket.app.state.hub
    await websocket.accept()
    connection = await hub.connect()
    workers: list[asyncio.Task] = []
    try:
        await websocket.send_json(
            {"type": "connected", "connection_id": connection.connection_id}
        )
        pump = asyncio.create_task(_pump_events(websocket, connection))
        receiver = asyncio.create_task(_receive_commands(websocket, hub, connection))
        workers = [pump, receiver]
        done, _ = await asyncio.wait(workers, return_when=asyncio.FIRST_COMPLETED)

        if pump in done and pump.exception() is None:
            receiver.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await receiver
            log.warning("ws_connection_dropped", connection_id=connection.connection_id)
            await websocket.close(code=DROPPED_CLOSE_CODE, reason="Connection dropped")
        for worker in done:
            exc = worker.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                log.debug("ws_error", error_type=type(exc).__name__)
    except WebSocketDisconnect:
        pass
    except Exception as exc:
        log.debug("ws_error", error_type=type(exc).__name__)
    finally:
        for worker in workers:
            worker.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await worker
        await hub.disconnect(connection)
