"""US-4 SSE 事件流测试

测试内容：
1. 首个事件为 connected，携带 connection_id
2. 广播事件实时推送
3. 通过 HTTP 加入 / 离开 room
4. 生成器关闭后连接注销
5. 连接因积压被移除后事件流结束
"""

import asyncio
import json

from ausdauer.core.models import DomainEvent, EventType, TaskSyncPayload
from ausdauer.gateway.routes.stream import stream_events
from ausdauer.gateway.services.hub import ConnectionHub
from httpx import AsyncClient


class TestSSEGenerator:
    """SSE 生成器"""

    async def test_connected_then_events(self, hub):
        response = await stream_events(hub=hub)
        stream = response.body_iterator

        first = await asyncio.wait_for(anext(stream), timeout=2.0)
        assert first["event"] == "connected"
        connection_id = json.loads(first["data"])["connection_id"]
        assert hub.connection_count == 1

        event = DomainEvent.broadcast(EventType.TASK_SYNC, TaskSyncPayload(task_id="t1"))
        await hub.broadcast(event)

        pushed = await asyncio.wait_for(anext(stream), timeout=2.0)
        assert pushed["id"] == event.event_id
        assert pushed["event"] == "task_sync"
        data = json.loads(pushed["data"])
        assert data["event"] == "task_sync"
        assert data["data"]["task_id"] == "t1"

        await stream.aclose()
        assert hub.connection_count == 0
        assert hub.rooms_of(connection_id) == set()

    async def test_stream_ends_when_connection_dropped(self):
        hub = ConnectionHub(queue_maxsize=1)
        response = await stream_events(hub=hub)
        stream = response.body_iterator

        first = await asyncio.wait_for(anext(stream), timeout=2.0)
        assert first["event"] == "connected"

        event = DomainEvent.broadcast(EventType.TASK_SYNC, TaskSyncPayload(task_id="t1"))
        await hub.broadcast(event)
        assert await hub.broadcast(event) == 0

        # 生成器结束
        assert await asyncio.wait_for(anext(stream, None), timeout=2.0) is None
        assert hub.connection_count == 0


class TestRoomEndpoints:
    """room 加入 / 离开"""

    async def test_join_and_leave(self, client: AsyncClient, hub):
        connection = await hub.connect()

        resp = await client.post(
            f"/api/stream/{connection.connection_id}/rooms", json={"room": "op-a"}
        )
        assert resp.status_code == 200
        assert resp.json()["rooms"] == ["op-a"]

        resp = await client.delete(f"/api/stream/{connection.connection_id}/rooms/op-a")
        assert resp.status_code == 200
        assert resp.json()["rooms"] == []

    async def test_join_unknown_connection(self, client: AsyncClient):
        resp = await client.post("/api/stream/missing/rooms", json={"room": "op-a"})
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "NOT_FOUND"

    async def test_targeted_event_reaches_joined_connection(
        self, client: AsyncClient, hub, chair, employee, auth
    ):
        assignee = await hub.connect()
        bystander = await hub.connect()
        await client.post(
            f"/api/stream/{assignee.connection_id}/rooms",
            json={"room": employee.operative_id},
        )

        created = await client.post(
            "/api/tasks",
            json={
                "title": "Recon",
                "description": "Survey the ridge",
                "assigned_to": employee.operative_id,
                "deadline": "2030-01-01T00:00:00+00:00",
            },
            headers=auth(chair),
        )
        task_id = created.json()["task_id"]
        await client.put(
            f"/api/tasks/{task_id}", json={"priority": "Emergency"}, headers=auth(chair)
        )

        def _types(connection):
            out = []
            while not connection.queue.empty():
                out.append(connection.queue.get_nowait().type)
            return out

        assert _types(assignee) == [
            EventType.TASK_CREATED,
            EventType.PRIORITY_CHANGED,
            EventType.PRIORITY_CHANGED,
            EventType.TASK_SYNC,
        ]
        assert _types(bystander) == [EventType.TASK_CREATED, EventType.TASK_SYNC]
