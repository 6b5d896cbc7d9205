"""SC-1 端到端：任务生命周期 + 实时投递 + 评分

创建 -> 执行人按时完成（+10）-> 撤回（-10）-> 删除，
全程校验广播 / 定向事件与排行榜。
"""

from datetime import UTC, datetime, timedelta

from ausdauer.core.models import EventType
from httpx import AsyncClient


def _drain(connection) -> list[str]:
    out = []
    while not connection.queue.empty():
        out.append(connection.queue.get_nowait().type.value)
    return out


class TestSC1MissionLifecycle:
    """SC-1: 完整任务生命周期"""

    async def test_full_mission(self, client: AsyncClient, integration_app, crew):
        hub = integration_app.state.hub
        chair, okoro, lind = crew["chair"], crew["okoro"], crew["lind"]
        as_chair = {"X-Operative-Id": chair.operative_id}
        as_okoro = {"X-Operative-Id": okoro.operative_id}

        okoro_conn = await hub.connect()
        lind_conn = await hub.connect()
        await hub.join(okoro_conn.connection_id, okoro.operative_id)
        await hub.join(lind_conn.connection_id, lind.operative_id)

        # 1. 创建
        resp = await client.post(
            "/api/tasks",
            json={
                "title": "T1",
                "description": "Extract the package",
                "assigned_to": okoro.operative_id,
                "priority": "High",
                "deadline": (datetime.now(UTC) + timedelta(days=1)).isoformat(),
            },
            headers=as_chair,
        )
        assert resp.status_code == 201
        task_id = resp.json()["task_id"]
        assert _drain(okoro_conn) == ["task_created", "priority_changed"]
        assert _drain(lind_conn) == ["task_created"]

        # 2. 按时完成
        resp = await client.put(
            f"/api/tasks/{task_id}", json={"status": "Completed"}, headers=as_okoro
        )
        assert resp.json()["progress"] == 100
        board = (await client.get("/api/operatives/leaderboard", headers=as_chair)).json()
        assert board["operatives"][0]["operative_id"] == okoro.operative_id
        assert board["operatives"][0]["score"] == 10

        # 3. 撤回
        resp = await client.put(
            f"/api/tasks/{task_id}", json={"status": "In Progress"}, headers=as_okoro
        )
        assert resp.json()["progress"] == 50
        me = (await client.get("/api/operatives/me", headers=as_okoro)).json()
        assert me["score"] == 0

        # 4. 评论
        resp = await client.post(
            f"/api/tasks/{task_id}/comments",
            json={"text": "Package secured"},
            headers=as_okoro,
        )
        assert resp.status_code == 201

        _drain(lind_conn)

        # 5. 删除
        resp = await client.delete(f"/api/tasks/{task_id}", headers=as_chair)
        assert resp.status_code == 200
        assert _drain(lind_conn) == [EventType.TASK_DELETED.value]

        listing = (await client.get("/api/tasks", headers=as_chair)).json()
        assert listing["tasks"] == []
