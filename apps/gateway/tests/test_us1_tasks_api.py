"""US-1 任务 API 测试

测试内容：
1. 创建任务返回 201，必填校验返回 400
2. 身份缺失返回 401，越权返回 403，错误体格式统一
3. 列表 / 详情 / 修改 / 评论 / 删除
4. version 冲突返回 409
"""

from datetime import UTC, datetime, timedelta

from httpx import AsyncClient


def _payload(assignee_id: str, **overrides) -> dict:
    data = {
        "title": "Secure the perimeter",
        "description": "Sweep sector 7 and report anomalies",
        "assigned_to": assignee_id,
        "priority": "High",
        "deadline": (datetime.now(UTC) + timedelta(days=2)).isoformat(),
    }
    data.update(overrides)
    return data


class TestCreateTask:
    """POST /api/tasks"""

    async def test_create_returns_201(self, client: AsyncClient, chair, employee, auth):
        resp = await client.post(
            "/api/tasks", json=_payload(employee.operative_id), headers=auth(chair)
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "Pending"
        assert data["progress"] == 0
        assert data["assigned_by"] == chair.operative_id
        assert data["version"] == 1
        assert len(data["task_id"]) == 26

    async def test_missing_identity_returns_401(self, client: AsyncClient, employee):
        resp = await client.post("/api/tasks", json=_payload(employee.operative_id))
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHENTICATED"

    async def test_unknown_identity_returns_401(self, client: AsyncClient, employee):
        resp = await client.post(
            "/api/tasks",
            json=_payload(employee.operative_id),
            headers={"X-Operative-Id": "ghost"},
        )
        assert resp.status_code == 401

    async def test_employee_create_returns_403(self, client: AsyncClient, employee, auth):
        resp = await client.post(
            "/api/tasks", json=_payload(employee.operative_id), headers=auth(employee)
        )
        assert resp.status_code == 403
        assert resp.json() == {
            "error": {"code": "FORBIDDEN", "message": "Access denied. Chair only."}
        }

    async def test_missing_title_returns_400(self, client: AsyncClient, chair, employee, auth):
        resp = await client.post(
            "/api/tasks",
            json=_payload(employee.operative_id, title=""),
            headers=auth(chair),
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_INPUT"

    async def test_unknown_assignee_returns_404(self, client: AsyncClient, chair, auth):
        resp = await client.post("/api/tasks", json=_payload("ghost"), headers=auth(chair))
        assert resp.status_code == 404


class TestQueryTasks:
    """GET /api/tasks, GET /api/tasks/{id}"""

    async def test_employee_list_is_filtered(
        self, client: AsyncClient, chair, employee, other_employee, auth
    ):
        await client.post("/api/tasks", json=_payload(employee.operative_id), headers=auth(chair))
        await client.post(
            "/api/tasks",
            json=_payload(other_employee.operative_id, title="Other"),
            headers=auth(chair),
        )

        mine = await client.get("/api/tasks", headers=auth(employee))
        assert [t["title"] for t in mine.json()["tasks"]] == ["Secure the perimeter"]

        everything = await client.get("/api/tasks", headers=auth(chair))
        assert len(everything.json()["tasks"]) == 2

    async def test_detail_forbidden_for_outsider(
        self, client: AsyncClient, chair, employee, other_employee, auth
    ):
        created = await client.post(
            "/api/tasks", json=_payload(employee.operative_id), headers=auth(chair)
        )
        task_id = created.json()["task_id"]

        resp = await client.get(f"/api/tasks/{task_id}", headers=auth(other_employee))
        assert resp.status_code == 403

        resp = await client.get(f"/api/tasks/{task_id}", headers=auth(employee))
        assert resp.status_code == 200
        assert resp.json()["task_id"] == task_id

    async def test_detail_missing(self, client: AsyncClient, chair, auth):
        resp = await client.get("/api/tasks/01JNONEXISTENT0000000000", headers=auth(chair))
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "NOT_FOUND"


class TestMutateTask:
    """PUT / DELETE / comments"""

    async def test_complete_awards_score(self, client: AsyncClient, chair, employee, auth):
        created = await client.post(
            "/api/tasks", json=_payload(employee.operative_id), headers=auth(chair)
        )
        task_id = created.json()["task_id"]

        resp = await client.put(
            f"/api/tasks/{task_id}", json={"status": "Completed"}, headers=auth(employee)
        )
        assert resp.status_code == 200
        assert resp.json()["progress"] == 100
        assert resp.json()["version"] == 2

        me = await client.get("/api/operatives/me", headers=auth(employee))
        assert me.json()["score"] == 10

    async def test_stale_version_returns_409(
        self, client: AsyncClient, chair, employee, auth
    ):
        created = await client.post(
            "/api/tasks", json=_payload(employee.operative_id), headers=auth(chair)
        )
        task_id = created.json()["task_id"]
        await client.put(
            f"/api/tasks/{task_id}", json={"status": "In Progress"}, headers=auth(employee)
        )

        resp = await client.put(
            f"/api/tasks/{task_id}",
            json={"status": "Completed", "version": 1},
            headers=auth(employee),
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "CONFLICT"

    async def test_employee_priority_change_forbidden(
        self, client: AsyncClient, chair, employee, auth
    ):
        created = await client.post(
            "/api/tasks", json=_payload(employee.operative_id), headers=auth(chair)
        )
        task_id = created.json()["task_id"]
        resp = await client.put(
            f"/api/tasks/{task_id}", json={"priority": "Low"}, headers=auth(employee)
        )
        assert resp.status_code == 403

    async def test_invalid_status_returns_400(
        self, client: AsyncClient, chair, employee, auth
    ):
        created = await client.post(
            "/api/tasks", json=_payload(employee.operative_id), headers=auth(chair)
        )
        task_id = created.json()["task_id"]
        resp = await client.put(
            f"/api/tasks/{task_id}", json={"status": "Done"}, headers=auth(employee)
        )
        assert resp.status_code == 400

    async def test_comment_then_delete(self, client: AsyncClient, chair, employee, auth):
        created = await client.post(
            "/api/tasks", json=_payload(employee.operative_id), headers=auth(chair)
        )
        task_id = created.json()["task_id"]

        resp = await client.post(
            f"/api/tasks/{task_id}/comments",
            json={"text": "Perimeter clear"},
            headers=auth(employee),
        )
        assert resp.status_code == 201
        comments = resp.json()["comments"]
        assert comments[0]["author_name"] == "Agent Okoro"
        assert comments[0]["author_role"] == "Employee"

        resp = await client.delete(f"/api/tasks/{task_id}", headers=auth(employee))
        assert resp.status_code == 403

        resp = await client.delete(f"/api/tasks/{task_id}", headers=auth(chair))
        assert resp.status_code == 200

        resp = await client.get(f"/api/tasks/{task_id}", headers=auth(chair))
        assert resp.status_code == 404

    async def test_empty_comment_returns_400(
        self, client: AsyncClient, chair, employee, auth
    ):
        created = await client.post(
            "/api/tasks", json=_payload(employee.operative_id), headers=auth(chair)
        )
        task_id = created.json()["task_id"]
        resp = await client.post(
            f"/api/tasks/{task_id}/comments", json={"text": ""}, headers=auth(chair)
        )
        assert resp.status_code == 400
