"""任务路由

POST   /api/tasks: 创建任务（仅 Chair）
GET    /api/tasks: 任务列表（Chair 全部，Employee 仅自己的）
GET    /api/tasks/{task_id}: 任务详情（含评论）
PUT    /api/tasks/{task_id}: 修改状态/优先级
DELETE /api/tasks/{task_id}: 删除任务（仅 Chair）
POST   /api/tasks/{task_id}/comments: 追加评论
"""

from datetime import datetime

from ausdauer.core.lifecycle import TaskDraft
from ausdauer.core.models import Requester, Task
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse

from ..deps import get_background, get_hub, get_mailer, get_requester, get_store_group
from ..services.task_service import TaskService

router = APIRouter()


class TaskCreateRequest(BaseModel):
    """创建任务请求体，必填校验在引擎内完成（返回 400 而非 422）"""

    title: str | None = None
    description: str | None = None
    assigned_to: str | None = None
    priority: str | None = None
    deadline: datetime | str | None = None


class TaskUpdateRequest(BaseModel):
    """修改任务请求体"""

    status: str | None = None
    priority: str | None = None
    version: int | None = Field(default=None, description="期望的当前版本号")


class CommentRequest(BaseModel):
    """评论请求体"""

    text: str | None = None


def _task_json(task: Task) -> dict:
    return task.model_dump(mode="json")


@router.post("/api/tasks")
async def create_task(
    body: TaskCreateRequest,
    requester: Requester = Depends(get_requester),
    store_group=Depends(get_store_group),
    hub=Depends(get_hub),
    mailer=Depends(get_mailer),
    background=Depends(get_background),
):
    """创建任务，返回 201"""
    service = TaskService(store_group, hub, mailer, background=background)
    task = await service.create_task(TaskDraft(**body.model_dump()), requester)
    return JSONResponse(status_code=201, content=_task_json(task))


@router.get("/api/tasks")
async def list_tasks(
    requester: Requester = Depends(get_requester),
    store_group=Depends(get_store_group),
):
    """按优先级权重倒序、截止时间正序"""
    service = TaskService(store_group)
    tasks = await service.list_tasks(requester)
    return {"tasks": [_task_json(t) for t in tasks]}


@router.get("/api/tasks/{task_id}")
async def get_task(
    task_id: str,
    requester: Requester = Depends(get_requester),
    store_group=Depends(get_store_group),
):
    service = TaskService(store_group)
    task = await service.get_task(task_id, requester)
    return _task_json(task)


@router.put("/api/tasks/{task_id}")
async def update_task(
    task_id: str,
    body: TaskUpdateRequest,
    requester: Requester = Depends(get_requester),
    store_group=Depends(get_store_group),
    hub=Depends(get_hub),
):
    """修改状态与/或优先级，version 不匹配返回 409"""
    service = TaskService(store_group, hub)
    task = await service.update_task(
        task_id,
        requester,
        status=body.status,
        priority=body.priority,
        expected_version=body.version,
    )
    return _task_json(task)


@router.delete("/api/tasks/{task_id}")
async def delete_task(
    task_id: str,
    requester: Requester = Depends(get_requester),
    store_group=Depends(get_store_group),
    hub=Depends(get_hub),
):
    service = TaskService(store_group, hub)
    await service.delete_task(task_id, requester)
    return {"message": "Task deleted", "task_id": task_id}


@router.post("/api/tasks/{task_id}/comments")
async def add_comment(
    task_id: str,
    body: CommentRequest,
    requester: Requester = Depends(get_requester),
    store_group=Depends(get_store_group),
    hub=Depends(get_hub),
):
    """追加评论，返回更新后的任务（201）"""
    service = TaskService(store_group, hub)
    task = await service.add_comment(task_id, requester, body.text)
    return JSONResponse(status_code=201, content=_task_json(task))
