"""人员档案与排行榜路由

POST /api/operatives: 登记人员档案（仅 Chair）
GET  /api/operatives/me: 当前请求者档案
GET  /api/operatives/leaderboard: 排行榜（分数倒序）
PUT  /api/operatives/reset-scores: 全部分数清零（仅 Chair）
PUT  /api/operatives/{operative_id}/score: 覆盖分数（仅 Chair）
PUT  /api/operatives/{operative_id}: 修改档案（本人或 Chair，角色仅 Chair）
DELETE /api/operatives/{operative_id}: 删除人员及其任务（仅 Chair，不能删除自己）
"""

from ausdauer.core.models import Operative, Requester
from ausdauer.core.roster import OperativeDraft, OperativeUpdate
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from starlette.responses import JSONResponse

from ..deps import get_hub, get_requester, get_store_group
from ..services.operative_service import OperativeService

router = APIRouter()


class OperativeCreateRequest(BaseModel):
    """登记请求体"""

    name: str | None = None
    email: str = ""
    role: str = "Employee"
    designation: str = ""
    department: str = ""


class OperativeUpdateRequest(BaseModel):
    """修改档案请求体，省略或留空的字段保持原值"""

    name: str | None = None
    email: str | None = None
    designation: str | None = None
    department: str | None = None
    role: str | None = None


class ScoreRequest(BaseModel):
    """覆盖分数请求体"""

    score: int


def _operative_json(operative: Operative) -> dict:
    return operative.model_dump(mode="json")


@router.post("/api/operatives")
async def register_operative(
    body: OperativeCreateRequest,
    requester: Requester = Depends(get_requester),
    store_group=Depends(get_store_group),
):
    service = OperativeService(store_group)
    operative = await service.register(OperativeDraft(**body.model_dump()), requester)
    return JSONResponse(status_code=201, content=_operative_json(operative))


@router.get("/api/operatives/me")
async def get_me(
    requester: Requester = Depends(get_requester),
    store_group=Depends(get_store_group),
):
    service = OperativeService(store_group)
    return _operative_json(await service.get(requester.id))


@router.get("/api/operatives/leaderboard")
async def leaderboard(
    requester: Requester = Depends(get_requester),
    store_group=Depends(get_store_group),
):
    service = OperativeService(store_group)
    operatives = await service.leaderboard()
    return {"operatives": [_operative_json(o) for o in operatives]}


@router.put("/api/operatives/reset-scores")
async def reset_scores(
    requester: Requester = Depends(get_requester),
    store_group=Depends(get_store_group),
    hub=Depends(get_hub),
):
    service = OperativeService(store_group, hub)
    affected = await service.reset_scores(requester)
    return {"message": "Leaderboard Reset", "affected": affected}


@router.put("/api/operatives/{operative_id}/score")
async def set_score(
    operative_id: str,
    body: ScoreRequest,
    requester: Requester = Depends(get_requester),
    store_group=Depends(get_store_group),
    hub=Depends(get_hub),
):
    service = OperativeService(store_group, hub)
    operative = await service.set_score(operative_id, body.score, requester)
    return _operative_json(operative)


@router.put("/api/operatives/{operative_id}")
async def update_operative(
    operative_id: str,
    body: OperativeUpdateRequest,
    requester: Requester = Depends(get_requester),
    store_group=Depends(get_store_group),
    hub=Depends(get_hub),
):
    service = OperativeService(store_group, hub)
    operative = await service.update(
        operative_id, OperativeUpdate(**body.model_dump()), requester
    )
    return _operative_json(operative)


@router.delete("/api/operatives/{operative_id}")
async def delete_operative(
    operative_id: str,
    requester: Requester = Depends(get_requester),
    store_group=Depends(get_store_group),
    hub=Depends(get_hub),
):
    """删除人员，指派给此人的任务一并删除"""
    service = OperativeService(store_group, hub)
    purged = await service.delete(operative_id, requester)
    return {
        "message": "Operative and linked tasks purged",
        "operative_id": operative_id,
        "purged_task_ids": purged,
    }
