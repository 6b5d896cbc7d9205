"""调度触发路由 -- 供外部调度器调用（仅 Chair）

POST /api/schedule/deadline-reminders?window_hours=24
POST /api/schedule/monthly-reset
"""

from ausdauer.core.config import DEADLINE_WINDOW_HOURS
from ausdauer.core.models import Requester
from fastapi import APIRouter, Depends, Query

from ..deps import get_hub, get_mailer, get_requester, get_store_group
from ..services.schedule_service import ScheduleService

router = APIRouter()


@router.post("/api/schedule/deadline-reminders")
async def deadline_reminders(
    window_hours: int = Query(default=DEADLINE_WINDOW_HOURS, ge=1, le=24 * 30),
    requester: Requester = Depends(get_requester),
    store_group=Depends(get_store_group),
    hub=Depends(get_hub),
    mailer=Depends(get_mailer),
):
    service = ScheduleService(store_group, hub, mailer)
    tasks, mailed = await service.send_deadline_reminders(requester, window_hours)
    return {
        "task_ids": [t.task_id for t in tasks],
        "mailed": mailed,
        "window_hours": window_hours,
    }


@router.post("/api/schedule/monthly-reset")
async def monthly_reset(
    requester: Requester = Depends(get_requester),
    store_group=Depends(get_store_group),
    hub=Depends(get_hub),
):
    service = ScheduleService(store_group, hub)
    affected = await service.monthly_reset(requester)
    return {"affected": affected}
