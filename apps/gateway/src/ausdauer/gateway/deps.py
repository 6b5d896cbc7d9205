"""依赖注入模块 -- 通过 FastAPI Depends 注入共享组件与请求者身份

StoreGroup / ConnectionHub / Mailer / BackgroundRunner 通过 app.state 管理，在 lifespan 中初始化/清理。
请求者身份由上游认证层解析后通过 X-Operative-Id 头传入（可信头）。
"""

from ausdauer.core.models import Requester
from ausdauer.core.store import StoreGroup
from ausdauer.core.store.transaction import locked_read
from fastapi import Depends, Header, Request

from .errors import Unauthenticated
from .services.background import BackgroundRunner
from .services.hub import ConnectionHub


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_hub(request: Request) -> ConnectionHub:
    """从 app.state 获取 ConnectionHub 实例"""
    return request.app.state.hub


def get_background(request: Request) -> BackgroundRunner:
    """从 app.state 获取后台任务 runner"""
    return request.app.state.background


def get_mailer(request: Request):
    """从 app.state 获取邮件协作方（可能为 None）"""
    return getattr(request.app.state, "mailer", None)


async def get_requester(
    x_operative_id: str | None = Header(default=None),
    store_group: StoreGroup = Depends(get_store_group),
) -> Requester:
    """解析请求者身份

    Raises:
        Unauthenticated: 缺少 X-Operative-Id 或人员不存在
    """
    if not x_operative_id:
        raise Unauthenticated("Missing X-Operative-Id header")
    async with locked_read(store_group, "get_operative"):
        operative = await store_group.operative_store.get_operative(x_operative_id)
    if operative is None:
        raise Unauthenticated(f"Unknown operative: {x_operative_id}")
    return Requester.from_operative(operative)
