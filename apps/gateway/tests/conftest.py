"""apps/gateway 测试配置 -- FastAPI app + httpx AsyncClient + 预置人员"""

from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import pytest
import pytest_asyncio
from ausdauer.core.models import Operative
from ausdauer.core.roster import OperativeDraft, Roster
from ausdauer.core.store import StoreGroup, create_store_group
from ausdauer.gateway.config import MailConfig
from ausdauer.gateway.services.background import BackgroundRunner
from ausdauer.gateway.services.hub import ConnectionHub
from ausdauer.gateway.services.mailer import EchoMailer
from httpx import ASGITransport, AsyncClient


@pytest_asyncio.fixture
async def store_group(tmp_path: Path) -> AsyncGenerator[StoreGroup, None]:
    sg = await create_store_group(str(tmp_path / "sqlite" / "gateway.db"))
    yield sg
    await sg.close()


@pytest.fixture
def hub() -> ConnectionHub:
    return ConnectionHub(queue_maxsize=20)


@pytest.fixture
def mailer() -> EchoMailer:
    return EchoMailer(MailConfig(sender="Ops <ops@ausdauer.test>"))


@pytest_asyncio.fixture
async def app(store_group: StoreGroup, hub: ConnectionHub, mailer: EchoMailer, monkeypatch):
    """创建测试用 FastAPI app，手动初始化 lifespan 状态"""
    monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")

    from ausdauer.gateway.main import create_app

    application = create_app()
    application.state.store_group = store_group
    application.state.hub = hub
    application.state.mailer = mailer
    application.state.background = BackgroundRunner()
    yield application
    await application.state.background.wait()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def chair(store_group: StoreGroup) -> Operative:
    return await Roster(store_group).register(
        OperativeDraft(name="Commander Vale", email="vale@ausdauer.test", role="Chair"),
        requester=None,
    )


@pytest_asyncio.fixture
async def employee(store_group: StoreGroup) -> Operative:
    return await Roster(store_group).register(
        OperativeDraft(name="Agent Okoro", email="okoro@ausdauer.test"),
        requester=None,
    )


@pytest_asyncio.fixture
async def other_employee(store_group: StoreGroup) -> Operative:
    return await Roster(store_group).register(
        OperativeDraft(name="Agent Lind", email="lind@ausdauer.test"),
        requester=None,
    )


@pytest.fixture
def auth() -> Callable[[Operative], dict[str, str]]:
    """构造身份请求头"""

    def _auth(operative: Operative) -> dict[str, str]:
        return {"X-Operative-Id": operative.operative_id}

    return _auth
