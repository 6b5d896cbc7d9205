"""集成测试共享 fixture"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from ausdauer.core.models import Operative
from ausdauer.core.roster import OperativeDraft, Roster
from ausdauer.core.store import create_store_group
from ausdauer.gateway.services.background import BackgroundRunner
from ausdauer.gateway.services.hub import ConnectionHub
from ausdauer.gateway.services.mailer import EchoMailer
from httpx import ASGITransport, AsyncClient


@pytest_asyncio.fixture
async def integration_app(tmp_path: Path, monkeypatch):
    """集成测试用 FastAPI app"""
    monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")

    from ausdauer.gateway.main import create_app

    app = create_app()
    store_group = await create_store_group(str(tmp_path / "integration.db"))
    app.state.store_group = store_group
    app.state.hub = ConnectionHub()
    app.state.mailer = EchoMailer()
    app.state.background = BackgroundRunner()

    yield app

    await app.state.background.wait()
    await store_group.close()


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def crew(integration_app) -> dict[str, Operative]:
    """一个 Chair + 两个 Employee"""
    roster = Roster(integration_app.state.store_group)
    return {
        "chair": await roster.register(
            OperativeDraft(name="Commander Vale", email="vale@ausdauer.test", role="Chair"),
            requester=None,
        ),
        "okoro": await roster.register(
            OperativeDraft(name="Agent Okoro", email="okoro@ausdauer.test"),
            requester=None,
        ),
        "lind": await roster.register(
            OperativeDraft(name="Agent Lind", email="lind@ausdauer.test"),
            requester=None,
        ),
    }
