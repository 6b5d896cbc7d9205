"""packages/core 测试配置 -- 核心层 fixture"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from ausdauer.core.lifecycle import TaskDraft, TaskLifecycleEngine
from ausdauer.core.models import Requester
from ausdauer.core.roster import OperativeDraft, Roster
from ausdauer.core.store import StoreGroup, create_store_group


class FrozenClock:
    """可手动推进的时钟"""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 3, 2, 9, 0, tzinfo=UTC))


@pytest_asyncio.fixture
async def store_group(tmp_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """核心层已初始化的 StoreGroup"""
    sg = await create_store_group(str(tmp_path / "core_test.db"))
    yield sg
    await sg.close()


@pytest.fixture
def roster(store_group: StoreGroup, clock: FrozenClock) -> Roster:
    return Roster(store_group, clock=clock)


@pytest.fixture
def engine(store_group: StoreGroup, clock: FrozenClock) -> TaskLifecycleEngine:
    return TaskLifecycleEngine(store_group, clock=clock)


@pytest_asyncio.fixture
async def chair(roster: Roster) -> Requester:
    operative = await roster.register(
        OperativeDraft(name="Commander Vale", email="vale@ausdauer.test", role="Chair"),
        requester=None,
    )
    return Requester.from_operative(operative)


@pytest_asyncio.fixture
async def employee(roster: Roster) -> Requester:
    operative = await roster.register(
        OperativeDraft(name="Agent Okoro", email="okoro@ausdauer.test"),
        requester=None,
    )
    return Requester.from_operative(operative)


@pytest_asyncio.fixture
async def other_employee(roster: Roster) -> Requester:
    operative = await roster.register(
        OperativeDraft(name="Agent Lind", email="lind@ausdauer.test"),
        requester=None,
    )
    return Requester.from_operative(operative)


@pytest.fixture
def make_draft(employee: Requester, clock: FrozenClock):
    """构造指派给 employee 的任务草稿，默认两天后截止"""

    def _make(**overrides) -> TaskDraft:
        data = {
            "title": "Secure the perimeter",
            "description": "Sweep sector 7 and report anomalies",
            "assigned_to": employee.id,
            "priority": "Medium",
            "deadline": clock.now + timedelta(days=2),
        }
        data.update(overrides)
        return TaskDraft(**data)

    return _make
