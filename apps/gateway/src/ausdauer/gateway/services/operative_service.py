"""OperativeService -- 人员档案与排行榜的网关侧编排"""

from ausdauer.core.models import Operative, Requester
from ausdauer.core.roster import OperativeDraft, OperativeUpdate, Roster
from ausdauer.core.store import StoreGroup

from .dispatcher import EventDispatcher
from .hub import ConnectionHub


class OperativeService:
    """人员档案服务：Roster + 事件投递"""

    def __init__(self, store_group: StoreGroup, hub: ConnectionHub | None = None) -> None:
        self._roster = Roster(store_group)
        self._dispatcher = EventDispatcher(hub)

    async def register(self, draft: OperativeDraft, requester: Requester) -> Operative:
        return await self._roster.register(draft, requester)

    async def get(self, operative_id: str) -> Operative:
        return await self._roster.get(operative_id)

    async def update(
        self, operative_id: str, changes: OperativeUpdate, requester: Requester
    ) -> Operative:
        result = await self._roster.update(operative_id, changes, requester)
        await self._dispatcher.dispatch(result.events)
        return result.value

    async def delete(self, operative_id: str, requester: Requester) -> list[str]:
        """删除人员，返回一并删除的 task_id"""
        result = await self._roster.delete(operative_id, requester)
        await self._dispatcher.dispatch(result.events)
        return result.value

    async def leaderboard(self) -> list[Operative]:
        return await self._roster.leaderboard()

    async def set_score(
        self, operative_id: str, score: int, requester: Requester
    ) -> Operative:
        result = await self._roster.set_score(operative_id, score, requester)
        await self._dispatcher.dispatch(result.events)
        return result.value

    async def reset_scores(self, requester: Requester) -> int:
        """清零全部人员分数"""
        result = await self._roster.reset_scores(requester)
        await self._dispatcher.dispatch(result.events)
        return result.value
