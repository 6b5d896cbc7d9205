"""Roster -- 人员档案登记、修改、删除、排行榜与分数管理

分数只在三处被修改：评分引擎（随任务状态流转）、管理员覆盖、清零。
删除人员时指派给此人的任务一并删除。
"""

from collections.abc import Callable
from datetime import datetime

import aiosqlite
import structlog
from pydantic import BaseModel
from ulid import ULID

from .errors import Forbidden, InvalidInput, NotFound, StoreFailure
from .lifecycle import CommandResult, utc_now
from .models import (
    DomainEvent,
    EventType,
    Operative,
    OperativeRemovedPayload,
    OperativeRole,
    OperativeUpdatedPayload,
    Requester,
    ScoresResetPayload,
    ScoreUpdatedPayload,
    TaskDeletedPayload,
)
from .policy import AccessPolicy
from .store import StoreGroup
from .store.transaction import locked_read, write_transaction

log = structlog.get_logger()


class OperativeDraft(BaseModel):
    """登记人员档案的输入（凭证管理不在本服务范围内）"""

    name: str | None = None
    email: str = ""
    role: str = OperativeRole.EMPLOYEE.value
    designation: str = ""
    department: str = ""


class OperativeUpdate(BaseModel):
    """修改档案的输入，None 或空白表示保持原值"""

    name: str | None = None
    email: str | None = None
    designation: str | None = None
    department: str | None = None
    role: str | None = None


class Roster:
    """人员档案服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._stores = store_group
        self._clock = clock

    async def register(
        self, draft: OperativeDraft, requester: Requester | None
    ) -> Operative:
        """登记人员档案

        requester 为 None 表示本地引导（CLI 创建第一个 Chair）。

        Raises:
            Forbidden: 请求者不是 Chair
            InvalidInput: 名称缺失或角色非法
        """
        if requester is not None and not AccessPolicy(requester).can_manage_operatives():
            raise Forbidden("Access denied. Chair only.")
        if draft.name is None or not draft.name.strip():
            raise InvalidInput("Missing required field: name")
        try:
            role = OperativeRole(draft.role)
        except ValueError:
            raise InvalidInput(f"Unknown role: {draft.role}") from None

        operative = Operative(
            operative_id=str(ULID()),
            name=draft.name.strip(),
            email=draft.email.strip(),
            role=role,
            designation=draft.designation,
            department=draft.department,
            created_at=self._clock(),
        )
        try:
            async with write_transaction(self._stores, "create_operative"):
                await self._stores.operative_store.create_operative(operative)
        except StoreFailure as e:
            if self._is_email_conflict(e.original_error):
                raise InvalidInput(f"Email already registered: {operative.email}") from e
            raise

        log.info(
            "operative_registered",
            operative_id=operative.operative_id,
            role=role.value,
        )
        return operative

    async def update(
        self, operative_id: str, changes: OperativeUpdate, requester: Requester
    ) -> CommandResult[Operative]:
        """修改档案（本人或 Chair），角色只能由 Chair 修改

        Raises:
            NotFound: 人员不存在
            Forbidden: 既不是本人也不是 Chair；或非 Chair 尝试修改角色
            InvalidInput: 角色非法或邮件地址已被占用
        """
        current = await self.get(operative_id)
        policy = AccessPolicy(requester)
        if not policy.can_edit_profile(operative_id):
            raise Forbidden("Access Denied.")

        fields: dict[str, str] = {}
        for column in ("name", "email", "designation", "department"):
            value = getattr(changes, column)
            if value is not None and value.strip():
                fields[column] = value.strip()

        if changes.role:
            try:
                role = OperativeRole(changes.role)
            except ValueError:
                raise InvalidInput(f"Unknown role: {changes.role}") from None
            if role != current.role:
                if not policy.can_change_role():
                    raise Forbidden("Only the Chair may change roles")
                fields["role"] = role.value

        try:
            async with write_transaction(self._stores, "update_operative"):
                found = await self._stores.operative_store.update_profile(
                    operative_id, fields
                )
                if not found:
                    raise NotFound(f"Operative with id {operative_id} does not exist")
        except StoreFailure as e:
            if self._is_email_conflict(e.original_error):
                raise InvalidInput(f"Email already registered: {fields['email']}") from e
            raise

        log.info(
            "operative_updated",
            operative_id=operative_id,
            fields=sorted(fields),
            requester=requester.id,
        )
        operative = await self.get(operative_id)
        events = [
            DomainEvent.broadcast(
                EventType.OPERATIVE_UPDATED,
                OperativeUpdatedPayload(
                    operative_id=operative_id,
                    name=operative.name,
                    role=operative.role,
                ),
            )
        ]
        return CommandResult(operative, events)

    async def delete(
        self, operative_id: str, requester: Requester
    ) -> CommandResult[list[str]]:
        """删除人员档案及指派给此人的全部任务（仅 Chair，不能删除自己）

        Returns:
            被一并删除的 task_id 列表

        Raises:
            Forbidden: 请求者不是 Chair，或删除对象是请求者本人
            NotFound: 人员不存在
        """
        policy = AccessPolicy(requester)
        if not policy.can_manage_operatives():
            raise Forbidden("Access denied. Chair only.")
        if not policy.can_delete_operative(operative_id):
            raise Forbidden("Cannot delete self")

        async with write_transaction(self._stores, "delete_operative"):
            deleted = await self._stores.operative_store.delete_operative(operative_id)
            if not deleted:
                raise NotFound(f"Operative with id {operative_id} does not exist")
            purged = await self._stores.task_store.delete_tasks_assigned_to(operative_id)

        log.info(
            "operative_deleted",
            operative_id=operative_id,
            purged_tasks=len(purged),
            requester=requester.id,
        )
        events = [
            DomainEvent.broadcast(
                EventType.TASK_DELETED,
                TaskDeletedPayload(task_id=task_id),
            )
            for task_id in purged
        ]
        events.append(
            DomainEvent.broadcast(
                EventType.OPERATIVE_REMOVED,
                OperativeRemovedPayload(
                    operative_id=operative_id, purged_task_ids=purged
                ),
            )
        )
        return CommandResult(purged, events)

    async def get(self, operative_id: str) -> Operative:
        """Raises: NotFound"""
        async with locked_read(self._stores, "get_operative"):
            operative = await self._stores.operative_store.get_operative(operative_id)
        if operative is None:
            raise NotFound(f"Operative with id {operative_id} does not exist")
        return operative

    async def leaderboard(self) -> list[Operative]:
        """按分数倒序"""
        async with locked_read(self._stores, "list_operatives"):
            return await self._stores.operative_store.list_operatives()

    async def set_score(
        self, operative_id: str, score: int, requester: Requester
    ) -> CommandResult[Operative]:
        """管理员覆盖分数

        Raises:
            Forbidden: 请求者不是 Chair
            InvalidInput: 分数为负
            NotFound: 人员不存在
        """
        if not AccessPolicy(requester).can_manage_scores():
            raise Forbidden("Access denied. Chair only.")
        if score < 0:
            raise InvalidInput("Score must be >= 0")

        async with write_transaction(self._stores, "set_score"):
            updated = await self._stores.operative_store.set_score(operative_id, score)
        if not updated:
            raise NotFound(f"Operative with id {operative_id} does not exist")

        log.info(
            "score_overridden",
            operative_id=operative_id,
            score=score,
            requester=requester.id,
        )
        operative = await self.get(operative_id)
        events = [
            DomainEvent.broadcast(
                EventType.SCORE_UPDATED,
                ScoreUpdatedPayload(operative_id=operative_id, score=score),
            )
        ]
        return CommandResult(operative, events)

    async def reset_scores(
        self,
        requester: Requester | None,
        role: OperativeRole | None = None,
    ) -> CommandResult[int]:
        """分数清零

        Args:
            requester: 发起人；None 表示调度器触发
            role: 仅清零指定角色，None 表示全部

        Returns:
            受影响人数
        """
        if requester is not None and not AccessPolicy(requester).can_manage_scores():
            raise Forbidden("Access denied. Chair only.")

        async with write_transaction(self._stores, "reset_scores"):
            affected = await self._stores.operative_store.reset_scores(
                role.value if role else None
            )

        log.info(
            "scores_reset",
            affected=affected,
            role=role.value if role else "all",
            requester=requester.id if requester else "scheduler",
        )
        events = [
            DomainEvent.broadcast(
                EventType.SCORES_RESET,
                ScoresResetPayload(affected=affected),
            )
        ]
        return CommandResult(affected, events)

    @staticmethod
    def _is_email_conflict(error: Exception) -> bool:
        if not isinstance(error, aiosqlite.IntegrityError):
            return False
        text = str(error)
        return "idx_operatives_email" in text or "operatives.email" in text
