"""Store Protocol 接口定义

定义 TaskStore、OperativeStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from datetime import datetime
from typing import Any, Protocol

from ..models.operative import Operative
from ..models.task import Comment, Task


class TaskStore(Protocol):
    """Task 存储接口"""

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def list_tasks(self, assigned_to: str | None = None) -> list[Task]:
        """查询任务列表，可按执行人筛选"""
        ...

    async def find_due_between(
        self,
        start: datetime,
        end: datetime,
        exclude_status: str | None = None,
    ) -> list[Task]:
        """查询截止时间落在区间内的任务"""
        ...

    async def update_task_fields(
        self,
        task_id: str,
        expected_version: int,
        fields: dict[str, Any],
        updated_at: datetime,
    ) -> bool:
        """按 version 比较更新字段"""
        ...

    async def append_comment(self, task_id: str, comment: Comment) -> bool:
        """追加评论，返回任务是否存在"""
        ...

    async def delete_task(self, task_id: str) -> bool:
        """删除任务"""
        ...

    async def delete_tasks_assigned_to(self, operative_id: str) -> list[str]:
        """删除指派给某人的全部任务，返回被删除的 task_id"""
        ...


class OperativeStore(Protocol):
    """Operative 存储接口"""

    async def create_operative(self, operative: Operative) -> None:
        """创建人员档案"""
        ...

    async def get_operative(self, operative_id: str) -> Operative | None:
        """根据 operative_id 查询"""
        ...

    async def list_operatives(self) -> list[Operative]:
        """按分数倒序列出"""
        ...

    async def adjust_score(self, operative_id: str, delta: int) -> bool:
        """带下限保护的分数增减"""
        ...

    async def set_score(self, operative_id: str, score: int) -> bool:
        """覆盖分数"""
        ...

    async def update_profile(self, operative_id: str, fields: dict[str, str]) -> bool:
        """更新档案字段"""
        ...

    async def delete_operative(self, operative_id: str) -> bool:
        """删除人员档案"""
        ...

    async def reset_scores(self, role: str | None = None) -> int:
        """分数清零，返回受影响数量"""
        ...
