"""AccessPolicy -- 每个命令解析一次的权限判定

状态机本身不含授权逻辑，所有角色/归属判断集中在这里。
"""

from .models.enums import OperativeRole
from .models.operative import Requester
from .models.task import Task


class AccessPolicy:
    """两种固定角色的权限策略"""

    def __init__(self, requester: Requester) -> None:
        self.requester = requester

    @property
    def is_chair(self) -> bool:
        return self.requester.role == OperativeRole.CHAIR

    def can_create_task(self) -> bool:
        return self.is_chair

    def can_delete_task(self) -> bool:
        return self.is_chair

    def can_view_all(self) -> bool:
        return self.is_chair

    def can_view_task(self, task: Task) -> bool:
        return self.is_chair or task.assigned_to == self.requester.id

    def can_mutate_task(self, task: Task) -> bool:
        """执行人可改状态，Chair 可改状态与优先级"""
        return self.is_chair or task.assigned_to == self.requester.id

    def can_change_priority(self, task: Task) -> bool:
        # 执行人只能改状态
        return self.is_chair

    def can_manage_scores(self) -> bool:
        return self.is_chair

    def can_edit_profile(self, operative_id: str) -> bool:
        """本人或 Chair 可修改档案"""
        return self.is_chair or operative_id == self.requester.id

    def can_change_role(self) -> bool:
        return self.is_chair

    def can_manage_operatives(self) -> bool:
        return self.is_chair

    def can_delete_operative(self, operative_id: str) -> bool:
        # Chair 不能删除自己
        return self.is_chair and operative_id != self.requester.id

    def can_run_schedule(self) -> bool:
        return self.is_chair
