"""AccessPolicy 单元测试"""

from datetime import UTC, datetime

from ausdauer.core.models import OperativeRole, Requester, Task
from ausdauer.core.policy import AccessPolicy

NOW = datetime(2026, 3, 2, tzinfo=UTC)

CHAIR = Requester(id="op-chair", role=OperativeRole.CHAIR, display_name="Vale")
ASSIGNEE = Requester(id="op-a", role=OperativeRole.EMPLOYEE, display_name="Okoro")
OUTSIDER = Requester(id="op-b", role=OperativeRole.EMPLOYEE, display_name="Lind")

TASK = Task(
    task_id="t1",
    title="Recon",
    description="Survey",
    assigned_to="op-a",
    assigned_by="op-chair",
    deadline=NOW,
    created_at=NOW,
    updated_at=NOW,
)


class TestAccessPolicy:
    """两种角色的权限判定"""

    def test_chair_privileges(self):
        policy = AccessPolicy(CHAIR)
        assert policy.is_chair
        assert policy.can_create_task()
        assert policy.can_delete_task()
        assert policy.can_view_all()
        assert policy.can_mutate_task(TASK)
        assert policy.can_change_priority(TASK)
        assert policy.can_manage_scores()
        assert policy.can_run_schedule()

    def test_assignee_may_view_and_change_status_only(self):
        policy = AccessPolicy(ASSIGNEE)
        assert policy.can_view_task(TASK)
        assert policy.can_mutate_task(TASK)
        assert not policy.can_change_priority(TASK)
        assert not policy.can_create_task()
        assert not policy.can_delete_task()
        assert not policy.can_view_all()

    def test_other_employee_has_no_access(self):
        policy = AccessPolicy(OUTSIDER)
        assert not policy.can_view_task(TASK)
        assert not policy.can_mutate_task(TASK)
        assert not policy.can_manage_scores()
        assert not policy.can_manage_operatives()
