"""TaskStore SQLite 实现

写操作不自动提交事务，由调用方（transaction 模块）管理。
更新类操作均带 version 比较（compare-and-swap），返回是否命中。
"""

import json
from datetime import UTC, datetime
from typing import Any

import aiosqlite

from ..models.task import Comment, Task

# 允许通过 update_task_fields 修改的列
_MUTABLE_COLUMNS = frozenset({"status", "priority", "completed_at"})


def to_db_ts(value: datetime) -> str:
    """统一为 UTC 微秒精度 ISO 字符串，保证字典序即时间序"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        await self._conn.execute(
            """
            INSERT INTO tasks (task_id, title, description, assigned_to, assigned_by,
                               priority, deadline, status, comments, created_at,
                               updated_at, completed_at, version)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task.task_id,
                task.title,
                task.description,
                task.assigned_to,
                task.assigned_by,
                task.priority.value,
                to_db_ts(task.deadline),
                task.status.value,
                json.dumps(
                    [c.model_dump(mode="json") for c in task.comments],
                    ensure_ascii=False,
                ),
                to_db_ts(task.created_at),
                to_db_ts(task.updated_at),
                to_db_ts(task.completed_at) if task.completed_at else None,
                task.version,
            ),
        )

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        cursor = await self._conn.execute(
            "SELECT * FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(self, assigned_to: str | None = None) -> list[Task]:
        """查询任务列表，可按执行人筛选（展示顺序由调用方决定）"""
        if assigned_to is not None:
            cursor = await self._conn.execute(
                "SELECT * FROM tasks WHERE assigned_to = ? ORDER BY created_at ASC",
                (assigned_to,),
            )
        else:
            cursor = await self._conn.execute(
                "SELECT * FROM tasks ORDER BY created_at ASC"
            )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def find_due_between(
        self,
        start: datetime,
        end: datetime,
        exclude_status: str | None = None,
    ) -> list[Task]:
        """查询 deadline 落在 [start, end] 内的任务"""
        sql = "SELECT * FROM tasks WHERE deadline >= ? AND deadline <= ?"
        params: list[Any] = [to_db_ts(start), to_db_ts(end)]
        if exclude_status is not None:
            sql += " AND status != ?"
            params.append(exclude_status)
        sql += " ORDER BY deadline ASC"
        cursor = await self._conn.execute(sql, params)
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def update_task_fields(
        self,
        task_id: str,
        expected_version: int,
        fields: dict[str, Any],
        updated_at: datetime,
    ) -> bool:
        """按 version 比较更新字段，version 自增

        Returns:
            True 如果命中（version 未被其他写入者推进）
        """
        unknown = set(fields) - _MUTABLE_COLUMNS
        if unknown:
            raise ValueError(f"immutable task columns: {sorted(unknown)}")

        assignments = []
        params: list[Any] = []
        for column, value in fields.items():
            assignments.append(f"{column} = ?")
            if isinstance(value, datetime):
                value = to_db_ts(value)
            elif hasattr(value, "value"):
                value = value.value
            params.append(value)
        assignments.append("updated_at = ?")
        params.append(to_db_ts(updated_at))

        cursor = await self._conn.execute(
            f"""
            UPDATE tasks
            SET {", ".join(assignments)}, version = version + 1
            WHERE task_id = ? AND version = ?
            """,
            (*params, task_id, expected_version),
        )
        return cursor.rowcount == 1

    async def append_comment(self, task_id: str, comment: Comment) -> bool:
        """在 comments 数组末尾追加一条评论，version 自增

        追加之间可交换顺序，不做 version 比较。

        Returns:
            True 如果任务存在
        """
        cursor = await self._conn.execute(
            """
            UPDATE tasks
            SET comments = json_insert(comments, '$[#]', json(?)),
                updated_at = ?,
                version = version + 1
            WHERE task_id = ?
            """,
            (
                comment.model_dump_json(),
                to_db_ts(comment.created_at),
                task_id,
            ),
        )
        return cursor.rowcount == 1

    async def delete_task(self, task_id: str) -> bool:
        """删除任务（内嵌评论随之删除）"""
        cursor = await self._conn.execute(
            "DELETE FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        return cursor.rowcount == 1

    async def delete_tasks_assigned_to(self, operative_id: str) -> list[str]:
        """删除指派给某人的全部任务

        Returns:
            被删除的 task_id 列表
        """
        cursor = await self._conn.execute(
            "SELECT task_id FROM tasks WHERE assigned_to = ? ORDER BY created_at ASC",
            (operative_id,),
        )
        task_ids = [row["task_id"] for row in await cursor.fetchall()]
        if task_ids:
            await self._conn.execute(
                "DELETE FROM tasks WHERE assigned_to = ?",
                (operative_id,),
            )
        return task_ids

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        comments_data = json.loads(row["comments"]) if row["comments"] else []
        return Task(
            task_id=row["task_id"],
            title=row["title"],
            description=row["description"],
            assigned_to=row["assigned_to"],
            assigned_by=row["assigned_by"],
            priority=row["priority"],
            deadline=datetime.fromisoformat(row["deadline"]),
            status=row["status"],
            comments=[Comment(**c) for c in comments_data],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            completed_at=(
                datetime.fromisoformat(row["completed_at"]) if row["completed_at"] else None
            ),
            version=row["version"],
        )
