"""OperativeStore SQLite 实现

分数写入在 SQL 层重复下限保护（score + delta >= 0），
并发撤销完成时分数也不会变为负数。
"""

from datetime import datetime

import aiosqlite

from ..models.operative import Operative
from .task_store import to_db_ts

# 允许通过 update_profile 修改的列
_PROFILE_COLUMNS = frozenset({"name", "email", "role", "designation", "department"})


class SqliteOperativeStore:
    """OperativeStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_operative(self, operative: Operative) -> None:
        """创建人员档案"""
        await self._conn.execute(
            """
            INSERT INTO operatives (operative_id, name, email, role, score,
                                    designation, department, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                operative.operative_id,
                operative.name,
                operative.email,
                operative.role.value,
                operative.score,
                operative.designation,
                operative.department,
                to_db_ts(operative.created_at),
            ),
        )

    async def get_operative(self, operative_id: str) -> Operative | None:
        """根据 operative_id 查询"""
        cursor = await self._conn.execute(
            "SELECT * FROM operatives WHERE operative_id = ?",
            (operative_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_operative(row)

    async def list_operatives(self) -> list[Operative]:
        """按分数倒序列出所有人员（排行榜）"""
        cursor = await self._conn.execute(
            "SELECT * FROM operatives ORDER BY score DESC, name ASC"
        )
        rows = await cursor.fetchall()
        return [self._row_to_operative(row) for row in rows]

    async def adjust_score(self, operative_id: str, delta: int) -> bool:
        """分数增减，结果为负时不写入

        Returns:
            True 如果分数已变更
        """
        cursor = await self._conn.execute(
            """
            UPDATE operatives
            SET score = score + ?
            WHERE operative_id = ? AND score + ? >= 0
            """,
            (delta, operative_id, delta),
        )
        return cursor.rowcount == 1

    async def set_score(self, operative_id: str, score: int) -> bool:
        """管理员覆盖分数"""
        cursor = await self._conn.execute(
            "UPDATE operatives SET score = ? WHERE operative_id = ?",
            (score, operative_id),
        )
        return cursor.rowcount == 1

    async def update_profile(self, operative_id: str, fields: dict[str, str]) -> bool:
        """更新档案字段（分数不在此修改）

        Returns:
            True 如果人员存在
        """
        unknown = set(fields) - _PROFILE_COLUMNS
        if unknown:
            raise ValueError(f"immutable operative columns: {sorted(unknown)}")
        if not fields:
            return await self.get_operative(operative_id) is not None

        assignments = ", ".join(f"{column} = ?" for column in fields)
        cursor = await self._conn.execute(
            f"UPDATE operatives SET {assignments} WHERE operative_id = ?",
            (*fields.values(), operative_id),
        )
        return cursor.rowcount == 1

    async def delete_operative(self, operative_id: str) -> bool:
        """删除人员档案"""
        cursor = await self._conn.execute(
            "DELETE FROM operatives WHERE operative_id = ?",
            (operative_id,),
        )
        return cursor.rowcount == 1

    async def reset_scores(self, role: str | None = None) -> int:
        """将分数清零，可限定角色

        Returns:
            受影响的行数
        """
        if role is not None:
            cursor = await self._conn.execute(
                "UPDATE operatives SET score = 0 WHERE role = ?",
                (role,),
            )
        else:
            cursor = await self._conn.execute("UPDATE operatives SET score = 0")
        return cursor.rowcount

    @staticmethod
    def _row_to_operative(row: aiosqlite.Row) -> Operative:
        """将数据库行转换为 Operative 模型"""
        return Operative(
            operative_id=row["operative_id"],
            name=row["name"],
            email=row["email"],
            role=row["role"],
            score=row["score"],
            designation=row["designation"],
            department=row["department"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
