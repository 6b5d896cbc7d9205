"""SQLite 数据库初始化

PRAGMA 配置 + 两张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# tasks 表 DDL（comments 以 JSON 数组内嵌）
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id       TEXT PRIMARY KEY,
    title         TEXT NOT NULL,
    description   TEXT NOT NULL,
    assigned_to   TEXT NOT NULL,
    assigned_by   TEXT NOT NULL,
    priority      TEXT NOT NULL DEFAULT 'Medium',
    deadline      TEXT NOT NULL,
    status        TEXT NOT NULL DEFAULT 'Pending',
    comments      TEXT NOT NULL DEFAULT '[]',
    created_at    TEXT NOT NULL,
    updated_at    TEXT NOT NULL,
    completed_at  TEXT,
    version       INTEGER NOT NULL DEFAULT 1
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_assigned_to ON tasks(assigned_to);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_deadline ON tasks(deadline);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);",
]

# operatives 表 DDL
_OPERATIVES_DDL = """
CREATE TABLE IF NOT EXISTS operatives (
    operative_id  TEXT PRIMARY KEY,
    name          TEXT NOT NULL,
    email         TEXT NOT NULL DEFAULT '',
    role          TEXT NOT NULL DEFAULT 'Employee',
    score         INTEGER NOT NULL DEFAULT 0 CHECK (score >= 0),
    designation   TEXT NOT NULL DEFAULT '',
    department    TEXT NOT NULL DEFAULT '',
    created_at    TEXT NOT NULL
);
"""

_OPERATIVES_INDEXES = [
    # 邮件地址唯一（仅对非空值生效）
    (
        "CREATE UNIQUE INDEX IF NOT EXISTS idx_operatives_email "
        "ON operatives(email) WHERE email != '';"
    ),
    "CREATE INDEX IF NOT EXISTS idx_operatives_score ON operatives(score DESC);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    await conn.execute(_TASKS_DDL)
    await conn.execute(_OPERATIVES_DDL)

    for idx_sql in _TASKS_INDEXES + _OPERATIVES_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
