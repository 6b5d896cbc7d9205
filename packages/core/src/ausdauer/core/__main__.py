"""CLI 入口模块 -- python -m ausdauer.core <command>

支持的命令：
  init-db                              初始化数据库表结构
  add-operative <name> <email> [role]  登记人员档案（用于创建第一个 Chair）
"""

import asyncio
import sys

from .config import get_db_path
from .errors import AusdauerError

USAGE = """用法: python -m ausdauer.core <command>
命令:
  init-db                              初始化数据库表结构
  add-operative <name> <email> [role]  登记人员档案，role 为 Chair 或 Employee"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(USAGE)
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "add-operative":
        if len(sys.argv) < 4:
            print(USAGE)
            sys.exit(1)
        role = sys.argv[4] if len(sys.argv) > 4 else "Employee"
        try:
            asyncio.run(add_operative(sys.argv[2], sys.argv[3], role))
        except AusdauerError as e:
            print(f"失败: {e.message}")
            sys.exit(1)
    else:
        print(f"未知命令: {command}")
        print("可用命令: init-db, add-operative")
        sys.exit(1)


async def init_database() -> None:
    """创建数据库与表结构"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")
    store_group = await create_store_group(db_path)
    await store_group.close()
    print("初始化完成")


async def add_operative(name: str, email: str, role: str) -> None:
    """本地登记人员档案并输出 operative_id"""
    from .roster import OperativeDraft, Roster
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        operative = await Roster(store_group).register(
            OperativeDraft(name=name, email=email, role=role),
            requester=None,
        )
        print(f"{operative.role.value} 已登记: {operative.operative_id}")
    finally:
        await store_group.close()


if __name__ == "__main__":
    main()
