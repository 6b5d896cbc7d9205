"""CLI 单元测试 -- init-db / add-operative"""

import sys
from pathlib import Path

import pytest
from ausdauer.core import __main__ as cli
from ausdauer.core.store import create_store_group


class TestCli:
    """python -m ausdauer.core"""

    async def test_add_operative_creates_chair(self, tmp_path: Path, monkeypatch, capsys):
        db_path = tmp_path / "cli" / "ausdauer.db"
        monkeypatch.setenv("AUSDAUER_DB_PATH", str(db_path))

        await cli.init_database()
        await cli.add_operative("Commander Vale", "vale@ausdauer.test", "Chair")

        output = capsys.readouterr().out
        assert "Chair 已登记" in output

        store_group = await create_store_group(str(db_path))
        try:
            operatives = await store_group.operative_store.list_operatives()
        finally:
            await store_group.close()
        assert [o.name for o in operatives] == ["Commander Vale"]

    def test_unknown_command_exits(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["ausdauer.core", "explode"])
        with pytest.raises(SystemExit) as exc_info:
            cli.main()
        assert exc_info.value.code == 1
