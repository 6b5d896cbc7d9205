"""评论日志 -- 只追加，不提供编辑或删除

追加在存储层以 json_insert 原子完成（见 SqliteTaskStore.append_comment）。

作者名称与角色在写入时快照，之后作者改名或换角色不影响历史评论。
"""

from datetime import datetime

from ulid import ULID

from .errors import InvalidInput
from .models.operative import Requester
from .models.task import Comment


def build_comment(requester: Requester, text: str | None, now: datetime) -> Comment:
    """构造评论快照

    Raises:
        InvalidInput: 正文为空
    """
    if text is None or not text.strip():
        raise InvalidInput("Comment text is required")
    return Comment(
        comment_id=str(ULID()),
        author_id=requester.id,
        author_name=requester.display_name,
        author_role=requester.role,
        text=text,
        created_at=now,
    )
