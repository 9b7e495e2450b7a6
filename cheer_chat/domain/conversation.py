from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol


@dataclass(frozen=True)
class ConversationTurn:
    """一条用户消息。写入后不可修改，助手回复不会被存储。"""

    id: str
    user_id: str
    message: str
    created_at: datetime


class ConversationStore(Protocol):
    def find_recent(self, user_id: str, limit: int) -> List[ConversationTurn]:
        """按 created_at 倒序返回该用户最近的 limit 条消息。"""
        ...

    def append(self, user_id: str, message: str, turn_id: Optional[str] = None) -> ConversationTurn:
        """追加一条消息；turn_id 已存在时直接返回已有记录。"""
        ...
