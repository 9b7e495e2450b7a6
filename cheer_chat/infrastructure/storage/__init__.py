"""会话存储实现。

- sql_store: 关系型数据库（SQLAlchemy），默认后端。
- json_store: 本地 JSON Lines 文件，适合单机调试。
"""

from typing import Optional

from cheer_chat.config.settings import settings
from cheer_chat.domain.conversation import ConversationStore
from cheer_chat.infrastructure.storage.json_store import JsonConversationStore
from cheer_chat.infrastructure.storage.sql_store import SqlConversationStore


def create_store(backend: Optional[str] = None) -> ConversationStore:
    """根据名称创建存储实例，默认取配置中的 storage_backend。"""

    name = (backend or getattr(settings, "storage_backend", "sql")).lower()
    if name == "json":
        return JsonConversationStore(root=settings.storage_root)
    return SqlConversationStore(url=settings.database_url)
