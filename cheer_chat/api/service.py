"""对外 API 服务模块。

提供简化的函数接口供 HTTP 层或脚本调用。
"""

from typing import Any, Dict, Optional

from cheer_chat.agents.companion_agent import AgentConfig, CompanionAgent
from cheer_chat.config.settings import settings
from cheer_chat.domain.conversation import ConversationStore
from cheer_chat.infrastructure.logging.logger import logger
from cheer_chat.infrastructure.storage import create_store
from cheer_chat.providers import create_provider


_store: Optional[ConversationStore] = None
_agent: Optional[CompanionAgent] = None


def get_default_agent() -> CompanionAgent:
    """获取默认的 CompanionAgent 实例（单例）。"""
    global _store, _agent
    if _store is None:
        _store = create_store()
    if _agent is None:
        _agent = CompanionAgent(
            store=_store,
            provider_client=create_provider(),
            config=AgentConfig(
                provider=settings.default_provider,
                model=settings.default_model,
                context_window=settings.context_window,
            ),
        )
    return _agent


def reset_default_agent() -> None:
    """丢弃缓存的单例，配置变更后下次调用会重新构建。"""
    global _store, _agent
    close = getattr(_store, "close", None)
    if callable(close):
        close()
    _store = None
    _agent = None


def run_chat(message: str, user_id: str, turn_id: Optional[str] = None) -> Dict[str, Any]:
    """运行一轮聊天。

    Returns:
        {"text": <模型回复>}

    Raises:
        各种 domain.exceptions 中定义的异常
    """
    try:
        reply = get_default_agent().reply(user_id=user_id, message=message, turn_id=turn_id)
    except Exception as e:
        logger.error(f"Chat failed: {e}", extra={"extra": {
            "user_id": user_id,
            "error": str(e),
        }})
        raise
    return {"text": reply.text}
