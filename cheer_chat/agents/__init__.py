"""对话 Agent 实现。"""

from cheer_chat.agents.companion_agent import AgentConfig, ChatReply, CompanionAgent

__all__ = ["AgentConfig", "ChatReply", "CompanionAgent"]
