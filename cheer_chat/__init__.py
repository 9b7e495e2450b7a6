"""CheerChat 顶层包。

该包提供一个极简的心理陪伴聊天后端，包括配置加载、领域模型、
推理 Provider 适配、会话存储、prompt 拼装以及 HTTP 接口。
"""

from cheer_chat.agents import CompanionAgent

__all__ = ["CompanionAgent"]
