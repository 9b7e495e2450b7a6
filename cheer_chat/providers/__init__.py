"""推理 Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护 Provider 与模型配置 (registry)。
- 提供各厂商的具体实现 (huggingface_client)。
"""

from typing import Optional

from cheer_chat.config.settings import settings
from cheer_chat.providers.base import InferenceClient
from cheer_chat.providers.huggingface_client import HuggingFaceClient


def create_provider(name: Optional[str] = None) -> InferenceClient:
    """根据名称创建 Provider 实例，默认取配置中的 provider。"""

    provider_name = (name or getattr(settings, "default_provider", "huggingface")).lower()
    if provider_name == "huggingface":
        return HuggingFaceClient(settings)
    raise KeyError(f"Unknown provider: {provider_name!r}")
