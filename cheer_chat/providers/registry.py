"""Provider 与模型配置。

本模块将“逻辑模型名”与“具体厂商模型名”解耦：

- 逻辑名（logical_name）：在代码里使用的统一名称，例如 "companion-chat"。
- provider_model：厂商实际提供的模型 ID，例如 "HuggingFaceH4/zephyr-7b-beta"。

生成参数随逻辑模型固定，不从请求或环境变量读取。"""

from dataclasses import dataclass, field
from typing import Dict, Mapping

from cheer_chat.domain.models import GenerationParams


@dataclass
class ModelConfig:
    """单个逻辑模型的配置。"""

    logical_name: str
    provider_model: str
    params: GenerationParams = field(default_factory=GenerationParams)


@dataclass
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    base_url: str
    models: Dict[str, ModelConfig]


HUGGINGFACE_CONFIG = ProviderConfig(
    name="huggingface",
    base_url="https://router.huggingface.co/hf-inference",
    models={
        "companion-chat": ModelConfig(
            logical_name="companion-chat",
            provider_model="HuggingFaceH4/zephyr-7b-beta",
            params=GenerationParams(max_new_tokens=200, return_full_text=False, temperature=0.7),
        )
    },
)


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "huggingface": HUGGINGFACE_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = name.lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown provider: {name!r}")


def get_model_config(provider: str, model: str) -> ModelConfig:
    cfg = get_provider_config(provider)
    try:
        return cfg.models[model]
    except KeyError:
        raise KeyError(f"Unknown model {model!r} for provider {provider!r}") from None
