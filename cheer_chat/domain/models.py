"""推理调用的统一数据模型。

- GenerationRequest: 发给推理 Provider 的一次文本生成请求。
- GenerationResult: 从 Provider 响应解析出的统一结果。

Provider 适配器（如 HuggingFaceClient）只依赖这些模型，
并负责在各自的 API JSON 与这些模型之间做转换。
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class GenerationParams:
    """文本生成参数，字段名与 Hugging Face text-generation 接口一致。"""

    max_new_tokens: int = 200
    return_full_text: bool = False
    temperature: float = 0.7

    def to_payload(self) -> Dict[str, Any]:
        return {
            "max_new_tokens": self.max_new_tokens,
            "return_full_text": self.return_full_text,
            "temperature": self.temperature,
        }


@dataclass
class GenerationRequest:
    """一次完整的文本生成请求。

    prompt 是已经拼装好的单个字符串，Provider 不再做任何模板处理。
    """

    provider: str  # 逻辑 Provider 名，如 "huggingface"
    model: str  # 逻辑模型名，如 "companion-chat"（由 registry 映射为真实模型 ID）
    prompt: str
    params: GenerationParams


@dataclass
class GenerationResult:
    """一次生成调用的结果。

    - generated_text: 模型生成的文本（未裁剪空白）。
    - raw: 原始响应 JSON，用于调试或日志记录。
    """

    provider: str
    model: str
    generated_text: str
    raw: Optional[Any] = None
