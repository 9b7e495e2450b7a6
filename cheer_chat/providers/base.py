"""推理 Provider 抽象接口。

上层 CompanionAgent 不直接依赖具体厂商的 HTTP 接口，而是依赖此协议：

- 每个厂商实现一个 InferenceClient（如 HuggingFaceClient）。
- 负责：将 GenerationRequest 转成具体 API 请求，并把响应 JSON 解析为 GenerationResult。
"""

from typing import Protocol

from cheer_chat.domain.models import GenerationRequest, GenerationResult


class InferenceClient(Protocol):
    """文本生成客户端协议。

    实现者需要提供：
    - name: Provider 名称，用于日志。
    - generate(req): 执行一次生成调用，失败时抛出 UpstreamError 子类。
    """

    name: str

    def generate(self, req: GenerationRequest) -> GenerationResult:
        ...
