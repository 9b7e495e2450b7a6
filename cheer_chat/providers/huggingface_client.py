"""Hugging Face Inference Provider 适配器。

使用 text-generation 任务接口：
- URL: {base_url}/models/{provider_model}
- 认证: Authorization: Bearer <token>
- 请求体: {"inputs": <prompt>, "parameters": {...}}
- 响应体: [{"generated_text": "..."}]，部分部署直接返回对象。

失败不重试，统一转换为 UpstreamError 子类抛出。
"""

from typing import Any

import httpx

from cheer_chat.config.settings import settings
from cheer_chat.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from cheer_chat.domain.models import GenerationRequest, GenerationResult
from cheer_chat.providers.registry import HUGGINGFACE_CONFIG


class HuggingFaceClient:
    """Hugging Face 文本生成客户端实现。"""

    name = "huggingface"

    def __init__(self, cfg=settings):
        self._settings = cfg

    def generate(self, req: GenerationRequest) -> GenerationResult:
        token = getattr(self._settings, "huggingface_token", None)
        if not token:
            raise ValidationError(code="MISSING_API_KEY", message="HUGGINGFACE_TOKEN not set", http_status=500)
        model_cfg = HUGGINGFACE_CONFIG.models[req.model]
        payload = {
            "inputs": req.prompt,
            "parameters": req.params.to_payload(),
        }
        base = (getattr(self._settings, "hf_base_url", None) or HUGGINGFACE_CONFIG.base_url).rstrip("/")
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(
                    f"{base}/models/{model_cfg.provider_model}",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {token}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__)
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message="Hugging Face rate limit", http_status=429)
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=self._error_message(resp), http_status=resp.status_code)
        try:
            data = resp.json()
        except ValueError:
            raise ApiError(code="BAD_RESPONSE", message="Response is not valid JSON")
        return GenerationResult(
            provider=self.name,
            model=req.model,
            generated_text=self._parse_generated_text(data),
            raw=data,
        )

    @staticmethod
    def _error_message(resp: Any) -> str:
        try:
            data = resp.json()
        except ValueError:
            return resp.text
        if isinstance(data, dict) and data.get("error"):
            err = data["error"]
            return err if isinstance(err, str) else str(err)
        return resp.text

    @staticmethod
    def _parse_generated_text(data: Any) -> str:
        item = data[0] if isinstance(data, list) and data else data
        if isinstance(item, dict) and isinstance(item.get("generated_text"), str):
            return item["generated_text"]
        raise ApiError(code="BAD_RESPONSE", message="Missing generated_text in response")
