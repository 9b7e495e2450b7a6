"""陪伴聊天 Agent。

一次请求严格线性执行：校验 → 读取上下文 → 拼装 prompt → 调用模型 → 写入存储 → 返回。
任何一步失败都直接终止本次请求，不做重试；模型调用与写入之间没有事务保证。
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from uuid import uuid4

from cheer_chat.config.settings import settings
from cheer_chat.domain.conversation import ConversationStore, ConversationTurn
from cheer_chat.domain.exceptions import BusinessError, ValidationError
from cheer_chat.domain.models import GenerationRequest, GenerationResult
from cheer_chat.infrastructure.logging.logger import logger
from cheer_chat.prompts import build_prompt, load_system_prompt
from cheer_chat.providers.base import InferenceClient
from cheer_chat.providers.registry import get_model_config


@dataclass
class AgentConfig:
    provider: str
    model: str
    context_window: int = 3  # 拼进 prompt 的最近用户消息条数
    persona: str = "companion"
    locale: str = "en"


@dataclass
class ChatReply:
    text: str
    turn: ConversationTurn
    trace_id: str


class CompanionAgent:
    def __init__(
        self,
        store: ConversationStore,
        provider_client: InferenceClient,
        config: Optional[AgentConfig] = None,
    ):
        self._store = store
        self._provider_client = provider_client
        self._config = config or AgentConfig(
            provider=settings.default_provider,
            model=settings.default_model,
            context_window=settings.context_window,
        )

    @property
    def config(self) -> AgentConfig:
        return self._config

    def reply(self, user_id: Any, message: Any, turn_id: Optional[str] = None) -> ChatReply:
        """处理一条用户消息并返回模型回复。

        Args:
            user_id: 客户端生成的关联标识（未认证）
            message: 用户输入
            turn_id: 客户端提供的消息 ID（可选），用于让写入幂等

        Returns:
            ChatReply，text 已去除首尾空白

        Raises:
            ValidationError: 必填字段缺失，此时不会产生任何副作用
            UpstreamError: 推理服务调用失败，不会写入存储
            PersistenceError: 模型已回复但写入失败
        """
        start_time = time.time()
        log_ctx: Dict[str, Any] = {"trace_id": f"tr-{uuid4().hex}"}

        self._validate(user_id, message, log_ctx)
        user_id = user_id.strip()
        log_ctx["user_id"] = user_id

        stage = "context"
        try:
            history = self._fetch_context(user_id, log_ctx)

            stage = "prompt"
            system_prompt = load_system_prompt(self._config.persona, self._config.locale)
            prompt = build_prompt(system_prompt, history, message)

            stage = "model"
            result = self._invoke_model(prompt, log_ctx)

            stage = "persist"
            turn = self._store.append(user_id, message, turn_id=turn_id)
            self._log(logging.INFO, "Stored user turn", log_ctx, turn_id=turn.id)
        except BusinessError as e:
            self._log(logging.ERROR, "Chat step failed", log_ctx, stage=stage, code=e.code, error=e.message)
            raise
        except Exception as e:
            logger.exception("Chat step failed", extra={"extra": {**log_ctx, "stage": stage, "error": str(e)}})
            raise

        text = result.generated_text.strip()
        self._log(
            logging.INFO,
            "Completed chat step",
            log_ctx,
            elapsed_seconds=round(time.time() - start_time, 2),
            reply_chars=len(text),
        )
        return ChatReply(text=text, turn=turn, trace_id=log_ctx["trace_id"])

    def _validate(self, user_id: Any, message: Any, log_ctx: Dict[str, Any]) -> None:
        missing = []
        if not isinstance(message, str) or not message.strip():
            missing.append("message")
        if not isinstance(user_id, str) or not user_id.strip():
            missing.append("userId")
        if missing:
            self._log(logging.WARNING, "Rejected chat request", log_ctx, missing=missing)
            raise ValidationError(code="MISSING_FIELDS", message="Missing required fields", fields=missing)

    def _fetch_context(self, user_id: str, log_ctx: Dict[str, Any]) -> List[str]:
        """返回按时间正序排列的历史消息文本。"""
        recent = self._store.find_recent(user_id, self._config.context_window)
        self._log(logging.INFO, "Fetched context", log_ctx, turns=len(recent), limit=self._config.context_window)
        # store 返回最新在前，prompt 里需要最早在前
        return [t.message for t in reversed(recent)]

    def _invoke_model(self, prompt: str, log_ctx: Dict[str, Any]) -> GenerationResult:
        model_cfg = get_model_config(self._config.provider, self._config.model)
        req = GenerationRequest(
            provider=self._config.provider,
            model=self._config.model,
            prompt=prompt,
            params=model_cfg.params,
        )
        self._log(
            logging.INFO,
            "Calling provider",
            log_ctx,
            provider=self._config.provider,
            model=self._config.model,
            prompt_chars=len(prompt),
        )
        return self._provider_client.generate(req)

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
