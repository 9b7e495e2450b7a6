"""HTTP 接口（FastAPI）。

只有一个聊天路由：
- POST: 成功 200 {"text"}；字段缺失 400 {"error"}；其余失败 500 {"error", "details"}。
- OPTIONS: 空响应体 + 跨域预检头，不触发任何业务逻辑。
"""

from typing import Any, Callable, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError as PydanticValidationError

from cheer_chat.agents.companion_agent import CompanionAgent
from cheer_chat.api.identity import ClientTokenIdentity, IdentityResolver
from cheer_chat.api.schemas import ChatRequest, ChatResponse, ErrorResponse
from cheer_chat.api.service import get_default_agent
from cheer_chat.config.settings import settings
from cheer_chat.domain.exceptions import BusinessError, ValidationError
from cheer_chat.infrastructure.logging.logger import logger

MISSING_FIELDS = "Missing required fields"
PROCESSING_FAILED = "Failed to process your request"
MAX_DETAILS_CHARS = 500

CORS_PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def _error_body(error: str, details: Optional[str] = None) -> Dict[str, Any]:
    return ErrorResponse(error=error, details=details).model_dump(exclude_none=True)


def _details(exc: Exception) -> str:
    raw = exc.message if isinstance(exc, BusinessError) else str(exc)
    clean = " ".join(str(raw or "").split())
    return clean[:MAX_DETAILS_CHARS] or "Unknown error"


def error_response(exc: Exception) -> JSONResponse:
    """把异常映射为两种固定的错误响应之一。"""
    if isinstance(exc, ValidationError) and exc.code == "MISSING_FIELDS":
        return JSONResponse(status_code=400, content=_error_body(MISSING_FIELDS))
    return JSONResponse(status_code=500, content=_error_body(PROCESSING_FAILED, _details(exc)))


def create_app(
    agent_factory: Callable[[], CompanionAgent] = get_default_agent,
    identity: Optional[IdentityResolver] = None,
) -> FastAPI:
    resolver = identity or ClientTokenIdentity()
    app = FastAPI(title="CheerChat", version="0.1.0")

    @app.post(settings.api_route)
    async def chat(request: Request) -> JSONResponse:
        try:
            payload = await request.json()
            if not isinstance(payload, dict):
                raise ValueError("request body must be a JSON object")
            req = ChatRequest.model_validate(payload)
        except (ValueError, PydanticValidationError) as e:
            logger.warning("Rejected malformed chat body", extra={"extra": {"error": str(e)[:200]}})
            return JSONResponse(status_code=400, content=_error_body(MISSING_FIELDS))

        # 字段缺失在构建 agent（建表、连库）之前就拒绝
        user_id = resolver.resolve(req)
        if not user_id or not (req.message or "").strip():
            logger.warning("Rejected chat request", extra={"extra": {
                "has_message": bool((req.message or "").strip()),
                "has_user_id": bool(user_id),
            }})
            return JSONResponse(status_code=400, content=_error_body(MISSING_FIELDS))

        try:
            agent = agent_factory()
            reply = await run_in_threadpool(
                agent.reply,
                user_id=user_id,
                message=req.message,
                turn_id=req.turn_id,
            )
        except Exception as e:
            logger.error("Chat API error", extra={"extra": {"error_type": type(e).__name__, "error": _details(e)}})
            return error_response(e)
        return JSONResponse(status_code=200, content=ChatResponse(text=reply.text).model_dump())

    @app.options(settings.api_route)
    def chat_preflight() -> Response:
        return Response(status_code=200, headers=CORS_PREFLIGHT_HEADERS)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()


def main() -> None:
    logger.info("Server starting", extra={"extra": {"host": settings.host, "port": settings.port}})
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
