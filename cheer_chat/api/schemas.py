from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    """POST 请求体。字段缺失时不在这里报错，交给 Agent 统一校验。"""

    model_config = ConfigDict(extra="ignore")

    message: Optional[str] = None
    user_id: Optional[str] = Field(default=None, alias="userId")
    turn_id: Optional[str] = Field(default=None, alias="turnId", max_length=64)


class ChatResponse(BaseModel):
    text: str


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
