"""请求方身份解析。

当前只有客户端自生成的 userId（浏览器 localStorage 中的随机 UUID），
服务端不做任何校验，它只是把消息归到同一段对话的关联键。
接口层只依赖 IdentityResolver，后续接入真实认证时替换实现即可。
"""

from typing import Optional, Protocol

from cheer_chat.api.schemas import ChatRequest


class IdentityResolver(Protocol):
    def resolve(self, req: ChatRequest) -> Optional[str]:
        ...


class ClientTokenIdentity:
    """直接信任请求体里的 userId。"""

    def resolve(self, req: ChatRequest) -> Optional[str]:
        if not isinstance(req.user_id, str):
            return None
        return req.user_id.strip() or None
