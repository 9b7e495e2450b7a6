"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 API 层统一捕获并映射为 HTTP 响应。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "STORE_READ_ERROR"）。
        message: 可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 trace_id、provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


class UpstreamError(BusinessError):
    """推理服务调用失败的基类，不做重试。"""

    def __init__(self, code: str, message: str, http_status: int = 500, **extra):
        super().__init__(code=code, message=message, http_status=http_status, **extra)


class NetworkError(UpstreamError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(UpstreamError):
    """推理服务返回非 2xx/429 错误，或响应体无法解析。"""


class RateLimitError(UpstreamError):
    """Provider 限流（配额耗尽）。"""


class StoreError(BusinessError):
    """会话存储读写失败。"""

    def __init__(self, code: str, message: str, http_status: int = 500, **extra):
        super().__init__(code=code, message=message, http_status=http_status, **extra)


class PersistenceError(StoreError):
    """模型已成功回复、但用户消息写入存储失败。"""
