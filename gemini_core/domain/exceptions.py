"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于调用方做统一捕获与用户提示。

分两层：
- 传输层：NetworkError / ApiError / RateLimitError，由 providers 抛出。
- 客户端层：ConfigurationError / SessionInitError / SessionNotStartedError /
  GenerationError，由 GeminiClient 抛出；底层异常保存在 cause 字段，
  不会被格式化进字符串后丢弃。
"""

from typing import Optional


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "GENERATION_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 operation、provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(BusinessError):
    """后端返回非 2xx/429 错误时抛出。"""


class RateLimitError(BusinessError):
    """后端限流错误，重试/退避策略由调用方决定。"""


class ConfigurationError(BusinessError):
    """凭证缺失、后端模式或其坐标（project/location）无效。"""

    def __init__(self, message: str, **extra):
        super().__init__(code="CONFIGURATION_ERROR", message=message, **extra)


class SessionInitError(BusinessError):
    """无法创建聊天会话。"""

    def __init__(self, message: str, cause: Optional[BaseException] = None, **extra):
        super().__init__(code="SESSION_INIT_ERROR", message=message, http_status=500, **extra)
        self.cause = cause


class SessionNotStartedError(BusinessError):
    """在未调用 start_session() 的情况下发送会话消息。"""

    def __init__(self, message: str = "Chat session not started, call start_session() first"):
        super().__init__(code="SESSION_NOT_STARTED", message=message, http_status=409)


class GenerationError(BusinessError):
    """一次生成调用（普通或流式）失败。

    Attributes:
        operation: 失败的客户端操作名，如 "generate"、"send_message_stream"。
        cause: 原始异常对象。
    """

    def __init__(self, operation: str, cause: BaseException, **extra):
        message = getattr(cause, "message", None) or str(cause)
        http_status = getattr(cause, "http_status", 502)
        super().__init__(
            code="GENERATION_ERROR",
            message=message,
            http_status=http_status,
            operation=operation,
            **extra,
        )
        self.operation = operation
        self.cause = cause
