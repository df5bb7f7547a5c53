"""对外 API 服务模块。

提供简化的函数接口供上层应用（例如桌面壳的主进程）调用。
"""

from typing import Optional

from gemini_core.agents.gemini_client import GeminiClient
from gemini_core.config.settings import settings
from gemini_core.domain.exceptions import ConfigurationError
from gemini_core.infrastructure.logging.logger import logger


_client: Optional[GeminiClient] = None


def create_default_client(cfg=settings) -> Optional[GeminiClient]:
    """按全局配置创建客户端。

    direct 模式下没有配置 GEMINI_API_KEY / GOOGLE_API_KEY 时返回 None
    并记录告警，而不是抛出异常，方便上层在未配置时继续启动。
    """

    if cfg.gemini_backend_mode == "direct" and not cfg.gemini_api_key:
        logger.warning(
            "Gemini API key is not configured, set GEMINI_API_KEY or GOOGLE_API_KEY",
            extra={"extra": {"mode": cfg.gemini_backend_mode}},
        )
        return None
    try:
        return GeminiClient.from_settings(cfg)
    except ConfigurationError as e:
        logger.error(
            "Failed to initialize Gemini client",
            extra={"extra": {"code": e.code, "error": e.message}},
        )
        return None


def get_default_client() -> Optional[GeminiClient]:
    """获取默认客户端实例（单例），未配置时返回 None。"""
    global _client
    if _client is None:
        _client = create_default_client()
    return _client
