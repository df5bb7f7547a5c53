"""后端集成层。

该包下的模块负责：
- 定义 Transport 抽象接口 (base)。
- 维护后端模式与端点配置 (registry)。
- 提供 REST 传输实现 (gemini_transport) 与会话句柄 (chat_session)。
"""

from gemini_core.config.settings import settings
from gemini_core.domain.models import ClientConfig
from gemini_core.providers.base import Transport
from gemini_core.providers.gemini_transport import GeminiTransport


def create_transport(config: ClientConfig) -> Transport:
    """根据配置中的后端模式创建 Transport，配置无效时抛 ConfigurationError。"""

    return GeminiTransport(config, settings)
