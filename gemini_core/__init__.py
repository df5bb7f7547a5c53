"""Gemini Core 顶层包。

该包提供 Gemini 生成式语言后端的有状态异步客户端，
包括配置加载、领域模型、REST 传输、聊天会话状态机、
流式响应消费与函数调用声明等能力。
"""

from gemini_core.agents.gemini_client import ACKNOWLEDGMENT, GeminiClient
from gemini_core.domain.models import ClientConfig, ConversationRecord, GeneratedResult, StreamChunk

__all__ = [
    "ACKNOWLEDGMENT",
    "ClientConfig",
    "ConversationRecord",
    "GeminiClient",
    "GeneratedResult",
    "StreamChunk",
]
