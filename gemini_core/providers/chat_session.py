"""后端对话状态句柄。

Gemini 的 REST 接口本身是无状态的，多轮上下文需要每次随请求回放。
ActiveSession 保存这份“后端视角”的上下文（种子历史 + 已完成的轮次），
对外只暴露 send / send_stream 两个能力；NoSession 表示没有会话。

注意：后端上下文与 GeminiClient 的本地 ConversationLog 是两份独立状态，
重新配置时前者会被丢弃重建，后者保留。
"""

from typing import Any, AsyncIterator, Dict, List, Optional, Union

from gemini_core.domain.exceptions import SessionInitError
from gemini_core.domain.models import ClientConfig, Content, Part
from gemini_core.providers.base import Transport
from gemini_core.providers.gemini_transport import extract_content, extract_text


class NoSession:
    """未初始化状态的占位句柄。"""

    active = False

    def __bool__(self) -> bool:
        return False


NO_SESSION = NoSession()


class ActiveSession:
    """已建立的聊天会话。

    - send(parts): 发送一轮消息，成功后把 user/model 两条 content 写入上下文。
    - send_stream(parts): 流式发送，逐帧产出响应 JSON，流正常结束后才写入上下文。
    失败的轮次不会进入上下文。
    """

    active = True

    def __init__(self, transport: Transport, config: ClientConfig, history: Optional[List[Content]] = None):
        self._transport = transport
        self._model = config.model
        self._generation_config = config.generation_config()
        self._history: List[Content] = validate_history(history or [])

    @property
    def history(self) -> List[Content]:
        return list(self._history)

    async def send(self, parts: List[Part]) -> Dict[str, Any]:
        user_content = {"role": "user", "parts": parts}
        data = await self._transport.generate_content(
            self._model,
            self._history + [user_content],
            self._generation_config,
        )
        self._history.extend([user_content, extract_content(data)])
        return data

    async def send_stream(self, parts: List[Part]) -> AsyncIterator[Dict[str, Any]]:
        user_content = {"role": "user", "parts": parts}
        texts: List[str] = []
        async for frame in self._transport.stream_generate_content(
            self._model,
            self._history + [user_content],
            self._generation_config,
        ):
            texts.append(extract_text(frame))
            yield frame
        model_content = {"role": "model", "parts": [{"text": "".join(texts)}]}
        self._history.extend([user_content, model_content])


ChatSession = Union[NoSession, ActiveSession]


def validate_history(history: List[Content]) -> List[Content]:
    """校验种子历史，每条必须是 user/model 角色且带 parts 列表。"""

    validated: List[Content] = []
    for idx, item in enumerate(history):
        if not isinstance(item, dict):
            raise SessionInitError(f"History item {idx} is not a mapping")
        role = item.get("role")
        if role not in ("user", "model"):
            raise SessionInitError(f"History item {idx} has invalid role {role!r}")
        parts = item.get("parts")
        if not isinstance(parts, list):
            raise SessionInitError(f"History item {idx} has no parts list")
        validated.append({"role": role, "parts": list(parts)})
    return validated
