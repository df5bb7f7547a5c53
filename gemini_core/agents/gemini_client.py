"""Gemini 客户端门面。

实现单次生成、流式生成、聊天会话状态机、本地会话日志、
函数调用以及文件接口透传。所有出站调用都经过 Transport。

会话状态：
- Uninitialized: 没有会话句柄，本地日志为空（或已被 reset 清空）。
- Active: start_session() 之后，持有 ActiveSession 句柄。
"""

import asyncio
import json
import logging
from dataclasses import fields as dataclass_fields, replace
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Sequence, Tuple, Union

from gemini_core.config.settings import settings
from gemini_core.domain.conversation import ConversationLog
from gemini_core.domain.exceptions import (
    ConfigurationError,
    GenerationError,
    SessionInitError,
    SessionNotStartedError,
)
from gemini_core.domain.models import (
    ClientConfig,
    Content,
    ConversationRecord,
    GeneratedResult,
    Message,
    Prompt,
    StreamChunk,
    UploadedFile,
)
from gemini_core.infrastructure.logging.logger import ClientLogger, client_logger
from gemini_core.providers import create_transport
from gemini_core.providers.base import Transport
from gemini_core.providers.chat_session import NO_SESSION, ActiveSession, ChatSession
from gemini_core.providers.gemini_transport import (
    build_contents,
    extract_text,
    message_parts,
    parse_response,
)
from gemini_core.tools.definitions import FUNCTION_CALLING_MODES, FunctionCallingMode, FunctionDef


# 带系统提示词开启会话时，模型一侧的固定确认语
ACKNOWLEDGMENT = "Ready."

CONNECTION_TEST_PROMPT = "Hello! This is a connection test."

FunctionDeclaration = Union[FunctionDef, Dict[str, Any]]
TransportFactory = Callable[[ClientConfig], Transport]

_CONFIG_FIELDS = {f.name for f in dataclass_fields(ClientConfig)}


class _StreamHandle:
    """正在持有会话锁的流式调用。paused 为 True 表示控制权在消费方手里。"""

    def __init__(self) -> None:
        self.stream: Optional[AsyncIterator[StreamChunk]] = None
        self.paused = False


class GeminiClient:
    def __init__(self, config: ClientConfig, transport_factory: TransportFactory = create_transport):
        self._transport_factory = transport_factory
        self._config: ClientConfig = config
        self._transport: Optional[Transport] = None
        self._history = ConversationLog()
        self._session: ChatSession = NO_SESSION
        # 会话类调用逐个执行，避免并发 send 打乱日志顺序
        self._session_lock = asyncio.Lock()
        # start_session / reset 时递增，用于丢弃已过期调用的回写
        self._epoch = 0
        self._open_stream: Optional[_StreamHandle] = None
        self._logger: ClientLogger = client_logger()
        self.initialize(config)

    @classmethod
    def from_settings(cls, cfg=settings, **overrides: Any) -> "GeminiClient":
        """用全局配置中的默认值构造客户端，overrides 覆盖对应字段。"""

        config = ClientConfig(
            credential=cfg.gemini_api_key,
            model=cfg.gemini_model,
            temperature=cfg.gemini_temperature,
            top_p=cfg.gemini_top_p,
            top_k=cfg.gemini_top_k,
            max_output_tokens=cfg.gemini_max_output_tokens,
            backend_mode=cfg.gemini_backend_mode,
            project=cfg.gemini_project,
            location=cfg.gemini_location,
            protocol_version=cfg.gemini_api_version,
        )
        if overrides:
            config = replace(config, **overrides)
        return cls(config)

    # ---- 配置 ----

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def is_active(self) -> bool:
        return bool(self._session)

    def initialize(self, config: ClientConfig) -> None:
        """校验配置并重建 Transport；失败时保留原有配置与 Transport。

        会话处于 Active 时，后端上下文以空历史重建（不再重放系统提示词），
        本地日志原样保留。
        """

        transport = self._transport_factory(config)
        self._config = config
        self._transport = transport
        self._logger = client_logger(mode=config.backend_mode, model=config.model)
        if self._session:
            self._session = ActiveSession(transport, config)
        self._log(logging.INFO, "Gemini client initialized", {"session_active": self.is_active})

    def reconfigure(self, **changes: Any) -> None:
        """合并新字段并重新初始化，未给出的字段保持不变。"""

        unknown = set(changes) - _CONFIG_FIELDS
        if unknown:
            raise ConfigurationError(f"Unknown config fields: {sorted(unknown)}")
        self.initialize(replace(self._config, **changes))
        self._log(
            logging.INFO,
            "Gemini client reconfigured",
            {"fields": sorted(changes), "session_active": self.is_active},
        )

    # ---- 单次生成 ----

    async def generate(self, prompt: Prompt) -> GeneratedResult:
        """生成内容，不读写会话上下文。"""

        try:
            data = await self._transport.generate_content(
                self._config.model,
                build_contents(prompt),
                self._config.generation_config(),
            )
        except Exception as e:
            raise self._generation_error("generate", e) from e
        return parse_response(data)

    async def generate_stream(self, prompt: Prompt) -> AsyncIterator[StreamChunk]:
        """流式生成。

        每个后端帧产出一个 done=False 的块，流正常结束后再产出
        唯一的 StreamChunk("", done=True)。出错时直接抛 GenerationError，
        不会产出终止块。
        """

        contents = build_contents(prompt)
        try:
            async for frame in self._transport.stream_generate_content(
                self._config.model,
                contents,
                self._config.generation_config(),
            ):
                yield StreamChunk(text=extract_text(frame))
        except Exception as e:
            raise self._generation_error("generate_stream", e) from e
        yield StreamChunk(text="", done=True)

    # ---- 聊天会话 ----

    def start_session(self, system_prompt: Optional[str] = None, history: Optional[List[Content]] = None) -> None:
        """开启新会话，并清空上一会话的本地日志。

        给出 system_prompt 时，在种子历史最前面插入一条 user 记录（提示词本身）
        与一条 model 记录（固定确认语），本地日志也写入这两条。
        """

        seed: List[Content] = list(history or [])
        records: List[ConversationRecord] = []
        if system_prompt:
            seed = [
                {"role": "user", "parts": [{"text": system_prompt}]},
                {"role": "model", "parts": [{"text": ACKNOWLEDGMENT}]},
            ] + seed
            records = [
                ConversationRecord(role="user", content=system_prompt),
                ConversationRecord(role="model", content=ACKNOWLEDGMENT),
            ]
        if self._transport is None:
            raise SessionInitError("Transport is not initialized")
        try:
            session = ActiveSession(self._transport, self._config, seed)
        except SessionInitError:
            raise
        except Exception as e:
            raise SessionInitError(f"Failed to create chat session: {e}", cause=e) from e

        self._epoch += 1
        self._session = session
        self._history.clear()
        self._history.extend(records)
        self._log(
            logging.INFO,
            "Chat session started",
            {"seed_length": len(seed), "system_prompt": bool(system_prompt)},
        )

    async def send_message(self, message: Message) -> GeneratedResult:
        """在当前会话中发送一条消息。

        user 记录立即写入本地日志；调用失败时不回滚这条记录。
        """

        self._require_session()
        await self._close_abandoned_stream()
        async with self._session_lock:
            session = self._require_session()
            epoch = self._epoch
            parts = message_parts(message)
            self._history.append(self._user_record(message, parts))
            try:
                data = await session.send(parts)
            except Exception as e:
                raise self._generation_error("send_message", e) from e
            result = parse_response(data)
            if epoch == self._epoch:
                self._history.append(ConversationRecord(role="model", content=result.text))
            return result

    def send_message_stream(self, message: Message) -> AsyncIterator[StreamChunk]:
        """流式发送会话消息。

        流结束后把所有片段拼接成一条 model 记录写入本地日志，
        然后产出终止块；出错时不会写入 model 记录。

        会话锁在整个迭代期间持有。消费方中途不再拉取时，下一次
        send_message / send_message_stream 会先关闭这个流再继续，
        被关闭的流不写入 model 记录。
        """

        handle = _StreamHandle()
        handle.stream = self._stream_turn(message, handle)
        return handle.stream

    async def _stream_turn(self, message: Message, handle: _StreamHandle) -> AsyncIterator[StreamChunk]:
        self._require_session()
        await self._close_abandoned_stream()
        async with self._session_lock:
            self._open_stream = handle
            try:
                session = self._require_session()
                epoch = self._epoch
                parts = message_parts(message)
                self._history.append(self._user_record(message, parts))
                texts: List[str] = []
                try:
                    async for frame in session.send_stream(parts):
                        text = extract_text(frame)
                        texts.append(text)
                        handle.paused = True
                        yield StreamChunk(text=text)
                        handle.paused = False
                except Exception as e:
                    raise self._generation_error("send_message_stream", e) from e
                if epoch == self._epoch:
                    self._history.append(ConversationRecord(role="model", content="".join(texts)))
                handle.paused = True
                yield StreamChunk(text="", done=True)
            finally:
                handle.paused = False
                if self._open_stream is handle:
                    self._open_stream = None

    async def _close_abandoned_stream(self) -> None:
        """关闭停在 yield 处、仍持有会话锁的流，释放锁。"""

        handle = self._open_stream
        if handle is None or not handle.paused:
            return
        self._open_stream = None
        self._log(logging.INFO, "Closing abandoned message stream", {})
        await handle.stream.aclose()

    def reset(self) -> None:
        """清空本地日志并丢弃会话句柄，回到 Uninitialized。"""

        self._epoch += 1
        self._history.clear()
        self._session = NO_SESSION
        self._log(logging.INFO, "Conversation history cleared", {})

    clear_history = reset

    # ---- 函数调用 ----

    async def generate_with_functions(
        self,
        prompt: Prompt,
        declarations: Sequence[FunctionDeclaration],
        mode: FunctionCallingMode = "AUTO",
    ) -> GeneratedResult:
        """带函数声明的生成调用，只返回调用意图，不执行函数。"""

        mode_value = str(mode).upper()
        if mode_value not in FUNCTION_CALLING_MODES:
            raise ConfigurationError(f"Unknown function calling mode: {mode!r}")
        payloads = [d.to_payload() if isinstance(d, FunctionDef) else dict(d) for d in declarations]
        calling_config: Dict[str, Any] = {"mode": mode_value}
        if mode_value == "ANY":
            if not payloads:
                raise ConfigurationError("ANY function calling mode requires at least one declaration")
            calling_config["allowedFunctionNames"] = [p["name"] for p in payloads]
        try:
            data = await self._transport.generate_content(
                self._config.model,
                build_contents(prompt),
                self._config.generation_config(),
                tools=[{"functionDeclarations": payloads}] if payloads else None,
                tool_config={"functionCallingConfig": calling_config},
            )
        except Exception as e:
            raise self._generation_error("generate_with_functions", e) from e
        return parse_response(data)

    # ---- 文件接口 ----

    async def upload_file(self, path: str, mime_type: str) -> UploadedFile:
        try:
            uploaded = await self._transport.upload_file(path, mime_type)
        except ConfigurationError:
            raise
        except Exception as e:
            raise self._generation_error("upload_file", e) from e
        self._log(logging.INFO, "File uploaded", {"file": uploaded.name, "mime_type": mime_type})
        return uploaded

    async def list_files(self) -> List[UploadedFile]:
        try:
            return await self._transport.list_files()
        except ConfigurationError:
            raise
        except Exception as e:
            raise self._generation_error("list_files", e) from e

    # ---- 查询 ----

    def get_history(self) -> Tuple[ConversationRecord, ...]:
        return self._history.snapshot()

    def get_model_info(self) -> Dict[str, Any]:
        return {"name": self._config.model, "config": self._config.public_dict()}

    async def test_connection(self) -> bool:
        """发送一条测试消息，能拿到非空文本即视为可用。"""

        try:
            result = await self.generate(CONNECTION_TEST_PROMPT)
        except GenerationError as e:
            self._log(logging.ERROR, "Gemini connection test failed", {"error": e.message})
            return False
        return len(result.text) > 0

    # ---- 辅助方法 ----

    def _require_session(self) -> ActiveSession:
        if not self._session:
            raise SessionNotStartedError()
        return self._session

    @staticmethod
    def _user_record(message: Message, parts: List[Dict[str, Any]]) -> ConversationRecord:
        if isinstance(message, str):
            return ConversationRecord(role="user", content=message)
        return ConversationRecord(
            role="user",
            content=json.dumps(parts, ensure_ascii=False),
            parts=parts,
        )

    def _generation_error(self, operation: str, cause: Exception) -> GenerationError:
        self._log(
            logging.ERROR,
            "Gemini call failed",
            {"operation": operation},
            error=str(cause),
            error_type=type(cause).__name__,
        )
        return GenerationError(operation, cause, model=self._config.model)

    def _log(self, level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        self._logger.log(level, message, extra={"extra": payload})
