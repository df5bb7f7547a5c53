"""统一的配置、对话与结果数据模型。

本模块定义了客户端内部共享的标准数据结构：

- ClientConfig: 单个客户端实例的不可变配置快照。
- ConversationRecord: 本地会话日志中的一条记录。
- StreamChunk: 流式响应的一个增量。
- GeneratedResult: 从后端响应解析出的统一结果。
- UploadedFile: 文件接口返回的句柄。

providers 负责在后端 JSON 和这些模型之间做转换。
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

from gemini_core.tools.definitions import FunctionCall


# 后端只接受 user / model 两种角色
Role = Literal["user", "model"]
BackendMode = Literal["direct", "managed"]
BACKEND_MODES = ("direct", "managed")

# 一个 part 形如 {"text": "..."} 或 {"inlineData": {...}}；
# 一条 content 形如 {"role": "user", "parts": [...]}
Part = Dict[str, Any]
Content = Dict[str, Any]
Prompt = Union[str, List[Content], List[Part]]
Message = Union[str, List[Part]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ClientConfig:
    """客户端配置快照。

    冻结的 dataclass：重新配置时通过 dataclasses.replace 整体替换，
    不会原地修改。credential 在 direct 模式下是 API key，
    在 managed 模式下（可选）作为 Bearer access token 发送。
    """

    credential: Optional[str] = None
    model: str = "gemini-2.0-flash-001"
    temperature: float = 0.7
    top_p: float = 0.8
    top_k: int = 40
    max_output_tokens: int = 8192
    backend_mode: BackendMode = "direct"
    project: Optional[str] = None
    location: Optional[str] = None
    protocol_version: str = "v1beta"

    def generation_config(self) -> Dict[str, Any]:
        """后端请求中的 generationConfig 字段。"""

        return {
            "temperature": self.temperature,
            "topP": self.top_p,
            "topK": self.top_k,
            "maxOutputTokens": self.max_output_tokens,
        }

    def public_dict(self) -> Dict[str, Any]:
        """不含凭证的配置字典，用于展示与日志。"""

        data = asdict(self)
        data.pop("credential", None)
        return data


@dataclass(frozen=True)
class ConversationRecord:
    """本地会话日志中的一条记录。

    - content: 纯文本；结构化消息保存其 JSON 序列化形式。
    - parts: 非文本消息的原始结构化内容。
    """

    role: Role
    content: str
    timestamp: datetime = field(default_factory=_utcnow)
    parts: Optional[List[Part]] = None


@dataclass(frozen=True)
class StreamChunk:
    """流式响应的增量。done=True 的终止块 text 恒为空。"""

    text: str
    done: bool = False


@dataclass
class UsageStats:
    """后端返回的 token 统计信息（统一格式）。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class GeneratedResult:
    """一次生成调用的统一结果。

    - text: 所有文本 part 拼接后的内容。
    - finish_reason: 首个候选的结束原因，如 "STOP"。
    - usage: 可选的 token 使用统计。
    - function_calls: 模型给出的函数调用意图，客户端不执行。
    - raw: 原始响应 JSON，用于调试。
    """

    text: str
    finish_reason: Optional[str] = None
    usage: Optional[UsageStats] = None
    function_calls: List[FunctionCall] = field(default_factory=list)
    raw: Optional[dict] = None


@dataclass
class UploadedFile:
    """文件接口返回的后端句柄。"""

    name: str
    uri: Optional[str] = None
    mime_type: Optional[str] = None
    display_name: Optional[str] = None
    size_bytes: Optional[int] = None
    state: Optional[str] = None
    raw: Optional[dict] = None
