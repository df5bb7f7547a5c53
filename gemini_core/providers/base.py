"""Transport 抽象接口。

GeminiClient 不直接依赖 HTTP 细节，而是依赖此协议：

- 每种后端模式由同一个 GeminiTransport 按端点配置实现，测试里可替换为假对象。
- 负责：把 contents / generationConfig / tools 组装成请求，并返回原始响应 JSON。

响应 JSON 到 GeneratedResult 的解析由 providers.gemini_transport.parse_response 统一完成。
"""

from typing import Any, AsyncIterator, Dict, List, Optional, Protocol

from gemini_core.domain.models import Content, UploadedFile


class Transport(Protocol):
    """后端传输协议。

    实现者需要提供：
    - mode: 后端模式名，用于日志。
    - generate_content: 一次非流式调用，返回响应 JSON。
    - stream_generate_content: 流式调用，逐帧产出响应 JSON。
    """

    mode: str

    async def generate_content(
        self,
        model: str,
        contents: List[Content],
        generation_config: Dict[str, Any],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_config: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        ...

    def stream_generate_content(
        self,
        model: str,
        contents: List[Content],
        generation_config: Dict[str, Any],
    ) -> AsyncIterator[Dict[str, Any]]:
        ...

    async def upload_file(self, path: str, mime_type: str) -> UploadedFile:
        ...

    async def list_files(self) -> List[UploadedFile]:
        ...
