"""Gemini REST 传输层。

本模块负责：

1. 根据 ClientConfig 绑定后端模式（direct / managed）与认证方式。
2. 把 contents / generationConfig / tools 组装为 REST 请求。
3. 调用 HTTP 接口并把网络/API 异常转换为统一的业务异常。
4. 把响应 JSON 解析为统一的 GeneratedResult（含函数调用意图）。

端点：
- 非流式: {models_root}/{model}:generateContent
- 流式:   {models_root}/{model}:streamGenerateContent?alt=sse
- 文件:   {upload_url}/{version}/files、{base_url}/{version}/files
"""

import json
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from gemini_core.config.settings import settings
from gemini_core.domain.exceptions import (
    ApiError,
    ConfigurationError,
    NetworkError,
    RateLimitError,
)
from gemini_core.domain.models import (
    BACKEND_MODES,
    ClientConfig,
    Content,
    GeneratedResult,
    Message,
    Part,
    Prompt,
    UploadedFile,
    UsageStats,
)
from gemini_core.providers.registry import BackendConfig, get_backend_config
from gemini_core.tools.definitions import FunctionCall


FILES_PAGE_SIZE = 100


def validate_config(config: ClientConfig) -> None:
    """校验凭证与模式相关的坐标，失败抛 ConfigurationError。"""

    if config.backend_mode not in BACKEND_MODES:
        raise ConfigurationError(f"Unknown backend mode: {config.backend_mode!r}")
    if config.backend_mode == "direct" and not config.credential:
        raise ConfigurationError("An API key is required for the Gemini Developer API")
    if config.backend_mode == "managed":
        if not config.project:
            raise ConfigurationError("A project is required in managed mode")
        if not config.location:
            raise ConfigurationError("A location is required in managed mode")


class GeminiTransport:
    """绑定到某个后端模式的 REST 传输对象。

    每次调用新建一个 httpx.AsyncClient，对象本身不持有连接，
    重新配置时直接整体替换即可。
    """

    def __init__(self, config: ClientConfig, cfg=settings):
        validate_config(config)
        self._config = config
        self._settings = cfg
        self._backend: BackendConfig = get_backend_config(config.backend_mode)
        self.mode = self._backend.name

    # ---- 非流式 ----

    async def generate_content(
        self,
        model: str,
        contents: List[Content],
        generation_config: Dict[str, Any],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_config: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload = self._build_payload(contents, generation_config, tools, tool_config)
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = await client.post(
                    self._model_url(model, "generateContent"),
                    json=payload,
                    headers=self._headers(),
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e))
        self._raise_for_status(resp.status_code, resp.text)
        return resp.json()

    # ---- 流式 ----

    async def stream_generate_content(
        self,
        model: str,
        contents: List[Content],
        generation_config: Dict[str, Any],
    ) -> AsyncIterator[Dict[str, Any]]:
        """逐帧产出流式响应 JSON，后端关闭连接即结束。"""

        payload = self._build_payload(contents, generation_config)
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                async with client.stream(
                    "POST",
                    self._model_url(model, "streamGenerateContent"),
                    params={"alt": "sse"},
                    json=payload,
                    headers=self._headers(),
                ) as resp:
                    if resp.status_code >= 400:
                        body = await resp.aread()
                        self._raise_for_status(resp.status_code, body.decode("utf-8", errors="replace"))
                    async for line in resp.aiter_lines():
                        if not line:
                            continue
                        data_str = line
                        if data_str.startswith("data:"):
                            data_str = data_str[5:].strip()
                        else:
                            data_str = data_str.strip()
                        if not data_str or data_str == "[DONE]":
                            continue
                        try:
                            frame = json.loads(data_str)
                        except json.JSONDecodeError:
                            continue
                        if isinstance(frame, dict) and "error" in frame:
                            error = frame["error"] or {}
                            raise ApiError(
                                code="API_ERROR",
                                message=error.get("message") or data_str,
                                http_status=error.get("code") or 500,
                            )
                        yield frame
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e))

    # ---- 文件 ----

    async def upload_file(self, path: str, mime_type: str) -> UploadedFile:
        upload_url = self._require_files_api()
        content = Path(path).read_bytes()
        headers = self._headers()
        headers.update(
            {
                "X-Goog-Upload-Protocol": "raw",
                "Content-Type": mime_type,
            }
        )
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = await client.post(
                    f"{upload_url}/{self._config.protocol_version}/files",
                    content=content,
                    headers=headers,
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e))
        self._raise_for_status(resp.status_code, resp.text)
        data = resp.json()
        return parse_file(data.get("file") or data)

    async def list_files(self) -> List[UploadedFile]:
        self._require_files_api()
        url = f"{self._base_url()}/{self._config.protocol_version}/files"
        files: List[UploadedFile] = []
        page_token: Optional[str] = None
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                while True:
                    params: Dict[str, Any] = {"pageSize": FILES_PAGE_SIZE}
                    if page_token:
                        params["pageToken"] = page_token
                    resp = await client.get(url, params=params, headers=self._headers())
                    self._raise_for_status(resp.status_code, resp.text)
                    data = resp.json()
                    files.extend(parse_file(item) for item in data.get("files") or [])
                    page_token = data.get("nextPageToken")
                    if not page_token:
                        break
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e))
        return files

    # ---- 辅助方法 ----

    def _base_url(self) -> str:
        if self.mode == "direct":
            return getattr(self._settings, "gemini_base_url", None) or self._backend.base_url
        return self._backend.base_url.format(location=self._config.location)

    def _model_url(self, model: str, method: str) -> str:
        if self.mode == "direct" and getattr(self._settings, "gemini_base_url", None):
            root = f"{self._settings.gemini_base_url}/{self._config.protocol_version}/models"
        else:
            root = self._backend.models_root(
                self._config.protocol_version,
                project=self._config.project,
                location=self._config.location,
            )
        return f"{root}/{model}:{method}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.mode == "direct":
            headers["x-goog-api-key"] = self._config.credential or ""
        elif self._config.credential:
            headers["Authorization"] = f"Bearer {self._config.credential}"
        return headers

    def _require_files_api(self) -> str:
        if not self._backend.upload_url:
            raise ConfigurationError(f"Files API is not available in {self.mode} mode")
        if self.mode == "direct" and getattr(self._settings, "gemini_base_url", None):
            return f"{self._settings.gemini_base_url}/upload"
        return self._backend.upload_url

    @staticmethod
    def _build_payload(
        contents: List[Content],
        generation_config: Dict[str, Any],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_config: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": generation_config,
        }
        if tools:
            payload["tools"] = tools
        if tool_config:
            payload["toolConfig"] = tool_config
        return payload

    @staticmethod
    def _raise_for_status(status_code: int, text: str) -> None:
        if status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message="Gemini rate limit", http_status=429)
        if status_code >= 400:
            raise ApiError(code="API_ERROR", message=_error_message(text), http_status=status_code)


def _error_message(text: str) -> str:
    """从 {"error": {"message": ...}} 中提取错误信息，失败时返回原文。"""

    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return text
    if isinstance(data, list) and data:
        data = data[0]
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
    return text


# ---- 请求内容构造 ----


def build_contents(prompt: Prompt) -> List[Content]:
    """把纯文本、content 列表或 part 列表统一为 contents。"""

    if isinstance(prompt, str):
        return [{"role": "user", "parts": [{"text": prompt}]}]
    items = list(prompt)
    if items and all(isinstance(item, dict) and "parts" in item for item in items):
        return items
    return [{"role": "user", "parts": items}]


def message_parts(message: Message) -> List[Part]:
    if isinstance(message, str):
        return [{"text": message}]
    return list(message)


# ---- 响应解析 ----


def extract_text(data: Dict[str, Any]) -> str:
    """拼接首个候选中所有文本 part（跳过 thought part）。"""

    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(
        part.get("text") or ""
        for part in parts
        if isinstance(part, dict) and not part.get("thought")
    )


def extract_content(data: Dict[str, Any]) -> Content:
    """返回首个候选的 content，用于写回会话上下文。"""

    candidates = data.get("candidates") or []
    content = (candidates[0].get("content") if candidates else None) or {}
    return {"role": "model", "parts": content.get("parts") or []}


def parse_response(data: Dict[str, Any]) -> GeneratedResult:
    """将 generateContent 的原始响应 JSON 解析为 GeneratedResult。"""

    candidates = data.get("candidates") or []
    first = candidates[0] if candidates else {}
    function_calls: List[FunctionCall] = []
    for idx, part in enumerate((first.get("content") or {}).get("parts") or []):
        call = part.get("functionCall") if isinstance(part, dict) else None
        if not call:
            continue
        function_calls.append(
            FunctionCall(
                id=call.get("id") or f"function_call_{idx}",
                name=call.get("name") or "",
                arguments=call.get("args") or {},
            )
        )
    usage = None
    usage_raw = data.get("usageMetadata") or {}
    if usage_raw:
        usage = UsageStats(
            prompt_tokens=usage_raw.get("promptTokenCount", 0),
            completion_tokens=usage_raw.get("candidatesTokenCount", 0),
            total_tokens=usage_raw.get("totalTokenCount", 0),
        )
    return GeneratedResult(
        text=extract_text(data),
        finish_reason=first.get("finishReason"),
        usage=usage,
        function_calls=function_calls,
        raw=data,
    )


def parse_file(data: Dict[str, Any]) -> UploadedFile:
    size = data.get("sizeBytes")
    return UploadedFile(
        name=data.get("name") or "",
        uri=data.get("uri"),
        mime_type=data.get("mimeType"),
        display_name=data.get("displayName"),
        size_bytes=int(size) if size is not None else None,
        state=data.get("state"),
        raw=data,
    )
