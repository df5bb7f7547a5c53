"""后端模式与端点配置。

本模块把“后端模式”（direct / managed）与具体的 REST 端点解耦：

- direct: Gemini Developer API，使用 API key 认证。
- managed: Vertex AI 托管平台，按 project/location 定位，可选 Bearer token。

上层只关心模式名，具体 URL 如何拼接集中在这里，便于后续切换或代理。"""

from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass
class BackendConfig:
    """某个后端模式的整体配置。"""

    name: str
    base_url: str
    # Files API 上传端点；managed 模式不提供
    upload_url: Optional[str] = None

    def models_root(self, version: str, project: Optional[str] = None, location: Optional[str] = None) -> str:
        """返回形如 .../models 的模型资源根路径。"""

        base = self.base_url.format(location=location or "")
        if self.name == "managed":
            return f"{base}/{version}/projects/{project}/locations/{location}/publishers/google/models"
        return f"{base}/{version}/models"


DIRECT_CONFIG = BackendConfig(
    name="direct",
    base_url="https://generativelanguage.googleapis.com",
    upload_url="https://generativelanguage.googleapis.com/upload",
)

MANAGED_CONFIG = BackendConfig(
    name="managed",
    base_url="https://{location}-aiplatform.googleapis.com",
)


BACKEND_REGISTRY: Mapping[str, BackendConfig] = {
    "direct": DIRECT_CONFIG,
    "managed": MANAGED_CONFIG,
}


def get_backend_config(name: str) -> BackendConfig:
    """根据名称获取 BackendConfig，名称不区分大小写。"""

    key = name.lower()
    for k, cfg in BACKEND_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown backend mode: {name!r}")
