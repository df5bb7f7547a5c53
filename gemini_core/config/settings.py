"""配置管理模块。

支持从 .env、config.yaml 以及环境变量加载配置。
这里只保存“进程级默认值”，单个客户端实例的参数由 ClientConfig 承载。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("GEMINI_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- 凭证 ----
    gemini_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("gemini_api_key", "google_api_key"),
        description="Gemini Developer API 密钥，也接受 GOOGLE_API_KEY",
    )

    # ---- 默认模型与生成参数 ----
    gemini_model: str = Field(default="gemini-2.0-flash-001", description="默认模型 ID")
    gemini_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    gemini_top_p: float = Field(default=0.8, ge=0.0, le=1.0)
    gemini_top_k: int = Field(default=40, ge=1)
    gemini_max_output_tokens: int = Field(default=8192, ge=1)

    # ---- 后端选择 ----
    gemini_backend_mode: Literal["direct", "managed"] = Field(
        default="direct",
        description="direct = Gemini Developer API，managed = Vertex AI",
    )
    gemini_project: Optional[str] = Field(default=None, description="Vertex AI 项目 ID")
    gemini_location: str = Field(default="us-central1", description="Vertex AI 区域")
    gemini_api_version: str = Field(default="v1beta", description="协议版本标签")
    gemini_base_url: Optional[str] = Field(
        default=None,
        description="覆盖 Developer API 的基础 URL（测试或代理场景）",
    )

    # ---- 通用 ----
    http_timeout: float = Field(default=60.0, ge=1.0, description="HTTP 超时时间（秒）")
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("gemini_api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


settings = Settings()
