"""配置管理模块。

支持从环境变量、.env 以及 config.yaml 加载配置，优先级依次降低。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CLIENT_ID = "3c19e780-1d86-4317-800f-cc91904b4a25"
DEFAULT_HOME = Path.home() / ".copilot-cli"


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("COPILOT_CLI_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        DEFAULT_HOME / "config.yaml",
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
    """CLI 配置设置。"""

    # ---- Microsoft Entra / MSAL ----
    client_id: str = Field(default=DEFAULT_CLIENT_ID, description="Entra 公共客户端应用 ID")
    tenant_id: str = Field(default="common", description="租户 ID，多租户使用 common")

    # ---- Copilot API ----
    graph_base_url: str = Field(
        default="https://graph.microsoft.com/beta",
        description="Microsoft Graph API 基础URL",
    )
    http_timeout: float = Field(default=30.0, ge=1.0, description="HTTP 超时时间（秒）")
    stream_read_timeout: float = Field(
        default=300.0,
        ge=1.0,
        description="流式响应两次读取之间允许的最长等待（秒）",
    )
    time_zone: Optional[str] = Field(
        default=None,
        description="覆盖本机时区，作为 locationHint 发送",
    )

    # ---- Token 缓存 ----
    token_cache_dir: str = Field(default=str(DEFAULT_HOME), description="Token 缓存目录")
    token_cache_file: str = Field(default="msal_token_cache.bin", description="Token 缓存文件名")
    token_cache_plaintext_fallback: bool = Field(
        default=True,
        description="系统密钥链不可用时是否退回明文文件缓存",
    )

    # ---- 日志 ----
    log_dir: str = Field(default=str(DEFAULT_HOME / "logs"), description="日志目录")
    log_level: str = Field(default="INFO", description="日志级别")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    model_config = SettingsConfigDict(
        env_prefix="COPILOT_CLI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def authority(self) -> str:
        return f"https://login.microsoftonline.com/{self.tenant_id}"

    @property
    def token_cache_path(self) -> Path:
        return Path(self.token_cache_dir).expanduser() / self.token_cache_file

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("graph_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

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
