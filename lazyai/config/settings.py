"""配置管理模块。

支持从初始化参数、环境变量（前缀 LAZYAI_）、.env 以及 ~/.lazyai.yml 的
settings 段加载配置。Settings 由 CLI 通过 load_settings() 构建一次，
再显式传给各个组件，不提供模块级单例。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CONFIG_FILE = Path.home() / ".lazyai.yml"


def _config_file_path(explicit: Optional[Union[str, Path]] = None) -> Path:
    if explicit:
        return Path(explicit).expanduser()
    env_path = os.getenv("LAZYAI_CONFIG_FILE")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_FILE


def _load_settings_from_yaml(explicit: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """读取配置文件中的 settings 段（若存在）。

    凭证段（skydeck / pivotalTracker）由 YamlConfigStore 负责，这里不处理。
    """
    path = _config_file_path(explicit)
    try:
        if not path.exists():
            return {}
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"Failed to read config file {path}: {exc}")
        return {}
    if not isinstance(data, dict):
        warnings.warn(f"Config file {path} is not a mapping, ignored")
        return {}
    section = data.get("settings") or {}
    if not isinstance(section, dict):
        warnings.warn(f"'settings' section in {path} is not a mapping, ignored")
        return {}
    return section


class Settings(BaseSettings):
    """lazyai 运行时配置。"""

    # ---- 配置文件 ----
    config_file: Path = Field(
        default_factory=lambda: _config_file_path(),
        description="保存凭证与会话 ID 的 YAML 文件",
    )

    # ---- SkyDeck 上游 ----
    skydeck_base_url: str = Field(
        default="https://admin.skydeck.ai",
        description="SkyDeck API 基础URL",
    )
    skydeck_referrer_url: str = Field(
        default="https://eastagile.skydeck.ai/",
        description="固定的 Referer 头，上游会拒绝不匹配的请求",
    )
    skydeck_web_url: str = Field(
        default="https://eastagile.skydeck.ai",
        description="Web UI 地址，用于 --open 打开会话页面",
    )
    skydeck_model_id: int = Field(default=4094, description="chat_v2 使用的模型 ID")
    streaming_contract: Literal["query", "json"] = Field(
        default="query",
        description="流式接口的请求形态：query=GET+查询参数，json=POST+JSON 体",
    )
    stream_format: Literal["raw", "envelope"] = Field(
        default="raw",
        description="流式接口的响应形态：raw=原始文本流，envelope=含 messages 数组的 JSON",
    )
    attach_refresh_cookie: bool = Field(
        default=False,
        description=(
            "是否在 chat_v2 与 streaming 请求上同时携带 eastagile_refresh cookie。"
            "上游文档中的约定是两个 cookie 都发送；默认只发 access cookie，"
            "若上游拒绝请求（例如一直返回 401），把它设为 true"
        ),
    )
    http_timeout: float = Field(default=30.0, ge=1.0, description="HTTP 超时时间（秒）")

    # ---- Pivotal Tracker ----
    pivotal_base_url: str = Field(
        default="https://www.pivotaltracker.com/services/v5",
        description="Pivotal Tracker API 基础URL",
    )

    # ---- 日志 ----
    log_dir: str = Field(
        default_factory=lambda: str(Path.home() / ".lazyai" / "logs"),
        description="日志目录",
    )
    log_level: str = Field(default="INFO", description="日志级别")
    log_redact_content: bool = Field(default=False, description="是否截断日志内容")

    model_config = SettingsConfigDict(
        env_prefix="LAZYAI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("skydeck_base_url", "skydeck_web_url", "pivotal_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v!r}")
        return level

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        def yaml_config_source() -> Dict[str, Any]:
            init_kwargs = getattr(init_settings, "init_kwargs", {}) or {}
            return _load_settings_from_yaml(init_kwargs.get("config_file"))

        return (
            init_settings,
            env_settings,
            dotenv_settings,
            yaml_config_source,
            file_secret_settings,
        )


def load_settings(config_file: Optional[Union[str, Path]] = None, **overrides: Any) -> Settings:
    """构建 Settings；config_file 为空时按 LAZYAI_CONFIG_FILE / ~/.lazyai.yml 查找。"""

    if config_file:
        overrides["config_file"] = Path(config_file).expanduser()
    return Settings(**overrides)
