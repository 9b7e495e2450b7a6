"""配置管理模块。

支持从环境变量、.env 以及 config.yaml 加载配置，优先级依次降低。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Tuple, Type

import yaml
from pydantic import Field, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("CHEERCHAT_CONFIG_FILE")
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


class YamlConfigSource(PydanticBaseSettingsSource):
    """把 config.yaml 作为 pydantic-settings 的一个配置来源。"""

    def get_field_value(self, field: FieldInfo, field_name: str) -> Tuple[Any, str, bool]:
        return self._data().get(field_name), field_name, False

    def _data(self) -> Dict[str, Any]:
        if not hasattr(self, "_cached"):
            self._cached = _load_config_from_yaml()
        return self._cached

    def __call__(self) -> Dict[str, Any]:
        fields = self.settings_cls.model_fields
        return {k: v for k, v in self._data().items() if k in fields}


class CheerChatSettings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- Provider 相关配置 ----
    default_provider: str = Field(
        default="huggingface",
        description="默认使用的推理 Provider 名称",
    )
    default_model: str = Field(
        default="companion-chat",
        description="逻辑模型名，由 registry 映射为具体厂商模型",
    )
    huggingface_token: Optional[str] = Field(default=None, description="Hugging Face 访问令牌")
    hf_base_url: str = Field(
        default="https://router.huggingface.co/hf-inference",
        description="Hugging Face 推理服务基础URL",
    )
    http_timeout: float = Field(default=30.0, ge=1.0, description="HTTP 超时时间（秒）")

    # ---- 存储 ----
    storage_backend: Literal["sql", "json"] = Field(default="sql", description="会话存储后端")
    database_url: str = Field(default="sqlite:///cheerchat.db", description="SQLAlchemy 数据库 URL")
    storage_root: str = Field(default=".storage", description="JSON 存储根目录")

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_level: str = Field(default="INFO", description="日志级别")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    # ---- 对话 ----
    context_window: int = Field(
        default=3,
        ge=0,
        le=50,
        description="拼接进 prompt 的最近用户消息条数",
    )

    # ---- HTTP 服务 ----
    api_route: str = Field(default="/api/chat", description="聊天接口路径")
    host: str = Field(default="127.0.0.1", description="监听地址")
    port: int = Field(default=8000, ge=1, le=65535, description="监听端口")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("huggingface_token")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) < 10:
            raise ValueError("API token seems too short")
        return v

    @field_validator("api_route")
    @classmethod
    def validate_route(cls, v: str) -> str:
        if not v.startswith("/"):
            return "/" + v
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSource(settings_cls),
            file_secret_settings,
        )


settings = CheerChatSettings()

# 类型别名，让外部代码可以使用 Settings 类型
Settings = CheerChatSettings
