"""Configuration loading and validation using Pydantic models."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

CONFIG_ENV_VAR = "ELEMENT_CONTEXT_CONFIG"


class StorageConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_elements: int = Field(
        50,
        ge=1,
        description="Maximum number of live records before FIFO eviction.",
    )
    ttl_ms: int = Field(
        3_600_000,
        ge=1,
        description="Time-to-live of an admitted record in milliseconds.",
    )
    sweep_interval_ms: int = Field(
        300_000,
        ge=1,
        description="Interval of the background expiry sweep in milliseconds.",
    )


class LimitsConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_html_chars: int = Field(50_000, ge=1)
    max_text_chars: int = Field(10_000, ge=1)
    max_screenshot_chars: int = Field(
        1_000_000,
        ge=1,
        description="Screenshots above this size are dropped, never cut.",
    )
    allowed_url_schemes: tuple[str, ...] = Field(("http://", "https://"))

    @field_validator("allowed_url_schemes")
    @classmethod
    def _schemes_not_empty(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        schemes = tuple(scheme for scheme in value if scheme)
        if not schemes:
            raise ValueError("allowed_url_schemes must list at least one scheme prefix")
        return schemes


class WebSocketConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str = Field("127.0.0.1", description="Interface the producer listener binds to.")
    port: int = Field(38100, ge=1, le=65535)
    fallback_ports: tuple[int, ...] = Field((38101, 38102, 38103))
    max_message_bytes: int = Field(
        8 * 1024 * 1024,
        ge=1024,
        description="Largest inbound frame accepted from a producer.",
    )

    @field_validator("fallback_ports")
    @classmethod
    def _valid_ports(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        for port in value:
            if not 1 <= int(port) <= 65535:
                raise ValueError(f"invalid fallback port {port}")
        return value

    def candidate_ports(self) -> list[int]:
        ports = [self.port]
        for port in self.fallback_ports:
            if port not in ports:
                ports.append(port)
        return ports


class MCPConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(True, description="Serve the MCP tool/resource surface on stdio.")
    server_name: str = Field("element-context-capture")


class LoggingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: str = Field("INFO")
    log_dir: Optional[Path] = Field(None, description="Optional directory for rotating log files.")


class InstanceConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    lock_path: Optional[Path] = Field(
        None,
        description="Lockfile guarding against a second server instance (disabled when unset).",
    )


class AppConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    storage: StorageConfig = StorageConfig()
    limits: LimitsConfig = LimitsConfig()
    websocket: WebSocketConfig = WebSocketConfig()
    mcp: MCPConfig = MCPConfig()
    logging: LoggingConfig = LoggingConfig()
    instance: InstanceConfig = InstanceConfig()

    @model_validator(mode="after")
    def _sweep_not_longer_than_needed(self) -> "AppConfig":
        if self.storage.sweep_interval_ms > 24 * 3_600_000:
            raise ValueError("storage.sweep_interval_ms must not exceed one day")
        return self


def load_config(path: Path | str) -> AppConfig:
    """Load YAML configuration from disk."""

    config_path = Path(path)
    with config_path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    return AppConfig.model_validate(data or {})


def resolve_config(path: Path | str | None = None) -> AppConfig:
    """Load the explicit path, the env-var path, or fall back to defaults."""

    candidate = path or os.environ.get(CONFIG_ENV_VAR)
    if candidate is None:
        return AppConfig()
    config_path = Path(candidate)
    if not config_path.exists():
        if path is not None:
            raise FileNotFoundError(f"config file not found: {config_path}")
        return AppConfig()
    return load_config(config_path)
