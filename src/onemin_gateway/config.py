"""
Gateway configuration.

Settings are plain Pydantic models. ``GatewaySettings.from_env`` resolves
them from environment variables; unparseable numeric values are ignored and
the default is kept.
"""

from __future__ import annotations

import os
from contextlib import suppress
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StreamFormat(BaseModel):
    """Framing constants shared by the upstream and emitted event streams."""

    model_config = ConfigDict(frozen=True)

    delimiter: str = Field(default="\n", description="Record delimiter")
    prefix: str = Field(default="data: ", description="Data record prefix")
    done_signal: str = Field(default="[DONE]", description="Stream end signal")

    @property
    def sentinel_record(self) -> bytes:
        """Encoded terminal record."""
        return f"{self.prefix}{self.done_signal}\n\n".encode()


class GatewaySettings(BaseModel):
    """Runtime settings for the gateway."""

    model_config = ConfigDict(extra="ignore")

    upstream_base_url: str = Field(
        default="https://api.1min.ai", description="Upstream provider base URL"
    )
    upstream_path: str = Field(
        default="/api/features", description="Upstream feature endpoint path"
    )
    default_model: str = Field(
        default="gpt-3.5-turbo",
        description="Model reported when the provider chunk carries none",
    )
    timeout: float = Field(default=120.0, description="Upstream timeout in seconds")
    connect_timeout: float = Field(default=10.0, description="Connect timeout in seconds")
    tokenizer: str = Field(
        default="tiktoken", description="Token estimator: tiktoken or chars"
    )
    encoding: str = Field(default="cl100k_base", description="Tiktoken encoding name")
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="text", description="Log format: text or json")
    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8787, description="Bind port")
    stream: StreamFormat = Field(default_factory=StreamFormat)

    @property
    def upstream_url(self) -> str:
        return f"{self.upstream_base_url.rstrip('/')}{self.upstream_path}"

    @classmethod
    def from_env(cls, **overrides: Any) -> GatewaySettings:
        """Build settings from environment variables.

        Args:
            **overrides: Explicit values that win over the environment

        Returns:
            GatewaySettings instance
        """
        values: dict[str, Any] = {}

        for field_name, env_name in _STRING_ENV.items():
            value = os.getenv(env_name)
            if value:
                values[field_name] = value

        for field_name, env_name in _FLOAT_ENV.items():
            value = os.getenv(env_name)
            if value:
                with suppress(ValueError):
                    values[field_name] = float(value)

        port = os.getenv("GATEWAY_PORT")
        if port:
            with suppress(ValueError):
                values["port"] = int(port)

        values.update(overrides)
        return cls(**values)


_STRING_ENV: dict[str, str] = {
    "upstream_base_url": "ONE_MIN_API_URL",
    "upstream_path": "ONE_MIN_API_PATH",
    "default_model": "GATEWAY_DEFAULT_MODEL",
    "tokenizer": "GATEWAY_TOKENIZER",
    "encoding": "GATEWAY_TOKEN_ENCODING",
    "log_level": "GATEWAY_LOG_LEVEL",
    "log_format": "GATEWAY_LOG_FORMAT",
    "host": "GATEWAY_HOST",
}

_FLOAT_ENV: dict[str, str] = {
    "timeout": "GATEWAY_HTTP_TIMEOUT_SECS",
    "connect_timeout": "GATEWAY_CONNECT_TIMEOUT_SECS",
}
