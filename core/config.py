"""
配置文件 - relay configuration
"""
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RelaySettings(BaseModel):
    # Deployment constants of the badge relay; the bridge receives them at construction.
    endpoint: str = "http://relay1.lumeweb.com:8082"
    project_id: str = "f195d68175eb091ec1f71d00f8952b85"
    service: str = "lavanet.lava.pairing.BadgeGenerator"
    method: str = "GenerateBadge"
    timeout_ms: int = 5000
    mode: Literal["streaming", "unary"] = "streaming"
    # False keeps an abandoned call running after the deadline fires
    cancel_on_timeout: bool = True

    @field_validator("timeout_ms")
    @classmethod
    def _positive_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("timeout_ms must be positive")
        return v

    @field_validator("endpoint")
    @classmethod
    def _strip_endpoint(cls, v: str) -> str:
        return v.rstrip("/")


class GrpcWebSettings(BaseModel):
    connect_timeout: float = 5.0
    read_timeout: float = 30.0
    verify_ssl: bool = True
    user_agent: str = "badge-relay/1.0"
    debug: bool = False
    # Largest response message accepted; 4 MiB matches the gRPC default receive limit.
    max_message_size: int = 4 * 1024 * 1024

    @field_validator("max_message_size")
    @classmethod
    def _positive_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("max_message_size must be positive")
        return v


class Settings(BaseSettings):
    """项目配置"""

    DEBUG: bool = Field(default=False)
    LOG_LEVEL: Optional[str] = Field(default=None, description="overrides the DEBUG-derived root level")

    relay: RelaySettings = Field(default_factory=RelaySettings)
    grpc_web: GrpcWebSettings = Field(default_factory=GrpcWebSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _upper_level(cls, v):
        return v.strip().upper() if isinstance(v, str) and v.strip() else None


settings = Settings()
