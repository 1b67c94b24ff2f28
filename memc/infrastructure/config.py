from __future__ import annotations

import os
from datetime import timedelta
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator


def get_env_int(
    env_name: str,
    default_value: int,
    *,
    min_value: Optional[int] = None,
    max_value: Optional[int] = None,
) -> int:
    raw_value = os.getenv(env_name)
    if raw_value is None:
        value = default_value
    else:
        try:
            value = int(raw_value)
        except ValueError as exc:
            raise ValueError(
                f"{env_name} must be an integer, got {raw_value!r}"
            ) from exc

    if min_value is not None and value < min_value:
        raise ValueError(f"{env_name} must be >= {min_value}, got {value}")
    if max_value is not None and value > max_value:
        raise ValueError(f"{env_name} must be <= {max_value}, got {value}")
    return value


def get_env_list(env_name: str, default_value: Sequence[str]) -> tuple[str, ...]:
    raw_value = os.getenv(env_name)
    if raw_value is None:
        return tuple(default_value)
    return tuple(item.strip() for item in raw_value.split(",") if item.strip())


class ClientConfig(BaseModel):
    """Client configuration, fixed for the lifetime of a client.

    A zero ``dial_timeout`` leaves the connect timeout to the transport, a
    zero ``default_ttl`` stores entries without expiration.
    """

    model_config = ConfigDict(frozen=True)

    servers: tuple[str, ...] = ()
    dial_timeout: timedelta = timedelta(0)
    default_ttl: timedelta = timedelta(0)

    @field_validator("dial_timeout")
    @classmethod
    def _dial_timeout_not_negative(cls, value: timedelta) -> timedelta:
        if value < timedelta(0):
            raise ValueError(f"dial_timeout must be >= 0, got {value}")
        return value


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    servers: tuple[str, ...]
    dial_timeout_ms: int = Field(ge=0)
    default_ttl_seconds: int = Field(ge=0)
    log_level: str
    log_format: str

    def client_config(self) -> ClientConfig:
        return ClientConfig(
            servers=self.servers,
            dial_timeout=timedelta(milliseconds=self.dial_timeout_ms),
            default_ttl=timedelta(seconds=self.default_ttl_seconds),
        )


def load_settings() -> Settings:
    return Settings(
        servers=get_env_list("MEMC_SERVERS", ["127.0.0.1:11211"]),
        dial_timeout_ms=get_env_int("MEMC_DIAL_TIMEOUT_MS", 0, min_value=0),
        default_ttl_seconds=get_env_int("MEMC_DEFAULT_TTL", 0, min_value=0),
        log_level=os.getenv("MEMC_LOG_LEVEL", "INFO").upper(),
        log_format=os.getenv("MEMC_LOG_FORMAT", "text"),
    )
