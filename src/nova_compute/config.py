from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ComputeConfig(BaseModel):
    cloud: Optional[str] = None
    region: Optional[str] = None
    interface: str = "public"
    endpoint: Optional[str] = None
    token: Optional[str] = None
    timeout: float = Field(default=30.0, gt=0)

    @property
    def has_direct_credentials(self) -> bool:
        return bool(self.endpoint and self.token)

    @classmethod
    def from_dict(cls, data: dict) -> "ComputeConfig":
        return cls.model_validate(data)


class EnvOverrides(BaseSettings):
    """Values taken from the ``OS_*`` / ``NOVA_COMPUTE_*`` environment. Unset stays ``None``."""

    model_config = SettingsConfigDict(extra="ignore", env_ignore_empty=True)

    cloud: Optional[str] = Field(default=None, validation_alias="OS_CLOUD")
    region: Optional[str] = Field(default=None, validation_alias="OS_REGION_NAME")
    interface: Optional[str] = Field(default=None, validation_alias="OS_INTERFACE")
    endpoint: Optional[str] = Field(default=None, validation_alias="NOVA_COMPUTE_ENDPOINT")
    token: Optional[str] = Field(default=None, validation_alias="OS_AUTH_TOKEN")
    timeout: Optional[float] = Field(default=None, validation_alias="NOVA_COMPUTE_TIMEOUT")


ENV_OVERRIDES = tuple(f.validation_alias for f in EnvOverrides.model_fields.values())


def load_config(path: Path | None = None, **overrides) -> ComputeConfig:
    """
    Build the config from an optional YAML file, then ``OS_*`` / ``NOVA_COMPUTE_*``
    env vars, then explicit keyword overrides (``None`` values are ignored).
    """
    data: dict = {}
    if path is not None:
        data.update(yaml.safe_load(path.read_text()) or {})

    data.update(EnvOverrides().model_dump(exclude_none=True))
    data.update({k: v for k, v in overrides.items() if v is not None})
    return ComputeConfig.from_dict(data)
