"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, apiforge.toml only contains overrides.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class TransportConfig(BaseModel):
    """[transport] section — settings for the built-in httpx strategies."""

    model_config = {"frozen": True}

    timeout: float = 30.0
    verify: bool = True
    follow_redirects: bool = False
    default_strategy: str = "httpx"


class DefinitionsConfig(BaseModel):
    """[definitions] section."""

    model_config = {"frozen": True}

    module: str | None = None


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    disabled: list[str] = Field(default_factory=list)
