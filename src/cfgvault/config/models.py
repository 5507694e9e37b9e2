"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, cfgvault.toml only contains overrides.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class StorageConfig(BaseModel):
    """[storage] section: how the vault file is written back."""

    model_config = {"frozen": True}

    atomic_write: bool = False
    indent: int | None = Field(default=2, ge=0)
