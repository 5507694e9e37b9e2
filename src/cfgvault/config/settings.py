"""Unified settings: keyword overrides, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs : overrides passed to :meth:`VaultSettings.load`
  2. Env vars    : ``CFGVAULT_*`` prefix
  3. TOML file   : ``cfgvault.toml``, see :func:`find_config`
  4. Code defaults: baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource`.
A relative ``vault_path`` is anchored where it was written: the TOML
file's directory for a TOML value, the CWD for env vars and overrides.
"""

from __future__ import annotations

import os
import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from cfgvault.config.models import StorageConfig
from cfgvault.errors import ConfigurationError

CONFIG_FILENAME = "cfgvault.toml"
CONFIG_ENV_VAR = "CFGVAULT_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the nearest ``cfgvault.toml`` at or above *start* (default: CWD).

    A set ``CFGVAULT_CONFIG`` replaces the search: its file is used if it
    exists, and nothing is found otherwise.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override) if Path(override).is_file() else None

    here = (start or Path.cwd()).resolve()
    candidates = (directory / CONFIG_FILENAME for directory in (here, *here.parents))
    return next((c for c in candidates if c.is_file()), None)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``cfgvault.toml`` file.

    A relative ``vault_path`` is resolved against the file's directory here,
    so later sources never see it relative to the TOML.
    """

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise ConfigurationError(msg, path=str(toml_path)) from exc
            vault_path = self._data.get("vault_path")
            if isinstance(vault_path, str) and not Path(vault_path).is_absolute():
                self._data["vault_path"] = str(toml_path.parent / vault_path)

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class VaultSettings(BaseSettings):
    """Settings for opening a configuration vault.

    Attributes:
        vault_path: The vault file. A relative path from ``cfgvault.toml``
            resolves against that file's directory; one from an env var
            or override resolves against the CWD.
        config_path: The TOML file the settings were read from, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "CFGVAULT_",
        "env_nested_delimiter": "__",
    }

    vault_path: Path | None = None
    config_path: Path | None = None

    verbose: bool = False
    log_json: bool = False

    storage: StorageConfig = Field(default_factory=StorageConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def load(
        cls,
        *,
        config_path: str | Path | None = None,
        start: Path | None = None,
        **overrides: Any,
    ) -> VaultSettings:
        """Discover ``cfgvault.toml`` and merge it with env vars and *overrides*.

        An explicit *config_path* skips discovery; otherwise the walk-up
        starts at *start* (default: CWD).
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(start)

        _tls.toml_path = toml_path
        try:
            settings = cls(config_path=toml_path, **overrides)
        finally:
            _tls.toml_path = None

        if settings.vault_path is not None and not settings.vault_path.is_absolute():
            settings = settings.model_copy(update={"vault_path": Path.cwd() / settings.vault_path})
        return settings
