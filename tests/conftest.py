"""Shared pytest fixtures for cfgvault tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from cfgvault.infrastructure.vault import FileConfigVault


@pytest.fixture
def vault_path(tmp_path: Path) -> Path:
    """An empty vault file (JSON ``null``) readable by the owner only."""
    path = tmp_path / "config-vault.json"
    path.write_text("null", encoding="utf-8")
    path.chmod(0o600)
    return path


@pytest.fixture
def vault(vault_path: Path) -> FileConfigVault:
    return FileConfigVault(vault_path)


@pytest.fixture
def reopen(vault_path: Path) -> Callable[[], FileConfigVault]:
    """Open a fresh vault instance on the same file, reloading from disk."""
    return lambda: FileConfigVault(vault_path)


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of settings discovery."""
    for name in ("CFGVAULT_CONFIG", "CFGVAULT_VAULT_PATH", "CFGVAULT_VERBOSE", "CFGVAULT_LOG_JSON"):
        monkeypatch.delenv(name, raising=False)
