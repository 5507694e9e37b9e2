"""cfgvault: permission-checked JSON vault for sensitive configuration values."""

from cfgvault.errors import (
    ConfigurationError,
    DomainNotFoundError,
    FormatError,
    InvalidArgumentError,
    KeyNotFoundError,
    PersistError,
    ValueTypeError,
    VaultError,
    VaultPermissionError,
)
from cfgvault.infrastructure.vault import ConfigVault, FileConfigVault

__version__ = "0.1.0"

__all__ = [
    "ConfigVault",
    "ConfigurationError",
    "DomainNotFoundError",
    "FileConfigVault",
    "FormatError",
    "InvalidArgumentError",
    "KeyNotFoundError",
    "PersistError",
    "ValueTypeError",
    "VaultError",
    "VaultPermissionError",
    "__version__",
]
