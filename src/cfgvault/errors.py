"""Error taxonomy for configuration vaults.

Every error raised by cfgvault derives from :class:`VaultError` and
carries a stable ``code`` plus a ``detail`` dict, the same shape a
service layer would put in an error payload. Each class also subclasses
the closest builtin so callers can catch e.g. ``LookupError`` without
importing cfgvault.
"""

from __future__ import annotations

from typing import Any


class VaultError(Exception):
    """Base class for all cfgvault errors."""

    code: str = "vault_error"

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = detail


class VaultPermissionError(VaultError, PermissionError):
    """The backing file grants access to group or other."""

    code = "permission_denied"


class FormatError(VaultError, ValueError):
    """The backing file is not valid JSON or not vault-shaped."""

    code = "invalid_format"


class DomainNotFoundError(VaultError, LookupError):
    code = "domain_not_found"


class KeyNotFoundError(VaultError, LookupError):
    code = "key_not_found"


class InvalidArgumentError(VaultError, ValueError):
    """A mutator was given a value that would break the vault's shape."""

    code = "invalid_argument"


class ValueTypeError(VaultError, TypeError):
    """A value does not narrow to the requested type."""

    code = "value_type_mismatch"


class PersistError(VaultError, OSError):
    """Writing the vault back to disk failed."""

    code = "persist_failed"


class ConfigurationError(VaultError, ValueError):
    code = "configuration_error"
