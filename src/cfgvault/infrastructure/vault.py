"""Configuration vaults: domain/key scoped storage for sensitive settings.

:class:`ConfigVault` is the data-access contract. It declares four
generic primitives (``get_value``, ``put_value``, ``unset_key``,
``unset_domain``) and builds the typed accessors on top of them using
:class:`~cfgvault.domain.values.TaggedValue` conversions.

:class:`FileConfigVault` keeps the whole vault in memory and rewrites
its JSON file after every mutation:

- **Open**: the file mode is checked before any content is read.
- **Mutate**: each mutator snapshots the in-memory mapping, applies the
  change, re-sorts domains and keys, and saves. If anything fails the
  snapshot is restored; a failed save raises
  :class:`~cfgvault.errors.PersistError`.
- **Read**: getters never touch the filesystem.

There is no locking. Two instances opened on the same file do not see
each other's writes, and the last save silently overwrites the other's.
"""

from __future__ import annotations

import json
import logging
import math
import os
import stat
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from cfgvault.domain.permissions import check_permissions, format_mode
from cfgvault.domain.values import Scalar, TaggedValue, ValueKind, classify, validate_domain
from cfgvault.errors import (
    ConfigurationError,
    DomainNotFoundError,
    FormatError,
    InvalidArgumentError,
    KeyNotFoundError,
    PersistError,
    ValueTypeError,
    VaultPermissionError,
)
from cfgvault.infrastructure.storage import dump_vault, read_vault_file, stat_mode, write_vault_file

if TYPE_CHECKING:
    from collections.abc import Iterator

    from cfgvault.config.settings import VaultSettings

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    msg = f"{name} is not a JSON value"
    raise ValueError(msg)


def _has_non_finite(value: Any) -> bool:
    """True if *value* contains a float that would not serialize (e.g. ``1e400``)."""
    if isinstance(value, float):
        return not math.isfinite(value)
    if isinstance(value, dict):
        return any(_has_non_finite(item) for item in value.values())
    if isinstance(value, list):
        return any(_has_non_finite(item) for item in value)
    return False


# ---------------------------------------------------------------------------
# ConfigVault: abstract contract with typed accessors
# ---------------------------------------------------------------------------


class ConfigVault(ABC):
    """Domain/key scoped key-value store for configuration values.

    Subclasses implement the generic primitives; the typed getters and
    putters here only add narrowing and argument checks.
    """

    @abstractmethod
    def get_value(self, domain: str, key: str | None = None) -> Any:
        """Return the value under *key* in *domain*, or the whole domain if *key* is None.

        Raises:
            DomainNotFoundError: *domain* does not exist.
            KeyNotFoundError: *key* does not exist in *domain*.
        """

    @abstractmethod
    def put_value(self, domain: str, key: str | None, value: Any) -> None:
        """Store *value* under *key* in *domain*.

        With *key* None, *value* must be a mapping and replaces the whole domain.

        Raises:
            InvalidArgumentError: *value* does not fit the vault's shape.
        """

    @abstractmethod
    def unset_key(self, domain: str, key: str) -> None:
        """Remove *key* from *domain*; a no-op if either is missing."""

    @abstractmethod
    def unset_domain(self, domain: str) -> None:
        """Remove *domain*; a no-op if it is missing."""

    # -- reads ---------------------------------------------------------

    def get_domain(self, domain: str) -> dict[str, Scalar]:
        """Return all key-value pairs of *domain*."""
        return self.get_value(domain)

    def _get_typed(self, domain: str, key: str, kind: ValueKind) -> Scalar:
        return TaggedValue.of(self.get_value(domain, key)).convert(kind)

    def get_bool(self, domain: str, key: str) -> bool | None:
        return self._get_typed(domain, key, ValueKind.BOOL)  # type: ignore[return-value]

    def get_int(self, domain: str, key: str) -> int | None:
        return self._get_typed(domain, key, ValueKind.INT)  # type: ignore[return-value]

    def get_float(self, domain: str, key: str) -> float | None:
        """Return a float; stored integers are widened."""
        return self._get_typed(domain, key, ValueKind.FLOAT)  # type: ignore[return-value]

    def get_string(self, domain: str, key: str) -> str | None:
        """Return a string; stored numbers and booleans come back as JSON text."""
        return self._get_typed(domain, key, ValueKind.STRING)  # type: ignore[return-value]

    # -- writes --------------------------------------------------------

    def _put_typed(self, domain: str, key: str, value: Any, kind: ValueKind) -> None:
        try:
            normalized = TaggedValue.of(value).convert(kind)
        except ValueTypeError as exc:
            msg = (
                f"Cannot store {type(value).__name__} as {kind} "
                f"under key '{key}' in domain '{domain}'"
            )
            raise InvalidArgumentError(msg, domain=domain, key=key) from exc
        self.put_value(domain, key, normalized)

    def put_bool(self, domain: str, key: str, value: bool | None) -> None:
        self._put_typed(domain, key, value, ValueKind.BOOL)

    def put_int(self, domain: str, key: str, value: int | None) -> None:
        self._put_typed(domain, key, value, ValueKind.INT)

    def put_float(self, domain: str, key: str, value: float | None) -> None:
        self._put_typed(domain, key, value, ValueKind.FLOAT)

    def put_string(self, domain: str, key: str, value: str | int | float | bool | None) -> None:
        """Store a string; numbers and booleans are stored as their JSON text."""
        self._put_typed(domain, key, value, ValueKind.STRING)


# ---------------------------------------------------------------------------
# FileConfigVault: JSON file backed implementation
# ---------------------------------------------------------------------------


class FileConfigVault(ConfigVault):
    """A configuration vault stored in a single JSON file.

    The file must not be accessible by group or other. It holds either
    ``null`` (an empty vault) or an object of domain objects whose
    values are JSON scalars.

    Args:
        path: Location of the vault file. It must already exist.
        atomic_write: Save through a temp file and ``os.replace``
            instead of overwriting in place.
        indent: JSON indentation for saved files; None for compact output.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        atomic_write: bool = False,
        indent: int | None = 2,
    ) -> None:
        self._path = Path(path)
        self._atomic_write = atomic_write
        self._indent = indent
        self._data: dict[str, dict[str, Scalar]] = self._load()

    @classmethod
    def open(
        cls,
        path: str | os.PathLike[str],
        *,
        atomic_write: bool = False,
        indent: int | None = 2,
    ) -> FileConfigVault:
        return cls(path, atomic_write=atomic_write, indent=indent)

    @classmethod
    def from_settings(cls, settings: VaultSettings) -> FileConfigVault:
        """Open the vault named by *settings*."""
        if settings.vault_path is None:
            msg = "No vault path configured (set vault_path or CFGVAULT_VAULT_PATH)"
            raise ConfigurationError(msg)
        return cls(
            settings.vault_path,
            atomic_write=settings.storage.atomic_write,
            indent=settings.storage.indent,
        )

    @property
    def path(self) -> Path:
        return self._path

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self._path)!r})"

    # -- load / save ---------------------------------------------------

    def _load(self) -> dict[str, dict[str, Scalar]]:
        mode = stat_mode(self._path)
        if not check_permissions(mode):
            msg = f"Wrong mode {format_mode(mode)} for vault '{self._path}'"
            raise VaultPermissionError(msg, path=str(self._path), mode=stat.S_IMODE(mode))

        # ValueError covers JSONDecodeError, UnicodeDecodeError, the int digit
        # limit, and the NaN/Infinity literals rejected by _reject_constant.
        try:
            parsed = json.loads(read_vault_file(self._path), parse_constant=_reject_constant)
        except ValueError as exc:
            msg = f"File '{self._path}' is not valid JSON. Cause: {exc}"
            raise FormatError(msg, path=str(self._path)) from exc

        data = self._check_shape(parsed)
        logger.debug("Opened vault %s (%d domains)", self._path, len(data))
        return data

    def _check_shape(self, parsed: Any) -> dict[str, dict[str, Scalar]]:
        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            kind = type(parsed).__name__
            msg = f"File '{self._path}' must hold a JSON object or null, not {kind}"
            raise FormatError(msg, path=str(self._path))
        for domain, entries in parsed.items():
            if not isinstance(entries, dict):
                msg = f"Domain '{domain}' in vault '{self._path}' is not a JSON object"
                raise FormatError(msg, path=str(self._path), domain=domain)
            for key, item in entries.items():
                if _has_non_finite(item):
                    msg = (
                        f"Key '{key}' in domain '{domain}' of vault '{self._path}' "
                        "holds a number outside the float range"
                    )
                    raise FormatError(msg, path=str(self._path), domain=domain, key=key)
        return parsed

    def _persist(self) -> None:
        try:
            content = dump_vault(self._data, indent=self._indent)
            write_vault_file(self._path, content, atomic=self._atomic_write)
        except (OSError, ValueError) as exc:
            msg = f"Could not save configuration vault '{self._path}': {exc}"
            raise PersistError(msg, path=str(self._path)) from exc
        logger.debug("Saved vault %s (%d domains)", self._path, len(self._data))

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        """Apply an in-memory change, then save; restore the old state if anything fails."""
        snapshot = {domain: dict(entries) for domain, entries in self._data.items()}
        try:
            yield
            self._persist()
        except Exception:
            self._data = snapshot
            logger.debug("Restored in-memory state of %s after failed change", self._path)
            raise

    def _sort(self, domain: str) -> None:
        self._data[domain] = dict(sorted(self._data[domain].items()))
        self._data = dict(sorted(self._data.items()))

    # -- primitives ----------------------------------------------------

    def get_value(self, domain: str, key: str | None = None) -> Any:
        entries = self._data.get(domain)
        if entries is None:
            msg = f"Domain '{domain}' does not exist in configuration vault '{self._path}'"
            raise DomainNotFoundError(msg, domain=domain, path=str(self._path))
        if key is None:
            return dict(entries)
        if key not in entries:
            msg = (
                f"Key '{key}' does not exist in domain '{domain}' "
                f"in configuration vault '{self._path}'"
            )
            raise KeyNotFoundError(msg, domain=domain, key=key, path=str(self._path))
        return entries[key]

    def put_value(self, domain: str, key: str | None, value: Any) -> None:
        for name in (domain, key):
            if name is not None and not isinstance(name, str):
                msg = f"Domain and key names must be strings, got {name!r}"
                raise InvalidArgumentError(msg, domain=domain, key=key)

        if key is None:
            try:
                entries = validate_domain(value)
            except ValueTypeError as exc:
                msg = f"Cannot replace domain '{domain}': {exc}"
                raise InvalidArgumentError(msg, domain=domain) from exc
            with self._mutation():
                self._data[domain] = entries
                self._sort(domain)
            return

        try:
            classify(value)
        except ValueTypeError as exc:
            msg = f"Cannot store value under key '{key}' in domain '{domain}': {exc}"
            raise InvalidArgumentError(msg, domain=domain, key=key) from exc
        with self._mutation():
            self._data.setdefault(domain, {})[key] = value
            self._sort(domain)

    def unset_key(self, domain: str, key: str) -> None:
        with self._mutation():
            entries = self._data.get(domain)
            if entries is not None:
                entries.pop(key, None)

    def unset_domain(self, domain: str) -> None:
        with self._mutation():
            self._data.pop(domain, None)
