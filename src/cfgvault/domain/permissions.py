"""Permission-mode rules for the backing file.

Pure functions over ``st_mode`` values; the filesystem call lives in
:mod:`cfgvault.infrastructure.storage`.
"""

from __future__ import annotations

import stat

# Any group or other bit (read, write or execute).
FORBIDDEN_MODE_BITS = 0o077


def check_permissions(mode: int) -> bool:
    """Return True if *mode* grants nothing to group or other.

    Examples:
        >>> check_permissions(0o100600)
        True
        >>> check_permissions(0o100640)
        False
        >>> check_permissions(0o100601)
        False
    """
    return mode & FORBIDDEN_MODE_BITS == 0


def format_mode(mode: int) -> str:
    """Render the permission part of *mode* as ``0o600``-style octal."""
    return oct(stat.S_IMODE(mode))
