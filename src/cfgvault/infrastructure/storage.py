"""Backing-file I/O for file vaults.

The vault file is rewritten in full on every save. Two strategies:

- **Plain** (default): ``Path.write_text`` over the existing file. The
  file keeps its inode and permission bits; a crash mid-write can leave
  it truncated.
- **Atomic**: write a sibling temp file, copy the original permission
  bits, fsync, then ``os.replace`` it over the vault.

Neither strategy coordinates concurrent writers; the last full write wins.
"""

from __future__ import annotations

import json
import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def stat_mode(path: Path) -> int:
    """Return ``st_mode`` for *path* (raises FileNotFoundError if missing)."""
    return path.stat().st_mode


def read_vault_file(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def dump_vault(data: dict[str, Any], *, indent: int | None = 2) -> str:
    """Serialize vault data to JSON text.

    Key order is preserved as given; callers keep the mapping sorted.
    """
    text = json.dumps(data, indent=indent, ensure_ascii=False, allow_nan=False)
    return text + "\n"


def write_vault_file(path: Path, content: str, *, atomic: bool = False) -> None:
    """Overwrite *path* with *content* in full."""
    if not atomic:
        path.write_text(content, encoding="utf-8")
        return

    mode = stat.S_IMODE(stat_mode(path)) if path.exists() else 0o600
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
    logger.debug("Atomically replaced %s", path)
