"""
Durable JSON file persistence.

Writes go to a temporary file in the target directory and are moved into
place with ``os.replace``, so readers see either the old or the new file,
never a half-written one.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any


class PersistenceError(Exception):
    """Raised when a store or progress file cannot be written."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class PersistenceCorruptionError(PersistenceError):
    """Raised when a store or progress file exists but cannot be decoded."""

    pass


def read_json(path: Path) -> Any | None:
    """
    Read a JSON document.

    Returns:
        The decoded document, or None when the file does not exist

    Raises:
        PersistenceCorruptionError: The file is unreadable or not valid JSON
    """
    try:
        with path.open(encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise PersistenceCorruptionError(f"Cannot read {path}: {e}", path=path) from e


def write_json_atomic(path: Path, document: Any, *, indent: int | None = 2) -> None:
    """
    Atomically replace ``path`` with ``document`` serialized as JSON.

    Raises:
        PersistenceError: The file could not be written
    """
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=indent, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    except (OSError, TypeError, ValueError) as e:
        raise PersistenceError(f"Cannot write {path}: {e}", path=path) from e
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)


def quarantine(path: Path) -> Path | None:
    """
    Move a corrupt file aside as ``<name>.corrupt`` so it is not overwritten.

    Returns:
        The new location, or None if the move failed
    """
    target = path.with_name(path.name + ".corrupt")
    try:
        os.replace(path, target)
    except OSError:
        return None
    return target
