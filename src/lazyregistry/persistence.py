"""
Persisted list of installed services.

The list records which services already had their install hook run, so the
hook is not repeated in later processes. It is stored as a JSON array of
service names.

Writes are best effort: a missing directory or an unwritable file only logs a
warning. There is no file locking, so when several processes share one file
the last writer wins.
"""

import json
import logging
import os
from pathlib import Path
from typing import Iterator, Optional, Union

__all__ = ["RegisteredServices", "read_registered_services", "write_registered_services"]

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


class RegisteredServices:
    """Ordered set of installed service names with change tracking."""

    def __init__(self, names: Optional[list[str]] = None):
        self._names: list[str] = list(dict.fromkeys(names or []))
        self._dirty = False

    @classmethod
    def load(cls, path: Optional[PathLike]) -> "RegisteredServices":
        return cls(read_registered_services(path) if path else [])

    @property
    def dirty(self) -> bool:
        return self._dirty

    def add(self, name: str) -> bool:
        """Append ``name``; return False if it was already present."""
        if name in self._names:
            return False
        self._names.append(name)
        self._dirty = True
        return True

    def discard(self, name: str) -> bool:
        """Remove ``name``; return False if it was not present."""
        if name not in self._names:
            return False
        self._names.remove(name)
        self._dirty = True
        return True

    def flush(self, path: Optional[PathLike]) -> bool:
        """
        Write the list to ``path`` if it changed since loading or the last flush.

        Returns:
            True if the list was written.
        """
        if not self._dirty or not path:
            return False
        if write_registered_services(path, self._names):
            self._dirty = False
            return True
        return False

    def __contains__(self, name: str) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)


def read_registered_services(path: PathLike) -> list[str]:
    file_path = Path(path)
    if not file_path.is_file():
        return []
    try:
        payload = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable registered services file %s: %s", file_path, exc)
        return []
    if not isinstance(payload, list):
        logger.warning("Ignoring malformed registered services file %s", file_path)
        return []
    return [name for name in payload if isinstance(name, str)]


def write_registered_services(path: PathLike, names: list[str]) -> bool:
    file_path = Path(path)
    try:
        file_path.write_text(json.dumps(list(names), indent=2), encoding="utf-8")
    except OSError as exc:
        logger.warning("Could not write registered services file %s: %s", file_path, exc)
        return False

    logger.debug("Wrote %d registered services to %s", len(names), file_path)
    return True
