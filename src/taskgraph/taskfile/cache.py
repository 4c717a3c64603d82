"""On-disk cache for remote Taskfiles."""

from __future__ import annotations

import hashlib
import json
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable


def checksum(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


@dataclass
class CacheEntry:
    """Metadata stored next to a cached Taskfile."""

    location: str
    checksum: str
    fetched_at: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "location": self.location,
            "checksum": self.checksum,
            "fetched_at": self.fetched_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CacheEntry":
        """Create from dictionary loaded from JSON."""
        return cls(
            location=data["location"],
            checksum=data["checksum"],
            fetched_at=data["fetched_at"],
        )


class RemoteCache:
    """Stores remote Taskfiles under ``{temp_dir}/remote``.

    Each location is keyed by the SHA-256 of its URI and kept as two files:
    ``<key>.yaml`` with the contents and ``<key>.json`` with a CacheEntry.
    Both files are replaced atomically, and contents whose checksum doesn't
    match their entry are treated as a miss.
    """

    DIR_NAME = "remote"

    def __init__(self, temp_dir: Path, debug: Callable[[str], None] | None = None):
        self.dir = Path(temp_dir) / self.DIR_NAME
        self.debug = debug or (lambda message: None)

    def _key(self, location: str) -> str:
        return hashlib.sha256(location.encode()).hexdigest()

    def _content_path(self, location: str) -> Path:
        return self.dir / f"{self._key(location)}.yaml"

    def _entry_path(self, location: str) -> Path:
        return self.dir / f"{self._key(location)}.json"

    def entry(self, location: str) -> CacheEntry | None:
        """Get cache metadata for a location, or None if it isn't cached."""
        entry_path = self._entry_path(location)
        if not entry_path.exists() or not self._content_path(location).exists():
            return None
        try:
            with open(entry_path, "r") as f:
                return CacheEntry.from_dict(json.load(f))
        except (json.JSONDecodeError, KeyError, OSError):
            self.debug(f"cache entry for {location} is corrupted, ignoring it")
            return None

    def read(self, location: str) -> bytes | None:
        """Get cached contents for a location, or None if it isn't cached."""
        entry = self.entry(location)
        if entry is None:
            return None
        try:
            content = self._content_path(location).read_bytes()
        except OSError:
            return None
        if checksum(content) != entry.checksum:
            self.debug(f"cached copy of {location} doesn't match its checksum, ignoring it")
            return None
        return content

    def is_fresh(self, location: str, expiry: float, now: float | None = None) -> bool:
        """Check whether the cached copy is younger than ``expiry`` seconds."""
        entry = self.entry(location)
        if entry is None:
            return False
        if now is None:
            now = time.time()
        return now - entry.fetched_at < expiry

    def write(self, location: str, content: bytes, now: float | None = None) -> CacheEntry:
        """Store contents for a location and return the new metadata."""
        self.dir.mkdir(parents=True, exist_ok=True)
        entry = CacheEntry(
            location=location,
            checksum=checksum(content),
            fetched_at=time.time() if now is None else now,
        )
        self._replace(self._content_path(location), content)
        self._replace(
            self._entry_path(location), json.dumps(entry.to_dict(), indent=2).encode()
        )
        self.debug(f"cached {location} in {self.dir}")
        return entry

    def _replace(self, path: Path, data: bytes) -> None:
        with tempfile.NamedTemporaryFile(dir=self.dir, prefix=path.name, delete=False) as f:
            f.write(data)
        Path(f.name).replace(path)
