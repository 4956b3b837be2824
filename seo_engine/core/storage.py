"""File storage port for generated artifacts.

Sitemaps and robots files are written through a ``FileStore`` so the
generators never touch the filesystem directly. ``LocalFileStore`` writes to
a temp file in the target directory and renames it into place, so a reader
sees either the previous file or the complete new one.
"""

import asyncio
import fnmatch
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from seo_engine.config import settings
from seo_engine.core.exceptions import GenerationError
from seo_engine.core.logging import get_logger

logger = get_logger(__name__)


class FileStore(Protocol):
    """Storage for generated text artifacts addressed by relative path."""

    async def write_text(self, path: str, content: str) -> None: ...

    async def read_text(self, path: str) -> str | None: ...

    async def exists(self, path: str) -> bool: ...

    async def last_modified(self, path: str) -> datetime | None: ...

    async def list(self, prefix: str, pattern: str = "*") -> list[str]: ...

    async def delete(self, path: str) -> None: ...


class LocalFileStore:
    """Filesystem-backed store rooted at ``settings.storage_root``."""

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = Path(root or settings.storage_root)

    def _resolve(self, path: str) -> Path:
        full = (self.root / path).resolve()
        if not full.is_relative_to(self.root.resolve()):
            raise ValueError(f"Path escapes storage root: {path}")
        return full

    def _write_atomic(self, path: str, content: str) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(content)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def write_text(self, path: str, content: str) -> None:
        try:
            await asyncio.to_thread(self._write_atomic, path, content)
        except OSError as e:
            logger.error("artifact_write_failed", path=path, error=str(e))
            raise GenerationError(path, str(e)) from e

    async def read_text(self, path: str) -> str | None:
        target = self._resolve(path)
        try:
            return await asyncio.to_thread(target.read_text, encoding="utf-8")
        except FileNotFoundError:
            return None

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(self._resolve(path).is_file)

    async def last_modified(self, path: str) -> datetime | None:
        target = self._resolve(path)
        try:
            stat = await asyncio.to_thread(target.stat)
        except FileNotFoundError:
            return None
        return datetime.fromtimestamp(stat.st_mtime, tz=UTC)

    async def list(self, prefix: str, pattern: str = "*") -> list[str]:
        directory = self._resolve(prefix)

        def _scan() -> list[str]:
            if not directory.is_dir():
                return []
            return sorted(
                f"{prefix.rstrip('/')}/{p.name}"
                for p in directory.iterdir()
                if p.is_file() and fnmatch.fnmatchcase(p.name, pattern)
            )

        return await asyncio.to_thread(_scan)

    async def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(target.unlink, missing_ok=True)
        except OSError as e:
            raise GenerationError(path, str(e)) from e


class MemoryFileStore:
    """In-memory store; the clock is injectable so staleness can be simulated."""

    def __init__(self, clock=None) -> None:
        self.files: dict[str, tuple[str, datetime]] = {}
        self._clock = clock or (lambda: datetime.now(UTC))

    async def write_text(self, path: str, content: str) -> None:
        self.files[path] = (content, self._clock())

    async def read_text(self, path: str) -> str | None:
        item = self.files.get(path)
        return item[0] if item else None

    async def exists(self, path: str) -> bool:
        return path in self.files

    async def last_modified(self, path: str) -> datetime | None:
        item = self.files.get(path)
        return item[1] if item else None

    async def list(self, prefix: str, pattern: str = "*") -> list[str]:
        base = prefix.rstrip("/") + "/"
        return sorted(
            path
            for path in self.files
            if path.startswith(base)
            and "/" not in path[len(base):]
            and fnmatch.fnmatchcase(path[len(base):], pattern)
        )

    async def delete(self, path: str) -> None:
        self.files.pop(path, None)


def get_file_store() -> FileStore:
    """FastAPI dependency for the artifact store."""
    return LocalFileStore()
