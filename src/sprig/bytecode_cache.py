"""Bytecode cache for compiled templates.

Stores the marshalled code object of each file-backed template on disk so a
new process can skip lexing, parsing, inheritance resolution and code
generation. One file per template, named by a SHA-256 of the resolved
source path:

    <cache_dir>/__sprig_<sha256>.pyc

File layout:
    ``b"SPRIG1" + importlib.util.MAGIC_NUMBER`` header, then
    ``marshal.dumps((dependencies, code))``

An entry is served only while it is at least as new as its source and every
dependency (parents and includes), and while its age is within the
configured lifetime. Anything else, including a corrupt file or one written
by a different interpreter, is deleted and reported as a miss.

Thread-Safety:
    Writes go to a temporary file in the cache directory followed by
    ``os.replace``, so readers never observe a partial entry.

Example:
    >>> cache = BytecodeCache("/tmp/sprig-cache", lifetime=3600)
    >>> cache.put("/srv/templates/page.html", code, dependencies=["/srv/templates/base.html"])
    >>> cache.get("/srv/templates/page.html") is not None
    True
"""

from __future__ import annotations

import hashlib
import importlib.util
import logging
import marshal
import os
import tempfile
import time
import types
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

_MAGIC = b"SPRIG1" + importlib.util.MAGIC_NUMBER
_PREFIX = "__sprig_"
_SUFFIX = ".pyc"


class BytecodeCache:
    """File cache of compiled template code objects.

    Args:
        cache_dir: Directory for cache entries (created on first write)
        lifetime: Maximum entry age in seconds; None disables the age check
    """

    __slots__ = ("_cache_dir", "_lifetime")

    def __init__(self, cache_dir: str | Path, lifetime: float | None = 3600):
        self._cache_dir = Path(cache_dir)
        self._lifetime = lifetime

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    @property
    def lifetime(self) -> float | None:
        return self._lifetime

    @lifetime.setter
    def lifetime(self, seconds: float | None) -> None:
        self._lifetime = seconds

    def _cache_path(self, path: str | Path) -> Path:
        resolved = str(Path(path).resolve())
        digest = hashlib.sha256(resolved.encode("utf-8")).hexdigest()
        return self._cache_dir / f"{_PREFIX}{digest}{_SUFFIX}"

    def _discard(self, cache_file: Path, reason: str) -> None:
        logger.debug(f"Discarding {reason} cache entry {cache_file.name}")
        try:
            cache_file.unlink()
        except FileNotFoundError:
            pass

    def get(self, path: str | Path) -> types.CodeType | None:
        """Cached code object for the template at ``path``, or None on a miss."""
        cache_file = self._cache_path(path)
        try:
            cache_mtime = cache_file.stat().st_mtime
        except FileNotFoundError:
            logger.debug(f"Bytecode cache miss: {path}")
            return None

        if self._lifetime is not None and time.time() - cache_mtime > self._lifetime:
            self._discard(cache_file, "expired")
            return None

        try:
            data = cache_file.read_bytes()
        except OSError:
            self._discard(cache_file, "unreadable")
            return None

        if not data.startswith(_MAGIC):
            self._discard(cache_file, "foreign")
            return None

        try:
            dependencies, code = marshal.loads(data[len(_MAGIC) :])
        except (EOFError, ValueError, TypeError):
            self._discard(cache_file, "corrupt")
            return None
        if not isinstance(code, types.CodeType) or not isinstance(dependencies, tuple):
            self._discard(cache_file, "corrupt")
            return None

        for source in (str(path), *dependencies):
            try:
                source_mtime = os.stat(source).st_mtime
            except OSError:
                self._discard(cache_file, "stale")
                return None
            if source_mtime > cache_mtime:
                self._discard(cache_file, "stale")
                return None

        logger.debug(f"Bytecode cache hit: {path}")
        return code

    def put(
        self,
        path: str | Path,
        code: types.CodeType,
        dependencies: Iterable[str] = (),
    ) -> None:
        """Store ``code`` for the template at ``path``.

        ``dependencies`` are the other source files the code was built from;
        a change to any of them invalidates the entry.
        """
        self._cache_dir.mkdir(parents=True, exist_ok=True)
        cache_file = self._cache_path(path)
        payload = _MAGIC + marshal.dumps((tuple(str(d) for d in dependencies), code))

        fd, tmp_name = tempfile.mkstemp(dir=self._cache_dir, prefix=".tmp_", suffix=_SUFFIX)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
            os.replace(tmp_name, cache_file)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
        logger.debug(f"Bytecode cache write: {path}")

    def clear(self) -> None:
        """Remove every cache entry."""
        if not self._cache_dir.is_dir():
            return
        for cache_file in self._cache_dir.glob(f"{_PREFIX}*{_SUFFIX}"):
            try:
                cache_file.unlink()
            except FileNotFoundError:
                pass

    def stats(self) -> dict[str, int]:
        """``{"file_count": n, "total_bytes": size}`` of the cache directory."""
        file_count = 0
        total_bytes = 0
        if self._cache_dir.is_dir():
            for cache_file in self._cache_dir.glob(f"{_PREFIX}*{_SUFFIX}"):
                try:
                    total_bytes += cache_file.stat().st_size
                except FileNotFoundError:
                    continue
                file_count += 1
        return {"file_count": file_count, "total_bytes": total_bytes}
