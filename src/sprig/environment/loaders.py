"""Template loaders for the Sprig environment.

Loaders provide template source to the Environment. They implement
`get_source(name)` returning `(source, filename)`, where `filename` is the
resolved absolute path for file-backed templates and None otherwise.

Built-in Loaders:
- `FileSystemLoader`: Load from filesystem directories, with path sanitization
- `DictLoader`: Load from an in-memory dictionary (testing/embedded)
- `ChoiceLoader`: Try multiple loaders in order (theme fallback)

Custom Loaders:
Implement the Loader protocol:
    ```python
    class DatabaseLoader:
        def get_source(self, name: str) -> tuple[str, str | None]:
            row = db.query("SELECT source FROM templates WHERE name = ?", name)
            if not row:
                raise TemplateNotFoundError(f"Template '{name}' not found")
            return row.source, None
    ```

Thread-Safety:
All built-in loaders are safe for concurrent `get_source()` calls.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from pathlib import Path, PurePosixPath
from typing import Protocol

from sprig.environment.exceptions import TemplateNotFoundError, UnsafeTemplatePathError

_DRIVE_PREFIX = re.compile(r"^[a-zA-Z]:")


class Loader(Protocol):
    def get_source(self, name: str) -> tuple[str, str | None]: ...


def sanitize_template_name(name: str) -> str:
    """Validate a template name and normalize its separators to ``/``.

    Raises:
        UnsafeTemplatePathError: If the name is empty, absolute, contains
            ``..`` or a NUL byte
    """
    if not name:
        raise UnsafeTemplatePathError("Template path cannot be empty")
    if "\x00" in name:
        raise UnsafeTemplatePathError("Null bytes are not allowed in template paths")

    normalized = name.replace("\\", "/")
    if normalized.startswith("/") or _DRIVE_PREFIX.match(normalized):
        raise UnsafeTemplatePathError(f"Absolute paths are not allowed in templates: {name}")
    if ".." in PurePosixPath(normalized).parts:
        raise UnsafeTemplatePathError(f"Path traversal is not allowed in templates: {name}")
    return normalized


class FileSystemLoader:
    """Load templates from filesystem directories.

    Searches one or more directories for templates by name. The first
    matching file is returned. Names are sanitized first, and a name that
    resolves (through symlinks) outside its search directory is rejected.

    Attributes:
        _paths: List of Path objects to search
        _encoding: File encoding (default: utf-8)

    Search Order:
        Directories are searched in order. First match wins:
            ```python
            loader = FileSystemLoader(["themes/custom/", "themes/default/"])
            # Looks in themes/custom/ first, then themes/default/
            ```

    Example:
            >>> loader = FileSystemLoader("templates/")
            >>> source, filename = loader.get_source("pages/about.html")
            >>> filename
            '/srv/app/templates/pages/about.html'

    Raises:
        UnsafeTemplatePathError: If the name fails sanitization
        TemplateNotFoundError: If template not found in any search path
    """

    __slots__ = ("_encoding", "_paths")

    def __init__(
        self,
        paths: str | Path | Sequence[str | Path],
        encoding: str = "utf-8",
    ):
        if isinstance(paths, (str, Path)):
            paths = [paths]
        self._paths = [Path(p) for p in paths]
        self._encoding = encoding

    @property
    def paths(self) -> list[Path]:
        return list(self._paths)

    def get_source(self, name: str) -> tuple[str, str]:
        """Load template source from the filesystem."""
        relative = sanitize_template_name(name)
        for base in self._paths:
            path = base / relative
            if not path.is_file():
                continue
            resolved = path.resolve()
            root = base.resolve()
            if not resolved.is_relative_to(root):
                raise UnsafeTemplatePathError(
                    f"Template path is outside of template directory: {name}"
                )
            return resolved.read_text(self._encoding), str(resolved)

        raise TemplateNotFoundError(
            f"Template '{name}' not found in: {', '.join(str(p) for p in self._paths)}"
        )

    def list_templates(self) -> list[str]:
        """List all files in the search paths, as template names."""
        templates: set[str] = set()
        for base in self._paths:
            if base.is_dir():
                for path in base.rglob("*"):
                    if path.is_file():
                        templates.add(path.relative_to(base).as_posix())
        return sorted(templates)


class DictLoader:
    """Load templates from an in-memory dictionary.

    Maps template names to source strings. Useful for testing and for
    templates generated at runtime. Returns None as the filename, so these
    templates are cached in memory only.

    Example:
            >>> loader = DictLoader({
            ...     "base.html": "<html>{% block content %}{% end %}</html>",
            ...     "page.html": "{% extends 'base.html' %}{% block content %}Hi{% end %}",
            ... })
            >>> env = Environment(loader=loader)
            >>> env.render("page.html")
            '<html>Hi</html>'
    """

    __slots__ = ("_mapping",)

    def __init__(self, mapping: Mapping[str, str]):
        self._mapping = dict(mapping)

    def get_source(self, name: str) -> tuple[str, None]:
        try:
            return self._mapping[name], None
        except KeyError:
            raise TemplateNotFoundError(f"Template '{name}' not found") from None

    def list_templates(self) -> list[str]:
        return sorted(self._mapping)


class ChoiceLoader:
    """Try loaders in order and return the first match.

    Example:
            >>> loader = ChoiceLoader([
            ...     FileSystemLoader("themes/custom/"),
            ...     FileSystemLoader("themes/default/"),
            ... ])
    """

    __slots__ = ("_loaders",)

    def __init__(self, loaders: Sequence[Loader]):
        self._loaders = list(loaders)

    def get_source(self, name: str) -> tuple[str, str | None]:
        for loader in self._loaders:
            try:
                return loader.get_source(name)
            except TemplateNotFoundError:
                continue
        raise TemplateNotFoundError(f"Template '{name}' not found in any loader")

    def list_templates(self) -> list[str]:
        templates: set[str] = set()
        for loader in self._loaders:
            if hasattr(loader, "list_templates"):
                templates.update(loader.list_templates())
        return sorted(templates)
