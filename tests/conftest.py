"""Pytest configuration and fixtures for Sprig tests."""

from pathlib import Path

import pytest

from sprig import DictLoader, Environment, FileSystemLoader
from sprig.environment import terminal


@pytest.fixture(autouse=True)
def plain_diagnostics(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep error messages free of ANSI codes regardless of the terminal."""
    monkeypatch.setattr(terminal, "_USE_COLORS", False)


@pytest.fixture
def env():
    """Create a basic Sprig Environment with no loader."""
    return Environment()


@pytest.fixture
def env_with_loader():
    """Create a Sprig Environment with DictLoader and test templates."""
    loader = DictLoader(
        {
            "base.html": (
                "<html>"
                "<head>{% block head %}{% endblock %}</head>"
                "<body>{% block body %}{% endblock %}</body>"
                "</html>"
            ),
            "child.html": ('{% extends "base.html" %}{% block body %}Hello World{% endblock %}'),
            "partial.html": "<p>Partial content</p>",
            "greeting.html": "Hello, {{ name }}!",
        }
    )
    return Environment(loader=loader)


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """Directory of file-backed templates."""
    root = tmp_path / "templates"
    root.mkdir()
    (root / "base.html").write_text(
        "<main>{% block content %}default{% endblock %}</main>", encoding="utf-8"
    )
    (root / "page.html").write_text(
        '{% extends "base.html" %}{% block content %}{{ title }}{% endblock %}',
        encoding="utf-8",
    )
    (root / "header.html").write_text("<h1>{{ title }}</h1>", encoding="utf-8")
    (root / "with_header.html").write_text(
        '{% include "header.html" %}<p>body</p>', encoding="utf-8"
    )
    return root


@pytest.fixture
def fs_env(tmp_path: Path, template_dir: Path):
    """Environment over a FileSystemLoader with a bytecode cache directory."""
    return Environment(
        loader=FileSystemLoader(template_dir),
        cache_dir=tmp_path / "cache",
    )


def render(env: Environment, source: str, **context: object) -> str:
    """Compile and render a one-shot template."""
    return env.from_string(source).render(**context)


def assert_contains(template_result: str, *expected_parts: str) -> None:
    """Assert template result contains all expected parts.

    Args:
        template_result: The actual template rendering result.
        expected_parts: Strings that should all be present in the result.
    """
    for part in expected_parts:
        assert part in template_result, (
            f"Template output missing expected content:\n"
            f"  Missing: {part!r}\n"
            f"  Actual: {template_result!r}"
        )
