"""Sprig: a compiled template engine for HTML pages.

Templates are lexed, parsed into an immutable AST, flattened (``extends``
and ``include`` are resolved ahead of time) and compiled to a Python
``render(ctx)`` function. Compiled code is cached in memory and, when a
cache directory is configured, on disk between processes.

Quickstart:
    >>> from sprig import Environment
    >>> env = Environment()
    >>> env.from_string("Hello, {{ name }}!").render(name="World")
    'Hello, World!'

File-based templates:
    >>> from sprig import Environment, FileSystemLoader
    >>> env = Environment(loader=FileSystemLoader("templates/"), cache_dir=".sprig-cache")
    >>> env.render("index.html", {"page": page})

Architecture:
    Template Source → Lexer → Parser → Sprig AST → InheritanceResolver
    → Compiler → Python AST → exec()

Output of ``{{ expr }}`` is HTML-escaped unless the value is Markup or the
value is written with ``{! expr !}``. Undefined variables render
as empty text by default; see ``Environment.strict_variables`` and
``Environment.development`` for stricter policies.
"""

from sprig._types import Token, TokenType
from sprig.bytecode_cache import BytecodeCache
from sprig.environment import (
    ChoiceLoader,
    DictLoader,
    Environment,
    ErrorCode,
    FileSystemLoader,
    SourceSnippet,
    TemplateError,
    TemplateNotFoundError,
    TemplateRecursionError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    TemplateTooLargeError,
    UndefinedError,
    UnknownFilterError,
    UnknownFunctionError,
    UnknownTestError,
    UnsafeTemplatePathError,
    build_source_snippet,
)
from sprig.telemetry import RenderCollector, RenderRecord, UndefinedReference
from sprig.template import UNDEFINED, LoopContext, Markup, Template, Undefined

__version__ = "0.1.0"

__all__ = [
    "UNDEFINED",
    "BytecodeCache",
    "ChoiceLoader",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "LoopContext",
    "Markup",
    "RenderCollector",
    "RenderRecord",
    "SourceSnippet",
    "Template",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRecursionError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "TemplateTooLargeError",
    "Token",
    "TokenType",
    "Undefined",
    "UndefinedError",
    "UndefinedReference",
    "UnknownFilterError",
    "UnknownFunctionError",
    "UnknownTestError",
    "UnsafeTemplatePathError",
    "__version__",
    "build_source_snippet",
]
