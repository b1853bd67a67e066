"""Sprig Environment: configuration, loaders, registries and errors.

The Environment is the entry point for loading and rendering templates.
Exceptions and loaders are imported first; the compiler and template
modules depend on them while the Environment module is still loading.
"""

from sprig.environment.exceptions import (
    ErrorCode,
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
    UnknownNameError,
    UnknownTestError,
    UnsafeTemplatePathError,
    build_source_snippet,
)
from sprig.environment.loaders import (
    ChoiceLoader,
    DictLoader,
    FileSystemLoader,
    Loader,
    sanitize_template_name,
)
from sprig.environment.core import Environment  # noqa: I001
from sprig.environment.registry import FilterRegistry

__all__ = [
    "ChoiceLoader",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "FilterRegistry",
    "Loader",
    "SourceSnippet",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRecursionError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "TemplateTooLargeError",
    "UndefinedError",
    "UnknownFilterError",
    "UnknownFunctionError",
    "UnknownNameError",
    "UnknownTestError",
    "UnsafeTemplatePathError",
    "build_source_snippet",
    "sanitize_template_name",
]
