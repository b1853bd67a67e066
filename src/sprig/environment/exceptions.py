"""Exceptions for the Sprig template system.

Exception Hierarchy:
TemplateError (base)
├── TemplateNotFoundError       # Loader could not locate a template
├── UnsafeTemplatePathError     # Name escapes the template root (also ValueError)
├── TemplateTooLargeError       # Source exceeds the configured size limit
├── TemplateRecursionError      # Circular or over-deep extends/include chain
├── TemplateSyntaxError         # Lex/parse-time error
│   ├── LexerError              # (sprig.lexer)
│   └── ParseError              # (sprig.parser.errors)
├── UnknownNameError            # Unregistered filter, function or test
│   ├── UnknownFilterError
│   ├── UnknownFunctionError
│   └── UnknownTestError
├── TemplateRuntimeError        # Render-time error with context
└── UndefinedError              # Undefined variable, key or attribute

Every exception carries an ``ErrorCode`` so failures can be searched for
and grouped. ``format_compact()`` renders a short terminal diagnostic:

    S-RUN-001: Undefined variable 'titl' in article.html:5
       |
    >  5 | <h1>{{ titl }}</h1>
       |
      Hint: Use {{ titl|default('') }} for optional variables

"""

from __future__ import annotations

from dataclasses import dataclass
from difflib import get_close_matches
from enum import Enum
from typing import Any

from sprig.environment import terminal

# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------


class ErrorCode(Enum):
    """Searchable error codes.

    Format: S-{CATEGORY}-{NUMBER}
    Categories: LEX (lexer), PAR (parser), RUN (runtime), TPL (template loading)
    """

    # Lexer errors (S-LEX-xxx)
    UNCLOSED_TAG = "S-LEX-001"
    UNCLOSED_COMMENT = "S-LEX-002"
    UNCLOSED_STRING = "S-LEX-003"
    UNEXPECTED_CHARACTER = "S-LEX-004"

    # Parser errors (S-PAR-xxx)
    UNEXPECTED_TOKEN = "S-PAR-001"
    UNCLOSED_BLOCK = "S-PAR-002"
    INVALID_EXPRESSION = "S-PAR-003"
    UNKNOWN_TAG = "S-PAR-004"
    NESTING_TOO_DEEP = "S-PAR-005"

    # Runtime errors (S-RUN-xxx)
    UNDEFINED_VARIABLE = "S-RUN-001"
    UNKNOWN_FILTER = "S-RUN-002"
    UNKNOWN_TEST = "S-RUN-003"
    UNKNOWN_FUNCTION = "S-RUN-004"
    RUNTIME_ERROR = "S-RUN-005"

    # Template loading errors (S-TPL-xxx)
    TEMPLATE_NOT_FOUND = "S-TPL-001"
    SYNTAX_ERROR = "S-TPL-002"
    TEMPLATE_RECURSION = "S-TPL-003"
    TEMPLATE_TOO_LARGE = "S-TPL-004"
    UNSAFE_TEMPLATE_PATH = "S-TPL-005"

    @property
    def category(self) -> str:
        """Error category (e.g., 'runtime', 'lexer', 'parser', 'template')."""
        prefix = self.value.split("-")[1]
        return {
            "LEX": "lexer",
            "PAR": "parser",
            "RUN": "runtime",
            "TPL": "template",
        }.get(prefix, "unknown")


# ---------------------------------------------------------------------------
# Source snippets
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """Template source lines around an error.

    Attributes:
        lines: (line_number, line_content) pairs around the error.
        error_line: The 1-based line number where the error occurred.
        column: Optional column offset for a caret pointer.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int
    column: int | None = None

    def format(self) -> str:
        parts: list[str] = [terminal.dim_text("   |")]
        for lineno, content in self.lines:
            parts.append(
                terminal.format_source_line(lineno, content, is_error=lineno == self.error_line)
            )
        if self.column is not None:
            parts.append(terminal.caret_line(self.column))
        parts.append(terminal.dim_text("   |"))
        return "\n".join(parts)


def build_source_snippet(
    source: str,
    error_line: int,
    *,
    context_lines: int = 2,
    column: int | None = None,
) -> SourceSnippet:
    """Build a SourceSnippet from template source.

    Args:
        source: Full template source text.
        error_line: 1-based line number of the error.
        context_lines: Number of lines to show before/after the error line.
        column: Optional column offset for caret pointer.
    """
    all_lines = source.splitlines()
    start = max(0, error_line - 1 - context_lines)
    end = min(len(all_lines), error_line + context_lines)
    lines = tuple((i + 1, all_lines[i]) for i in range(start, end))
    return SourceSnippet(lines=lines, error_line=error_line, column=column)


def _did_you_mean(name: str, candidates: Any) -> str | None:
    if not candidates:
        return None
    matches = get_close_matches(name, list(candidates), n=1, cutoff=0.6)
    return matches[0] if matches else None


class TemplateError(Exception):
    """Base exception for all Sprig template errors.

    Attributes:
        code: ErrorCode for searchable error identification.
    """

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """Format the error as a short, human-readable summary.

        Returns:
            The message prefixed with the error code.
        """
        header = str(self)
        if self.code and self.code.value not in header:
            header = f"{self.code.value}: {header}"
        return header


class TemplateNotFoundError(TemplateError):
    """Template not found by any configured loader.

    Example:
        >>> env.get_template("nonexistent.html")
        TemplateNotFoundError: Template 'nonexistent.html' not found in: templates/
    """

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_FOUND


class UnsafeTemplatePathError(TemplateError, ValueError):
    """Template name is empty, absolute, contains ``..`` or a NUL byte,
    or resolves outside the template root."""

    code: ErrorCode | None = ErrorCode.UNSAFE_TEMPLATE_PATH


class TemplateTooLargeError(TemplateError):
    """Template source exceeds the environment's ``max_template_size``."""

    code: ErrorCode | None = ErrorCode.TEMPLATE_TOO_LARGE

    def __init__(self, name: str, size: int, limit: int):
        self.name = name
        self.size = size
        self.limit = limit
        mb = 1024 * 1024
        super().__init__(
            f"Template file is too large: {name} is {size / mb:.2f} MB "
            f"(max: {limit / mb:.2f} MB)"
        )


class TemplateRecursionError(TemplateError):
    """Circular or over-deep ``extends``/``include`` chain.

    Attributes:
        chain: Template names in resolution order, ending with the repeat.
    """

    code: ErrorCode | None = ErrorCode.TEMPLATE_RECURSION

    def __init__(self, chain: list[str], *, max_depth: int | None = None):
        self.chain = list(chain)
        self.max_depth = max_depth
        path = " → ".join(self.chain)
        if max_depth is not None:
            message = f"Maximum template nesting depth ({max_depth}) exceeded: {path}"
        else:
            message = f"Circular template reference: {path}"
        super().__init__(message)


class TemplateSyntaxError(TemplateError):
    """Parse-time syntax error in template source.

    When ``source`` and ``lineno`` are provided, the message includes the
    offending line, and a caret when ``col_offset`` is known.
    """

    code: ErrorCode | None = ErrorCode.SYNTAX_ERROR

    def __init__(
        self,
        message: str,
        lineno: int | None = None,
        name: str | None = None,
        filename: str | None = None,
        source: str | None = None,
        col_offset: int | None = None,
        *,
        code: ErrorCode | None = None,
    ):
        if code is not None:
            self.code = code
        self.message = message
        self.lineno = lineno
        self.name = name
        self.filename = filename
        self.source = source
        self.col_offset = col_offset
        super().__init__(self._format_message())

    @property
    def location(self) -> str:
        location = self.filename or self.name or "<template>"
        if self.lineno:
            location += f":{self.lineno}"
        return location

    def _snippet_lines(self) -> list[str]:
        if not (self.source and self.lineno):
            return []
        lines = self.source.splitlines()
        if not 0 < self.lineno <= len(lines):
            return []
        out = ["   |", f"{self.lineno:>3} | {lines[self.lineno - 1]}"]
        if self.col_offset is not None:
            out.append(f"   | {' ' * self.col_offset}^")
        return out

    def _format_message(self) -> str:
        location = self.location
        if self.lineno and self.col_offset is not None:
            location += f":{self.col_offset}"
        return "\n".join([f"Syntax Error: {self.message}\n  --> {location}", *self._snippet_lines()])

    def format_compact(self) -> str:
        code_prefix = f"{self.code.value}: " if self.code else ""
        parts = [f"{code_prefix}{self.message}", f"  --> {self.location}"]
        snippet = self._snippet_lines()
        if snippet:
            parts.extend(snippet)
            parts.append("   |")
        return "\n".join(parts)


class UnknownNameError(TemplateError):
    """A filter, function or test name that is not registered.

    Raised while compiling when the name is known syntactically, and while
    rendering for code loaded from the bytecode cache.
    """

    kind = "name"

    def __init__(
        self,
        name: str,
        *,
        available: Any = None,
        template_name: str | None = None,
        lineno: int | None = None,
    ):
        self.name = name
        self.template_name = template_name
        self.lineno = lineno
        self.suggestion = _did_you_mean(name, available)
        message = f"{self.kind.capitalize()} '{name}' not found"
        if template_name or lineno:
            loc = template_name or "<template>"
            if lineno:
                loc += f":{lineno}"
            message += f" in {terminal.location(loc)}"
        if self.suggestion:
            message += f". Did you mean '{terminal.suggestion(self.suggestion)}'?"
        super().__init__(message)


class UnknownFilterError(UnknownNameError):
    code: ErrorCode | None = ErrorCode.UNKNOWN_FILTER
    kind = "filter"


class UnknownFunctionError(UnknownNameError):
    code: ErrorCode | None = ErrorCode.UNKNOWN_FUNCTION
    kind = "function"


class UnknownTestError(UnknownNameError):
    code: ErrorCode | None = ErrorCode.UNKNOWN_TEST
    kind = "test"


class TemplateRuntimeError(TemplateError):
    """Render-time error with debugging context.

    Output Format:
        ```
        Runtime Error: unsupported operand type(s) for +: 'int' and 'str'
          Location: cart.html:15
           |
        > 15 | {{ total + label }}
           |
        ```

    Attributes:
        message: Error description
        expression: Template expression that failed
        values: Dict of variable names → values for context
        template_name: Name of the template
        lineno: Line number in template source
        suggestion: Actionable fix suggestion
    """

    code: ErrorCode | None = ErrorCode.RUNTIME_ERROR

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        values: dict[str, Any] | None = None,
        template_name: str | None = None,
        lineno: int | None = None,
        suggestion: str | None = None,
        source_snippet: SourceSnippet | None = None,
    ):
        self.message = message
        self.expression = expression
        self.values = values or {}
        self.template_name = template_name
        self.lineno = lineno
        self.suggestion = suggestion
        self.source_snippet = source_snippet
        super().__init__(self._format_message())

    def _location(self) -> str:
        loc = self.template_name or "<template>"
        if self.lineno:
            loc += f":{self.lineno}"
        return loc

    def _format_message(self) -> str:
        parts = [f"Runtime Error: {self.message}"]
        if self.template_name or self.lineno:
            parts.append(f"  Location: {terminal.location(self._location())}")
        if self.source_snippet:
            parts.append(self.source_snippet.format())
        if self.expression:
            parts.append(f"  Expression: {self.expression}")
        if self.values:
            parts.append("  Values:")
            for name, value in self.values.items():
                value_repr = repr(value)
                if len(value_repr) > 80:
                    value_repr = value_repr[:77] + "..."
                parts.append(f"    {name} = {value_repr} ({type(value).__name__})")
        if self.suggestion:
            parts.append(f"\n  {terminal.hint('Suggestion:')} {self.suggestion}")
        return "\n".join(parts)

    def format_compact(self) -> str:
        parts = [
            terminal.format_error_header(self.code.value if self.code else None, self.message),
            f"  Location: {terminal.location(self._location())}",
        ]
        if self.source_snippet:
            parts.append(self.source_snippet.format())
        if self.expression:
            parts.append(f"  Expression: {self.expression}")
        if self.suggestion:
            parts.append(f"  {terminal.hint('Hint:')} {self.suggestion}")
        return "\n".join(parts)


class UndefinedError(TemplateError):
    """A template referenced a variable, key or attribute that does not exist.

    Only raised when the environment runs with ``strict_variables`` or in
    development mode without an error reporter; otherwise undefined values
    render as empty text and are logged.

    If ``available_names`` is provided, a "Did you mean?" suggestion is
    included when a close match is found.
    """

    code: ErrorCode | None = ErrorCode.UNDEFINED_VARIABLE

    def __init__(
        self,
        name: str,
        template: str | None = None,
        lineno: int | None = None,
        available_names: frozenset[str] | None = None,
        source_snippet: SourceSnippet | None = None,
        *,
        detail: str | None = None,
    ):
        self.name = name
        self.template = template or "<template>"
        self.lineno = lineno
        self.detail = detail
        self._available_names = available_names
        self.source_snippet = source_snippet
        super().__init__(self._format_message())

    @property
    def available_names(self) -> frozenset[str]:
        return self._available_names or frozenset()

    def _headline(self) -> str:
        location = self.template
        if self.lineno:
            location += f":{self.lineno}"
        msg = f"Undefined variable '{self.name}' in {terminal.location(location)}"
        suggested = _did_you_mean(self.name, self._available_names)
        if suggested:
            msg += f". Did you mean '{terminal.suggestion(suggested)}'?"
        return msg

    def _hint(self) -> str:
        hint_text = f"Use {{{{ {self.name}|default('') }}}} for optional variables"
        return f"  {terminal.hint('Hint:')} {hint_text}"

    def _format_message(self) -> str:
        msg = self._headline()
        if self.detail:
            msg += f"\n  {self.detail}"
        if self.source_snippet:
            msg += "\n" + self.source_snippet.format()
        return msg + "\n" + self._hint()

    def format_compact(self) -> str:
        parts = [
            terminal.format_error_header(self.code.value if self.code else None, self._headline())
        ]
        if self.source_snippet:
            parts.append(self.source_snippet.format())
        parts.append(self._hint())
        return "\n".join(parts)
