"""Parser error handling for Sprig.

Provides ParseError with source context and suggestions.
"""

from __future__ import annotations

from sprig._types import Token
from sprig.environment.exceptions import ErrorCode, TemplateSyntaxError


class ParseError(TemplateSyntaxError):
    """Parser error anchored at a token.

    Shares the TemplateSyntaxError rendering (location line, source line
    and caret) and appends an optional suggestion.
    """

    def __init__(
        self,
        message: str,
        token: Token,
        source: str | None = None,
        filename: str | None = None,
        suggestion: str | None = None,
        *,
        name: str | None = None,
        code: ErrorCode | None = None,
    ):
        self.token = token
        self.suggestion = suggestion
        super().__init__(
            message,
            lineno=token.lineno,
            name=name,
            filename=filename,
            source=source,
            col_offset=token.col_offset,
            code=code or ErrorCode.UNEXPECTED_TOKEN,
        )

    def _format_message(self) -> str:
        msg = super()._format_message()
        if self.suggestion:
            msg += f"\n\nSuggestion: {self.suggestion}"
        return msg
