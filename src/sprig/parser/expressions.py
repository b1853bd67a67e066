"""Expression parsing for the Sprig parser.

Recursive descent, lowest precedence first:

    ternary      a ? b : c
    or / and / not
    comparison   == != < > <= >= in, not in, is [not] test, starts with, ends with
    concat       a ~ b
    additive     + -
    multiplicative * / %
    unary        - +
    range        a..b
    filtered     value|filter(args)
    postfix      .name  [expr]  (args)
    primary      literals, names, (expr), [list], {dict}
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from sprig._types import Token, TokenType
from sprig.environment.exceptions import ErrorCode
from sprig.nodes import (
    BinOp,
    BoolOp,
    Compare,
    Concat,
    CondExpr,
    Const,
    Dict,
    Expr,
    Filter,
    FuncCall,
    Getattr,
    Getitem,
    List,
    Name,
    Range,
    Test,
    UnaryOp,
)

if TYPE_CHECKING:
    from sprig.parser.errors import ParseError

_COMPARE_OPS = {
    TokenType.EQ: "==",
    TokenType.NE: "!=",
    TokenType.LT: "<",
    TokenType.GT: ">",
    TokenType.LE: "<=",
    TokenType.GE: ">=",
}

_ADDITIVE_OPS = {TokenType.ADD: "+", TokenType.SUB: "-"}
_MULTIPLICATIVE_OPS = {TokenType.MUL: "*", TokenType.DIV: "/", TokenType.MOD: "%"}

_CONSTANTS: dict[str, bool | None] = {
    "true": True,
    "True": True,
    "false": False,
    "False": False,
    "null": None,
    "none": None,
    "None": None,
}


class ExpressionParsingMixin:
    """Builds expression nodes from the token stream."""

    # ─────────────────────────────────────────────────────────────────────────
    # Host attributes and cross-mixin dependencies (type-check only)
    # ─────────────────────────────────────────────────────────────────────────
    if TYPE_CHECKING:
        _tokens: Sequence[Token]
        _pos: int

        @property
        def _current(self) -> Token: ...
        def _peek(self, offset: int = 0) -> Token: ...
        def _advance(self) -> Token: ...
        def _match(self, *types: TokenType) -> bool: ...
        def _match_name(self, *values: str) -> bool: ...
        def _expect(self, token_type: TokenType) -> Token: ...
        def _error(
            self,
            message: str,
            token: Token | None = None,
            suggestion: str | None = None,
            *,
            code: ErrorCode | None = None,
        ) -> ParseError: ...

    def _parse_expression(self) -> Expr:
        return self._parse_ternary()

    def _parse_ternary(self) -> Expr:
        expr = self._parse_or()
        if self._match(TokenType.QUESTION):
            self._advance()
            if_true = self._parse_expression()
            self._expect(TokenType.COLON)
            if_false = self._parse_expression()
            return CondExpr(
                lineno=expr.lineno,
                col_offset=expr.col_offset,
                test=expr,
                if_true=if_true,
                if_false=if_false,
            )
        return expr

    def _parse_or(self) -> Expr:
        left = self._parse_and()
        values = [left]
        while self._match_name("or"):
            self._advance()
            values.append(self._parse_and())
        if len(values) == 1:
            return left
        return BoolOp(lineno=left.lineno, col_offset=left.col_offset, op="or", values=tuple(values))

    def _parse_and(self) -> Expr:
        left = self._parse_not()
        values = [left]
        while self._match_name("and"):
            self._advance()
            values.append(self._parse_not())
        if len(values) == 1:
            return left
        return BoolOp(lineno=left.lineno, col_offset=left.col_offset, op="and", values=tuple(values))

    def _parse_not(self) -> Expr:
        if self._match_name("not"):
            token = self._advance()
            operand = self._parse_not()
            return UnaryOp(lineno=token.lineno, col_offset=token.col_offset, op="not", operand=operand)
        return self._parse_comparison()

    def _parse_comparison(self) -> Expr:
        left = self._parse_concat()
        ops: list[str] = []
        comparators: list[Expr] = []

        while True:
            token = self._current
            if token.type in _COMPARE_OPS:
                self._advance()
                ops.append(_COMPARE_OPS[token.type])
            elif self._match_name("in"):
                self._advance()
                ops.append("in")
            elif self._match_name("not") and self._is_name_at(1, "in"):
                self._advance()
                self._advance()
                ops.append("not in")
            elif self._match_name("starts", "ends") and self._is_name_at(1, "with"):
                self._advance()
                self._advance()
                ops.append(f"{token.value} with")
            elif self._match_name("is"):
                left = self._wrap_compare(left, ops, comparators)
                ops, comparators = [], []
                left = self._parse_test(left)
                continue
            else:
                break
            comparators.append(self._parse_concat())

        return self._wrap_compare(left, ops, comparators)

    def _wrap_compare(self, left: Expr, ops: list[str], comparators: list[Expr]) -> Expr:
        if not ops:
            return left
        return Compare(
            lineno=left.lineno,
            col_offset=left.col_offset,
            left=left,
            ops=tuple(ops),
            comparators=tuple(comparators),
        )

    def _is_name_at(self, offset: int, value: str) -> bool:
        token = self._peek(offset)
        return token.type == TokenType.NAME and token.value == value

    def _parse_test(self, value: Expr) -> Expr:
        """Parse ``is [not] name[(args)]`` applied to ``value``."""
        self._advance()  # consume 'is'
        negated = False
        if self._match_name("not"):
            self._advance()
            negated = True
        if not self._match(TokenType.NAME):
            raise self._error(
                "Expected test name after 'is'",
                suggestion="Use a test such as 'defined', 'null', 'empty', 'odd' or 'iterable'",
            )
        name = self._advance().value
        args: tuple[Expr, ...] = ()
        if self._match(TokenType.LPAREN):
            args, kwargs = self._parse_call_args()
            if kwargs:
                raise self._error("Tests do not accept keyword arguments")
        return Test(
            lineno=value.lineno,
            col_offset=value.col_offset,
            value=value,
            name=name,
            args=args,
            negated=negated,
        )

    def _parse_concat(self) -> Expr:
        left = self._parse_additive()
        nodes = [left]
        while self._match(TokenType.TILDE):
            self._advance()
            nodes.append(self._parse_additive())
        if len(nodes) == 1:
            return left
        return Concat(lineno=left.lineno, col_offset=left.col_offset, nodes=tuple(nodes))

    def _parse_additive(self) -> Expr:
        left = self._parse_multiplicative()
        while self._current.type in _ADDITIVE_OPS:
            op = _ADDITIVE_OPS[self._advance().type]
            right = self._parse_multiplicative()
            left = BinOp(lineno=left.lineno, col_offset=left.col_offset, op=op, left=left, right=right)
        return left

    def _parse_multiplicative(self) -> Expr:
        left = self._parse_unary()
        while self._current.type in _MULTIPLICATIVE_OPS:
            op = _MULTIPLICATIVE_OPS[self._advance().type]
            right = self._parse_unary()
            left = BinOp(lineno=left.lineno, col_offset=left.col_offset, op=op, left=left, right=right)
        return left

    def _parse_unary(self) -> Expr:
        if self._match(TokenType.SUB, TokenType.ADD):
            token = self._advance()
            operand = self._parse_unary()
            return UnaryOp(
                lineno=token.lineno, col_offset=token.col_offset, op=token.value, operand=operand
            )
        return self._parse_range()

    def _parse_range(self) -> Expr:
        start = self._parse_filtered()
        if self._match(TokenType.RANGE):
            self._advance()
            end = self._parse_filtered()
            return Range(lineno=start.lineno, col_offset=start.col_offset, start=start, end=end)
        return start

    def _parse_filtered(self) -> Expr:
        value = self._parse_postfix()
        while self._match(TokenType.PIPE):
            self._advance()
            if not self._match(TokenType.NAME):
                raise self._error("Expected filter name after '|'", code=ErrorCode.INVALID_EXPRESSION)
            name_token = self._advance()
            args: tuple[Expr, ...] = ()
            kwargs: dict[str, Expr] = {}
            if self._match(TokenType.LPAREN):
                args, kwargs = self._parse_call_args()
            value = Filter(
                lineno=name_token.lineno,
                col_offset=name_token.col_offset,
                value=value,
                name=name_token.value,
                args=args,
                kwargs=kwargs,
            )
        return value

    def _parse_postfix(self) -> Expr:
        expr = self._parse_primary()
        while True:
            if self._match(TokenType.DOT):
                self._advance()
                token = self._current
                if token.type == TokenType.NAME:
                    self._advance()
                    expr = Getattr(
                        lineno=token.lineno, col_offset=token.col_offset, obj=expr, attr=token.value
                    )
                elif token.type == TokenType.INTEGER:
                    self._advance()
                    key = Const(lineno=token.lineno, col_offset=token.col_offset, value=int(token.value))
                    expr = Getitem(lineno=token.lineno, col_offset=token.col_offset, obj=expr, key=key)
                else:
                    raise self._error("Expected attribute name after '.'")
            elif self._match(TokenType.LBRACKET):
                token = self._advance()
                key = self._parse_expression()
                self._expect(TokenType.RBRACKET)
                expr = Getitem(lineno=token.lineno, col_offset=token.col_offset, obj=expr, key=key)
            elif self._match(TokenType.LPAREN):
                args, kwargs = self._parse_call_args()
                expr = FuncCall(
                    lineno=expr.lineno, col_offset=expr.col_offset, func=expr, args=args, kwargs=kwargs
                )
            else:
                return expr

    def _parse_call_args(self) -> tuple[tuple[Expr, ...], dict[str, Expr]]:
        """Parse ``(a, b, key=value)``. Keyword arguments must come last."""
        self._expect(TokenType.LPAREN)
        args: list[Expr] = []
        kwargs: dict[str, Expr] = {}
        while not self._match(TokenType.RPAREN):
            if self._match(TokenType.NAME) and self._peek(1).type == TokenType.ASSIGN:
                key = self._advance().value
                self._advance()  # consume '='
                kwargs[key] = self._parse_expression()
            else:
                if kwargs:
                    raise self._error("Positional argument follows keyword argument")
                args.append(self._parse_expression())
            if not self._match(TokenType.COMMA):
                break
            self._advance()
        self._expect(TokenType.RPAREN)
        return tuple(args), kwargs

    def _parse_primary(self) -> Expr:
        token = self._current

        if token.type == TokenType.STRING:
            self._advance()
            return Const(lineno=token.lineno, col_offset=token.col_offset, value=token.value)

        if token.type == TokenType.INTEGER:
            self._advance()
            return Const(lineno=token.lineno, col_offset=token.col_offset, value=int(token.value))

        if token.type == TokenType.FLOAT:
            self._advance()
            return Const(lineno=token.lineno, col_offset=token.col_offset, value=float(token.value))

        if token.type == TokenType.NAME:
            self._advance()
            if token.value in _CONSTANTS:
                return Const(
                    lineno=token.lineno, col_offset=token.col_offset, value=_CONSTANTS[token.value]
                )
            return Name(lineno=token.lineno, col_offset=token.col_offset, name=token.value)

        if token.type == TokenType.LPAREN:
            self._advance()
            expr = self._parse_expression()
            self._expect(TokenType.RPAREN)
            return expr

        if token.type == TokenType.LBRACKET:
            return self._parse_list()

        if token.type == TokenType.LBRACE:
            return self._parse_dict()

        raise self._error(
            f"Unexpected {'end of expression' if token.type.name.endswith('_END') else repr(token.value)}",
            code=ErrorCode.INVALID_EXPRESSION,
        )

    def _parse_list(self) -> List:
        start = self._expect(TokenType.LBRACKET)
        items: list[Expr] = []
        while not self._match(TokenType.RBRACKET):
            items.append(self._parse_expression())
            if not self._match(TokenType.COMMA):
                break
            self._advance()
        self._expect(TokenType.RBRACKET)
        return List(lineno=start.lineno, col_offset=start.col_offset, items=tuple(items))

    def _parse_dict(self) -> Dict:
        """Parse ``{key: value, ...}``. A bare name key is a string key."""
        start = self._expect(TokenType.LBRACE)
        keys: list[Expr] = []
        values: list[Expr] = []
        while not self._match(TokenType.RBRACE):
            token = self._current
            if token.type == TokenType.NAME and self._peek(1).type == TokenType.COLON:
                self._advance()
                key: Expr = Const(lineno=token.lineno, col_offset=token.col_offset, value=token.value)
            else:
                key = self._parse_expression()
            self._expect(TokenType.COLON)
            keys.append(key)
            values.append(self._parse_expression())
            if not self._match(TokenType.COMMA):
                break
            self._advance()
        self._expect(TokenType.RBRACE)
        return Dict(
            lineno=start.lineno, col_offset=start.col_offset, keys=tuple(keys), values=tuple(values)
        )


def describe_expression(expr: Expr) -> str:
    """Short source-like label for an expression (used by ``{% debug %}``)."""
    if isinstance(expr, Name):
        return expr.name
    if isinstance(expr, Getattr):
        return f"{describe_expression(expr.obj)}.{expr.attr}"
    if isinstance(expr, Getitem):
        key = expr.key
        inner = repr(key.value) if isinstance(key, Const) else describe_expression(key)
        return f"{describe_expression(expr.obj)}[{inner}]"
    if isinstance(expr, Filter):
        return f"{describe_expression(expr.value)}|{expr.name}"
    if isinstance(expr, Const):
        return repr(expr.value)
    return "expression"
