"""Tokenizer and recursive descent parser for astrolang programs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from . import ast
from .errors import DSLSyntaxError

__all__ = [
    "Parser",
    "Token",
    "Tokenizer",
    "parse_condition",
    "parse_expression",
    "parse_program",
]


@dataclass(frozen=True)
class Token:
    """Representation of a lexical token."""

    type: str
    value: object
    line: int
    column: int


_KEYWORDS = {
    "of": "OF",
    "as": "AS",
    "is": "IS",
    "not": "NOT",
    "has": "HAS",
    "when": "WHEN",
    "then": "THEN",
    "set": "SET",
    "if": "IF",
    "and": "AND",
    "or": "OR",
    "in": "IN",
}

_TWO_CHAR_OPERATORS = {
    "!=": "NE",
    "<=": "LE",
    ">=": "GE",
    "+=": "PLUS_EQ",
    "-=": "MINUS_EQ",
}

_ONE_CHAR_OPERATORS = {
    "=": "EQ",
    "<": "LT",
    ">": "GT",
    "+": "PLUS",
    "-": "MINUS",
    "*": "STAR",
    "/": "SLASH",
    "[": "LBRACKET",
    "]": "RBRACKET",
    "{": "LBRACE",
    "}": "RBRACE",
    "(": "LPAREN",
    ")": "RPAREN",
    ":": "COLON",
}

_COMPARATORS = ("EQ", "NE", "LT", "LE", "GT", "GE")
_ARITHMETIC = ("PLUS", "MINUS", "STAR", "SLASH")
_SET_OPERATORS = ("EQ", "PLUS_EQ", "MINUS_EQ", "PLUS", "MINUS")


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


class Tokenizer:
    """Convert program source into a stream of tokens."""

    def __init__(self, source: str) -> None:
        self._source = source
        self._length = len(source)
        self._index = 0
        self._line = 1
        self._column = 1

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        while not self._is_at_end:
            ch = self._peek()
            if ch.isspace():
                self._consume_whitespace()
                continue
            if ch == "/" and self._peek_next() == "/":
                self._consume_comment()
                continue
            if ch.isalpha():
                tokens.append(self._read_identifier())
                continue
            if _is_digit(ch):
                tokens.append(self._read_number())
                continue
            if ch == '"':
                tokens.append(self._read_string())
                continue
            tokens.append(self._read_operator())
        tokens.append(Token("EOF", "", self._line, self._column))
        return tokens

    @property
    def _is_at_end(self) -> bool:
        return self._index >= self._length

    def _peek(self) -> str:
        if self._is_at_end:
            return "\0"
        return self._source[self._index]

    def _peek_next(self) -> str:
        if self._index + 1 >= self._length:
            return "\0"
        return self._source[self._index + 1]

    def _advance(self) -> str:
        ch = self._source[self._index]
        self._index += 1
        if ch == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        return ch

    def _consume_whitespace(self) -> None:
        while not self._is_at_end and self._peek().isspace():
            self._advance()

    def _consume_comment(self) -> None:
        while not self._is_at_end and self._peek() != "\n":
            self._advance()

    def _read_identifier(self) -> Token:
        start_line, start_col = self._line, self._column
        value_chars: List[str] = []
        while not self._is_at_end and (self._peek().isalnum() or self._peek() == "_"):
            value_chars.append(self._advance())
        text = "".join(value_chars)
        return Token(_KEYWORDS.get(text, "IDENT"), text, start_line, start_col)

    def _read_number(self) -> Token:
        start_line, start_col = self._line, self._column
        start_index = self._index
        while _is_digit(self._peek()):
            self._advance()
        is_decimal = False
        if self._peek() == "." and _is_digit(self._peek_next()):
            is_decimal = True
            self._advance()
            while _is_digit(self._peek()):
                self._advance()
        text = self._source[start_index : self._index]
        number: int | float = float(text) if is_decimal else int(text)
        return Token("NUMBER", number, start_line, start_col)

    def _read_string(self) -> Token:
        start_line, start_col = self._line, self._column
        self._advance()
        value_chars: List[str] = []
        while not self._is_at_end:
            ch = self._peek()
            if ch == "\n":
                break
            self._advance()
            if ch == '"':
                return Token("STRING", "".join(value_chars), start_line, start_col)
            value_chars.append(ch)
        raise DSLSyntaxError(
            "Unterminated string literal", start_line, start_col, expected=('"',)
        )

    def _read_operator(self) -> Token:
        start_line, start_col = self._line, self._column
        two_char = self._peek() + self._peek_next()
        if two_char in _TWO_CHAR_OPERATORS:
            self._advance()
            self._advance()
            return Token(_TWO_CHAR_OPERATORS[two_char], two_char, start_line, start_col)
        ch = self._advance()
        if ch in _ONE_CHAR_OPERATORS:
            return Token(_ONE_CHAR_OPERATORS[ch], ch, start_line, start_col)
        raise DSLSyntaxError(f"Unexpected character {ch!r}", start_line, start_col, found=ch)


class Parser:
    """Recursive descent parser producing :class:`~astrolang.lang.ast.Program` trees.

    ``and``/``or`` chains and arithmetic chains are both flat: operands are
    combined strictly left to right without precedence levels.
    """

    def __init__(self, tokens: Sequence[Token]) -> None:
        self._tokens = tokens
        self._position = 0

    def parse_program(self) -> ast.Program:
        declarations: List[ast.Declaration] = []
        while not self._check("EOF"):
            declarations.append(self._parse_declaration())
        return ast.Program(tuple(declarations))

    def parse_condition(self) -> ast.Condition:
        condition = self._parse_condition()
        self._consume("EOF", "Unexpected trailing tokens")
        return condition

    def parse_expression(self) -> ast.Expr:
        expr = self._parse_expr()
        self._consume("EOF", "Unexpected trailing tokens")
        return expr

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _parse_declaration(self) -> ast.Declaration:
        if self._check("STRING"):
            return self._parse_concept()
        if self._check("LBRACKET"):
            line = self._peek().line
            subject = self._parse_param()
            if self._match("IS"):
                return self._parse_predicate(subject, line)
            if self._match("HAS"):
                return self._parse_rule(subject, line)
            self._error(self._peek(), "Expected 'is' or 'has' after parameter", ("IS", "HAS"))
        self._error(self._peek(), "Expected a declaration", ("STRING", "LBRACKET"))
        raise AssertionError("unreachable")

    def _parse_concept(self) -> ast.ConceptDecl:
        name_token = self._consume("STRING", "Expected concept name")
        self._consume("OF", "Expected 'of' after concept name")
        param = self._parse_param()
        self._consume("AS", "Expected 'as' before concept body")
        body = self._parse_block()
        return ast.ConceptDecl(str(name_token.value), param, body, line=name_token.line)

    def _parse_predicate(self, subject: ast.Param, line: int) -> ast.PredicateDecl:
        name_token = self._consume("STRING", "Expected predicate name")
        context: ast.Param | None = None
        if self._match("OF"):
            context = self._parse_param()
        self._consume("WHEN", "Expected 'when' before predicate condition")
        guard = self._parse_condition()
        action: ast.Block | None = None
        if self._match("THEN"):
            action = self._parse_block()
        return ast.PredicateDecl(
            str(name_token.value), subject, guard, context=context, action=action, line=line
        )

    def _parse_rule(self, subject: ast.Param, line: int) -> ast.RuleDecl:
        label_token = self._consume("STRING", "Expected rule label")
        self._consume("WHEN", "Expected 'when' before rule condition")
        guard = self._parse_condition()
        self._consume("THEN", "Expected 'then' before rule actions")
        action = self._parse_block()
        return ast.RuleDecl(str(label_token.value), subject, guard, action, line=line)

    def _parse_param(self) -> ast.Param:
        self._consume("LBRACKET", "Expected '[' to open parameter")
        name_token = self._consume("IDENT", "Expected parameter name")
        type_name = ast.ANY_TYPE
        if self._match("COLON"):
            type_name = str(self._consume("IDENT", "Expected parameter type").value)
        self._consume("RBRACKET", "Expected ']' to close parameter")
        return ast.Param(str(name_token.value), type_name)

    # ------------------------------------------------------------------
    # Blocks and statements
    # ------------------------------------------------------------------

    def _parse_block(self) -> ast.Block:
        self._consume("LBRACE", "Expected '{' to open block")
        statements: List[ast.Statement] = []
        result: ast.Expr | None = None
        while True:
            if self._check("SET"):
                statements.append(self._parse_set())
            elif self._check("IF"):
                statements.append(self._parse_if())
            elif self._check("RBRACE"):
                break
            else:
                result = self._parse_expr()
                break
        self._consume("RBRACE", "Expected '}' to close block")
        return ast.Block(tuple(statements), result)

    def _parse_set(self) -> ast.SetStatement:
        self._consume("SET", "Expected 'set'")
        target = str(self._consume("IDENT", "Expected assignment target").value)
        owner: str | None = None
        if self._match("OF"):
            owner = str(self._consume("IDENT", "Expected owner after 'of'").value)
        if not self._match(*_SET_OPERATORS):
            self._error(self._peek(), "Expected assignment operator", _SET_OPERATORS)
        op = str(self._previous.value)
        value = self._parse_expr()
        return ast.SetStatement(target, owner, op, value)

    def _parse_if(self) -> ast.IfStatement:
        self._consume("IF", "Expected 'if'")
        condition = self._parse_condition()
        body = self._parse_block()
        return ast.IfStatement(condition, body)

    # ------------------------------------------------------------------
    # Conditions
    # ------------------------------------------------------------------

    def _parse_condition(self) -> ast.Condition:
        condition = self._parse_atom()
        while self._match("AND", "OR"):
            op = str(self._previous.value)
            right = self._parse_atom()
            condition = ast.Logical(condition, op, right)
        return condition

    def _parse_atom(self) -> ast.Condition:
        if not self._check("LPAREN"):
            return self._parse_test()
        mark = self._position
        try:
            self._advance()
            condition = self._parse_condition()
            self._consume("RPAREN", "Expected ')' after condition")
            return condition
        except DSLSyntaxError as paren_error:
            # Not a grouped condition; retry as an operand such as "(a + b) > 3".
            self._position = mark
            try:
                return self._parse_test()
            except DSLSyntaxError as operand_error:
                raise _furthest(paren_error, operand_error) from None

    def _parse_test(self) -> ast.Condition:
        left = self._parse_expr()
        if self._match("IS"):
            negated = self._match("NOT")
            name_token = self._consume("STRING", "Expected predicate name after 'is'")
            return ast.IsCheck(left, str(name_token.value), negated)
        if self._match("IN"):
            if self._match("LPAREN"):
                options = [self._parse_expr()]
                while self._match("OR"):
                    options.append(self._parse_expr())
                self._consume("RPAREN", "Expected ')' after membership options")
                return ast.Membership(left, tuple(options))
            return ast.Comparison(left, "in", self._parse_expr())
        if self._match(*_COMPARATORS):
            op = str(self._previous.value)
            return ast.Comparison(left, op, self._parse_expr())
        self._error(
            self._peek(),
            "Expected comparison, 'is' or 'in'",
            (*_COMPARATORS, "IS", "IN"),
        )
        raise AssertionError("unreachable")

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _parse_expr(self) -> ast.Expr:
        expr = self._parse_term()
        while self._match(*_ARITHMETIC):
            op = str(self._previous.value)
            right = self._parse_term()
            expr = ast.BinaryOp(expr, op, right)
        return expr

    def _parse_term(self) -> ast.Expr:
        if self._match("IDENT"):
            name = str(self._previous.value)
            if self._match("OF"):
                subject = str(self._consume("IDENT", "Expected identifier after 'of'").value)
                return ast.AttributeRef(name, subject)
            return ast.Name(name)
        if self._match("NUMBER"):
            value = self._previous.value
            assert isinstance(value, (int, float))
            return ast.Number(value)
        if self._match("STRING"):
            return ast.String(str(self._previous.value))
        if self._match("LPAREN"):
            expr = self._parse_expr()
            self._consume("RPAREN", "Expected ')' after expression")
            return expr
        self._error(
            self._peek(),
            "Unexpected token in expression",
            ("IDENT", "NUMBER", "STRING", "LPAREN"),
        )
        raise AssertionError("unreachable")

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def _match(self, *types: str) -> bool:
        for token_type in types:
            if self._check(token_type):
                self._advance()
                return True
        return False

    def _consume(self, token_type: str, message: str) -> Token:
        if self._check(token_type):
            return self._advance()
        self._error(self._peek(), message, (token_type,))
        raise AssertionError("unreachable")

    def _check(self, token_type: str) -> bool:
        return self._peek().type == token_type

    def _advance(self) -> Token:
        token = self._peek()
        if self._position < len(self._tokens):
            self._position += 1
        return token

    def _peek(self) -> Token:
        if self._position >= len(self._tokens):
            return self._tokens[-1]
        return self._tokens[self._position]

    @property
    def _previous(self) -> Token:
        return self._tokens[self._position - 1]

    def _error(self, token: Token, message: str, expected: Sequence[str] = ()) -> None:
        found = "end of input" if token.type == "EOF" else str(token.value)
        raise DSLSyntaxError(message, token.line, token.column, found=found, expected=expected)


def _furthest(first: DSLSyntaxError, second: DSLSyntaxError) -> DSLSyntaxError:
    if (second.line, second.column) >= (first.line, first.column):
        return second
    return first


def parse_program(source: str) -> ast.Program:
    """Parse ``source`` into a :class:`~astrolang.lang.ast.Program`."""

    tokens = Tokenizer(source).tokenize()
    return Parser(tokens).parse_program()


def parse_condition(source: str) -> ast.Condition:
    """Parse a standalone condition such as ``SUN of c = HOUSE1 of c``."""

    return Parser(Tokenizer(source).tokenize()).parse_condition()


def parse_expression(source: str) -> ast.Expr:
    """Parse a standalone arithmetic expression."""

    return Parser(Tokenizer(source).tokenize()).parse_expression()
