"""
Lox scanner
Turns raw source text into a flat token stream with source lines, built on pyparsing
"""

from typing import Any, List
from dataclasses import dataclass
from enum import Enum, auto

from pyparsing import (
    MatchFirst, ParseResults, ParserElement, QuotedString, Regex, lineno, one_of
)

from error_handling import LoxScanError


class TokenType(Enum):
    """Every lexical token kind the parser understands"""
    # Single-character tokens
    LEFT_PAREN = auto()
    RIGHT_PAREN = auto()
    LEFT_BRACE = auto()
    RIGHT_BRACE = auto()
    COMMA = auto()
    DOT = auto()
    MINUS = auto()
    PLUS = auto()
    SEMICOLON = auto()
    SLASH = auto()
    STAR = auto()
    PERCENT = auto()

    # One or two character tokens
    BANG = auto()
    BANG_EQUAL = auto()
    EQUAL = auto()
    EQUAL_EQUAL = auto()
    GREATER = auto()
    GREATER_EQUAL = auto()
    LESS = auto()
    LESS_EQUAL = auto()
    AMPER_AMPER = auto()
    BAR_BAR = auto()

    # Literals
    IDENTIFIER = auto()
    STRING = auto()
    NUMBER = auto()

    # Keywords
    AND = auto()
    CLASS = auto()
    ELSE = auto()
    FALSE = auto()
    FUN = auto()
    FOR = auto()
    IF = auto()
    NIL = auto()
    NOT = auto()
    OR = auto()
    RETURN = auto()
    SUPER = auto()
    SELF = auto()
    TRUE = auto()
    VAR = auto()
    WHILE = auto()

    EOF = auto()


KEYWORDS = {
    "and": TokenType.AND,
    "class": TokenType.CLASS,
    "else": TokenType.ELSE,
    "false": TokenType.FALSE,
    "fun": TokenType.FUN,
    "for": TokenType.FOR,
    "if": TokenType.IF,
    "nil": TokenType.NIL,
    "not": TokenType.NOT,
    "or": TokenType.OR,
    "return": TokenType.RETURN,
    "super": TokenType.SUPER,
    "self": TokenType.SELF,
    "true": TokenType.TRUE,
    "var": TokenType.VAR,
    "while": TokenType.WHILE,
}

OPERATORS = {
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
    "{": TokenType.LEFT_BRACE,
    "}": TokenType.RIGHT_BRACE,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
    "-": TokenType.MINUS,
    "+": TokenType.PLUS,
    ";": TokenType.SEMICOLON,
    "/": TokenType.SLASH,
    "*": TokenType.STAR,
    "%": TokenType.PERCENT,
    "!": TokenType.BANG,
    "!=": TokenType.BANG_EQUAL,
    "=": TokenType.EQUAL,
    "==": TokenType.EQUAL_EQUAL,
    ">": TokenType.GREATER,
    ">=": TokenType.GREATER_EQUAL,
    "<": TokenType.LESS,
    "<=": TokenType.LESS_EQUAL,
    "&&": TokenType.AMPER_AMPER,
    "||": TokenType.BAR_BAR,
}


@dataclass(frozen=True)
class Token:
    """Lox token with the line it was read from"""
    type: TokenType
    lexeme: str
    literal: Any
    line: int

    def __str__(self) -> str:
        return f"{self.type.name} {self.lexeme} {self.literal}"


class Scanner:
    """Lox scanner: pyparsing recognises the lexemes, gaps between them are errors"""

    def __init__(self, source: str):
        self.source = source
        self.tokens: List[Token] = []
        self.errors: List[LoxScanError] = []
        self._setup_token_patterns()

    def _setup_token_patterns(self):
        """Setup all token patterns, in priority order"""

        # Comments run to end of line and produce no token
        comment = Regex(r"//[^\n]*").suppress()

        # Numbers: digits with an optional fractional part
        number = Regex(r"\d+(?:\.\d+)?").set_parse_action(
            lambda s, loc, t: self._make_token(TokenType.NUMBER, t[0], float(t[0]), s, loc)
        )

        # Strings may use either quote and span lines; there are no escapes
        string = (
            QuotedString('"', multiline=True, unquote_results=False) |
            QuotedString("'", multiline=True, unquote_results=False)
        ).set_parse_action(
            lambda s, loc, t: self._make_token(TokenType.STRING, t[0], t[0][1:-1], s, loc)
        )

        identifier = Regex(r"[A-Za-z_][A-Za-z0-9_]*").set_parse_action(self._identifier)

        # one_of tries the longest operator first
        operator = one_of(list(OPERATORS)).set_parse_action(
            lambda s, loc, t: self._make_token(OPERATORS[t[0]], t[0], None, s, loc)
        )

        self.token_pattern: ParserElement = MatchFirst(
            [comment, number, string, identifier, operator]
        ).parse_with_tabs()

    def _make_token(self, token_type: TokenType, lexeme: str, literal: Any,
                    text: str, loc: int) -> Token:
        return Token(token_type, lexeme, literal, lineno(loc, text))

    def _identifier(self, text: str, loc: int, tokens: ParseResults) -> Token:
        lexeme = tokens[0]
        token_type = KEYWORDS.get(lexeme, TokenType.IDENTIFIER)
        return self._make_token(token_type, lexeme, None, text, loc)

    def scan_tokens(self) -> List[Token]:
        """Tokenize the whole source; always ends with an EOF token"""
        position = 0
        for tokens, start, end in self.token_pattern.scan_string(self.source):
            if not self._check_gap(position, start):
                break
            if tokens:
                self.tokens.append(tokens[0])
            position = end
        else:
            self._check_gap(position, len(self.source))

        self.tokens.append(Token(TokenType.EOF, "", None, self._line_at(len(self.source))))
        return self.tokens

    def _check_gap(self, start: int, end: int) -> bool:
        """Report anything but whitespace between two matches; False stops scanning"""
        for offset in range(start, end):
            char = self.source[offset]
            if char.isspace():
                continue
            if char in "\"'":
                self.errors.append(LoxScanError(self._line_at(offset), "Unterminated string."))
                return False
            self.errors.append(
                LoxScanError(self._line_at(offset), f"Unexpected character '{char}'.")
            )
        return True

    def _line_at(self, offset: int) -> int:
        return self.source.count("\n", 0, offset) + 1

    @property
    def had_error(self) -> bool:
        return bool(self.errors)


def scan(source: str) -> Scanner:
    """Run a scanner over source and return it (tokens and errors populated)"""
    scanner = Scanner(source)
    scanner.scan_tokens()
    return scanner

