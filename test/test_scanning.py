"""
Scanner tests for pylox
Tests token kinds, literals, line tracking and lexical errors
"""

import pytest
from scanning import Scanner, TokenType, scan


def token_types(source):
  return [token.type for token in Scanner(source).scan_tokens()]


class TestTokens:
  """Test recognition of every token family"""

  def test_empty_source_is_just_eof(self):
    tokens = Scanner("").scan_tokens()
    assert len(tokens) == 1
    assert tokens[0].type == TokenType.EOF

  def test_single_character_tokens(self):
    assert token_types("(){},.-+;*/%") == [
      TokenType.LEFT_PAREN, TokenType.RIGHT_PAREN,
      TokenType.LEFT_BRACE, TokenType.RIGHT_BRACE,
      TokenType.COMMA, TokenType.DOT, TokenType.MINUS, TokenType.PLUS,
      TokenType.SEMICOLON, TokenType.STAR, TokenType.SLASH, TokenType.PERCENT,
      TokenType.EOF,
    ]

  def test_two_character_operators_win(self):
    """Longest match: `==` is one token, not two `=`"""
    assert token_types("!= == <= >= && ||") == [
      TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL, TokenType.LESS_EQUAL,
      TokenType.GREATER_EQUAL, TokenType.AMPER_AMPER, TokenType.BAR_BAR,
      TokenType.EOF,
    ]

  def test_keywords_and_identifiers(self):
    tokens = Scanner("var self super new classy not").scan_tokens()
    assert [t.type for t in tokens] == [
      TokenType.VAR, TokenType.SELF, TokenType.SUPER, TokenType.IDENTIFIER,
      TokenType.IDENTIFIER, TokenType.NOT, TokenType.EOF,
    ]
    assert tokens[3].lexeme == "new"

  def test_number_literals_are_floats(self):
    tokens = Scanner("42 3.25").scan_tokens()
    assert tokens[0].literal == 42.0
    assert isinstance(tokens[0].literal, float)
    assert tokens[1].literal == 3.25

  def test_trailing_dot_is_not_part_of_number(self):
    assert token_types("1.") == [TokenType.NUMBER, TokenType.DOT, TokenType.EOF]

  def test_strings_with_either_quote(self):
    tokens = Scanner("\"double\" 'single'").scan_tokens()
    assert tokens[0].type == TokenType.STRING
    assert tokens[0].literal == "double"
    assert tokens[0].lexeme == '"double"'
    assert tokens[1].literal == "single"

  def test_comments_are_skipped(self):
    assert token_types("1 // ignored ( ) ;\n2") == [
      TokenType.NUMBER, TokenType.NUMBER, TokenType.EOF,
    ]


class TestLines:
  """Test line numbers carried by tokens"""

  def test_lines_advance_on_newlines(self):
    tokens = Scanner("a\nb\n\nc").scan_tokens()
    assert [t.line for t in tokens] == [1, 2, 4, 4]

  def test_multiline_string_counts_lines(self):
    tokens = Scanner('"one\ntwo"\nx').scan_tokens()
    assert tokens[0].literal == "one\ntwo"
    assert tokens[0].line == 1
    assert tokens[1].line == 3


class TestScanErrors:
  """Test lexical error reporting"""

  def test_unexpected_character(self):
    scanner = scan("var a = 1 @ 2;")
    assert scanner.had_error
    assert scanner.errors[0].message == "Unexpected character '@'."
    assert str(scanner.errors[0]) == "[line 1] Error: Unexpected character '@'."

  def test_scanning_continues_after_bad_character(self):
    scanner = scan("# a\n$ b")
    assert len(scanner.errors) == 2
    assert scanner.errors[1].line == 2
    assert TokenType.IDENTIFIER in [t.type for t in scanner.tokens]

  def test_unterminated_string(self):
    scanner = scan('print("oops);')
    assert scanner.had_error
    assert scanner.errors[-1].message == "Unterminated string."

  def test_clean_source_has_no_errors(self):
    assert not scan("print(1 + 2);").had_error
