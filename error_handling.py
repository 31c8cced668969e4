"""
Error handling for the Lox pipeline
Every diagnostic is a (line, location, message) triple; helpers format and report them
"""

from typing import List, Optional, TextIO
import sys


# ============================================================================
# EXIT CODES
# ============================================================================

EXIT_OK = 0
EXIT_USAGE = 64
EXIT_STATIC_ERROR = 65
EXIT_NO_INPUT = 66
EXIT_RUNTIME_ERROR = 70


# ============================================================================
# EXCEPTION CLASSES
# ============================================================================

class LoxError(Exception):
    """Base class for every user-visible Lox diagnostic"""

    def __init__(self, line: int, location: str, message: str):
        self.line = line
        self.location = location
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return format_diagnostic(self)


class LoxScanError(LoxError):
    """Unexpected character or unterminated string in the source text"""

    def __init__(self, line: int, message: str):
        super().__init__(line, "", message)


class LoxParseError(LoxError):
    """A grammar production failed"""


class LoxResolveError(LoxError):
    """A static check failed while resolving variable bindings"""


class LoxRuntimeError(LoxError):
    """Error raised while executing a program; aborts the current run"""

    def __init__(self, token, message: str):
        self.token = token
        super().__init__(token.line if token is not None else 0,
                         token_location(token), message)


class LoxStaticError(Exception):
    """A scan, parse or resolve stage failed after recovering every error it could"""

    def __init__(self, stage: str, errors: List[LoxError]):
        self.stage = stage
        self.errors = list(errors)
        super().__init__(f"{stage} failed with {len(self.errors)} error(s)")

    def __str__(self) -> str:
        return "\n".join(format_diagnostic(error) for error in self.errors)


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def token_location(token) -> str:
    """Location hint for a token: ' at end' for EOF, " at 'lexeme'" otherwise"""
    if token is None:
        return ""
    if token.type.name == "EOF":
        return " at end"
    return f" at '{token.lexeme}'"


def format_diagnostic(error: LoxError) -> str:
    """Format a diagnostic the way every pipeline stage reports it"""
    return f"[line {error.line}] Error{error.location}: {error.message}"


def get_context_lines(source_text: str, line_num: int, context_lines: int = 1) -> str:
    """Get context lines around the error"""
    lines = source_text.split('\n')
    if line_num < 1 or line_num > len(lines):
        return ""

    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        marker = ">" if i == line_num - 1 else " "
        context_parts.append(f"{marker}{i+1:4d}: {lines[i]}")

    return '\n'.join(context_parts)


def report(error: LoxError, source_text: Optional[str] = None,
           stream: Optional[TextIO] = None) -> None:
    """Print a diagnostic, with surrounding source when it is known"""
    stream = stream if stream is not None else sys.stderr
    print(format_diagnostic(error), file=stream)

    if source_text:
        context = get_context_lines(source_text, error.line)
        if context:
            print(context, file=stream)


def report_all(errors: List[LoxError], source_text: Optional[str] = None,
               stream: Optional[TextIO] = None) -> None:
    """Report every recovered error of a failed stage"""
    for error in errors:
        report(error, source_text, stream)
