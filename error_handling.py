"""
Error taxonomy and diagnostic formatting for lang417
Every error aborts the running program; the driver turns it into a message
"""

from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class SourceSpan:
    """Source location of a token or node"""
    filename: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int
    text: str = ""

    def __str__(self) -> str:
        if self.start_line == self.end_line:
            return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_col}"
        return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


# ============================================================================
# ERROR CLASSES
# ============================================================================

class LangError(Exception):
    """Base class for every error the interpreter reports"""
    kind = "Error"

    def __init__(self, message: str, span: Optional[SourceSpan] = None):
        self.message = message
        self.span = span
        super().__init__(message)

    def __str__(self) -> str:
        if self.span:
            return f"{self.kind} at {self.span}: {self.message}"
        return f"{self.kind}: {self.message}"


class LexError(LangError):
    """No token rule matches the input"""
    kind = "LexError"

    def __init__(self, char: str, span: Optional[SourceSpan] = None, message: Optional[str] = None):
        self.char = char
        super().__init__(message or f"Unexpected character {char!r}", span)


class ParseError(LangError):
    """The token stream (or serialized program) is not a valid program"""
    kind = "ParseError"


class LangRuntimeError(LangError):
    """Base class for errors raised while evaluating a program"""
    kind = "RuntimeError"


class UndefinedVariable(LangRuntimeError):
    kind = "UndefinedVariable"


class UndefinedFunction(LangRuntimeError):
    kind = "UndefinedFunction"


class ArityMismatch(LangRuntimeError):
    kind = "ArityMismatch"


class TypeMismatch(LangRuntimeError):
    """A value of the wrong kind reached an operation"""
    kind = "TypeError"


class IndexOutOfRange(LangRuntimeError):
    kind = "IndexOutOfRange"


class EmptyArray(LangRuntimeError):
    kind = "EmptyArray"


class DivisionByZero(LangRuntimeError):
    kind = "DivisionByZero"


class DomainError(LangRuntimeError):
    kind = "DomainError"


# ============================================================================
# DIAGNOSTICS
# ============================================================================

def make_diagnostic(error: LangError, context: Optional[str] = None,
                    suggestions: Optional[List[str]] = None) -> Dict:
    """Create an immutable diagnostic structure"""
    span = error.span
    return {
        'kind': error.kind,
        'message': error.message,
        'line': span.start_line if span else 0,
        'column': span.start_col if span else 0,
        'filename': span.filename if span else None,
        'context': context,
        'suggestions': suggestions or []
    }


def get_context_lines(source_text: str, line_num: int, col_num: int, context_lines: int = 2) -> str:
    """Get context lines around the error"""
    lines = source_text.split('\n')
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        line_prefix = f"{i+1:4d}: "
        context_parts.append(f"{line_prefix}{lines[i]}")
        if i == line_num - 1:  # Error line
            context_parts.append(f"{'':6}{' ' * (col_num - 1)}^")

    return '\n'.join(context_parts)


def generate_suggestions(error: LangError) -> List[str]:
    """Hints for the mistakes people make most often"""
    suggestions = []
    message = error.message

    if isinstance(error, ParseError) and "';'" in message:
        suggestions.append("Every let, assignment and expression statement ends with ';'")

    if isinstance(error, UndefinedVariable):
        suggestions.append("Declare the variable with 'let' before assigning or reading it")

    if isinstance(error, UndefinedFunction):
        suggestions.append("Bind a lambda with 'let name = lambda(...) { ... };' before calling it")

    if isinstance(error, LexError) and error.char == "'":
        suggestions.append("String literals use double quotes")

    return suggestions


def format_diagnostic(error: LangError, source_text: Optional[str] = None) -> str:
    """Format an error for the diagnostic stream"""
    context = None
    if source_text and error.span and error.span.start_line > 0:
        context = get_context_lines(source_text, error.span.start_line, error.span.start_col)
    diagnostic = make_diagnostic(error, context, generate_suggestions(error))

    if diagnostic['line']:
        where = f"{diagnostic['filename']}:{diagnostic['line']}:{diagnostic['column']}"
        result = f"{diagnostic['kind']} at {where}: {diagnostic['message']}\n"
    else:
        result = f"{diagnostic['kind']}: {diagnostic['message']}\n"

    if diagnostic['context']:
        result += f"{diagnostic['context']}\n"

    if diagnostic['suggestions']:
        result += "  Suggestions:\n"
        for suggestion in diagnostic['suggestions']:
            result += f"    - {suggestion}\n"

    return result
