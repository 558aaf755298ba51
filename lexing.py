"""
lang417 tokenizer
Token rules are pyparsing expressions; scanning is lazy and stops at the
first character no rule accepts
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterator, List

from pyparsing import MatchFirst, ParserElement, Regex, col, lineno, one_of

from error_handling import LexError, SourceSpan

logger = logging.getLogger(__name__)


KEYWORDS = frozenset({'let', 'lambda', 'if', 'else', 'true', 'false'})
OPERATORS = ">= <= == != + - * / % < >"
PUNCTUATION = "{ } ( ) , = ;"


@dataclass(frozen=True)
class Token:
    """lang417 token with source information"""
    type: str
    value: Any
    span: SourceSpan

    @property
    def text(self) -> str:
        return self.span.text

    def is_punct(self, symbol: str) -> bool:
        return self.type == "PUNCT" and self.value == symbol

    def is_keyword(self, word: str) -> bool:
        return self.type == "KEYWORD" and self.value == word

    def __str__(self) -> str:
        return f"{self.type}({self.value!r})"


class Tokenizer:
    """lang417 tokenizer built on pyparsing token expressions"""

    def __init__(self, filename: str = "<input>", debug: bool = False):
        self.filename = filename
        self.debug = debug
        self._setup_token_patterns()

    def _setup_token_patterns(self):
        """Setup all token rules, highest priority first"""

        # Comments run to end of line and are dropped after scanning
        comment = Regex(r'//[^\n]*').set_parse_action(lambda t: ("COMMENT", t[0]))

        # String literals with escape sequences (no raw newlines inside)
        string_literal = Regex(r'"(?:[^"\\\n]|\\.)*"').set_parse_action(
            lambda t: ("STRING", t[0]))

        # Non-negative decimal integers; a leading '-' is an operator token
        integer = Regex(r'\d+(?![A-Za-z0-9_?])').set_parse_action(lambda t: ("INTEGER", t[0]))

        # Identifiers may end in a single '?', e.g. empty?
        identifier = Regex(r'[A-Za-z_][A-Za-z0-9_]*\??').set_parse_action(
            lambda t: ("KEYWORD" if t[0] in KEYWORDS else "IDENTIFIER", t[0]))

        # one_of matches the longest alternative first
        operator = one_of(OPERATORS).set_parse_action(lambda t: ("OPERATOR", t[0]))
        punctuation = one_of(PUNCTUATION).set_parse_action(lambda t: ("PUNCT", t[0]))

        self.token_expr: ParserElement = MatchFirst([
            comment, string_literal, integer, identifier, operator, punctuation
        ]).parse_with_tabs()

    def tokenize(self, text: str) -> Iterator[Token]:
        """Lazily yield tokens, ending with a single EOF token"""
        pos = 0
        for tokens, start, end in self.token_expr.scan_string(text):
            self._check_gap(text, pos, start)
            pos = end

            kind, lexeme = tokens[0]
            if kind == "COMMENT":
                continue

            token = Token(kind, self._decode(kind, lexeme), self._span(text, start, end))
            if self.debug:
                logger.debug("token %s at %s", token, token.span)
            yield token

        self._check_gap(text, pos, len(text))
        yield Token("EOF", None, self._span(text, len(text), len(text)))

    def _check_gap(self, text: str, start: int, end: int) -> None:
        """Anything but whitespace between two matches is a lex error"""
        for offset, char in enumerate(text[start:end]):
            if char.isspace():
                continue
            loc = start + offset
            span = self._span(text, loc, loc + 1)
            if char == '"':
                raise LexError(char, span, "Unterminated string literal")
            raise LexError(char, span)

    def _span(self, text: str, start: int, end: int) -> SourceSpan:
        start_line, start_col = lineno(start, text), col(start, text)
        end_line, end_col = lineno(end, text), col(end, text)
        return SourceSpan(self.filename, start_line, start_col, end_line, end_col, text[start:end])

    def _decode(self, kind: str, lexeme: str) -> Any:
        if kind == "INTEGER":
            return int(lexeme)
        if kind == "STRING":
            return self._process_string_escapes(lexeme[1:-1])
        return lexeme

    def _process_string_escapes(self, s: str) -> str:
        """Process escape sequences in strings"""
        escape_map = {
            'n': '\n', 't': '\t', 'r': '\r', '\\': '\\', '"': '"', '0': '\0'
        }

        result = []
        i = 0
        while i < len(s):
            if s[i] == '\\' and i + 1 < len(s):
                next_char = s[i + 1]
                if next_char in escape_map:
                    result.append(escape_map[next_char])
                    i += 2
                else:
                    # Unknown escape, keep as-is
                    result.append(s[i])
                    i += 1
            else:
                result.append(s[i])
                i += 1

        return ''.join(result)


def tokenize(text: str, filename: str = "<input>", debug: bool = False) -> Iterator[Token]:
    return Tokenizer(filename, debug).tokenize(text)


def tokenize_all(text: str, filename: str = "<input>") -> List[Token]:
    """Eager variant for tests and the --tokens listing"""
    return list(tokenize(text, filename))


def format_token(token: Token) -> str:
    span = token.span
    return f"{span.start_line:4d}:{span.start_col:<4d} {token.type:<10} {token.text}"
