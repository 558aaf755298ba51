"""
lang417 Parser
Recursive descent over the token stream with one token of lookahead.
Every compound expression is a call, so there is no precedence climbing.
"""

import logging
from typing import Iterator, List, Optional, Tuple

from ast_nodes import (
    Assign, Block, Call, Cond, ExprStatement, Identifier, Lambda, LetDecl,
    Literal, Node, Program
)
from error_handling import ParseError, SourceSpan
from lexing import Token, Tokenizer
from values import Int, Str, TRUE, FALSE

logger = logging.getLogger(__name__)


def describe_token(token: Token) -> str:
    if token.type == "EOF":
        return "end of input"
    return repr(token.text)


class Parser:
    """Builds an AST from a token iterator"""

    def __init__(self, tokens: Iterator[Token], debug: bool = False):
        self.tokens = iter(tokens)
        self.debug = debug
        self.previous: Optional[Token] = None
        self.current: Token = next(self.tokens)
        self.peek: Token = self._pull()

    # ------------------------------------------------------------------
    # token plumbing
    # ------------------------------------------------------------------

    def _pull(self) -> Token:
        if self.current.type == "EOF":
            return self.current
        return next(self.tokens)

    def _advance(self) -> Token:
        token = self.current
        self.previous = token
        self.current = self.peek
        self.peek = self._pull()
        return token

    def _error(self, message: str, token: Optional[Token] = None) -> ParseError:
        token = token or self.current
        return ParseError(f"{message}, got {describe_token(token)}", token.span)

    def _expect_punct(self, symbol: str, context: str) -> Token:
        if not self.current.is_punct(symbol):
            raise self._error(f"Expected '{symbol}' {context}")
        return self._advance()

    def _expect_name(self, context: str) -> Token:
        if self.current.type != "IDENTIFIER":
            raise self._error(f"Expected a name {context}")
        return self._advance()

    def _expect_terminator(self) -> None:
        """';' ends a statement; it may be left out right after a '}'"""
        if self.current.is_punct(';'):
            self._advance()
        elif not (self.previous and self.previous.is_punct('}')):
            raise self._error("Expected ';' after statement")

    def _span_from(self, start: Token) -> SourceSpan:
        end = self.previous or start
        return SourceSpan(start.span.filename, start.span.start_line, start.span.start_col,
                          end.span.end_line, end.span.end_col)

    # ------------------------------------------------------------------
    # program and statements
    # ------------------------------------------------------------------

    def parse_program(self) -> Program:
        """A program is one brace-delimited block, or a bare statement list"""
        start = self.current
        statements = []
        while self.current.type != "EOF":
            statements.append(self.parse_statement())

        if len(statements) == 1 and isinstance(statements[0], Block):
            statements = list(statements[0].statements)

        program = Program(tuple(statements), self._span_from(start))
        if self.debug:
            logger.debug("parsed program with %d statements", len(program.statements))
        return program

    def parse_statement(self) -> Node:
        start = self.current

        if start.is_keyword('let'):
            self._advance()
            name = self._expect_name("after 'let'")
            self._expect_punct('=', f"after 'let {name.value}'")
            init = self.parse_expression()
            self._expect_terminator()
            return LetDecl(name.value, init, self._span_from(start))

        if start.type == "IDENTIFIER" and self.peek.is_punct('='):
            name = self._advance()
            self._advance()
            expr = self.parse_expression()
            self._expect_terminator()
            return Assign(name.value, expr, self._span_from(start))

        if start.is_punct('{'):
            block = self.parse_block()
            if self.current.is_punct(';'):
                self._advance()
            return block

        expr = self.parse_expression()
        self._expect_terminator()
        return ExprStatement(expr, self._span_from(start))

    def parse_block(self) -> Block:
        start = self._expect_punct('{', "to open a block")
        statements = []
        while not self.current.is_punct('}'):
            if self.current.type == "EOF":
                raise self._error("Expected '}' to close the block opened at "
                                  f"line {start.span.start_line}")
            statements.append(self.parse_statement())
        self._advance()
        return Block(tuple(statements), self._span_from(start))

    # ------------------------------------------------------------------
    # expressions
    # ------------------------------------------------------------------

    def parse_expression(self) -> Node:
        token = self.current

        if token.type == "INTEGER":
            self._advance()
            return Literal(Int(token.value), token.span)

        if token.type == "STRING":
            self._advance()
            return Literal(Str(token.value), token.span)

        if token.is_keyword('true') or token.is_keyword('false'):
            self._advance()
            return Literal(TRUE if token.value == 'true' else FALSE, token.span)

        if token.is_keyword('lambda'):
            return self.parse_lambda()

        if token.is_keyword('if'):
            return self.parse_if()

        if token.type in ("IDENTIFIER", "OPERATOR"):
            if self.peek.is_punct('('):
                return self.parse_call()
            if token.value == '-' and self.peek.type == "INTEGER":
                self._advance()
                number = self._advance()
                return Literal(Int(-number.value), self._span_from(token))
            self._advance()
            return Identifier(token.value, token.span)

        raise self._error("Expected an expression")

    def parse_call(self) -> Call:
        start = self._advance()
        self._expect_punct('(', f"after '{start.value}'")
        args = self._parse_comma_list(self.parse_expression, f"in call to '{start.value}'")
        return Call(start.value, tuple(args), self._span_from(start))

    def parse_lambda(self) -> Lambda:
        start = self._advance()
        self._expect_punct('(', "after 'lambda'")
        params = self._parse_comma_list(
            lambda: self._expect_name("in lambda parameter list").value,
            "in lambda parameter list")
        for i, name in enumerate(params):
            if name in params[:i]:
                raise ParseError(f"Duplicate parameter '{name}' in lambda", start.span)
        body = self.parse_block()
        return Lambda(tuple(params), body, self._span_from(start))

    def parse_if(self) -> Cond:
        """if (test) { ... } else if (test) { ... } else { ... }"""
        start = self._advance()
        self._expect_punct('(', "after 'if'")
        test = self.parse_expression()
        self._expect_punct(')', "after if condition")
        clauses: List[Tuple[Node, Node]] = [(test, self.parse_block())]

        if self.current.is_keyword('else'):
            else_token = self._advance()
            if self.current.is_keyword('if'):
                clauses.extend(self.parse_if().clauses)
            else:
                clauses.append((Literal(TRUE, else_token.span), self.parse_block()))

        return Cond(tuple(clauses), self._span_from(start))

    def _parse_comma_list(self, parse_item, context: str) -> list:
        """Items up to and including the closing ')'"""
        items = []
        if self.current.is_punct(')'):
            self._advance()
            return items
        while True:
            items.append(parse_item())
            if self.current.is_punct(','):
                self._advance()
                continue
            self._expect_punct(')', f"or ',' {context}")
            return items

    def expect_end(self) -> None:
        if self.current.type != "EOF":
            raise self._error("Expected end of input")


class LangParser:
    """Main parser interface"""

    def __init__(self, debug: bool = False):
        self.debug = debug

    def parse_string(self, text: str, filename: str = "<input>") -> Program:
        return Parser(self.tokenize(text, filename), self.debug).parse_program()

    def parse_expression(self, text: str, filename: str = "<input>") -> Node:
        parser = Parser(self.tokenize(text, filename), self.debug)
        expr = parser.parse_expression()
        parser.expect_end()
        return expr

    def tokenize(self, text: str, filename: str = "<input>") -> Iterator[Token]:
        return Tokenizer(filename, self.debug).tokenize(text)


def create_parser(debug: bool = False) -> LangParser:
    """Factory function to create a parser"""
    return LangParser(debug)


def create_debug_parser() -> LangParser:
    """Factory function to create a debug parser"""
    return LangParser(debug=True)
