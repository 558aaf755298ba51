"""
Serialized program representation
JSON produced by the front end's `parse -a`: every node is a one-key object
naming its variant in PascalCase, e.g. {"Application": [{"Identifier": "add"},
{"Number": 1}, {"Number": 2}]}
"""

import json
import logging
from typing import Any, Dict, List

from ast_nodes import (
    Apply, Assign, Block, Call, Cond, ExprStatement, Identifier, Lambda,
    LetDecl, Literal, Node, Program
)
from error_handling import ParseError, SourceSpan
from values import Bool, Int, Str, TRUE, FALSE

logger = logging.getLogger(__name__)


BOOLEAN_NAMES = {'true': TRUE, 'false': FALSE}


# ============================================================================
# DECODING
# ============================================================================

class WireDecoder:
    """Turns decoded JSON into AST nodes"""

    def __init__(self, filename: str = "<ast>"):
        self.filename = filename
        self.expression_handlers = {
            'Number': self._number,
            'String': self._string,
            'Bool': self._bool,
            'Identifier': self._identifier,
            'Application': self._application,
            'Lambda': self._lambda,
            'Block': self._block,
            'Cond': self._cond,
            'Let': lambda payload: Block(tuple(self._let(payload))),
            'Assignment': self._assignment_expression,
        }

    def error(self, message: str) -> ParseError:
        return ParseError(message, SourceSpan(self.filename, 0, 0, 0, 0))

    def _unwrap(self, data: Any):
        if not isinstance(data, dict) or len(data) != 1:
            raise self.error(f"Expected a single-variant object, got {json.dumps(data)[:60]}")
        return next(iter(data.items()))

    def _expect_list(self, variant: str, payload: Any, length: int = -1) -> List:
        if not isinstance(payload, list) or (length >= 0 and len(payload) != length):
            shape = f"a list of {length} items" if length >= 0 else "a list"
            raise self.error(f"'{variant}' expects {shape}")
        return payload

    def _name(self, data: Any, context: str) -> str:
        variant, payload = self._unwrap(data)
        if variant != 'Identifier' or not isinstance(payload, str):
            raise self.error(f"Expected an Identifier {context}")
        return payload

    def program(self, data: Any) -> Program:
        return Program(tuple(self._spliced(data)))

    def _spliced(self, data: Any) -> List[Node]:
        """A Block's statements, or the statements of any other single node"""
        variant, payload = self._unwrap(data)
        if variant != 'Block':
            return self.statements(data)
        statements = []
        for item in self._expect_list(variant, payload):
            statements.extend(self.statements(item))
        return statements

    def statements(self, data: Any) -> List[Node]:
        """Statements one node contributes to the enclosing block"""
        variant, payload = self._unwrap(data)
        if variant == 'Let':
            return self._let(payload)
        if variant == 'Assignment':
            return [self._assignment(payload)]
        node = self.expression(data)
        if isinstance(node, Block):
            return [node]
        return [ExprStatement(node)]

    def expression(self, data: Any) -> Node:
        variant, payload = self._unwrap(data)
        handler = self.expression_handlers.get(variant)
        if handler is None:
            raise self.error(f"Unknown node variant '{variant}'")
        return handler(payload)

    def _number(self, payload: Any) -> Node:
        if isinstance(payload, bool) or not isinstance(payload, int):
            raise self.error("'Number' expects an integer")
        return Literal(Int(payload))

    def _string(self, payload: Any) -> Node:
        if not isinstance(payload, str):
            raise self.error("'String' expects text")
        return Literal(Str(payload))

    def _bool(self, payload: Any) -> Node:
        if not isinstance(payload, bool):
            raise self.error("'Bool' expects true or false")
        return Literal(Bool(payload))

    def _identifier(self, payload: Any) -> Node:
        if not isinstance(payload, str):
            raise self.error("'Identifier' expects a name")
        if payload in BOOLEAN_NAMES:
            return Literal(BOOLEAN_NAMES[payload])
        return Identifier(payload)

    def _application(self, payload: Any) -> Node:
        items = self._expect_list('Application', payload)
        if not items:
            raise self.error("'Application' needs a function")
        head = self.expression(items[0])
        args = tuple(self.expression(item) for item in items[1:])
        if isinstance(head, Identifier):
            return Call(head.name, args)
        return Apply(head, args)

    def _lambda(self, payload: Any) -> Node:
        if isinstance(payload, dict) and set(payload) == {'Parameters', 'Body'}:
            raw_params, raw_body = payload['Parameters'], payload['Body']
        else:
            params_node, raw_body = self._expect_list('Lambda', payload, 2)
            variant, raw_params = self._unwrap(params_node)
            if variant != 'Parameters':
                raise self.error("'Lambda' expects Parameters first")
        params = tuple(self._name(p, "in lambda parameters")
                       for p in self._expect_list('Parameters', raw_params))
        body = self.expression(raw_body)
        if not isinstance(body, Block):
            body = Block((ExprStatement(body),))
        return Lambda(params, body)

    def _block(self, payload: Any) -> Block:
        return Block(tuple(self._spliced({'Block': payload})))

    def _cond(self, payload: Any) -> Node:
        clauses = []
        for item in self._expect_list('Cond', payload):
            variant, clause = self._unwrap(item)
            if variant != 'Clause':
                raise self.error("'Cond' expects Clause entries")
            test, body = self._expect_list('Clause', clause, 2)
            clauses.append((self.expression(test), self.expression(body)))
        return Cond(tuple(clauses))

    def _let(self, payload: Any) -> List[Node]:
        name, value, body = self._expect_list('Let', payload, 3)
        decl = LetDecl(self._name(name, "as the let target"), self.expression(value))
        # the body runs in the scope the let binds into
        return [decl] + self._spliced(body)

    def _assignment(self, payload: Any) -> Assign:
        name, value = self._expect_list('Assignment', payload, 2)
        return Assign(self._name(name, "as the assignment target"), self.expression(value))

    def _assignment_expression(self, payload: Any) -> Node:
        assign = self._assignment(payload)
        return Block((assign, ExprStatement(Identifier(assign.name))))


def decode_program(text: str, filename: str = "<ast>") -> Program:
    """Read the serialized representation into a Program"""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        span = SourceSpan(filename, e.lineno, e.colno, e.lineno, e.colno)
        raise ParseError(f"Malformed program representation: {e.msg}", span) from e
    program = WireDecoder(filename).program(data)
    logger.debug("decoded program with %d statements", len(program.statements))
    return program


# ============================================================================
# ENCODING
# ============================================================================

def encode_node(node: Node) -> Dict:
    if isinstance(node, Literal):
        value = node.value
        if isinstance(value, Int):
            return {'Number': value.value}
        if isinstance(value, Str):
            return {'String': value.value}
        if isinstance(value, Bool):
            return {'Identifier': 'true' if value.value else 'false'}
        raise ValueError(f"Cannot encode literal {value!r}")
    if isinstance(node, Identifier):
        return {'Identifier': node.name}
    if isinstance(node, Call):
        return {'Application': [{'Identifier': node.callee}] + [encode_node(a) for a in node.args]}
    if isinstance(node, Apply):
        return {'Application': [encode_node(node.function)] + [encode_node(a) for a in node.args]}
    if isinstance(node, Lambda):
        params = {'Parameters': [{'Identifier': p} for p in node.params]}
        return {'Lambda': [params, encode_node(node.body)]}
    if isinstance(node, Cond):
        return {'Cond': [{'Clause': [encode_node(t), encode_node(b)]} for t, b in node.clauses]}
    if isinstance(node, Block):
        return {'Block': encode_statements(list(node.statements))}
    if isinstance(node, ExprStatement):
        return encode_node(node.expr)
    if isinstance(node, Assign):
        return {'Assignment': [{'Identifier': node.name}, encode_node(node.expr)]}
    if isinstance(node, LetDecl):
        return encode_statements([node])[0]
    raise ValueError(f"Cannot encode node {type(node).__name__}")


def encode_statements(statements: List[Node]) -> List[Dict]:
    """A let takes the rest of its block as its body"""
    encoded = []
    for i, statement in enumerate(statements):
        if isinstance(statement, LetDecl):
            rest = encode_statements(statements[i + 1:])
            body = rest[0] if len(rest) == 1 else {'Block': rest}
            encoded.append({'Let': [{'Identifier': statement.name}, encode_node(statement.init), body]})
            return encoded
        encoded.append(encode_node(statement))
    return encoded


def encode_program(program: Program, indent=None) -> str:
    return json.dumps({'Block': encode_statements(list(program.statements))}, indent=indent)
