"""
Flags ``|``, ``&``, ``|=`` and ``&=`` applied to boolean operands.

The non-short-circuit forms evaluate both sides; on booleans ``||`` and
``&&`` are nearly always what was meant. An expression counts as boolean
when it holds a ``true``/``false`` literal or a name declared with a
boolean type.
"""

import re
from typing import FrozenSet, Iterator

from checks.base import Rule
from treecheck.engine.cursor import Cursor
from treecheck.engine.patterns import kind_is
from treecheck.models.node import Node, NodeKind

MSG_KEY = "avoid.not.short.circuit.operators.for.boolean"

_OPERATORS = frozenset({"|", "&"})
_ASSIGN_OPERATORS = frozenset({"|=", "&="})

BOOLEAN_TYPE = re.compile(r"[Bb]oolean(\[\])*")

# Nodes an expression is made of; the walk climbs through them to the full expression.
_EXPRESSION_KINDS = frozenset({
    NodeKind.BINARY_OP,
    NodeKind.LOGICAL_NOT,
    NodeKind.UNARY_OP,
    NodeKind.ASSIGN,
    NodeKind.TERNARY,
    NodeKind.PAREN,
    NodeKind.CAST,
})

_is_boolean_literal = kind_is(NodeKind.BOOLEAN_LITERAL)


class AvoidNotShortCircuitOperatorsForBoolean(Rule):
    """Reports bitwise boolean operators at the operator node."""

    @property
    def interest_kinds(self) -> FrozenSet[NodeKind]:
        return frozenset({NodeKind.BINARY_OP, NodeKind.ASSIGN})

    def enter(self, node: Node, cursor: Cursor) -> None:
        if node.kind == NodeKind.BINARY_OP:
            if node.text not in _OPERATORS:
                return
        elif node.kind == NodeKind.ASSIGN:
            if node.text not in _ASSIGN_OPERATORS:
                return
        else:
            raise self.unsupported(node)

        expression = _full_expression(node)
        if expression.find_descendant(_is_boolean_literal) is not None:
            cursor.report(node, MSG_KEY, node.text)
            return
        for operand in _operand_names(expression):
            symbol = cursor.resolve(operand)
            if symbol is not None and _declares_boolean(symbol.node):
                cursor.report(node, MSG_KEY, node.text)
                return


def _full_expression(node: Node) -> Node:
    while node.parent is not None and node.parent.kind in _EXPRESSION_KINDS:
        node = node.parent
    return node


def _operand_names(expression: Node) -> Iterator[Node]:
    """Plain names in the expression, not looking into method calls."""
    stack = [expression]
    while stack:
        node = stack.pop()
        if node.kind == NodeKind.METHOD_CALL:
            continue
        if node.kind == NodeKind.IDENTIFIER:
            yield node
        stack.extend(reversed(node.children))


def _declares_boolean(declaration: Node) -> bool:
    if declaration.kind not in (NodeKind.VARIABLE_DECL, NodeKind.FIELD_DECL, NodeKind.PARAMETER):
        return False
    type_node = declaration.first_child_of_kind(NodeKind.TYPE)
    return type_node is not None and BOOLEAN_TYPE.fullmatch(type_node.text or "") is not None
