"""
Flags conditions written as an inverted comparison, e.g. ``!(a == b)``.

Such conditions read better with the inverse operator (``a != b``) or,
for conjunctions and disjunctions, after applying De Morgan's laws.
"""

from typing import FrozenSet, Optional

from checks.base import Rule
from treecheck.engine.cursor import Cursor
from treecheck.engine.patterns import is_conditional, is_relational, kind_is, unwrap_parens
from treecheck.models.node import Node, NodeKind

MSG_KEY = "avoid.condition.inversion"

_is_inversion = kind_is(NodeKind.LOGICAL_NOT)
_is_identifier = kind_is(NodeKind.IDENTIFIER)


class AvoidConditionInversion(Rule):
    """
    Reports ``!`` applied to a relational or conditional expression.

    With ``applyOnlyToRelationalOperands`` a conditional expression is only
    reported when each of its operands is a relational comparison or a
    non-identifier leaf, i.e. when inverting it needs no further negation.
    """

    class Options(Rule.Options):
        apply_only_to_relational_operands: bool = False

    @property
    def interest_kinds(self) -> FrozenSet[NodeKind]:
        return frozenset({
            NodeKind.RETURN,
            NodeKind.IF,
            NodeKind.WHILE,
            NodeKind.DO_WHILE,
            NodeKind.FOR_CONDITION,
        })

    def enter(self, node: Node, cursor: Cursor) -> None:
        inversion = self._inversion(node)
        if inversion is not None and self._is_avoidable(inversion):
            cursor.report(inversion, MSG_KEY)

    def _inversion(self, node: Node) -> Optional[Node]:
        if node.kind in (NodeKind.RETURN, NodeKind.IF, NodeKind.WHILE, NodeKind.FOR_CONDITION):
            condition = node.first_child
        elif node.kind == NodeKind.DO_WHILE:
            condition = node.last_child
        else:
            raise self.unsupported(node)
        # empty return or for(;;)
        condition = unwrap_parens(condition)
        return condition if _is_inversion(condition) else None

    def _is_avoidable(self, inversion: Node) -> bool:
        operand = unwrap_parens(inversion.first_child)
        if is_relational(operand):
            return True
        if not is_conditional(operand):
            return False
        if not self.options.apply_only_to_relational_operands:
            return True
        return all(_is_relational_operand(child) for child in operand.children)


def _is_relational_operand(operand: Node) -> bool:
    operand = unwrap_parens(operand)
    if _is_identifier(operand):
        return False
    return operand.is_leaf or is_relational(operand)
