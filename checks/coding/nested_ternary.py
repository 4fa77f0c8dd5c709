"""
Flags a ternary expression nested directly inside another one.
"""

from typing import FrozenSet

from checks.base import Rule
from treecheck.engine.cursor import Cursor
from treecheck.engine.patterns import ancestor_has_kind, kind_is, unwrap_parens
from treecheck.models.node import Node, NodeKind

MSG_KEY = "nested.ternary"

_is_ternary = kind_is(NodeKind.TERNARY)
_in_ctor = ancestor_has_kind(NodeKind.CTOR_DECL)


class NestedTernary(Rule):
    """
    Reports ``a ? b : (c ? d : e)`` at the inner ternary.

    With ``ignoreFinal`` a nested ternary initializing a final variable is
    allowed, except inside constructors.
    """

    class Options(Rule.Options):
        ignore_final: bool = False

    @property
    def interest_kinds(self) -> FrozenSet[NodeKind]:
        return frozenset({NodeKind.TERNARY})

    def enter(self, node: Node, cursor: Cursor) -> None:
        if node.kind != NodeKind.TERNARY:
            raise self.unsupported(node)
        for child in node.children:
            nested = unwrap_parens(child)
            if not _is_ternary(nested):
                continue
            if self.options.ignore_final and _initializes_final(node) and not _in_ctor(node):
                continue
            cursor.report(nested, MSG_KEY)


def _initializes_final(node: Node) -> bool:
    for ancestor in node.ancestors():
        if ancestor.kind in (NodeKind.VARIABLE_DECL, NodeKind.FIELD_DECL):
            return ancestor.has_modifier("final")
    return False
