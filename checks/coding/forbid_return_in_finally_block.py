"""
Forbids ``return`` inside a ``finally`` block.

A return there silently discards any exception thrown from the try
block. Returns in methods of anonymous classes or in lambdas declared
inside the finally block are not affected.
"""

from typing import FrozenSet

from checks.base import Rule
from treecheck.engine.cursor import Cursor
from treecheck.engine.frames import FrameKind
from treecheck.models.node import Node, NodeKind

MSG_KEY = "forbid.return.in.finally.block"


class ForbidReturnInFinallyBlock(Rule):
    """Reports each return statement executed as part of a finally block."""

    @property
    def interest_kinds(self) -> FrozenSet[NodeKind]:
        return frozenset({NodeKind.RETURN})

    def enter(self, node: Node, cursor: Cursor) -> None:
        if node.kind != NodeKind.RETURN:
            raise self.unsupported(node)
        if not cursor.frame.in_finally:
            return
        finally_frame = cursor.enclosing_frame(FrameKind.FINALLY)
        cursor.report(finally_frame.node, MSG_KEY)
