"""
Flags a nested block that takes up most of its parent block.

A block whose body spans more than ``maxChildBlockPercentage`` percent of
the lines of the enclosing block is usually better extracted into its own
method. Parent blocks of at most ``ignoreBlockLinesCount`` lines are not
examined.
"""

from typing import FrozenSet, List, Optional

from pydantic import Field

from checks.base import NodeKindList, Rule
from treecheck.engine.cursor import Cursor
from treecheck.models.node import Node, NodeKind

MSG_KEY = "child.block.length"

DEFAULT_BLOCK_TYPES = [
    NodeKind.IF,
    NodeKind.ELSE,
    NodeKind.WHILE,
    NodeKind.DO_WHILE,
    NodeKind.FOR,
    NodeKind.FOR_EACH,
    NodeKind.SWITCH,
    NodeKind.TRY,
    NodeKind.CATCH,
    NodeKind.FINALLY,
]

# Nested declarations are measured on their own.
_SKIPPED_KINDS = frozenset({NodeKind.METHOD_DECL, NodeKind.CLASS_DECL})

# Blocks that continue a statement beside its body rather than inside it.
_CONTINUATION_KINDS = frozenset({NodeKind.ELSE, NodeKind.CATCH, NodeKind.FINALLY})


def body_of(node: Node) -> Optional[Node]:
    """The braced body whose lines are measured: the node itself for SWITCH."""
    if node.kind == NodeKind.SWITCH:
        return node if node.end_line is not None else None
    return node.first_child_of_kind(NodeKind.BLOCK)


def lines_count(body: Node) -> int:
    """Lines strictly between the opening and the closing brace."""
    result = body.last_line - body.line
    if result != 0:
        result -= 1
    return result


class ChildBlockLength(Rule):
    """Reports child blocks longer than the allowed share of their parent."""

    class Options(Rule.Options):
        block_types: NodeKindList = DEFAULT_BLOCK_TYPES
        max_child_block_percentage: float = Field(80.0, ge=0, le=100)
        ignore_block_lines_count: int = Field(50, ge=0)

    @property
    def interest_kinds(self) -> FrozenSet[NodeKind]:
        return frozenset(self.options.block_types)

    def enter(self, node: Node, cursor: Cursor) -> None:
        body = body_of(node)
        if body is None:
            return
        parent_size = lines_count(body)
        if parent_size <= self.options.ignore_block_lines_count:
            return

        allowed = int(parent_size * self.options.max_child_block_percentage / 100.0)
        for child in self._child_blocks(body):
            child_body = body_of(child)
            if child_body is None:
                continue
            size = lines_count(child_body)
            if size / parent_size * 100.0 > self.options.max_child_block_percentage:
                cursor.report(child, MSG_KEY, size, allowed)

    def _child_blocks(self, body: Node) -> List[Node]:
        """Outermost blocks of the configured kinds inside ``body``."""
        kinds = self.interest_kinds
        found = []
        stack = list(reversed(body.children)) if body.kind != NodeKind.SWITCH else list(reversed(body.children[1:]))
        while stack:
            node = stack.pop()
            if node.kind in kinds:
                found.append(node)
                stack.extend(reversed(_continuations(node)))
                continue
            if node.kind in _SKIPPED_KINDS:
                continue
            stack.extend(reversed(node.children))
        return found


def _continuations(node: Node) -> List[Node]:
    result = []
    for child in node.children:
        if child.kind not in _CONTINUATION_KINDS:
            continue
        # else if: the nested IF is the next block of the chain
        nested = child.first_child
        if child.kind == NodeKind.ELSE and nested is not None and nested.kind == NodeKind.IF:
            result.append(nested)
        else:
            result.append(child)
    return result
