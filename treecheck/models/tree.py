"""
Linked, validated syntax tree handed to the traversal engine.
"""

import logging
from typing import Any, Dict, Iterator, Optional

from treecheck.errors import TreeInvariantError
from treecheck.models.node import REQUIRED_CHILDREN, TEXT_KINDS, Node

logger = logging.getLogger(__name__)


class SyntaxTree:
    """
    A root node plus the file it came from.

    Construction links every node to its parent and checks the tree
    invariants once; a tree that fails them is never traversed.
    """

    def __init__(self, root: Node, file_path: str = "<memory>"):
        """
        Link and validate a tree.

        Args:
            root: Root node, usually a COMPILATION_UNIT
            file_path: Path reported alongside diagnostics

        Raises:
            TreeInvariantError: If the tree is malformed
        """
        self.root = root
        self.file_path = file_path
        self.size = self._link_and_validate(root)
        logger.debug(f"Linked syntax tree for {file_path} with {self.size} nodes")

    @classmethod
    def from_dict(cls, data: Dict[str, Any], file_path: str = "<memory>") -> "SyntaxTree":
        """
        Build a tree from its plain-data form.

        Args:
            data: Nested mapping with kind/text/line/column/end_line/children keys
            file_path: Path reported alongside diagnostics

        Returns:
            Linked SyntaxTree
        """
        return cls(Node.model_validate(data), file_path=file_path)

    def __iter__(self) -> Iterator[Node]:
        yield self.root
        yield from self.root.iter_descendants()

    def __len__(self) -> int:
        return self.size

    @staticmethod
    def _link_and_validate(root: Node) -> int:
        seen = set()
        count = 0
        stack = [(root, None)]
        while stack:
            node, parent = stack.pop()
            if id(node) in seen:
                raise TreeInvariantError(
                    f"Node {node.kind.name} appears more than once in the tree",
                    node.position,
                )
            seen.add(id(node))
            count += 1

            if parent is not None:
                current = node.parent
                if current is not None and current is not parent:
                    raise TreeInvariantError(
                        f"Node {node.kind.name} already belongs to another tree",
                        node.position,
                    )
                node._link_parent(parent)

            _check_node(node)
            for child in reversed(node.children):
                stack.append((child, node))
        return count


def _check_node(node: Node) -> None:
    if node.kind in TEXT_KINDS and not node.text:
        raise TreeInvariantError(f"{node.kind.name} node has no text", node.position)

    for required in REQUIRED_CHILDREN.get(node.kind, ()):
        if node.first_child_of_kind(required) is None:
            raise TreeInvariantError(
                f"{node.kind.name} node is missing its {required.name} child",
                node.position,
            )

    previous: Optional[Node] = None
    for child in node.children:
        if previous is not None and child.position < previous.position:
            raise TreeInvariantError(
                f"Children of {node.kind.name} are out of source order",
                child.position,
            )
        previous = child

    # in-order flattening: only the first child may start before its parent
    children = node.children
    if len(children) > 1 and children[1].position < node.position:
        raise TreeInvariantError(
            f"{children[1].kind.name} child starts before its {node.kind.name} parent",
            children[1].position,
        )
