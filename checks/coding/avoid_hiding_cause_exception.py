"""
Flags throws inside a catch block that drop the caught exception.

A throw statement passes the cause on when the last name it mentions is
the catch parameter, or a variable the handler derived from it (e.g.
``RuntimeException wrapped = new RuntimeException(e); throw wrapped;``).
"""

from typing import FrozenSet, Iterator, List, Optional, Set

from checks.base import Rule
from treecheck.engine.cursor import Cursor
from treecheck.models.node import Node, NodeKind

MSG_KEY = "avoid.hiding.cause.exception"

# Code below these runs in another context than the catch handler.
_OPAQUE_KINDS = frozenset({NodeKind.TRY, NodeKind.LAMBDA, NodeKind.CLASS_BODY})


class AvoidHidingCauseException(Rule):
    """Reports throw statements in a catch block that lose the original exception."""

    @property
    def interest_kinds(self) -> FrozenSet[NodeKind]:
        return frozenset({NodeKind.CATCH})

    def enter(self, node: Node, cursor: Cursor) -> None:
        if node.kind != NodeKind.CATCH:
            raise self.unsupported(node)
        caught = node.first_child_of_kind(NodeKind.PARAMETER).name
        body = node.first_child_of_kind(NodeKind.BLOCK)
        wrap_names = _wrap_names(body, caught)

        for throw in _throws(body):
            thrown = _last_identifier(throw)
            if thrown is None or _is_selected_member(thrown) or thrown.text not in wrap_names:
                cursor.report(throw, MSG_KEY, caught)


def _walk(root: Node, skip: FrozenSet[NodeKind]) -> Iterator[Node]:
    stack = list(reversed(root.children))
    while stack:
        node = stack.pop()
        yield node
        if node.kind not in skip:
            stack.extend(reversed(node.children))


def _throws(body: Node) -> List[Node]:
    return [n for n in _walk(body, _OPAQUE_KINDS | {NodeKind.THROW}) if n.kind == NodeKind.THROW]


def _last_identifier(throw: Node) -> Optional[Node]:
    last = None
    for node in _walk(throw, _OPAQUE_KINDS):
        if node.kind == NodeKind.IDENTIFIER:
            last = node
    return last


def _is_selected_member(identifier: Node) -> bool:
    parent = identifier.parent
    return (
        parent.kind in (NodeKind.FIELD_ACCESS, NodeKind.METHOD_CALL)
        and parent.first_child is not identifier
    )


def _wrap_names(body: Node, caught: str) -> Set[str]:
    """The caught name plus variables assigned from expressions mentioning it."""
    names = {caught}
    for node in body.iter_descendants():
        if node.kind != NodeKind.IDENTIFIER or node.text != caught or _is_selected_member(node):
            continue
        target = _assigned_name(node, body)
        if target is not None:
            names.add(target)
    return names


def _assigned_name(identifier: Node, body: Node) -> Optional[str]:
    child = identifier
    for ancestor in identifier.ancestors():
        if ancestor is body:
            return None
        if ancestor.kind == NodeKind.ASSIGN and child is not ancestor.first_child:
            target = ancestor.first_child
            return target.text if target.kind == NodeKind.IDENTIFIER else None
        if ancestor.kind == NodeKind.VARIABLE_DECL and child is not ancestor.first_child_of_kind(NodeKind.IDENTIFIER):
            return ancestor.name
        child = ancestor
    return None
